"""Board-level helpers for the Mergers rules engine.

The hotel grid is addressed by ids of the form ``"<column>-<row letter>"``
(``"3-B"`` is the third column of the second row). Columns are 1-based in ids
and 0-based everywhere else.
"""
from __future__ import annotations

import hashlib
import json
from typing import Dict, Iterable, List, Optional

from . import config
from .errors import ConfigurationError
from .models import Chain, GameState, Hotel

__all__ = ["BoardManager", "PRICE_TIER_PREMIUM"]

# Flat premium added to the base price for each chain tier.
PRICE_TIER_PREMIUM: Dict[Chain, int] = {
    Chain.TOWER: 0,
    Chain.LUXOR: 0,
    Chain.WORLDWIDE: 100,
    Chain.AMERICAN: 100,
    Chain.FESTIVAL: 100,
    Chain.CONTINENTAL: 200,
    Chain.IMPERIAL: 200,
}

# (exclusive upper size, base price) for chains of six or more hotels.
_BASE_PRICE_BANDS = (
    (11, 600),
    (21, 700),
    (31, 800),
    (41, 900),
)
_TOP_BASE_PRICE = 1000


class BoardManager:
    """Helper for board‑level operations.

    Providing:

    - grid construction and row/column addressing,
    - adjacency, chain size and stock price lookups,
    - chain absorption (flood fill) and tile playability, and
    - state hashing for determinism checks.

    Everything here is a static method. Only ``absorb_new_hotels`` mutates
    the state it is handed; every other helper is a pure read.
    """

    # ------------------------------------------------------------------
    # Grid construction and addressing
    # ------------------------------------------------------------------

    @staticmethod
    def row_to_letter(row: int) -> str:
        return config.ROW_LETTERS[row]

    @staticmethod
    def hotel_id(row: int, column: int) -> str:
        """Return the id for the tile at 0-based ``row`` / ``column``."""
        return f"{column + 1}-{BoardManager.row_to_letter(row)}"

    @staticmethod
    def build_grid(
        rows: int = config.DEFAULT_NUM_ROWS,
        columns: int = config.DEFAULT_NUM_COLUMNS,
    ) -> List[List[Hotel]]:
        """Build an empty ``rows`` x ``columns`` grid of unplaced hotels."""
        if rows > config.DEFAULT_NUM_ROWS:
            raise ConfigurationError(
                f"Cannot build hotel grid with more than "
                f"{config.DEFAULT_NUM_ROWS} rows",
                context={"rows": rows},
            )
        if rows < 1 or columns < 1:
            raise ConfigurationError(
                "Hotel grid needs at least one row and one column",
                context={"rows": rows, "columns": columns},
            )
        return [
            [Hotel(id=BoardManager.hotel_id(r, c)) for c in range(columns)]
            for r in range(rows)
        ]

    @staticmethod
    def get_row(hotel: Hotel | str) -> int:
        """0-based row of a hotel or hotel id, or -1 if the id is malformed."""
        hotel_id = hotel.id if isinstance(hotel, Hotel) else hotel
        parts = hotel_id.split("-")
        if len(parts) != 2 or parts[1] not in config.ROW_LETTERS:
            return -1
        return config.ROW_LETTERS.index(parts[1])

    @staticmethod
    def get_column(hotel: Hotel | str) -> int:
        """0-based column of a hotel or hotel id, or -1 if malformed."""
        hotel_id = hotel.id if isinstance(hotel, Hotel) else hotel
        parts = hotel_id.split("-")
        if len(parts) != 2 or not parts[0].isdigit():
            return -1
        return int(parts[0]) - 1

    @staticmethod
    def get_hotel(state: GameState, hotel_id: str) -> Optional[Hotel]:
        """Return the hotel with ``hotel_id`` or ``None`` if it is off the grid."""
        r = BoardManager.get_row(hotel_id)
        c = BoardManager.get_column(hotel_id)
        if r < 0 or c < 0 or r >= len(state.hotels) or c >= len(state.hotels[r]):
            return None
        return state.hotels[r][c]

    @staticmethod
    def all_hotels(state: GameState) -> List[Hotel]:
        """Every tile, row by row."""
        return [h for row in state.hotels for h in row]

    @staticmethod
    def adjacent_hotels(state: GameState, hotel: Hotel) -> List[Hotel]:
        """Placed hotels one row or one column away (never diagonal)."""
        r = BoardManager.get_row(hotel)
        c = BoardManager.get_column(hotel)
        adjacent: List[Hotel] = []
        for dr, dc in ((-1, 0), (0, -1), (0, 1), (1, 0)):
            nr, nc = r + dr, c + dc
            if 0 <= nr < len(state.hotels) and 0 <= nc < len(state.hotels[nr]):
                neighbour = state.hotels[nr][nc]
                if neighbour.has_been_placed:
                    adjacent.append(neighbour)
        return adjacent

    @staticmethod
    def player_hotels(state: GameState, player_id: str) -> List[Hotel]:
        """The tiles currently in ``player_id``'s rack."""
        return [
            h
            for h in BoardManager.all_hotels(state)
            if h.drawn_by_player == player_id
            and not h.has_been_placed
            and not h.has_been_removed
        ]

    @staticmethod
    def top_left_most_hotel(state: GameState) -> Optional[Hotel]:
        """The placed hotel closest to the top left, row letter first."""
        placed = [h for h in BoardManager.all_hotels(state) if h.has_been_placed]
        if not placed:
            return None
        return min(
            placed,
            key=lambda h: (BoardManager.get_row(h), BoardManager.get_column(h)),
        )

    # ------------------------------------------------------------------
    # Chains and prices
    # ------------------------------------------------------------------

    @staticmethod
    def size_of_chain(state: GameState, chain: Chain) -> int:
        return sum(1 for h in BoardManager.all_hotels(state) if h.chain == chain)

    @staticmethod
    def chain_sizes(state: GameState) -> Dict[Chain, int]:
        """Size of every chain, including unfounded ones at zero."""
        sizes = {chain: 0 for chain in Chain}
        for h in BoardManager.all_hotels(state):
            if h.chain is not None:
                sizes[h.chain] += 1
        return sizes

    @staticmethod
    def chains_on_board(state: GameState) -> List[Chain]:
        """Founded chains, in table order."""
        sizes = BoardManager.chain_sizes(state)
        return [chain for chain in Chain if sizes[chain] > 0]

    @staticmethod
    def price_of_stock_by_size(chain: Chain, size: int) -> Optional[int]:
        """Share price of ``chain`` at ``size`` hotels, ``None`` if unfounded."""
        if size <= 0:
            return None

        if size < 6:
            base_price = size * 100
        else:
            base_price = _TOP_BASE_PRICE
            for upper, price in _BASE_PRICE_BANDS:
                if size < upper:
                    base_price = price
                    break

        return base_price + PRICE_TIER_PREMIUM[chain]

    @staticmethod
    def price_of_stock(state: GameState, chain: Chain) -> Optional[int]:
        return BoardManager.price_of_stock_by_size(
            chain, BoardManager.size_of_chain(state, chain)
        )

    @staticmethod
    def majority_bonus(state: GameState, chain: Chain) -> int:
        price = BoardManager.price_of_stock(state, chain)
        return 0 if price is None else price * 10

    @staticmethod
    def minority_bonus(state: GameState, chain: Chain) -> int:
        price = BoardManager.price_of_stock(state, chain)
        return 0 if price is None else price * 5

    # ------------------------------------------------------------------
    # Absorption and playability
    # ------------------------------------------------------------------

    @staticmethod
    def absorb_new_hotels(
        state: GameState,
        chain: Chain,
        hotel_id: str,
        absorbable: Iterable[Chain] = (),
    ) -> List[str]:
        """Assign ``chain`` to ``hotel_id`` and every tile connected to it.

        The fill spreads through placed tiles that are unclaimed, already in
        ``chain``, or in one of the ``absorbable`` chains (the chains being
        merged away). Tiles of any other chain stop the fill.

        Mutates ``state`` in place and returns the ids whose chain changed.
        """
        start = BoardManager.get_hotel(state, hotel_id)
        if start is None:
            return []

        passable = set(absorbable)
        passable.add(chain)

        changed: List[str] = []
        visited = {start.id}
        stack = [start]
        while stack:
            hotel = stack.pop()
            if hotel.chain != chain:
                hotel.chain = chain
                changed.append(hotel.id)
            for neighbour in BoardManager.adjacent_hotels(state, hotel):
                if neighbour.id in visited:
                    continue
                if neighbour.chain is not None and neighbour.chain not in passable:
                    continue
                visited.add(neighbour.id)
                stack.append(neighbour)
        return changed

    @staticmethod
    def adjacent_chains(state: GameState, hotel: Hotel) -> List[Chain]:
        """Distinct chains touching ``hotel``, in table order."""
        touching = {
            h.chain for h in BoardManager.adjacent_hotels(state, hotel) if h.chain
        }
        return [chain for chain in Chain if chain in touching]

    @staticmethod
    def is_permanently_unplayable(
        state: GameState,
        hotel: Hotel,
        max_mergeable_size: Optional[int] = None,
    ) -> bool:
        """True if placing ``hotel`` would merge two chains too big to merge."""
        if hotel.has_been_placed:
            return False
        if max_mergeable_size is None:
            max_mergeable_size = state.rules_options.unmergeable_size
        sizes = BoardManager.chain_sizes(state)
        unmergeable = [
            c
            for c in BoardManager.adjacent_chains(state, hotel)
            if sizes[c] > max_mergeable_size
        ]
        return len(unmergeable) > 1

    @staticmethod
    def is_temporarily_unplayable(state: GameState, hotel: Hotel) -> bool:
        """True if ``hotel`` would found a chain while all chains are in use."""
        if hotel.has_been_placed:
            return False
        if len(BoardManager.chains_on_board(state)) < len(Chain):
            return False
        adjacent = BoardManager.adjacent_hotels(state, hotel)
        return len(adjacent) > 0 and all(h.chain is None for h in adjacent)

    @staticmethod
    def is_unplayable(state: GameState, hotel: Hotel) -> bool:
        if hotel.has_been_placed:
            return False
        return BoardManager.is_permanently_unplayable(
            state, hotel
        ) or BoardManager.is_temporarily_unplayable(state, hotel)

    # ------------------------------------------------------------------
    # Hashing
    # ------------------------------------------------------------------

    @staticmethod
    def hash_game_state(state: GameState) -> str:
        """Canonical SHA-256 fingerprint of the full state."""
        payload = json.dumps(
            state.model_dump(mode="json", by_alias=True),
            sort_keys=True,
            separators=(",", ":"),
        )
        return hashlib.sha256(payload.encode("utf-8")).hexdigest()
