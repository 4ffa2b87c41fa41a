"""Merger sequencing.

A merger starts when a placed tile touches two or more chains. The chains
are ordered largest first; the largest survives and the rest are merged into
it one at a time, largest first. Whenever two candidates are the same size
the triggering player breaks the tie. For each merged chain the holders are
paid their bonuses, then every holder, starting with the triggering player
and going once around the table, decides what to do with their shares.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from ..board_manager import BoardManager
from ..errors import InvalidStateError, RulesViolationError
from ..models import Chain, GameState, Merger, SwapAndSell
from .bonuses import award_bonuses

logger = logging.getLogger(__name__)

_CHAIN_ORDER = {chain: i for i, chain in enumerate(Chain)}


def require_merger(state: GameState) -> Merger:
    if state.merger is None:
        raise InvalidStateError(
            "No merger is in progress",
            context={"phase": state.current_phase.value},
        )
    return state.merger


def sort_largest_first(state: GameState, chains: Iterable[Chain]) -> List[Chain]:
    """Sort by size descending; equal sizes fall back to table order."""
    sizes = BoardManager.chain_sizes(state)
    return sorted(chains, key=lambda c: (-sizes[c], _CHAIN_ORDER[c]))


def start_merger(
    state: GameState, player_id: str, hotel_id: str, chains: Iterable[Chain]
) -> Merger:
    """Open a merger record for the tile ``hotel_id`` placed by ``player_id``."""
    merger = Merger(
        triggeredBy=player_id,
        triggeringHotel=hotel_id,
        mergingChains=sort_largest_first(state, chains),
    )
    state.merger = merger
    logger.info(
        "Player %s triggers a merger of %s with %s",
        player_id,
        [c.value for c in merger.merging_chains],
        hotel_id,
    )
    return merger


def chains_tied_for_largest(state: GameState, chains: List[Chain]) -> List[Chain]:
    """The chains in ``chains`` that share the largest size."""
    if not chains:
        return []
    sizes = BoardManager.chain_sizes(state)
    largest = max(sizes[c] for c in chains)
    return [c for c in chains if sizes[c] == largest]


def autoset_surviving_chain(state: GameState) -> bool:
    """Pick the survivor when one chain is strictly the largest."""
    merger = require_merger(state)
    if merger.surviving_chain is not None:
        return True
    if len(chains_tied_for_largest(state, merger.merging_chains)) == 1:
        merger.surviving_chain = merger.merging_chains.pop(0)
        return True
    return False


def autoset_chain_to_merge(state: GameState) -> bool:
    """Pick the next chain to merge when it is unambiguous."""
    merger = require_merger(state)
    if merger.chain_to_merge is not None:
        return True
    if len(chains_tied_for_largest(state, merger.merging_chains)) == 1:
        merger.chain_to_merge = merger.merging_chains[0]
        return True
    return False


def _require_tied_choice(state: GameState, chain: Chain, rule_ref: str) -> Merger:
    merger = require_merger(state)
    tied = chains_tied_for_largest(state, merger.merging_chains)
    if chain not in tied:
        raise RulesViolationError(
            f"{chain.value} is not one of the largest chains in the merger",
            rule_ref=rule_ref,
            context={"chain": chain.value, "tied": [c.value for c in tied]},
        )
    return merger


def choose_surviving_chain(state: GameState, chain: Chain) -> None:
    merger = _require_tied_choice(state, chain, "surviving-chain-tie")
    merger.surviving_chain = chain
    merger.merging_chains.remove(chain)


def choose_chain_to_merge(state: GameState, chain: Chain) -> None:
    merger = _require_tied_choice(state, chain, "chain-to-merge-tie")
    merger.chain_to_merge = chain
    # keep the active chain at the front of the list
    merger.merging_chains.remove(chain)
    merger.merging_chains.insert(0, chain)


def begin_chain_merge(state: GameState) -> None:
    """Snapshot holdings, pay bonuses, and mark non-holders as resolved."""
    merger = require_merger(state)
    chain = merger.chain_to_merge
    if chain is None:
        raise InvalidStateError("Merger has no chain to merge")

    merger.stock_price = BoardManager.price_of_stock(state, chain)
    merger.stock_counts = {p.id: p.stocks.get(chain, 0) for p in state.players}
    merger.bonuses = award_bonuses(state, chain)
    merger.swap_and_sells = {
        player_id: SwapAndSell()
        for player_id, count in merger.stock_counts.items()
        if count == 0
    }


def merger_next_turn(state: GameState, current_player: str) -> Optional[str]:
    """Next player to swap/sell after ``current_player``, or ``None``.

    Goes around the table once from the triggering player, skipping anyone
    already resolved. Stops on wrapping back to the triggering player.
    """
    merger = require_merger(state)
    order = state.player_ids()
    resolved = merger.swap_and_sells or {}
    if len(resolved) >= len(order):
        return None

    start = order.index(merger.triggered_by)
    pos = order.index(current_player)
    for _ in range(len(order)):
        pos = (pos + 1) % len(order)
        if pos == start:
            return None
        if order[pos] not in resolved:
            return order[pos]
    return None


def first_merger_turn(state: GameState) -> Optional[str]:
    """The triggering player if they still owe a decision, else the next one."""
    merger = require_merger(state)
    resolved = merger.swap_and_sells or {}
    if merger.triggered_by not in resolved:
        return merger.triggered_by
    return merger_next_turn(state, merger.triggered_by)


def finish_chain_merge(state: GameState) -> bool:
    """Retire the chain just merged; return True when none remain."""
    merger = require_merger(state)
    chain = merger.chain_to_merge
    if chain is not None:
        if chain in merger.merging_chains:
            merger.merging_chains.remove(chain)
        merger.merged_chains.append(chain)
    merger.chain_to_merge = None
    merger.stock_price = None
    merger.stock_counts = None
    merger.bonuses = None
    merger.swap_and_sells = None
    return not merger.merging_chains


def complete_merger(state: GameState) -> List[str]:
    """Fold every merged chain and the triggering tile into the survivor."""
    merger = require_merger(state)
    if merger.surviving_chain is None or merger.triggering_hotel is None:
        raise InvalidStateError("Cannot complete a merger without a survivor")
    changed = BoardManager.absorb_new_hotels(
        state,
        merger.surviving_chain,
        merger.triggering_hotel,
        absorbable=merger.merged_chains,
    )
    logger.info(
        "%s absorbs %s (%d hotels reassigned)",
        merger.surviving_chain.value,
        [c.value for c in merger.merged_chains],
        len(changed),
    )
    state.merger = None
    return changed
