"""Core game engine for the Mergers rules service.

``GameEngine`` is a deterministic reducer: ``apply_move`` takes a state and
a move and returns a new state, leaving the input untouched. A move that is
not allowed (wrong player, wrong phase or stage, or a broken rule) raises
one of :data:`mergers.errors.MOVE_REJECTIONS` before anything is committed.

Legal-but-degenerate moves (buying nothing, swapping and selling nothing,
passing with no playable tile) are always accepted. Over-sized purchase and
swap/sell requests are truncated, never rejected.

Tile draws come from a ``random.Random`` seeded from the state's
``rng_seed`` and ``draw_count``, so replaying the same moves from the same
setup reproduces the same game. Callers may inject their own ``Random``
instead.
"""

from __future__ import annotations

import logging
import random
import secrets
import time
from collections import Counter
from itertools import combinations_with_replacement
from typing import Dict, List, Optional

from . import config
from .board_manager import BoardManager
from .errors import (
    MOVE_REJECTIONS,
    ConfigurationError,
    InvalidMoveError,
    InvalidStateError,
    RulesViolationError,
)
from .metrics import GAMES_COMPLETED, GAMES_STARTED, observe_move
from .models import (
    BuildingStage,
    Chain,
    GamePhase,
    GameState,
    GameStatus,
    Hotel,
    Move,
    MoveResult,
    MoveType,
    Player,
    RulesOptions,
    empty_stock_map,
)
from .rules.merger import (
    chains_tied_for_largest,
    choose_chain_to_merge,
    choose_surviving_chain,
    require_merger,
    start_merger,
)
from .rules.phase_machine import (
    advance_merger_turn,
    end_turn,
    enter_building_phase,
    enter_choose_chain_to_merge_phase,
    enter_choose_surviving_chain_phase,
    enter_merger_phase,
    set_stage,
)
from .rules.settlement import game_can_be_declared_over, settle_game
from .rules.stock import buy_stock, swap_and_sell_stock

logger = logging.getLogger(__name__)


# Which move each building stage accepts.
_STAGE_MOVES: Dict[BuildingStage, MoveType] = {
    BuildingStage.PLACE_HOTEL: MoveType.PLACE_HOTEL,
    BuildingStage.CHOOSE_NEW_CHAIN: MoveType.CHOOSE_NEW_CHAIN,
    BuildingStage.BUY_STOCK: MoveType.BUY_STOCK,
    BuildingStage.DECLARE_GAME_OVER: MoveType.DECLARE_GAME_OVER,
    BuildingStage.DRAW_HOTELS: MoveType.DRAW_HOTELS,
}

# Which move each merger phase accepts.
_PHASE_MOVES: Dict[GamePhase, MoveType] = {
    GamePhase.CHOOSE_SURVIVING_CHAIN: MoveType.CHOOSE_SURVIVING_CHAIN,
    GamePhase.CHOOSE_CHAIN_TO_MERGE: MoveType.CHOOSE_CHAIN_TO_MERGE,
    GamePhase.MERGER: MoveType.SWAP_AND_SELL_STOCK,
}


def player_label(player_id: str) -> str:
    return f"Player {player_id}"


class GameEngine:
    """Mergers game engine.

    Exposes ``setup``, ``apply_move``, ``evaluate_move`` and
    ``get_valid_moves``. Everything is a static method over an explicit
    ``GameState``; there is no engine-level mutable state.
    """

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    @staticmethod
    def setup(
        num_players: int,
        seed: Optional[int] = None,
        options: Optional[RulesOptions] = None,
        rng: Optional[random.Random] = None,
    ) -> GameState:
        """Create a new game for ``num_players`` players.

        Each player draws one tile which goes straight onto the board, then
        fills their rack. The owner of the placed tile nearest the top left
        takes the first turn.
        """
        if not config.MIN_PLAYERS <= num_players <= config.MAX_PLAYERS:
            raise ConfigurationError(
                f"Mergers needs {config.MIN_PLAYERS}-{config.MAX_PLAYERS} players",
                context={"num_players": num_players},
            )
        options = options or RulesOptions()
        if seed is None:
            seed = secrets.randbits(32)

        state = GameState(
            hotels=BoardManager.build_grid(options.rows, options.columns),
            players=[
                Player(
                    id=str(i),
                    money=options.starting_money,
                    stocks=empty_stock_map(),
                )
                for i in range(num_players)
            ],
            availableStocks=empty_stock_map(options.stocks_per_chain),
            currentPhase=GamePhase.BUILDING,
            currentStage=BuildingStage.PLACE_HOTEL,
            currentPlayer="0",
            rngSeed=seed,
            rulesOptions=options,
        )

        for player in state.players:
            hotel = GameEngine._draw_hotel(state, player.id, rng)
            if hotel is not None:
                GameEngine._move_hotel_to_board(hotel)
            for _ in range(options.rack_size):
                GameEngine._draw_hotel(state, player.id, rng)

        enter_building_phase(state)
        GAMES_STARTED.labels(str(num_players)).inc()
        logger.info(
            "Set up %d-player game (seed %d); %s goes first",
            num_players,
            seed,
            player_label(state.current_player),
        )
        return state

    # ------------------------------------------------------------------
    # Move application
    # ------------------------------------------------------------------

    @staticmethod
    def apply_move(
        game_state: GameState,
        move: Move,
        *,
        rng: Optional[random.Random] = None,
    ) -> GameState:
        """Apply ``move`` to ``game_state`` and return the new state.

        Args:
            game_state: The current game state. Never mutated.
            move: The move to apply.
            rng: Optional random source for tile draws. When omitted, draws
                are derived from the state's seed.

        Raises:
            InvalidMoveError: The move does not fit the current turn.
            RulesViolationError: The move fits the turn but breaks a rule.
        """
        started = time.perf_counter()
        try:
            GameEngine._assert_move_allowed(game_state, move)

            new_state = game_state.model_copy(deep=True)
            GameEngine._dispatch(new_state, move, rng)

            recorded = move.model_copy(
                update={"move_number": len(new_state.move_history) + 1}
            )
            new_state.move_history.append(recorded)
        except MOVE_REJECTIONS as e:
            observe_move(move.type.value, "rejected", time.perf_counter() - started)
            logger.info("Rejected %s from %s: %s", move.type.value, move.player, e)
            raise

        observe_move(move.type.value, "accepted", time.perf_counter() - started)
        if config.DEBUG_ENGINE:
            logger.debug(
                "Applied %s from %s -> %s/%s, state %s",
                move.type.value,
                move.player,
                new_state.current_phase.value,
                new_state.current_stage.value if new_state.current_stage else None,
                BoardManager.hash_game_state(new_state),
            )
        return new_state

    @staticmethod
    def evaluate_move(
        game_state: GameState,
        move: Move,
        *,
        rng: Optional[random.Random] = None,
    ) -> MoveResult:
        """Apply ``move`` and report the outcome instead of raising."""
        try:
            next_state = GameEngine.apply_move(game_state, move, rng=rng)
        except MOVE_REJECTIONS as e:
            return MoveResult(
                valid=False,
                validationError=e.message,
                errorCode=e.code,
            )
        return MoveResult(
            valid=True,
            nextState=next_state,
            stateHash=BoardManager.hash_game_state(next_state),
        )

    @staticmethod
    def expected_move_type(game_state: GameState) -> Optional[MoveType]:
        """The only move type the current player may submit, if any."""
        if game_state.game_status == GameStatus.FINISHED:
            return None
        if game_state.current_phase == GamePhase.BUILDING:
            if game_state.current_stage is None:
                return None
            return _STAGE_MOVES[game_state.current_stage]
        return _PHASE_MOVES.get(game_state.current_phase)

    @staticmethod
    def _assert_move_allowed(game_state: GameState, move: Move) -> None:
        if (
            game_state.game_status == GameStatus.FINISHED
            or game_state.current_phase == GamePhase.GAME_OVER
        ):
            raise InvalidMoveError(
                "The game is over", context={"move_type": move.type.value}
            )
        if game_state.get_player(move.player) is None:
            raise InvalidMoveError(
                f"Unknown player {move.player}", context={"player": move.player}
            )
        if move.player != game_state.current_player:
            raise InvalidMoveError(
                f"It is not {player_label(move.player)}'s turn",
                context={
                    "player": move.player,
                    "current_player": game_state.current_player,
                },
            )
        expected = GameEngine.expected_move_type(game_state)
        if move.type != expected:
            raise InvalidMoveError(
                f"{move.type.value} is not allowed now",
                context={
                    "phase": game_state.current_phase.value,
                    "stage": (
                        game_state.current_stage.value
                        if game_state.current_stage
                        else None
                    ),
                    "expected": expected.value if expected else None,
                },
            )

    @staticmethod
    def _dispatch(
        state: GameState, move: Move, rng: Optional[random.Random]
    ) -> None:
        if move.type == MoveType.PLACE_HOTEL:
            GameEngine._apply_place_hotel(state, move)
        elif move.type == MoveType.CHOOSE_NEW_CHAIN:
            GameEngine._apply_choose_new_chain(state, move)
        elif move.type == MoveType.BUY_STOCK:
            GameEngine._apply_buy_stock(state, move)
        elif move.type == MoveType.DECLARE_GAME_OVER:
            GameEngine._apply_declare_game_over(state, move)
        elif move.type == MoveType.DRAW_HOTELS:
            GameEngine._apply_draw_hotels(state, move, rng)
        elif move.type == MoveType.CHOOSE_SURVIVING_CHAIN:
            GameEngine._apply_choose_surviving_chain(state, move)
        elif move.type == MoveType.CHOOSE_CHAIN_TO_MERGE:
            GameEngine._apply_choose_chain_to_merge(state, move)
        elif move.type == MoveType.SWAP_AND_SELL_STOCK:
            GameEngine._apply_swap_and_sell_stock(state, move)

    # ------------------------------------------------------------------
    # Building phase
    # ------------------------------------------------------------------

    @staticmethod
    def _apply_place_hotel(state: GameState, move: Move) -> None:
        player_id = move.player

        if move.hotel is None:
            rack = BoardManager.player_hotels(state, player_id)
            if any(not BoardManager.is_unplayable(state, h) for h in rack):
                raise RulesViolationError(
                    "Cannot pass while holding a playable hotel",
                    rule_ref="must-place-playable-hotel",
                )
            state.last_move = f"{player_label(player_id)} doesn't have any playable hotels"
            set_stage(state, BuildingStage.BUY_STOCK)
            return

        hotel = BoardManager.get_hotel(state, move.hotel)
        if hotel is None:
            raise InvalidMoveError(
                f"No hotel {move.hotel} on this board", context={"hotel": move.hotel}
            )
        if (
            hotel.drawn_by_player != player_id
            or hotel.has_been_placed
            or hotel.has_been_removed
        ):
            raise RulesViolationError(
                f"{hotel.id} is not in {player_label(player_id)}'s rack",
                rule_ref="hotel-not-in-rack",
                context={"hotel": hotel.id},
            )
        if BoardManager.is_unplayable(state, hotel):
            raise RulesViolationError(
                f"{hotel.id} cannot be played",
                rule_ref="unplayable-hotel",
                context={"hotel": hotel.id},
            )

        GameEngine._move_hotel_to_board(hotel)
        state.last_move = f"{player_label(player_id)} plays {hotel.id}"
        state.last_placed_hotel = hotel.id

        adjacent = BoardManager.adjacent_hotels(state, hotel)
        chains = BoardManager.adjacent_chains(state, hotel)
        if adjacent and not chains:
            set_stage(state, BuildingStage.CHOOSE_NEW_CHAIN)
        elif len(chains) == 1:
            BoardManager.absorb_new_hotels(state, chains[0], hotel.id)
            set_stage(state, BuildingStage.BUY_STOCK)
        elif len(chains) > 1:
            start_merger(state, player_id, hotel.id, chains)
            enter_choose_surviving_chain_phase(state)
        else:
            set_stage(state, BuildingStage.BUY_STOCK)

    @staticmethod
    def _apply_choose_new_chain(state: GameState, move: Move) -> None:
        chain = GameEngine._require_chain(move)
        if BoardManager.size_of_chain(state, chain) > 0:
            raise RulesViolationError(
                f"{chain.value} is already on the board",
                rule_ref="chain-already-founded",
                context={"chain": chain.value},
            )
        if state.last_placed_hotel is None:
            raise InvalidStateError("No hotel was placed this turn")

        BoardManager.absorb_new_hotels(state, chain, state.last_placed_hotel)

        founder_hotel = BoardManager.get_hotel(state, state.last_placed_hotel)
        founder_id = (
            founder_hotel.placed_by
            if founder_hotel is not None and founder_hotel.placed_by
            else move.player
        )
        founder = state.get_player(founder_id)
        if founder is not None and state.available_stocks[chain] > 0:
            state.available_stocks[chain] -= 1
            founder.stocks[chain] += 1

        state.last_move = (
            f"{player_label(move.player)} chooses {chain.value} as the new chain"
        )
        set_stage(state, BuildingStage.BUY_STOCK)

    @staticmethod
    def _apply_buy_stock(state: GameState, move: Move) -> None:
        player = GameEngine._require_player(state, move.player)
        bought = buy_stock(state, player, move.order)
        if bought:
            summary = ", ".join(f"{n} {chain.value}" for chain, n in bought.items())
            state.last_move = f"{player_label(player.id)} buys {summary}"
        else:
            state.last_move = f"{player_label(player.id)} doesn't buy any stock"

        if game_can_be_declared_over(state):
            set_stage(state, BuildingStage.DECLARE_GAME_OVER)
        else:
            set_stage(state, BuildingStage.DRAW_HOTELS)

    @staticmethod
    def _apply_declare_game_over(state: GameState, move: Move) -> None:
        if move.is_game_over is None:
            raise InvalidMoveError("declareGameOver requires isGameOver")
        if not move.is_game_over:
            set_stage(state, BuildingStage.DRAW_HOTELS)
            return

        state.last_move = f"{player_label(move.player)} declares the game over"
        state.game_over = settle_game(state, move.player)
        state.current_phase = GamePhase.GAME_OVER
        state.current_stage = None
        state.game_status = GameStatus.FINISHED
        GAMES_COMPLETED.labels(
            str(len(state.players)),
            "win" if state.game_over.winner is not None else "tie",
        ).inc()

    @staticmethod
    def _apply_draw_hotels(
        state: GameState, move: Move, rng: Optional[random.Random]
    ) -> None:
        GameEngine._discard_unplayable_hotels(state)
        rack = BoardManager.player_hotels(state, move.player)
        for _ in range(state.rules_options.rack_size - len(rack)):
            if GameEngine._draw_hotel(state, move.player, rng) is None:
                break
        end_turn(state)

    # ------------------------------------------------------------------
    # Merger phases
    # ------------------------------------------------------------------

    @staticmethod
    def _apply_choose_surviving_chain(state: GameState, move: Move) -> None:
        chain = GameEngine._require_chain(move)
        choose_surviving_chain(state, chain)
        state.last_move = (
            f"{player_label(move.player)} chooses {chain.value} to survive the merger"
        )
        enter_choose_chain_to_merge_phase(state)

    @staticmethod
    def _apply_choose_chain_to_merge(state: GameState, move: Move) -> None:
        chain = GameEngine._require_chain(move)
        choose_chain_to_merge(state, chain)
        state.last_move = (
            f"{player_label(move.player)} chooses {chain.value} to merge next"
        )
        enter_merger_phase(state)

    @staticmethod
    def _apply_swap_and_sell_stock(state: GameState, move: Move) -> None:
        merger = require_merger(state)
        if (
            merger.chain_to_merge is None
            or merger.surviving_chain is None
            or merger.swap_and_sells is None
        ):
            raise InvalidStateError("Merger has no active chain")
        player = GameEngine._require_player(state, move.player)
        merging = merger.chain_to_merge
        surviving = merger.surviving_chain

        original = player.stocks.get(merging, 0)
        result = swap_and_sell_stock(
            state,
            player,
            merging,
            surviving,
            merger.stock_price or 0,
            move.swap,
            move.sell,
        )
        merger.swap_and_sells[player.id] = result

        if original == 0:
            state.last_move = f"{player_label(player.id)} has no {merging.value} stock"
        else:
            parts: List[str] = []
            if result.swap:
                parts.append(
                    f"swaps {result.swap} {merging.value} "
                    f"for {result.swap // 2} {surviving.value}"
                )
            if result.sell:
                parts.append(f"sells {result.sell} {merging.value}")
            kept = player.stocks.get(merging, 0)
            if kept:
                parts.append(f"keeps {kept} {merging.value}")
            state.last_move = f"{player_label(player.id)} " + ", ".join(parts)

        advance_merger_turn(state)

    # ------------------------------------------------------------------
    # Tiles
    # ------------------------------------------------------------------

    @staticmethod
    def _move_hotel_to_board(hotel: Hotel) -> None:
        hotel.has_been_placed = True
        hotel.placed_by = hotel.drawn_by_player
        hotel.drawn_by_player = None

    @staticmethod
    def _draw_rng(state: GameState) -> random.Random:
        return random.Random(f"{state.rng_seed}:{state.draw_count}")

    @staticmethod
    def _draw_hotel(
        state: GameState, player_id: str, rng: Optional[random.Random] = None
    ) -> Optional[Hotel]:
        """Give ``player_id`` a random undrawn, playable tile, if any remain."""
        pool = [
            h
            for h in BoardManager.all_hotels(state)
            if not h.has_been_placed
            and not h.has_been_removed
            and h.drawn_by_player is None
            and not BoardManager.is_unplayable(state, h)
        ]
        if not pool:
            return None
        source = rng if rng is not None else GameEngine._draw_rng(state)
        hotel = pool[source.randrange(len(pool))]
        state.draw_count += 1
        hotel.drawn_by_player = player_id
        return hotel

    @staticmethod
    def _discard_unplayable_hotels(state: GameState) -> List[str]:
        """Remove permanently unplayable tiles from every rack."""
        discarded: List[str] = []
        for hotel in BoardManager.all_hotels(state):
            if hotel.drawn_by_player is None:
                continue
            if BoardManager.is_permanently_unplayable(state, hotel):
                hotel.has_been_removed = True
                hotel.drawn_by_player = None
                discarded.append(hotel.id)
        if discarded:
            logger.debug("Discarded unplayable hotels %s", discarded)
        return discarded

    # ------------------------------------------------------------------
    # Move generation
    # ------------------------------------------------------------------

    @staticmethod
    def get_valid_moves(game_state: GameState, player_id: str) -> List[Move]:
        """Return every move ``player_id`` may submit in ``game_state``.

        Empty when it is not their turn or the game is over. Buy orders are
        listed only where they can be filled in full.
        """
        if game_state.current_player != player_id:
            return []
        expected = GameEngine.expected_move_type(game_state)
        if expected is None:
            return []

        def make(**kwargs) -> Move:
            return Move(type=expected, player=player_id, **kwargs)

        if expected == MoveType.PLACE_HOTEL:
            playable = [
                h
                for h in BoardManager.player_hotels(game_state, player_id)
                if not BoardManager.is_unplayable(game_state, h)
            ]
            if not playable:
                return [make()]
            return [make(hotel=h.id) for h in playable]

        if expected == MoveType.CHOOSE_NEW_CHAIN:
            sizes = BoardManager.chain_sizes(game_state)
            return [make(chain=c) for c in Chain if sizes[c] == 0]

        if expected == MoveType.BUY_STOCK:
            return [
                make(order=order)
                for order in GameEngine._purchase_orders(game_state, player_id)
            ]

        if expected == MoveType.DECLARE_GAME_OVER:
            return [make(isGameOver=True), make(isGameOver=False)]

        if expected == MoveType.DRAW_HOTELS:
            return [make()]

        merger = require_merger(game_state)
        if expected == MoveType.CHOOSE_SURVIVING_CHAIN:
            tied = chains_tied_for_largest(game_state, merger.merging_chains)
            return [make(chain=c) for c in tied]

        if expected == MoveType.CHOOSE_CHAIN_TO_MERGE:
            tied = chains_tied_for_largest(game_state, merger.merging_chains)
            return [make(chain=c) for c in tied]

        # swap and sell
        if merger.chain_to_merge is None or merger.surviving_chain is None:
            return []
        player = GameEngine._require_player(game_state, player_id)
        holdings = player.stocks.get(merger.chain_to_merge, 0)
        max_swap = min(holdings, game_state.available_stocks[merger.surviving_chain] * 2)
        moves = []
        for swap in range(0, max_swap + 1, 2):
            for sell in range(holdings - swap + 1):
                moves.append(make(swap=swap, sell=sell))
        return moves

    @staticmethod
    def _purchase_orders(
        game_state: GameState, player_id: str
    ) -> List[Dict[Chain, int]]:
        player = GameEngine._require_player(game_state, player_id)
        prices = {
            c: BoardManager.price_of_stock(game_state, c)
            for c in BoardManager.chains_on_board(game_state)
            if game_state.available_stocks[c] > 0
        }
        orders: List[Dict[Chain, int]] = []
        for count in range(game_state.rules_options.max_stock_purchase + 1):
            for combo in combinations_with_replacement(list(prices), count):
                order = Counter(combo)
                if any(n > game_state.available_stocks[c] for c, n in order.items()):
                    continue
                cost = sum(prices[c] * n for c, n in order.items())
                if cost > player.money:
                    continue
                orders.append(dict(order))
        return orders

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _require_chain(move: Move) -> Chain:
        if move.chain is None:
            raise InvalidMoveError(
                f"{move.type.value} requires a chain",
                context={"move_type": move.type.value},
            )
        return move.chain

    @staticmethod
    def _require_player(state: GameState, player_id: str) -> Player:
        player = state.get_player(player_id)
        if player is None:
            raise InvalidMoveError(
                f"Unknown player {player_id}", context={"player": player_id}
            )
        return player
