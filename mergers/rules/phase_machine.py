"""Phase and turn transitions.

Each phase has an entry guard that runs as soon as the phase is entered.
A guard either resolves the phase on its own (for example, picking the
surviving chain when one chain is strictly the largest) and moves on, or
leaves the state waiting for the current player's decision. A single move
can therefore cascade through several phases before control returns.

    buildingPhase --(tile touches 2+ chains)--> chooseSurvivingChainPhase
    chooseSurvivingChainPhase --> chooseChainToMergePhase
    chooseChainToMergePhase --> mergerPhase
    mergerPhase --(more chains)--> chooseChainToMergePhase
    mergerPhase --(done)--> buildingPhase (buy stock, same player)
"""

from __future__ import annotations

import logging
from typing import Optional

from ..board_manager import BoardManager
from ..errors import InvalidStateError
from ..metrics import MERGERS_COMPLETED
from ..models import BuildingStage, GamePhase, GameState
from .merger import (
    autoset_chain_to_merge,
    autoset_surviving_chain,
    begin_chain_merge,
    complete_merger,
    finish_chain_merge,
    first_merger_turn,
    merger_next_turn,
    require_merger,
)

logger = logging.getLogger(__name__)


def _set_phase(state: GameState, phase: GamePhase) -> None:
    logger.debug("Phase %s -> %s", state.current_phase.value, phase.value)
    state.current_phase = phase
    state.current_stage = None


def set_stage(state: GameState, stage: BuildingStage) -> None:
    logger.debug("Player %s enters %s", state.current_player, stage.value)
    state.current_stage = stage


def first_build_turn(state: GameState) -> str:
    """Who opens the building phase at the start of the game.

    The owner of the placed tile nearest the top left, row letter first.
    """
    hotel = BoardManager.top_left_most_hotel(state)
    if hotel is None or hotel.placed_by is None:
        return state.players[0].id
    return hotel.placed_by


def enter_building_phase(state: GameState, resume_player: Optional[str] = None) -> None:
    """Enter the building phase.

    After a merger the player who placed the merging tile carries on from
    the buy-stock stage; otherwise the first-turn rule picks who starts.
    """
    _set_phase(state, GamePhase.BUILDING)
    if resume_player is not None:
        state.current_player = resume_player
        set_stage(state, BuildingStage.BUY_STOCK)
    else:
        state.current_player = first_build_turn(state)
        set_stage(state, BuildingStage.PLACE_HOTEL)


def end_turn(state: GameState) -> None:
    """Hand the building phase to the next player in table order."""
    order = state.player_ids()
    idx = (order.index(state.current_player) + 1) % len(order)
    state.current_player = order[idx]
    state.last_placed_hotel = None
    set_stage(state, BuildingStage.PLACE_HOTEL)


def enter_choose_surviving_chain_phase(state: GameState) -> None:
    merger = require_merger(state)
    _set_phase(state, GamePhase.CHOOSE_SURVIVING_CHAIN)
    state.current_player = merger.triggered_by
    if autoset_surviving_chain(state):
        enter_choose_chain_to_merge_phase(state)


def enter_choose_chain_to_merge_phase(state: GameState) -> None:
    merger = require_merger(state)
    if merger.surviving_chain is None:
        raise InvalidStateError("Cannot pick a chain to merge before the survivor")
    _set_phase(state, GamePhase.CHOOSE_CHAIN_TO_MERGE)
    state.current_player = merger.triggered_by
    if autoset_chain_to_merge(state):
        enter_merger_phase(state)


def enter_merger_phase(state: GameState) -> None:
    """Pay bonuses for the active chain and seat the first decision-maker."""
    _set_phase(state, GamePhase.MERGER)
    begin_chain_merge(state)
    next_player = first_merger_turn(state)
    if next_player is None:
        end_merger_round(state)
        return
    state.current_player = next_player


def advance_merger_turn(state: GameState) -> None:
    """Move to the next holder after a swap/sell, or close the round."""
    next_player = merger_next_turn(state, state.current_player)
    if next_player is None:
        end_merger_round(state)
        return
    state.current_player = next_player


def end_merger_round(state: GameState) -> None:
    """Retire the merged chain, then merge the next one or finish."""
    merger = require_merger(state)
    if not finish_chain_merge(state):
        enter_choose_chain_to_merge_phase(state)
        return

    trigger = merger.triggered_by
    MERGERS_COMPLETED.labels(str(len(merger.merged_chains))).inc()
    complete_merger(state)
    enter_building_phase(state, resume_player=trigger)
