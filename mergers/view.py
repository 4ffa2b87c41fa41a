"""Derived read model for clients.

Everything here is a pure function of ``GameState``; nothing is stored back
on the state.
"""

from __future__ import annotations

import re
from typing import Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, Field

from .board_manager import BoardManager
from .game_engine import player_label
from .models import (
    BuildingStage,
    Chain,
    GameOver,
    GamePhase,
    GameState,
    Merger,
)

# Chains grouped by price tier, cheapest first.
PRICE_TIERS: Tuple[Tuple[Chain, ...], ...] = (
    (Chain.TOWER, Chain.LUXOR),
    (Chain.WORLDWIDE, Chain.AMERICAN, Chain.FESTIVAL),
    (Chain.CONTINENTAL, Chain.IMPERIAL),
)

# (label, smallest size in the bucket)
_GUIDE_BUCKETS: Tuple[Tuple[str, int], ...] = (
    ("2", 2),
    ("3", 3),
    ("4", 4),
    ("5", 5),
    ("6-10", 6),
    ("11-20", 11),
    ("21-30", 21),
    ("31-40", 31),
    ("41+", 41),
)


class ChainSummary(BaseModel):
    chain: Chain
    size: int
    price: Optional[int] = None
    available: int

    class Config:
        populate_by_name = True


class RackHotel(BaseModel):
    id: str
    playable: bool
    permanently_unplayable: bool = Field(alias="permanentlyUnplayable")

    class Config:
        populate_by_name = True


class GameView(BaseModel):
    """What a client needs to render one moment of the game"""
    phase: GamePhase
    stage: Optional[BuildingStage] = None
    current_player: str = Field(alias="currentPlayer")
    active_players: Dict[str, str] = Field(alias="activePlayers")
    last_move: str = Field(alias="lastMove")
    merger: Optional[Merger] = None
    game_over: Optional[GameOver] = Field(None, alias="gameOver")
    chains: List[ChainSummary]
    viewer: Optional[str] = None
    rack: Optional[List[RackHotel]] = None
    message: Optional[str] = None

    class Config:
        populate_by_name = True


class PriceGuideEntry(BaseModel):
    chains: List[Chain]
    price: int
    majority_bonus: int = Field(alias="majorityBonus")
    minority_bonus: int = Field(alias="minorityBonus")

    class Config:
        populate_by_name = True


class PriceGuideRow(BaseModel):
    size: str
    tiers: List[PriceGuideEntry]


def active_players(state: GameState) -> Dict[str, str]:
    """Map each player who must act to the stage or phase they act in."""
    if state.current_phase == GamePhase.GAME_OVER:
        return {}
    if state.current_phase == GamePhase.BUILDING and state.current_stage:
        return {state.current_player: state.current_stage.value}
    return {state.current_player: state.current_phase.value}


def chain_summaries(state: GameState) -> List[ChainSummary]:
    sizes = BoardManager.chain_sizes(state)
    return [
        ChainSummary(
            chain=chain,
            size=sizes[chain],
            price=BoardManager.price_of_stock_by_size(chain, sizes[chain]),
            available=state.available_stocks[chain],
        )
        for chain in Chain
    ]


def rack_view(state: GameState, player_id: str) -> List[RackHotel]:
    return [
        RackHotel(
            id=h.id,
            playable=not BoardManager.is_unplayable(state, h),
            permanentlyUnplayable=BoardManager.is_permanently_unplayable(state, h),
        )
        for h in BoardManager.player_hotels(state, player_id)
    ]


def _name(player_id: str, names: Optional[Mapping[str, str]]) -> str:
    if names and player_id in names:
        return names[player_id]
    return player_label(player_id)


def rename_players(message: str, names: Mapping[str, str]) -> str:
    """Replace "Player <id>" in an audit string with display names."""
    # longest ids first so "Player 1" does not clobber "Player 10"
    for player_id in sorted(names, key=len, reverse=True):
        pattern = re.escape(player_label(player_id)) + r"(?!\d)"
        message = re.sub(pattern, lambda _: names[player_id], message)
    return message


def winner_message(
    game_over: GameOver, names: Optional[Mapping[str, str]] = None
) -> str:
    if game_over.winner is not None:
        return f"{_name(game_over.winner, names)} wins!"
    winners = game_over.winners or []
    return " & ".join(_name(w, names) for w in winners) + " tied!"


def game_over_message(
    game_over: GameOver, names: Optional[Mapping[str, str]] = None
) -> str:
    scores = ", ".join(
        f"{_name(s.id, names)}: ${s.money}" for s in game_over.scores
    )
    return f"{winner_message(game_over, names)} Scores: {scores}"


def build_view(
    state: GameState,
    viewer: Optional[str] = None,
    names: Optional[Mapping[str, str]] = None,
) -> GameView:
    """Assemble the client view, optionally including ``viewer``'s rack."""
    last_move = rename_players(state.last_move, names) if names else state.last_move
    message = game_over_message(state.game_over, names) if state.game_over else None
    rack = None
    if viewer is not None and state.get_player(viewer) is not None:
        rack = rack_view(state, viewer)
    return GameView(
        phase=state.current_phase,
        stage=state.current_stage,
        currentPlayer=state.current_player,
        activePlayers=active_players(state),
        lastMove=last_move,
        merger=state.merger,
        gameOver=state.game_over,
        chains=chain_summaries(state),
        viewer=viewer,
        rack=rack,
        message=message,
    )


def price_guide() -> List[PriceGuideRow]:
    """The stock price and bonus card, one row per size bucket."""
    rows: List[PriceGuideRow] = []
    for label, size in _GUIDE_BUCKETS:
        tiers = []
        for chains in PRICE_TIERS:
            price = BoardManager.price_of_stock_by_size(chains[0], size)
            tiers.append(
                PriceGuideEntry(
                    chains=list(chains),
                    price=price,
                    majorityBonus=price * 10,
                    minorityBonus=price * 5,
                )
            )
        rows.append(PriceGuideRow(size=label, tiers=tiers))
    return rows
