"""Rules engine for Mergers, a hotel-chain acquisition and stock-trading game.

Typical use:

    from mergers import GameEngine, Move, MoveType

    state = GameEngine.setup(4, seed=7)
    move = GameEngine.get_valid_moves(state, state.current_player)[0]
    state = GameEngine.apply_move(state, move)

Architecture:
- models.py: pydantic state and move models
- board_manager.py: grid, adjacency, prices, absorption, playability
- rules/: bonuses, stock, merger sequencing, phase machine, settlement
- game_engine.py: setup, move dispatch and legal-move generation
- view.py: derived read model for clients
- main.py: FastAPI host
"""

from .errors import (
    InvalidMoveError,
    InvalidStateError,
    MergersError,
    MOVE_REJECTIONS,
    RulesViolationError,
)
from .game_engine import GameEngine
from .models import (
    BuildingStage,
    Chain,
    GamePhase,
    GameState,
    GameStatus,
    Move,
    MoveResult,
    MoveType,
    RulesOptions,
)

__all__ = [
    "BuildingStage",
    "Chain",
    "GameEngine",
    "GamePhase",
    "GameState",
    "GameStatus",
    "InvalidMoveError",
    "InvalidStateError",
    "MergersError",
    "MOVE_REJECTIONS",
    "Move",
    "MoveResult",
    "MoveType",
    "RulesOptions",
    "RulesViolationError",
]
