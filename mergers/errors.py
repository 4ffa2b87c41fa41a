"""
Errors raised by the Mergers engine and mapped to responses by the host.

Move rejections (``INVALID_MOVE`` and ``RULES_VIOLATION``) leave the input
state untouched and come back from ``/rules/apply_move`` as ``valid: false``.
Everything else is a 400 whose ``detail`` is ``MergersError.to_dict()``.

Usage:
    from mergers.errors import MOVE_REJECTIONS

    try:
        state = GameEngine.apply_move(state, move)
    except MOVE_REJECTIONS as e:
        logger.info("Rejected %s: %s", move.type.value, e.message)
"""

from typing import Any

__all__ = [
    "ConfigurationError",
    "InvalidMoveError",
    "InvalidStateError",
    "MOVE_REJECTIONS",
    # Base error
    "MergersError",
    # Game rules errors
    "RulesViolationError",
    # Validation errors
    "ValidationError",
]


class MergersError(Exception):
    """Root of the engine's errors.

    ``code`` is the string clients switch on (``errorCode`` in a
    ``MoveResult``); ``context`` carries the ids involved, such as the
    hotel, chain or player.
    """
    code: str = "MERGERS_ERROR"

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"[{self.code}] {self.message} ({ctx})"
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context,
        }


# =============================================================================
# Game Rules Errors
# =============================================================================


class RulesViolationError(MergersError):
    """The move is the right kind for the stage but a game rule forbids it.

    ``rule_ref`` names the rule and is copied into ``context``:

    - ``hotel-not-in-rack``: the tile is on the board or in another rack
    - ``unplayable-hotel``: the tile would merge two unmergeable chains or
      found an eighth chain
    - ``must-place-playable-hotel``: passing while a rack tile can be played
    - ``chain-already-founded``: the new chain is already on the board
    - ``surviving-chain-tie`` / ``chain-to-merge-tie``: the chosen chain is
      not tied for largest among the merging chains
    """
    code: str = "RULES_VIOLATION"

    def __init__(
        self,
        message: str,
        rule_ref: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, context=context)
        self.rule_ref = rule_ref
        if rule_ref:
            self.context["rule_ref"] = rule_ref


class InvalidStateError(MergersError):
    """The submitted state cannot be reached by play.

    For example a merger phase with no merger record, or a chain to merge
    picked before the survivor. Reported as a 400, never as a rejection.
    """
    code: str = "INVALID_STATE"


class InvalidMoveError(MergersError):
    """The move does not fit the turn.

    Wrong player, a move type the current phase or stage does not accept,
    an unknown player or tile id, a missing argument (no chain for a
    choose move, no ``isGameOver`` flag), or any move after game over.
    """
    code: str = "INVALID_MOVE"


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(MergersError):
    """Bad input outside of a move."""
    code: str = "VALIDATION_ERROR"


class ConfigurationError(ValidationError):
    """Player count or board size that cannot be set up."""
    code: str = "CONFIGURATION_ERROR"


# Both ways a submitted move can be refused; hosts catch these and do not
# broadcast the move.
MOVE_REJECTIONS = (InvalidMoveError, RulesViolationError)
