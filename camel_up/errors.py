"""
Error kinds raised by the Camel Up engine.

InvalidAction and EmptyResource are player-facing: the action is rejected,
the state is unchanged and the caller may choose another action.
IllegalState means the engine itself is broken and must never be swallowed.
"""

from __future__ import annotations


class CamelUpError(Exception):
    """Base class for all engine errors."""


class InvalidAction(CamelUpError, ValueError):
    """
    An action failed validation.

    Attributes:
        reason: Short machine-readable code (e.g. "not_your_turn").
    """

    def __init__(self, message: str, reason: str = "invalid_action"):
        super().__init__(message)
        self.reason = reason

    def to_dict(self) -> dict[str, str]:
        return {"reason": self.reason, "message": str(self)}


class EmptyResource(InvalidAction):
    """Drawing from an exhausted pyramid or taking from an empty tile stack."""

    def __init__(self, message: str, reason: str = "empty_resource"):
        super().__init__(message, reason)


class IllegalState(CamelUpError, RuntimeError):
    """Internal invariant violation (e.g. scoring a leg that has not ended)."""
