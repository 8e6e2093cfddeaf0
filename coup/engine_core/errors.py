"""
Engine Errors - Typed failures raised by the rules engine.

Two families:
- Player-facing illegality (IllegalAction, InvalidTarget, OutOfStateCall).
  These never crash the engine; the public entry points turn them into a
  rejected call with no state change.
- Programmer errors (InvariantViolation). These propagate.
"""

from __future__ import annotations


class CoupError(Exception):
    """Base class for all engine errors."""

    code = "COUP_ERROR"

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        if code is not None:
            self.code = code


class IllegalAction(CoupError):
    """Action fails a rule predicate or is attempted out of turn."""

    code = "ILLEGAL_ACTION"


class InvalidTarget(IllegalAction):
    """Target id out of range, not alive, or the actor itself."""

    code = "INVALID_TARGET"


class OutOfStateCall(CoupError):
    """Call made while the engine is in a phase that does not accept it."""

    code = "WRONG_PHASE"


class InvariantViolation(CoupError):
    """Internal invariant breached (card counts, winner lookup, ...)."""

    code = "INVARIANT_VIOLATION"
