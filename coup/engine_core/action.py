"""
Action System - Attempted actions, responses, and results.

Actions represent:
1. A player's turn action (income, tax, coup, ...)
2. The card nominally claimed to justify it

Responses are what other players send while an action is contestable:
allow, challenge, or block.

All state changes flow through the engine; these are plain values.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum

from .cards import ActionKind, CardKind


class ResponseKind(Enum):
    """Responses to a contestable action."""
    ALLOW = "allow"
    CHALLENGE = "challenge"
    BLOCK = "block"


@dataclass(frozen=True)
class GameAction:
    """
    One attempted action.

    claimed_card is derived from the action kind, never chosen freely.
    target_id is only kept for targeted actions (coup, assassinate, steal).
    """
    player_id: int
    action_kind: ActionKind
    target_id: int | None = None
    claimed_card: CardKind | None = None

    @classmethod
    def create(
        cls,
        player_id: int,
        action_kind: ActionKind,
        target_id: int | None = None,
    ) -> GameAction:
        """Factory that normalizes the target and derives the claim."""
        from . import rules

        if not rules.requires_target(action_kind):
            target_id = None
        claimed = rules.required_card(action_kind) if rules.can_be_challenged(action_kind) else None
        return cls(
            player_id=player_id,
            action_kind=action_kind,
            target_id=target_id,
            claimed_card=claimed,
        )

    @property
    def is_targeted(self) -> bool:
        return self.target_id is not None

    def describe(self) -> str:
        text = f"player {self.player_id} {self.action_kind.value}"
        if self.target_id is not None:
            text += f" -> player {self.target_id}"
        if self.claimed_card is not None:
            text += f" (claims {self.claimed_card.value})"
        return text


@dataclass
class ActionResult:
    """
    Result of submitting an action.

    Contains:
    - Whether the action was accepted
    - Error and error code when rejected
    - Whether the action now waits on other players' responses
    - Human-readable state changes (for UI/logs)
    """
    success: bool
    action: GameAction | None = None
    error: str | None = None
    error_code: str | None = None

    awaiting_responses: bool = False
    state_changes: list[str] = field(default_factory=list)

    def __bool__(self) -> bool:
        return self.success

    @classmethod
    def failure(cls, error: str, error_code: str | None = None) -> ActionResult:
        """Create a rejection result."""
        return cls(success=False, error=error, error_code=error_code)

    @classmethod
    def accepted(
        cls,
        action: GameAction,
        awaiting_responses: bool = False,
        changes: list[str] | None = None,
    ) -> ActionResult:
        """Create a success result."""
        return cls(
            success=True,
            action=action,
            awaiting_responses=awaiting_responses,
            state_changes=changes or [],
        )
