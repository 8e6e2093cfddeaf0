"""
Session Module - In-memory game sessions.

A session represents one game:
- Created when a host opens a table
- Holds its own engine and an outbound event buffer
- Destroyed when the host closes it or it goes stale

Sessions are EPHEMERAL: nothing is persisted.
"""

from .manager import GameSessionManager, GameSession, SessionState

__all__ = [
    "GameSessionManager",
    "GameSession",
    "SessionState",
]
