"""
Coup - Rules engine for the social deduction card game.

An authoritative, thread-safe engine for 2-6 players that provides:
- Turn and response-window state machine
- Bluffs, challenges and blocks with timeouts
- Observer notifications for presentation and network layers
- A framework-agnostic service facade with pydantic schemas
"""

__version__ = "0.1.0"
