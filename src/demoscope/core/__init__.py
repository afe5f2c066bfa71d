"""
DemoScope Core - Foundation modules for replay analysis.

This module contains the fundamental components:
- constants: Game enums and reserved event codes
- config: Application configuration management
- records: The decoded record input contract
- player_info: Player directory payload decoding
- utils: Time and Steam ID helpers
"""

from demoscope.core.constants import (
    BOT_STEAM_ID,
    DEFAULT_TICK_RATE,
    NO_ASSISTER_THRESHOLD,
    WIN_REASON_TIME_LIMIT,
    WORLD_ATTACKER,
    ChatMessageKind,
    CritCode,
    DeathFlags,
    HudTextLocation,
    MessageType,
    PlayerClass,
    Team,
)
from demoscope.core.errors import DemoScopeError, MalformedRecordError, RecordFormatError

__all__ = [
    # Enums
    "ChatMessageKind",
    "CritCode",
    "DeathFlags",
    "HudTextLocation",
    "MessageType",
    "PlayerClass",
    "Team",
    # Constants
    "BOT_STEAM_ID",
    "DEFAULT_TICK_RATE",
    "NO_ASSISTER_THRESHOLD",
    "WIN_REASON_TIME_LIMIT",
    "WORLD_ATTACKER",
    # Errors
    "DemoScopeError",
    "MalformedRecordError",
    "RecordFormatError",
]
