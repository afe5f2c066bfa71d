"""
Player Directory Decoding

The "userinfo" string table holds one entry per player slot. Its extra
data is the engine's player_info_t struct:

    name        char[32]   NUL padded
    user_id     u32        big-endian
    steam_id    char[33]   NUL padded, "[U:1:N]" or "BOT"
    ...         friends id/name, fake player flags, custom files (ignored)

The transient entity handle of the player is the table index + 1.
"""

import logging
import struct
from dataclasses import dataclass

logger = logging.getLogger(__name__)

NAME_LENGTH = 32
STEAM_ID_LENGTH = 33

_NAME_STRUCT = struct.Struct(f"{NAME_LENGTH}s")
_USER_ID_STRUCT = struct.Struct(">I")
_STEAM_ID_STRUCT = struct.Struct(f"{STEAM_ID_LENGTH}s")

MIN_PAYLOAD_LENGTH = _NAME_STRUCT.size + _USER_ID_STRUCT.size


@dataclass(frozen=True)
class PlayerInfo:
    """One decoded player directory entry."""

    name: str
    user_id: int
    steam_id: str
    entity_id: int


def _read_cstring(raw: bytes) -> str:
    return raw.split(b"\x00", 1)[0].decode("utf-8", errors="replace")


def parse_player_info(index: int, text: str | None, data: bytes | None) -> PlayerInfo | None:
    """
    Decode a userinfo string table entry.

    Args:
        index: Directory slot (string table index)
        text: Entry text, unused by the game for this table
        data: Binary player_info_t payload

    Returns:
        PlayerInfo, or None when the entry carries no usable payload
        (empty slots are sent as entries without data)
    """
    if data is None or len(data) < MIN_PAYLOAD_LENGTH:
        if data:
            logger.debug(f"Ignoring short userinfo payload at index {index} ({len(data)} bytes)")
        return None

    (raw_name,) = _NAME_STRUCT.unpack_from(data, 0)
    (user_id,) = _USER_ID_STRUCT.unpack_from(data, _NAME_STRUCT.size)

    offset = _NAME_STRUCT.size + _USER_ID_STRUCT.size
    steam_raw = data[offset : offset + STEAM_ID_LENGTH]

    return PlayerInfo(
        name=_read_cstring(raw_name),
        user_id=user_id,
        steam_id=_read_cstring(steam_raw),
        entity_id=index + 1,
    )


def encode_player_info(name: str, user_id: int, steam_id: str) -> bytes:
    """Build a player_info_t payload (used by record dumps and tests)."""
    return (
        _NAME_STRUCT.pack(name.encode("utf-8")[: NAME_LENGTH - 1])
        + _USER_ID_STRUCT.pack(user_id)
        + _STEAM_ID_STRUCT.pack(steam_id.encode("utf-8")[: STEAM_ID_LENGTH - 1])
    )
