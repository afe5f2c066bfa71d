"""
Decoded Replay Records

The input contract of the Analyser. A replay decoder turns the raw demo
bytes into an ordered stream of these records; every record carries the
demo tick it was read at plus the payload of one message category:

- NetTick: server tick marker
- ServerInfoMessage: server metadata (name, map, tick interval)
- Game events: player_death, teamplay_round_win, player_spawn,
  player_changeclass, vote_options, vote_cast, vote_passed, vote_failed,
  player_connect_client, player_disconnect
- User messages: SayText2 chat and TextMsg server prints
- StringTableEntry: player directory ("userinfo") upserts

Records can also be loaded from a JSON-lines dump, one object per line with a
"type" key naming the record (see RECORD_TYPES).
"""

from __future__ import annotations

import functools
import json
import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, ClassVar, get_args, get_type_hints

from demoscope.core.constants import (
    NO_ASSISTER_THRESHOLD,
    ChatMessageKind,
    HudTextLocation,
    MessageType,
)
from demoscope.core.errors import RecordFormatError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Record:
    """Base of all decoded records."""

    tick: int

    message_type: ClassVar[MessageType] = MessageType.OTHER
    record_type: ClassVar[str] = ""


# ============================================================================
# Engine messages
# ============================================================================


@dataclass(frozen=True)
class NetTick(Record):
    """Server tick marker."""

    server_tick: int

    message_type: ClassVar[MessageType] = MessageType.NET_TICK
    record_type: ClassVar[str] = "net_tick"


@dataclass(frozen=True)
class ServerInfoMessage(Record):
    """svc_ServerInfo."""

    server_name: str
    map_name: str = ""
    max_player_count: int = 0
    interval_per_tick: float = 0.0
    platform: str = ""
    stv: bool = False

    message_type: ClassVar[MessageType] = MessageType.SERVER_INFO
    record_type: ClassVar[str] = "server_info"


@dataclass(frozen=True)
class UnhandledMessage(Record):
    """Any message category the decoder forwards but nothing here interprets."""

    category: MessageType = MessageType.OTHER

    record_type: ClassVar[str] = "unhandled"


# ============================================================================
# Game events
# ============================================================================


@dataclass(frozen=True)
class GameEvent(Record):
    """Base of the game event sub-kinds."""

    message_type: ClassVar[MessageType] = MessageType.GAME_EVENT


@dataclass(frozen=True)
class PlayerDeath(GameEvent):
    """player_death. user_id/attacker/assister are slot numbers."""

    user_id: int
    attacker: int
    weapon: str
    assister: int = 0xFFFF
    death_flags: int = 0
    crit_type: int = 0

    record_type: ClassVar[str] = "player_death"

    @property
    def has_assister(self) -> bool:
        return self.assister < NO_ASSISTER_THRESHOLD


@dataclass(frozen=True)
class RoundWin(GameEvent):
    """teamplay_round_win."""

    team: int
    win_reason: int
    round_time: float = 0.0

    record_type: ClassVar[str] = "teamplay_round_win"


@dataclass(frozen=True)
class PlayerSpawn(GameEvent):
    """player_spawn."""

    user_id: int
    team: int
    player_class: int

    record_type: ClassVar[str] = "player_spawn"


@dataclass(frozen=True)
class PlayerChangeClass(GameEvent):
    """player_changeclass."""

    user_id: int
    player_class: int

    record_type: ClassVar[str] = "player_changeclass"


@dataclass(frozen=True)
class VoteOptions(GameEvent):
    """vote_options. Empty option labels are padding and get dropped."""

    vote_idx: int
    options: tuple[str, ...] = ()

    record_type: ClassVar[str] = "vote_options"


@dataclass(frozen=True)
class VoteCast(GameEvent):
    """vote_cast. entity_id is the voter's transient entity handle."""

    vote_idx: int
    vote_option: int
    team: int
    entity_id: int

    record_type: ClassVar[str] = "vote_cast"


@dataclass(frozen=True)
class VotePassed(GameEvent):
    """vote_passed. details is a localization key such as '#TF_vote_passed_kick_player'."""

    vote_idx: int
    details: str = ""
    param1: str = ""
    team: int = 0

    record_type: ClassVar[str] = "vote_passed"


@dataclass(frozen=True)
class VoteFailed(GameEvent):
    """vote_failed."""

    vote_idx: int
    team: int = 0

    record_type: ClassVar[str] = "vote_failed"


@dataclass(frozen=True)
class PlayerConnect(GameEvent):
    """player_connect_client."""

    user_id: int
    network_id: str
    name: str = ""

    record_type: ClassVar[str] = "player_connect_client"


@dataclass(frozen=True)
class PlayerDisconnect(GameEvent):
    """player_disconnect."""

    user_id: int
    network_id: str
    name: str = ""
    reason: str = ""

    record_type: ClassVar[str] = "player_disconnect"


@dataclass(frozen=True)
class OtherGameEvent(GameEvent):
    """A game event sub-kind nothing here interprets (party_chat, ...)."""

    name: str = ""

    record_type: ClassVar[str] = "game_event"


# ============================================================================
# User messages
# ============================================================================


@dataclass(frozen=True)
class UserMessage(Record):
    """Base of the user message sub-kinds."""

    message_type: ClassVar[MessageType] = MessageType.USER_MESSAGE


@dataclass(frozen=True)
class SayText2(UserMessage):
    """
    Player chat.

    client is the speaker's entity handle, from_name the speaker's name
    and text the message body. For NAME_CHANGE, from_name is the old name
    and text the new one.
    """

    client: int
    kind: ChatMessageKind
    from_name: str = ""
    text: str = ""
    params: tuple[str, ...] = ()

    record_type: ClassVar[str] = "say_text2"


@dataclass(frozen=True)
class TextMessage(UserMessage):
    """Server TextMsg; text may be a localization key with %s placeholders."""

    location: HudTextLocation
    text: str
    substitutes: tuple[str, ...] = ()

    record_type: ClassVar[str] = "text_msg"


@dataclass(frozen=True)
class OtherUserMessage(UserMessage):
    """A user message sub-kind nothing here interprets."""

    name: str = ""

    record_type: ClassVar[str] = "user_message"


# ============================================================================
# String tables
# ============================================================================


@dataclass(frozen=True)
class StringTableEntry(Record):
    """
    String table upsert.

    For the "userinfo" table the index is the player's directory slot and
    extra_data holds the binary player info (see core.player_info).
    """

    table: str
    index: int
    text: str | None = None
    extra_data: bytes | None = None

    message_type: ClassVar[MessageType] = MessageType.STRING_TABLE
    record_type: ClassVar[str] = "string_table"


RECORD_TYPES: dict[str, type[Record]] = {
    cls.record_type: cls
    for cls in (
        NetTick,
        ServerInfoMessage,
        UnhandledMessage,
        PlayerDeath,
        RoundWin,
        PlayerSpawn,
        PlayerChangeClass,
        VoteOptions,
        VoteCast,
        VotePassed,
        VoteFailed,
        PlayerConnect,
        PlayerDisconnect,
        OtherGameEvent,
        SayText2,
        TextMessage,
        OtherUserMessage,
        StringTableEntry,
    )
}


def category_of(record: Record) -> MessageType:
    """Message category of a record, honouring UnhandledMessage's own category."""
    if isinstance(record, UnhandledMessage):
        return record.category
    return record.message_type


# ============================================================================
# JSON-lines loading
# ============================================================================


def _to_strings(value: Any) -> tuple[str, ...]:
    if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
        raise TypeError(f"expects a list of strings, got {type(value).__name__}")
    return tuple(value)


def _to_chat_kind(value: Any) -> ChatMessageKind:
    if not isinstance(value, str):
        raise TypeError(f"expects a template string, got {type(value).__name__}")
    return ChatMessageKind.from_template(value)


def _to_bytes(value: Any) -> bytes | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise TypeError(f"expects a hex string, got {type(value).__name__}")
    return bytes.fromhex(value)


_FIELD_CONVERTERS: dict[str, Any] = {
    "options": _to_strings,
    "params": _to_strings,
    "substitutes": _to_strings,
    "kind": _to_chat_kind,
    "location": HudTextLocation,
    "category": MessageType,
    "extra_data": _to_bytes,
}


@functools.cache
def _field_types(cls: type[Record]) -> dict[str, Any]:
    """Resolved annotation of each dataclass field of cls."""
    hints = get_type_hints(cls)
    return {f.name: hints[f.name] for f in fields(cls)}


def _check_scalar(value: Any, hint: Any) -> Any:
    """Return value if it fits a plain (or optional) scalar annotation."""
    allowed = get_args(hint) or (hint,)
    if float in allowed and isinstance(value, int) and not isinstance(value, bool):
        return float(value)
    # true/false only fits bool fields
    fits = isinstance(value, allowed) and (bool in allowed or not isinstance(value, bool))
    if not fits:
        names = ("null" if t is type(None) else t.__name__ for t in get_args(hint) or (hint,))
        expected = " or ".join(names)
        raise TypeError(f"expects {expected}, got {type(value).__name__}")
    return value


def record_from_dict(data: dict[str, Any]) -> Record:
    """
    Build a record from its JSON form.

    Every field value is checked against the field's annotation: integers
    are accepted for float fields, lists for string tuples, template strings
    for chat kinds and hex strings for raw payloads.

    Args:
        data: Mapping with a "type" key (one of RECORD_TYPES) and the record fields

    Returns:
        The typed record

    Raises:
        RecordFormatError: If the type is unknown or the fields don't fit
    """
    payload = dict(data)
    type_name = payload.pop("type", None)
    cls = RECORD_TYPES.get(type_name) if isinstance(type_name, str) else None
    if cls is None:
        raise RecordFormatError(f"Unknown record type: {type_name!r}")

    types = _field_types(cls)
    unknown = set(payload) - set(types)
    if unknown:
        raise RecordFormatError(f"Unknown fields for {type_name}: {', '.join(sorted(unknown))}")

    for key, value in payload.items():
        converter = _FIELD_CONVERTERS.get(key)
        try:
            if converter is not None:
                payload[key] = converter(value)
            else:
                payload[key] = _check_scalar(value, types[key])
        except (TypeError, ValueError) as e:
            raise RecordFormatError(f"Invalid {type_name} record: field {key!r}: {e}") from e

    try:
        return cls(**payload)
    except TypeError as e:
        raise RecordFormatError(f"Invalid {type_name} record: {e}") from e


def iter_records(lines: Iterable[str | bytes]) -> Iterator[Record]:
    """Parse JSON-lines text (or UTF-8 encoded lines) into records, skipping blank lines."""
    for line_no, line in enumerate(lines, start=1):
        if isinstance(line, bytes):
            try:
                line = line.decode("utf-8")
            except UnicodeDecodeError as e:
                raise RecordFormatError(f"Line {line_no}: not valid UTF-8 ({e.reason})") from e
        line = line.strip()
        if not line:
            continue
        try:
            data = json.loads(line)
        except json.JSONDecodeError as e:
            raise RecordFormatError(f"Line {line_no}: invalid JSON ({e.msg})") from e
        if not isinstance(data, dict):
            raise RecordFormatError(f"Line {line_no}: expected an object")
        try:
            yield record_from_dict(data)
        except RecordFormatError as e:
            raise RecordFormatError(f"Line {line_no}: {e}") from e


def load_records(path: str | Path) -> list[Record]:
    """
    Load a JSON-lines record dump.

    Args:
        path: Path to the UTF-8 encoded .jsonl file

    Returns:
        Records in file order

    Raises:
        FileNotFoundError: If the file does not exist
        RecordFormatError: If a line cannot be decoded or parsed into a record
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Record file not found: {path}")

    with open(path, "rb") as f:
        records = list(iter_records(f))

    logger.info(f"Loaded {len(records)} records from {path}")
    return records
