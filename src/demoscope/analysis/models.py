"""
Match Analysis Data Models

Domain types produced by the Analyser. Users are referenced everywhere by a
StableUserId, an index into MatchState.users, never by the record itself.

Event payloads form a closed set (EventPayload); MatchEvent pairs one of them
with the tick it happened at.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import StrEnum
from typing import ClassVar, Union

from demoscope.core.constants import (
    BOT_STEAM_ID,
    DEFAULT_TICK_RATE,
    ChatMessageKind,
    CritCode,
    DeathFlags,
    PlayerClass,
    Team,
)

StableUserId = int


class EventKind(StrEnum):
    """Kinds of events in the match log."""

    KILL = "kill"
    ROUND_END = "round_end"
    CHAT = "chat"
    CONNECTION = "connection"
    VOTE_STARTED = "vote_started"
    TEAM_SWITCH = "team_switch"
    CLASS_SWITCH = "class_switch"


class CritType(StrEnum):
    """Crit classification of a kill."""

    NONE = "none"
    MINI = "mini"
    FULL = "full"
    UNKNOWN = "unknown"

    @classmethod
    def from_code(cls, code: int) -> CritType:
        if code == CritCode.NONE:
            return cls.NONE
        if code == CritCode.MINI:
            return cls.MINI
        if code == CritCode.FULL:
            return cls.FULL
        return cls.UNKNOWN


class ConnectionKind(StrEnum):
    JOIN = "join"
    LEAVE = "leave"


class VoteScope(StrEnum):
    """Which teams cast ballots in a poll."""

    UNKNOWN = "unknown"
    SINGLE = "single"
    BOTH = "both"


class VoteOutcome(StrEnum):
    PASSED = "passed"
    FAILED = "failed"
    UNKNOWN = "unknown"


# ============================================================================
# Users
# ============================================================================


@dataclass
class UserRecord:
    """
    Mutable per-participant record, owned by the Analyser while it runs.

    steam_id is None until known, and equals BOT_STEAM_ID for bots.
    user_id is the slot number, entity_id the last known entity handle.
    """

    name: str | None = None
    steam_id: str | None = None
    user_id: int | None = None
    entity_id: int | None = None
    last_team: Team | None = None
    last_class: PlayerClass | None = None
    class_switches: list[tuple[int, PlayerClass]] = field(default_factory=list)
    team_switches: list[tuple[int, Team]] = field(default_factory=list)
    connections: list[tuple[int, ConnectionEvent]] = field(default_factory=list)

    @property
    def is_bot(self) -> bool:
        return self.steam_id is None or self.steam_id == BOT_STEAM_ID

    def snapshot(self, uid: StableUserId) -> UserInfo:
        """Freeze this record for the finished MatchState."""
        return UserInfo(
            uid=uid,
            name=self.name,
            steam_id=self.steam_id,
            user_id=self.user_id,
            entity_id=self.entity_id,
            last_team=self.last_team,
            last_class=self.last_class,
            class_switches=tuple(self.class_switches),
            team_switches=tuple(self.team_switches),
            connections=tuple(self.connections),
        )


@dataclass(frozen=True)
class UserInfo:
    """Read-only view of a participant in a finished MatchState."""

    uid: StableUserId
    name: str | None
    steam_id: str | None
    user_id: int | None
    entity_id: int | None
    last_team: Team | None
    last_class: PlayerClass | None
    class_switches: tuple[tuple[int, PlayerClass], ...] = ()
    team_switches: tuple[tuple[int, Team], ...] = ()
    connections: tuple[tuple[int, ConnectionEvent], ...] = ()

    @property
    def is_bot(self) -> bool:
        return self.steam_id is None or self.steam_id == BOT_STEAM_ID

    @property
    def display_name(self) -> str:
        return self.name if self.name is not None else "unknown"


# ============================================================================
# Event payloads
# ============================================================================


@dataclass(frozen=True)
class Death:
    """A kill. killer is None for world/self kills, assister None if nobody assisted."""

    victim: StableUserId
    killer: StableUserId | None
    assister: StableUserId | None
    weapon: str
    crit_type: CritType = CritType.NONE
    crit_code: int = 0
    domination: bool = False
    assister_domination: bool = False
    revenge: bool = False
    assister_revenge: bool = False
    feign_death: bool = False

    kind: ClassVar[EventKind] = EventKind.KILL

    @staticmethod
    def decode_flags(death_flags: int) -> dict[str, bool]:
        """Split the packed death_flags field into named booleans."""
        return {
            "domination": bool(death_flags & DeathFlags.DOMINATION),
            "assister_domination": bool(death_flags & DeathFlags.ASSISTER_DOMINATION),
            "revenge": bool(death_flags & DeathFlags.REVENGE),
            "assister_revenge": bool(death_flags & DeathFlags.ASSISTER_REVENGE),
            "feign_death": bool(death_flags & DeathFlags.FEIGN_DEATH),
        }


@dataclass(frozen=True)
class Round:
    """End of a round with a real winner."""

    winner: Team
    length: float

    kind: ClassVar[EventKind] = EventKind.ROUND_END


@dataclass(frozen=True)
class ChatMessage:
    """A chat line; from_name is empty for server messages."""

    chat_kind: ChatMessageKind
    from_name: str
    text: str
    team: Team | None = None
    user: StableUserId | None = None

    kind: ClassVar[EventKind] = EventKind.CHAT


@dataclass(frozen=True)
class ConnectionEvent:
    """A join or leave. steam_id is the slot key ("BOT <slot>" for bots)."""

    user: StableUserId
    name: str
    steam_id: str
    connection: ConnectionKind
    reason: str | None = None

    kind: ClassVar[EventKind] = EventKind.CONNECTION


@dataclass(frozen=True)
class Ballot:
    tick: int
    voter: str
    option: int


@dataclass(frozen=True)
class VoteInfo:
    """A finished (or never closed) poll."""

    vote_idx: int
    start_tick: int
    end_tick: int
    scope: VoteScope
    team: Team | None
    initiator: str | None
    issue: str | None
    options: tuple[str, ...]
    ballots: tuple[Ballot, ...]
    outcome: VoteOutcome = VoteOutcome.UNKNOWN

    kind: ClassVar[EventKind] = EventKind.VOTE_STARTED

    @property
    def tallies(self) -> dict[str, int]:
        """Ballot count per option label, in option order."""
        counts = Counter(ballot.option for ballot in self.ballots)
        return {label: counts.get(i, 0) for i, label in enumerate(self.options)}

    @property
    def scope_label(self) -> str:
        if self.scope == VoteScope.SINGLE and self.team is not None:
            return str(self.team)
        if self.scope == VoteScope.BOTH:
            return "Both Teams"
        return "Unknown"


@dataclass(frozen=True)
class TeamSwitch:
    user: StableUserId
    team: Team

    kind: ClassVar[EventKind] = EventKind.TEAM_SWITCH


@dataclass(frozen=True)
class ClassSwitch:
    user: StableUserId
    player_class: PlayerClass

    kind: ClassVar[EventKind] = EventKind.CLASS_SWITCH


EventPayload = Union[Death, Round, ChatMessage, ConnectionEvent, VoteInfo, TeamSwitch, ClassSwitch]


@dataclass(frozen=True)
class MatchEvent:
    """One entry of the match log."""

    tick: int
    value: EventPayload

    @property
    def kind(self) -> EventKind:
        return self.value.kind


# ============================================================================
# Aggregate
# ============================================================================


@dataclass(frozen=True)
class ServerInfo:
    """Server metadata from svc_ServerInfo."""

    name: str = ""
    map_name: str = ""
    max_players: int = 0
    interval_per_tick: float = 0.0
    platform: str = ""
    is_stv: bool = False

    def tick_rate_or(self, fallback: float = DEFAULT_TICK_RATE) -> float:
        """Ticks per second, or fallback when the server sent no tick interval."""
        if self.interval_per_tick > 0:
            return 1.0 / self.interval_per_tick
        return fallback

    @property
    def tick_rate(self) -> float:
        return self.tick_rate_or(DEFAULT_TICK_RATE)


@dataclass(frozen=True)
class MatchState:
    """
    The reconstructed match, read-only once returned by Analyser.finalize().

    Attributes:
        users: Every participant, indexed by StableUserId
        events: Chronological match log
        server_info: Last server metadata seen
        start_tick: First server tick of the recording
        end_tick: Last demo tick processed
        fallback_tick_rate: Tick rate used when server_info has no tick interval
    """

    users: tuple[UserInfo, ...] = ()
    events: tuple[MatchEvent, ...] = ()
    server_info: ServerInfo = field(default_factory=ServerInfo)
    start_tick: int = 0
    end_tick: int = 0
    fallback_tick_rate: float = DEFAULT_TICK_RATE

    def user(self, uid: StableUserId) -> UserInfo:
        return self.users[uid]

    def user_name(self, uid: StableUserId | None) -> str:
        """Display name of a user reference, "unknown" when absent."""
        if uid is None:
            return "unknown"
        return self.users[uid].display_name

    def find_user(self, name: str) -> UserInfo | None:
        """First user whose current name contains name (case-insensitive)."""
        needle = name.lower()
        for user in self.users:
            if user.name is not None and needle in user.name.lower():
                return user
        return None

    def events_of(self, *kinds: EventKind) -> list[MatchEvent]:
        return [event for event in self.events if event.kind in kinds]

    def events_for(self, uid: StableUserId) -> list[MatchEvent]:
        """Events that reference the given user."""
        result = []
        for event in self.events:
            value = event.value
            if isinstance(value, Death):
                involved = uid in (value.victim, value.killer, value.assister)
            elif isinstance(value, (ChatMessage, ConnectionEvent, TeamSwitch, ClassSwitch)):
                involved = value.user == uid
            else:
                involved = False
            if involved:
                result.append(event)
        return result

    @property
    def kills(self) -> list[Death]:
        return [event.value for event in self.events if isinstance(event.value, Death)]

    @property
    def votes(self) -> list[VoteInfo]:
        return [event.value for event in self.events if isinstance(event.value, VoteInfo)]

    @property
    def tick_rate(self) -> float:
        return self.server_info.tick_rate_or(self.fallback_tick_rate)

    @property
    def duration_ticks(self) -> int:
        return self.end_tick

    @property
    def duration_seconds(self) -> float:
        return self.end_tick / self.tick_rate
