"""
DemoScope Analysis - reconstruction of a match from decoded replay records.

- models: users, event payloads and the MatchState aggregate
- identity: StableUserId resolution
- votes: poll tracking
- chat: chat text resolution
- analyser: the Analyser fold
- describe: human-readable event lines
"""

from demoscope.analysis.analyser import Analyser, analyse
from demoscope.analysis.describe import EventDescription, describe_event
from demoscope.analysis.models import (
    Ballot,
    ChatMessage,
    ClassSwitch,
    ConnectionEvent,
    ConnectionKind,
    CritType,
    Death,
    EventKind,
    MatchEvent,
    MatchState,
    Round,
    ServerInfo,
    StableUserId,
    TeamSwitch,
    UserInfo,
    VoteInfo,
    VoteOutcome,
    VoteScope,
)

__all__ = [
    "Analyser",
    "analyse",
    "EventDescription",
    "describe_event",
    "Ballot",
    "ChatMessage",
    "ClassSwitch",
    "ConnectionEvent",
    "ConnectionKind",
    "CritType",
    "Death",
    "EventKind",
    "MatchEvent",
    "MatchState",
    "Round",
    "ServerInfo",
    "StableUserId",
    "TeamSwitch",
    "UserInfo",
    "VoteInfo",
    "VoteOutcome",
    "VoteScope",
]
