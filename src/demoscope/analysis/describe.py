"""
Event Descriptions

Human-readable title/subtitle lines for match events, as shown in the CLI
event table and written to CSV exports.
"""

from dataclasses import dataclass

from demoscope.analysis.models import (
    ChatMessage,
    ClassSwitch,
    ConnectionEvent,
    ConnectionKind,
    CritType,
    Death,
    MatchEvent,
    MatchState,
    Round,
    TeamSwitch,
    VoteInfo,
)


@dataclass(frozen=True)
class EventDescription:
    title: str
    subtitle: str = ""


def crit_suffix(death: Death) -> str:
    if death.crit_type == CritType.MINI:
        return " (mini-crit)"
    if death.crit_type == CritType.FULL:
        return " (crit)"
    if death.crit_type == CritType.UNKNOWN:
        return f" (unknown crit type: {death.crit_code})"
    return ""


def _describe_kill(state: MatchState, death: Death) -> EventDescription:
    victim = state.user_name(death.victim)
    if death.killer is None:
        title = f"{victim} was killed with {death.weapon}{crit_suffix(death)}"
    else:
        killer = state.user_name(death.killer)
        title = f"{killer} killed {victim} with {death.weapon}{crit_suffix(death)}"

    notes = []
    if death.assister is not None:
        notes.append(f"assisted by {state.user_name(death.assister)}")
    if death.domination:
        notes.append("domination")
    if death.revenge:
        notes.append("revenge")
    if death.feign_death:
        notes.append("feign death")
    return EventDescription(title, ", ".join(notes))


def _describe_vote(vote: VoteInfo) -> EventDescription:
    title = (
        f"{vote.initiator or 'unknown'} started a vote: {vote.issue or 'Unknown vote issue'}"
    )
    tallies = ", ".join(f"{label}: {count}" for label, count in vote.tallies.items())
    return EventDescription(title, f"{vote.scope_label} | {tallies}")


def describe_event(state: MatchState, event: MatchEvent) -> EventDescription:
    """
    Describe one event of a finished match.

    Args:
        state: The match the event belongs to (for user names)
        event: Event to describe

    Returns:
        EventDescription with a title and an optional subtitle
    """
    value = event.value
    if isinstance(value, Death):
        return _describe_kill(state, value)
    if isinstance(value, Round):
        return EventDescription(f"Round won by {value.winner}", f"{value.length:.0f}s")
    if isinstance(value, ChatMessage):
        return EventDescription(value.text, f"{value.chat_kind.prefix}{value.from_name}")
    if isinstance(value, ConnectionEvent):
        if value.connection == ConnectionKind.JOIN:
            return EventDescription(f"{value.name} joined the game", value.steam_id)
        return EventDescription(f"{value.name} left the game ({value.reason})", value.steam_id)
    if isinstance(value, VoteInfo):
        return _describe_vote(value)
    if isinstance(value, TeamSwitch):
        return EventDescription(str(value.team), state.user_name(value.user))
    if isinstance(value, ClassSwitch):
        return EventDescription(str(value.player_class), state.user_name(value.user))
    raise TypeError(f"Unknown event payload: {type(value).__name__}")
