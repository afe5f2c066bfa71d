"""Tests for human-readable event descriptions."""

import pytest

from demoscope.analysis.describe import EventDescription, describe_event
from demoscope.analysis.models import (
    Ballot,
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
    UserInfo,
    VoteInfo,
    VoteScope,
)
from demoscope.core.constants import ChatMessageKind, PlayerClass, Team


def make_user(uid, name):
    return UserInfo(
        uid=uid,
        name=name,
        steam_id=f"[U:1:{uid + 100}]",
        user_id=uid + 1,
        entity_id=uid + 1,
        last_team=None,
        last_class=None,
    )


@pytest.fixture
def state():
    return MatchState(users=(make_user(0, "Alice"), make_user(1, "Bob"), make_user(2, None)))


def describe(state, value, tick=0):
    return describe_event(state, MatchEvent(tick=tick, value=value))


class TestDescribeKill:
    """Tests for kill lines."""

    def test_kill(self, state):
        death = Death(victim=1, killer=0, assister=None, weapon="rocketlauncher")
        assert describe(state, death) == EventDescription("Alice killed Bob with rocketlauncher")

    def test_world_kill(self, state):
        death = Death(victim=0, killer=None, assister=None, weapon="world")
        assert describe(state, death).title == "Alice was killed with world"

    def test_crit_suffixes(self, state):
        mini = Death(victim=1, killer=0, assister=None, weapon="x", crit_type=CritType.MINI, crit_code=1)
        full = Death(victim=1, killer=0, assister=None, weapon="x", crit_type=CritType.FULL, crit_code=2)
        odd = Death(
            victim=1, killer=0, assister=None, weapon="x", crit_type=CritType.UNKNOWN, crit_code=9
        )
        assert describe(state, mini).title.endswith("(mini-crit)")
        assert describe(state, full).title.endswith("(crit)")
        assert describe(state, odd).title.endswith("(unknown crit type: 9)")

    def test_notes(self, state):
        death = Death(
            victim=1, killer=0, assister=2, weapon="x", domination=True, revenge=True
        )
        assert describe(state, death).subtitle == "assisted by unknown, domination, revenge"


class TestDescribeOther:
    """Tests for the remaining payload kinds."""

    def test_round(self, state):
        description = describe(state, Round(winner=Team.BLUE, length=183.4))
        assert description == EventDescription("Round won by BLU", "183s")

    def test_chat(self, state):
        message = ChatMessage(chat_kind=ChatMessageKind.TEAM, from_name="Alice", text="push")
        assert describe(state, message) == EventDescription("push", "(Team) Alice")

    def test_join(self, state):
        event = ConnectionEvent(
            user=0, name="Alice", steam_id="[U:1:100]", connection=ConnectionKind.JOIN
        )
        assert describe(state, event) == EventDescription("Alice joined the game", "[U:1:100]")

    def test_leave(self, state):
        event = ConnectionEvent(
            user=0,
            name="Alice",
            steam_id="[U:1:100]",
            connection=ConnectionKind.LEAVE,
            reason="Disconnect by user.",
        )
        assert describe(state, event).title == "Alice left the game (Disconnect by user.)"

    def test_vote(self, state):
        vote = VoteInfo(
            vote_idx=0,
            start_tick=100,
            end_tick=110,
            scope=VoteScope.BOTH,
            team=None,
            initiator="Alice",
            issue='Kick player "Bob"?',
            options=("Yes", "No"),
            ballots=(Ballot(100, "Alice", 0), Ballot(100, "Bob", 1), Ballot(110, "Carol", 0)),
        )
        assert describe(state, vote) == EventDescription(
            'Alice started a vote: Kick player "Bob"?', "Both Teams | Yes: 2, No: 1"
        )

    def test_vote_without_details(self, state):
        vote = VoteInfo(
            vote_idx=0,
            start_tick=100,
            end_tick=100,
            scope=VoteScope.UNKNOWN,
            team=None,
            initiator=None,
            issue=None,
            options=("Yes", "No"),
            ballots=(),
        )
        description = describe(state, vote)
        assert description.title == "unknown started a vote: Unknown vote issue"
        assert description.subtitle == "Unknown | Yes: 0, No: 0"

    def test_switches(self, state):
        assert describe(state, TeamSwitch(user=1, team=Team.RED)) == EventDescription("RED", "Bob")
        assert describe(state, ClassSwitch(user=0, player_class=PlayerClass.HEAVY)) == (
            EventDescription("Heavy", "Alice")
        )

    def test_unknown_payload(self, state):
        with pytest.raises(TypeError):
            describe(state, object())
