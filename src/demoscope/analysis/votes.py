"""
Vote Tracking

Accumulates polls keyed by the game's vote index. A poll opens on
vote_options, collects vote_cast ballots, and closes on vote_passed /
vote_failed. Indices are reused by the game, so a closed poll is moved out
of the open table and a later vote_options for the same index starts a new
one. Polls that never see a closure record stay open until finish().

The first ballots of a kick vote arrive on the poll's start tick: the caller
votes "Yes" and the target is auto-voted "No", which is how the initiator and
the issue are recovered.
"""

import logging
from dataclasses import dataclass, field

from demoscope.analysis.models import Ballot, VoteInfo, VoteOutcome, VoteScope
from demoscope.core.constants import VOTE_OPTION_NO, VOTE_OPTION_YES, Team
from demoscope.core.errors import MalformedRecordError

logger = logging.getLogger(__name__)

UNKNOWN_VOTER = "unknown"


@dataclass
class Vote:
    """Open poll accumulator."""

    vote_idx: int
    start_tick: int
    end_tick: int
    options: list[str]
    scope: VoteScope = VoteScope.UNKNOWN
    team: Team | None = None
    initiator: str | None = None
    issue: str | None = None
    ballots: list[Ballot] = field(default_factory=list)
    outcome: VoteOutcome = VoteOutcome.UNKNOWN

    def widen(self, team: Team) -> None:
        """Widen the team scope; it never narrows."""
        if self.scope == VoteScope.UNKNOWN:
            self.scope = VoteScope.SINGLE
            self.team = team
        elif self.scope == VoteScope.SINGLE and self.team != team:
            self.scope = VoteScope.BOTH
            self.team = None

    def freeze(self) -> VoteInfo:
        return VoteInfo(
            vote_idx=self.vote_idx,
            start_tick=self.start_tick,
            end_tick=self.end_tick,
            scope=self.scope,
            team=self.team,
            initiator=self.initiator,
            issue=self.issue,
            options=tuple(self.options),
            ballots=tuple(self.ballots),
            outcome=self.outcome,
        )


class VoteTracker:
    """
    Per-index poll state machine: announced -> active (ballots) -> closed.

    Args:
        strict: Raise MalformedRecordError on out-of-range option indices
            instead of dropping the ballot
    """

    def __init__(self, strict: bool = False):
        self.strict = strict
        self._open: dict[int, Vote] = {}
        self._closed: list[Vote] = []

    @property
    def open_votes(self) -> dict[int, Vote]:
        return self._open

    @property
    def closed_votes(self) -> list[Vote]:
        return self._closed

    def announce(self, tick: int, vote_idx: int, options: list[str] | tuple[str, ...]) -> bool:
        """
        Open a poll. Ignored while a poll with the same index is still open.

        Returns:
            True if a new poll was opened
        """
        if vote_idx in self._open:
            logger.debug(f"Vote {vote_idx} already open, ignoring options at tick {tick}")
            return False

        labels = [option for option in options if option]
        self._open[vote_idx] = Vote(
            vote_idx=vote_idx, start_tick=tick, end_tick=tick, options=labels
        )
        logger.debug(f"Vote {vote_idx} opened at tick {tick}: {labels}")
        return True

    def cast(
        self,
        tick: int,
        vote_idx: int,
        option: int,
        team: Team,
        voter: str | None,
    ) -> bool:
        """
        Record a ballot.

        Args:
            tick: Tick of the ballot
            vote_idx: Poll index
            option: Index into the poll's options
            team: Team of the voter
            voter: Voter name, None when the voter couldn't be resolved

        Returns:
            True if the ballot was recorded, False if it was dropped
        """
        vote = self._open.get(vote_idx)
        if vote is None:
            logger.debug(f"Dropping ballot for unknown vote {vote_idx} at tick {tick}")
            return False

        if not 0 <= option < len(vote.options):
            message = (
                f"Ballot option {option} out of range for vote {vote_idx} "
                f"({len(vote.options)} options) at tick {tick}"
            )
            if self.strict:
                raise MalformedRecordError(message)
            logger.warning(f"{message}, dropping")
            return False

        name = voter if voter is not None else UNKNOWN_VOTER
        vote.end_tick = tick
        vote.widen(team)
        vote.ballots.append(Ballot(tick=tick, voter=name, option=option))

        if tick == vote.start_tick:
            label = vote.options[option]
            if label == VOTE_OPTION_YES:
                vote.initiator = name
            elif label == VOTE_OPTION_NO:
                vote.issue = f'Kick player "{name}"?'

        return True

    def close(
        self,
        tick: int,
        vote_idx: int,
        outcome: VoteOutcome,
        issue: str | None = None,
    ) -> bool:
        """
        Close an open poll with its outcome.

        Args:
            issue: Issue text announced with the outcome, used if none is known yet

        Returns:
            True if a poll was closed
        """
        vote = self._open.pop(vote_idx, None)
        if vote is None:
            logger.debug(f"Dropping {outcome} for unknown vote {vote_idx} at tick {tick}")
            return False

        vote.end_tick = tick
        vote.outcome = outcome
        if vote.issue is None and issue:
            vote.issue = issue
        self._closed.append(vote)
        logger.debug(f"Vote {vote_idx} {outcome} at tick {tick}")
        return True

    def finish(self) -> list[VoteInfo]:
        """All polls, closed and still open, ordered by start tick."""
        votes = self._closed + list(self._open.values())
        return [vote.freeze() for vote in sorted(votes, key=lambda v: v.start_tick)]
