"""
Match Analyser

Single-pass fold over decoded replay records that reconstructs the match:
participants and their team/class history, kills, rounds, chat, connection
churn and votes, as one chronological event log.

Usage:
    from demoscope.analysis.analyser import Analyser

    analyser = Analyser()
    for record in records:
        analyser.handle(record)
    state = analyser.finalize()

    for event in state.events:
        print(event.tick, event.kind)
"""

import bisect
import logging
from collections.abc import Iterable

from demoscope.analysis.chat import is_known_template, resolve_chat_text
from demoscope.analysis.identity import IdentityResolver
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
    ServerInfo,
    StableUserId,
    TeamSwitch,
    VoteOutcome,
)
from demoscope.analysis.votes import VoteTracker
from demoscope.core.config import AnalysisConfig
from demoscope.core.constants import (
    BOT_STEAM_ID,
    USERINFO_TABLE,
    WIN_REASON_TIME_LIMIT,
    WORLD_ATTACKER,
    ChatMessageKind,
    HudTextLocation,
    MessageType,
    PlayerClass,
    Team,
)
from demoscope.core.player_info import parse_player_info
from demoscope.core.records import (
    NetTick,
    PlayerChangeClass,
    PlayerConnect,
    PlayerDeath,
    PlayerDisconnect,
    PlayerSpawn,
    Record,
    RoundWin,
    SayText2,
    ServerInfoMessage,
    StringTableEntry,
    TextMessage,
    VoteCast,
    VoteFailed,
    VoteOptions,
    VotePassed,
    category_of,
)
from demoscope.core.utils import PerformanceMonitor

logger = logging.getLogger(__name__)


class Analyser:
    """
    Builder for a MatchState.

    Feed records in demo order with handle(), then call finalize() once the
    stream is exhausted. The returned MatchState is immutable; handling more
    records after finalize() is an error.

    Args:
        config: Analysis settings (strictness, vote output)
    """

    HANDLED_TYPES = frozenset(
        {
            MessageType.NET_TICK,
            MessageType.SERVER_INFO,
            MessageType.GAME_EVENT,
            MessageType.USER_MESSAGE,
            MessageType.STRING_TABLE,
        }
    )

    def __init__(self, config: AnalysisConfig | None = None):
        self.config = config or AnalysisConfig()
        self._identity = IdentityResolver()
        self._votes = VoteTracker(strict=self.config.strict)
        self._events: list[MatchEvent] = []
        self._server_info = ServerInfo()
        self._start_tick: int | None = None
        self._end_tick = 0
        self._records_handled = 0
        self._result: MatchState | None = None

        self._handlers = {
            NetTick: self._handle_net_tick,
            ServerInfoMessage: self._handle_server_info,
            PlayerDeath: self._handle_death,
            RoundWin: self._handle_round_win,
            PlayerSpawn: self._handle_spawn,
            PlayerChangeClass: self._handle_change_class,
            PlayerConnect: self._handle_connect,
            PlayerDisconnect: self._handle_disconnect,
            VoteOptions: self._handle_vote_options,
            VoteCast: self._handle_vote_cast,
            VotePassed: self._handle_vote_passed,
            VoteFailed: self._handle_vote_failed,
            SayText2: self._handle_say_text,
            TextMessage: self._handle_text_message,
            StringTableEntry: self._handle_string_entry,
        }

    @classmethod
    def does_handle(cls, message_type: MessageType) -> bool:
        """Whether records of this category are consumed at all."""
        return message_type in cls.HANDLED_TYPES

    @property
    def identity(self) -> IdentityResolver:
        return self._identity

    @property
    def is_finalized(self) -> bool:
        return self._result is not None

    def handle(self, record: Record) -> None:
        """
        Fold one record into the match state.

        Records outside the handled categories, and sub-kinds nothing here
        interprets, are skipped without side effects.

        Raises:
            RuntimeError: If called after finalize()
            MalformedRecordError: In strict mode, for out-of-range fields
        """
        if self._result is not None:
            raise RuntimeError("Analyser already finalized")

        if not self.does_handle(category_of(record)):
            return

        self._end_tick = record.tick
        self._records_handled += 1

        handler = self._handlers.get(type(record))
        if handler is not None:
            handler(record)

    def feed(self, records: Iterable[Record]) -> "Analyser":
        """handle() every record in order."""
        for record in records:
            self.handle(record)
        return self

    def finalize(self) -> MatchState:
        """
        Splice the polls into the event log and freeze the result.

        Returns:
            The finished MatchState (the same object on repeated calls)
        """
        if self._result is not None:
            return self._result

        events = list(self._events)
        if self.config.include_votes:
            for vote in self._votes.finish():
                index = bisect.bisect_right(events, vote.start_tick, key=lambda e: e.tick)
                events.insert(index, MatchEvent(tick=vote.start_tick, value=vote))

        self._result = MatchState(
            users=tuple(user.snapshot(uid) for uid, user in enumerate(self._identity.users)),
            events=tuple(events),
            server_info=self._server_info,
            start_tick=self._start_tick or 0,
            end_tick=self._end_tick,
            fallback_tick_rate=self.config.tick_rate,
        )
        logger.info(
            f"Analysed {self._records_handled} records: {len(self._result.users)} users, "
            f"{len(self._result.events)} events"
        )
        return self._result

    # ------------------------------------------------------------------
    # Engine messages
    # ------------------------------------------------------------------

    def _handle_net_tick(self, record: NetTick) -> None:
        if self._start_tick is None:
            self._start_tick = record.server_tick

    def _handle_server_info(self, record: ServerInfoMessage) -> None:
        self._server_info = ServerInfo(
            name=record.server_name,
            map_name=record.map_name,
            max_players=record.max_player_count,
            interval_per_tick=record.interval_per_tick,
            platform=record.platform,
            is_stv=record.stv,
        )

    def _handle_string_entry(self, record: StringTableEntry) -> None:
        if record.table != USERINFO_TABLE:
            return
        info = parse_player_info(record.index, record.text, record.extra_data)
        if info is None:
            return
        self._identity.resolve_player(
            info.user_id, info.steam_id, info.name or None, entity_id=info.entity_id
        )

    # ------------------------------------------------------------------
    # Game events
    # ------------------------------------------------------------------

    def _push(self, tick: int, value) -> None:
        self._events.append(MatchEvent(tick=tick, value=value))

    def _handle_death(self, record: PlayerDeath) -> None:
        victim = self._identity.resolve_slot(record.user_id)
        killer = (
            None if record.attacker == WORLD_ATTACKER else self._identity.resolve_slot(record.attacker)
        )
        assister = self._identity.resolve_slot(record.assister) if record.has_assister else None

        self._push(
            record.tick,
            Death(
                victim=victim,
                killer=killer,
                assister=assister,
                weapon=record.weapon,
                crit_type=CritType.from_code(record.crit_type),
                crit_code=record.crit_type,
                **Death.decode_flags(record.death_flags),
            ),
        )

    def _handle_round_win(self, record: RoundWin) -> None:
        if record.win_reason == WIN_REASON_TIME_LIMIT:
            return
        self._push(record.tick, Round(winner=Team.new(record.team), length=record.round_time))

    def _handle_spawn(self, record: PlayerSpawn) -> None:
        uid = self._identity.resolve_slot(record.user_id)
        user = self._identity.get(uid)
        player_class = PlayerClass.new(record.player_class)
        team = Team.new(record.team)

        if user.last_class != player_class:
            user.last_class = player_class
            user.class_switches.append((record.tick, player_class))
            self._push(record.tick, ClassSwitch(user=uid, player_class=player_class))

        if user.last_team != team:
            user.last_team = team
            user.team_switches.append((record.tick, team))
            self._push(record.tick, TeamSwitch(user=uid, team=team))

    def _handle_change_class(self, record: PlayerChangeClass) -> None:
        # Recorded on every change request, unlike spawns which dedupe
        uid = self._identity.resolve_slot(record.user_id)
        self._identity.get(uid).class_switches.append(
            (record.tick, PlayerClass.new(record.player_class))
        )

    def _connection(
        self,
        tick: int,
        user_id: int,
        network_id: str,
        name: str,
        kind: ConnectionKind,
        reason: str | None = None,
    ) -> StableUserId:
        slot_key = network_id
        if network_id == BOT_STEAM_ID:
            slot_key = f"{BOT_STEAM_ID} {user_id}"

        uid = self._identity.resolve_player(user_id, network_id, name or None)
        event = ConnectionEvent(
            user=uid, name=name, steam_id=slot_key, connection=kind, reason=reason
        )
        self._identity.get(uid).connections.append((tick, event))
        self._push(tick, event)
        return uid

    def _handle_connect(self, record: PlayerConnect) -> None:
        self._connection(
            record.tick, record.user_id, record.network_id, record.name, ConnectionKind.JOIN
        )

    def _handle_disconnect(self, record: PlayerDisconnect) -> None:
        self._connection(
            record.tick,
            record.user_id,
            record.network_id,
            record.name,
            ConnectionKind.LEAVE,
            reason=record.reason,
        )

    # ------------------------------------------------------------------
    # Votes
    # ------------------------------------------------------------------

    def _handle_vote_options(self, record: VoteOptions) -> None:
        self._votes.announce(record.tick, record.vote_idx, record.options)

    def _handle_vote_cast(self, record: VoteCast) -> None:
        uid = self._identity.find_by_entity(record.entity_id)
        voter = self._identity.get(uid).name if uid is not None else None
        self._votes.cast(
            record.tick, record.vote_idx, record.vote_option, Team.new(record.team), voter
        )

    def _handle_vote_passed(self, record: VotePassed) -> None:
        issue = None
        if is_known_template(record.details):
            issue = resolve_chat_text(record.details, [record.param1])
        self._votes.close(record.tick, record.vote_idx, VoteOutcome.PASSED, issue)

    def _handle_vote_failed(self, record: VoteFailed) -> None:
        self._votes.close(record.tick, record.vote_idx, VoteOutcome.FAILED)

    # ------------------------------------------------------------------
    # User messages
    # ------------------------------------------------------------------

    def _handle_say_text(self, record: SayText2) -> None:
        if record.kind == ChatMessageKind.NAME_CHANGE:
            if record.from_name:
                self._identity.rename(record.from_name, record.text)
            return

        uid = self._identity.find_by_entity(record.client)
        speaker = self._identity.get(uid) if uid is not None else None
        from_name = record.from_name or (speaker.name if speaker and speaker.name else "")
        self._push(
            record.tick,
            ChatMessage(
                chat_kind=record.kind,
                from_name=from_name,
                text=resolve_chat_text(record.text, record.params),
                team=speaker.last_team if speaker else None,
                user=uid,
            ),
        )

    def _handle_text_message(self, record: TextMessage) -> None:
        if record.location != HudTextLocation.PRINT_TALK:
            return
        self._push(
            record.tick,
            ChatMessage(
                chat_kind=ChatMessageKind.EMPTY,
                from_name="",
                text=resolve_chat_text(record.text, record.substitutes),
            ),
        )


def analyse(records: Iterable[Record], config: AnalysisConfig | None = None) -> MatchState:
    """
    Convenience function to fold a whole record stream.

    Args:
        records: Decoded records in demo order
        config: Analysis settings

    Returns:
        The finished MatchState
    """
    analyser = Analyser(config)
    with PerformanceMonitor("Match analysis", log_level=logging.DEBUG):
        analyser.feed(records)
    return analyser.finalize()
