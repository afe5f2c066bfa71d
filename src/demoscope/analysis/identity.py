"""
Identity Resolution

Maps the unstable identifiers carried by replay records (slot number,
entity handle, Steam ID, display name) onto StableUserIds, the indices of
the user collection. A record is created the first time an identity is seen
and only ever enriched afterwards; two existing records are never merged.

Slot numbers and entity handles are owned by one record at a time: when a
record claims a slot (e.g. after a reconnect), any other record holding it
gives it up, so later slot lookups hit the current owner.
"""

import logging
from collections.abc import Callable

from demoscope.analysis.models import StableUserId, UserRecord
from demoscope.core.constants import BOT_STEAM_ID

logger = logging.getLogger(__name__)


class IdentityResolver:
    """
    Arena of UserRecords addressed by StableUserId.

    Example:
        >>> resolver = IdentityResolver()
        >>> alice = resolver.resolve_player(1, "[U:1:100]", "Alice")
        >>> resolver.resolve_player(7, "[U:1:100]", "Alice") == alice
        True
    """

    def __init__(self) -> None:
        self._users: list[UserRecord] = []

    def __len__(self) -> int:
        return len(self._users)

    @property
    def users(self) -> list[UserRecord]:
        return self._users

    def get(self, uid: StableUserId) -> UserRecord:
        return self._users[uid]

    def find(self, predicate: Callable[[UserRecord], bool]) -> StableUserId | None:
        """First user matching predicate, in creation order."""
        for uid, user in enumerate(self._users):
            if predicate(user):
                return uid
        return None

    def resolve(
        self,
        predicate: Callable[[UserRecord], bool],
        factory: Callable[[], UserRecord],
    ) -> StableUserId:
        """
        Find the user matching predicate, creating one with factory if none does.

        Returns:
            StableUserId of the matched or created record
        """
        uid = self.find(predicate)
        if uid is not None:
            return uid

        return self._create(factory())

    # ------------------------------------------------------------------
    # Lookups used by the event synthesizers
    # ------------------------------------------------------------------

    def resolve_slot(self, user_id: int) -> StableUserId:
        """Resolve a slot number, creating a placeholder for an unseen slot."""
        return self.resolve(
            lambda u: u.user_id == user_id,
            lambda: UserRecord(user_id=user_id),
        )

    def find_by_entity(self, entity_id: int) -> StableUserId | None:
        """User whose last known entity handle is entity_id, without creating one."""
        return self.find(lambda u: u.entity_id == entity_id)

    def resolve_player(
        self,
        user_id: int,
        steam_id: str | None,
        name: str | None = None,
        entity_id: int | None = None,
    ) -> StableUserId:
        """
        Resolve a record that carries a persistent identifier.

        Bots (BOT_STEAM_ID or no identifier) resolve by slot only, against
        bot or anonymous records; a human who held the slot earlier is never
        matched. Everyone else resolves by Steam ID, then by display name
        among records whose Steam ID is still unknown, then by an anonymous
        placeholder holding the same slot. The matched record's slot and
        entity handle are updated to the values carried here.

        Args:
            user_id: Slot number
            steam_id: Persistent identifier
            name: Display name
            entity_id: Entity handle, when known

        Returns:
            StableUserId of the player
        """
        if not steam_id or steam_id == BOT_STEAM_ID:
            uid = self.resolve(
                lambda u: u.user_id == user_id and u.is_bot,
                lambda: UserRecord(name=name, steam_id=steam_id or None, user_id=user_id),
            )
        else:
            uid = self.find(lambda u: u.steam_id == steam_id)
            if uid is None and name:
                uid = self.find(lambda u: u.steam_id is None and u.name == name)
            if uid is None:
                uid = self.find(
                    lambda u: u.user_id == user_id and u.steam_id is None and u.name is None
                )
            if uid is None:
                uid = self._create(UserRecord(name=name, steam_id=steam_id, user_id=user_id))

        self._enrich(uid, user_id, steam_id, name, entity_id)
        return uid

    def rename(self, old_name: str, new_name: str) -> StableUserId | None:
        """Rename the first user currently called old_name."""
        uid = self.find(lambda u: u.name == old_name)
        if uid is None:
            logger.debug(f"Name change from unknown player {old_name!r}")
            return None
        self._users[uid].name = new_name
        return uid

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _create(self, user: UserRecord) -> StableUserId:
        self._users.append(user)
        uid = len(self._users) - 1
        logger.debug(f"New user {uid}: {user}")
        return uid

    def _enrich(
        self,
        uid: StableUserId,
        user_id: int,
        steam_id: str | None,
        name: str | None,
        entity_id: int | None,
    ) -> None:
        user = self._users[uid]
        if user.steam_id is None and steam_id:
            user.steam_id = steam_id
        if user.name is None and name:
            user.name = name

        if user.user_id is not None and user.user_id != user_id:
            logger.debug(f"User {uid} moved from slot {user.user_id} to {user_id}")
        self._release(uid, lambda u: u.user_id == user_id, "user_id")
        user.user_id = user_id

        if entity_id is not None:
            self._release(uid, lambda u: u.entity_id == entity_id, "entity_id")
            user.entity_id = entity_id

    def _release(
        self, owner: StableUserId, holds: Callable[[UserRecord], bool], attribute: str
    ) -> None:
        for uid, user in enumerate(self._users):
            if uid != owner and holds(user):
                setattr(user, attribute, None)
