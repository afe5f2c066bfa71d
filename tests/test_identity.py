"""Tests for the identity resolver."""

import pytest

from demoscope.analysis.identity import IdentityResolver
from demoscope.analysis.models import UserRecord


@pytest.fixture
def resolver():
    return IdentityResolver()


class TestResolveSlot:
    """Tests for slot-number lookups."""

    def test_unseen_slot_creates_placeholder(self, resolver):
        """An unknown slot creates an anonymous record holding that slot."""
        uid = resolver.resolve_slot(5)
        assert uid == 0
        user = resolver.get(uid)
        assert user.user_id == 5
        assert user.name is None
        assert user.steam_id is None

    def test_same_slot_same_user(self, resolver):
        """Repeated lookups of a slot return the same StableUserId."""
        assert resolver.resolve_slot(5) == resolver.resolve_slot(5)
        assert len(resolver) == 1

    def test_different_slots_different_users(self, resolver):
        assert resolver.resolve_slot(1) != resolver.resolve_slot(2)
        assert len(resolver) == 2


class TestResolvePlayer:
    """Tests for lookups by persistent identifier."""

    def test_same_steam_id_same_user(self, resolver):
        """A player keeps their StableUserId across slots."""
        first = resolver.resolve_player(1, "[U:1:100]", "Alice")
        second = resolver.resolve_player(7, "[U:1:100]", "Alice")
        assert first == second
        assert resolver.get(first).user_id == 7

    def test_steam_id_wins_over_name(self, resolver):
        """Two players sharing a name stay distinct when their IDs differ."""
        a = resolver.resolve_player(1, "[U:1:100]", "Player")
        b = resolver.resolve_player(2, "[U:1:200]", "Player")
        assert a != b

    def test_name_matches_record_without_steam_id(self, resolver):
        """A name-only record is claimed by the first identifier seen for it."""
        uid = resolver._create(UserRecord(name="Alice"))
        assert resolver.resolve_player(3, "[U:1:100]", "Alice") == uid
        assert resolver.get(uid).steam_id == "[U:1:100]"

    def test_placeholder_slot_is_enriched(self, resolver):
        """A slot placeholder created by an earlier event is filled in, not duplicated."""
        placeholder = resolver.resolve_slot(4)
        uid = resolver.resolve_player(4, "[U:1:42]", "Bob")
        assert uid == placeholder
        assert len(resolver) == 1
        user = resolver.get(uid)
        assert user.name == "Bob"
        assert user.steam_id == "[U:1:42]"

    def test_existing_fields_are_not_overwritten(self, resolver):
        """Enrichment only fills unknown fields."""
        uid = resolver.resolve_player(1, "[U:1:100]", "Alice")
        resolver.resolve_player(1, "[U:1:100]", "Someone Else")
        assert resolver.get(uid).name == "Alice"

    def test_entity_handle_recorded(self, resolver):
        uid = resolver.resolve_player(1, "[U:1:100]", "Alice", entity_id=3)
        assert resolver.find_by_entity(3) == uid

    def test_find_by_entity_never_creates(self, resolver):
        assert resolver.find_by_entity(9) is None
        assert len(resolver) == 0


class TestBots:
    """Tests for bot disambiguation."""

    def test_bots_distinguished_by_slot(self, resolver):
        """Bots share the BOT identifier, so only the slot tells them apart."""
        a = resolver.resolve_player(10, "BOT", "Bot A")
        b = resolver.resolve_player(11, "BOT", "Bot B")
        assert a != b
        assert resolver.get(a).name == "Bot A"
        assert resolver.get(b).name == "Bot B"

    def test_bot_same_slot_same_user(self, resolver):
        a = resolver.resolve_player(10, "BOT", "Bot A")
        assert resolver.resolve_player(10, "BOT", "Bot A") == a

    def test_bot_flag(self, resolver):
        uid = resolver.resolve_player(10, "BOT", "Bot A")
        assert resolver.get(uid).is_bot


class TestSlotOwnership:
    """Tests for slot and entity handle reassignment."""

    def test_reconnect_releases_old_slot(self, resolver):
        """When a new player takes over a slot, slot lookups find the new owner."""
        alice = resolver.resolve_player(1, "[U:1:100]", "Alice")
        resolver.resolve_player(2, "[U:1:100]", "Alice")
        bob = resolver.resolve_player(1, "[U:1:200]", "Bob")

        assert bob != alice
        assert resolver.resolve_slot(1) == bob
        assert resolver.get(alice).user_id == 2

    def test_claiming_slot_clears_previous_holder(self, resolver):
        alice = resolver.resolve_player(1, "[U:1:100]", "Alice")
        bob = resolver.resolve_player(1, "[U:1:200]", "Bob")
        assert resolver.get(alice).user_id is None
        assert resolver.get(bob).user_id == 1

    def test_bot_in_recycled_human_slot(self, resolver):
        """A bot joining a slot a human held gets its own record and the slot."""
        alice = resolver.resolve_player(5, "[U:1:100]", "Alice")
        bot = resolver.resolve_player(5, "BOT", "Bot01")

        assert bot != alice
        assert resolver.get(alice).name == "Alice"
        assert resolver.get(bot).name == "Bot01"
        assert resolver.resolve_slot(5) == bot
        assert resolver.get(alice).user_id is None

    def test_bot_claims_anonymous_placeholder(self, resolver):
        placeholder = resolver.resolve_slot(5)
        assert resolver.resolve_player(5, "BOT", "Bot01") == placeholder
        assert resolver.get(placeholder).steam_id == "BOT"

    def test_entity_handle_moves(self, resolver):
        alice = resolver.resolve_player(1, "[U:1:100]", "Alice", entity_id=2)
        bob = resolver.resolve_player(3, "[U:1:200]", "Bob", entity_id=2)
        assert resolver.find_by_entity(2) == bob
        assert resolver.get(alice).entity_id is None


class TestRename:
    """Tests for in-game name changes."""

    def test_rename_updates_name(self, resolver):
        uid = resolver.resolve_player(1, "[U:1:100]", "Alice")
        assert resolver.rename("Alice", "Alicia") == uid
        assert resolver.get(uid).name == "Alicia"

    def test_rename_unknown_player(self, resolver):
        """Renaming a name nobody has is a no-op."""
        assert resolver.rename("Nobody", "Somebody") is None
        assert len(resolver) == 0
