import json

import pytest

from slotbook.errors import InvalidArgument, NotFound, PermissionDenied
from slotbook.models import UserProfiles
from slotbook.services.client_cache import ClientCache
from slotbook.services.clients import ClientRegistry, clamp_quota, client_id_from_email
from slotbook.services.profiles import ProfileStore, sync_client_to_user_profile

from fakes import FakeRedis


def test_client_id_from_email():
    assert client_id_from_email("  Mario.Rossi@Example.IT ") == "mario_dot_rossi_at_example_dot_it"


@pytest.mark.parametrize(
    "email, expected",
    [
        ("a.b@example.com", "a_dot_b_at_example_dot_com"),
        ("a_dot_b@example.com", "a__dot__b_at_example_dot_com"),
        ("a_b@example.com", "a__b_at_example_dot_com"),
    ],
)
def test_client_id_escapes_underscores(email, expected):
    assert client_id_from_email(email) == expected


@pytest.mark.parametrize(
    "value, expected",
    [(None, 2), (0, 1), (-3, 1), (1, 1), (4, 4), (31, 31), (99, 31)],
)
def test_clamp_quota(value, expected):
    assert clamp_quota(value) == expected


class TestRegistry:
    def test_add_normalizes_and_defaults(self, db, admin):
        registry = ClientRegistry(db)
        obj = registry.add_or_update(admin, "  Alice@Example.com ", " Alice ")

        assert obj.id == "alice_at_example_dot_com"
        assert obj.email == "alice@example.com"
        assert obj.display_name == "Alice"
        assert obj.max_bookings_per_month == 2

    def test_readd_same_email_updates(self, db, admin):
        registry = ClientRegistry(db)
        registry.add_or_update(admin, "alice@example.com", "Alice", 2)
        registry.add_or_update(admin, "ALICE@example.com", None, 40)

        clients = registry.list_all()
        assert len(clients) == 1
        assert clients[0].display_name == "Alice"
        assert clients[0].max_bookings_per_month == 31

    def test_empty_email_rejected(self, db, admin):
        with pytest.raises(InvalidArgument):
            ClientRegistry(db).add_or_update(admin, "   ")

    def test_list_sorted_by_email(self, db, admin):
        registry = ClientRegistry(db)
        for email in ("carol@example.com", "alice@example.com", "bob@example.com"):
            registry.add_or_update(admin, email)

        assert [c.email for c in registry.list_all()] == [
            "alice@example.com",
            "bob@example.com",
            "carol@example.com",
        ]

    def test_update_partial_and_clamped(self, db, admin):
        registry = ClientRegistry(db)
        obj = registry.add_or_update(admin, "alice@example.com", "Alice", 3)

        updated = registry.update(admin, obj.id, quota=0)
        assert updated.max_bookings_per_month == 1
        assert updated.display_name == "Alice"
        assert updated.id == "alice_at_example_dot_com"

    def test_update_missing_raises(self, db, admin):
        with pytest.raises(NotFound):
            ClientRegistry(db).update(admin, "nobody_at_example_dot_com", quota=3)

    def test_delete_does_not_cascade(self, db, admin):
        registry = ClientRegistry(db)
        obj = registry.add_or_update(admin, "alice@example.com")
        db.add(UserProfiles(uid="alice-uid", email="alice@example.com", max_bookings_per_month=2))
        db.commit()

        registry.delete(admin, obj.id)

        assert registry.get(obj.id) is None
        assert db.get(UserProfiles, "alice-uid") is not None

    def test_delete_missing_raises(self, db, admin):
        with pytest.raises(NotFound):
            ClientRegistry(db).delete(admin, "nobody")

    def test_writes_require_admin(self, db, admin, alice):
        registry = ClientRegistry(db)
        obj = registry.add_or_update(admin, "bob@example.com")

        with pytest.raises(PermissionDenied):
            registry.add_or_update(alice, "alice@example.com", quota=31)
        with pytest.raises(PermissionDenied):
            registry.update(alice, obj.id, quota=31)
        with pytest.raises(PermissionDenied):
            registry.delete(alice, obj.id)


class TestCache:
    def test_write_populates_cache(self, db, admin):
        redis = FakeRedis()
        registry = ClientRegistry(db, ClientCache(redis, ttl_seconds=60))
        registry.add_or_update(admin, "alice@example.com", "Alice", 3)

        key = "cache:clients:alice_at_example_dot_com"
        assert json.loads(redis.data[key])["max_bookings_per_month"] == 3
        assert redis.ttls[key] == 60

    def test_get_reads_through(self, db, admin):
        redis = FakeRedis()
        ClientRegistry(db).add_or_update(admin, "alice@example.com", "Alice", 3)

        registry = ClientRegistry(db, ClientCache(redis))
        record = registry.get("alice_at_example_dot_com")

        assert record["email"] == "alice@example.com"
        assert "cache:clients:alice_at_example_dot_com" in redis.data

    def test_get_serves_cached_record(self, db):
        redis = FakeRedis()
        redis.data["cache:clients:ghost"] = json.dumps({"id": "ghost", "email": "g@example.com"})

        assert ClientRegistry(db, ClientCache(redis)).get("ghost")["email"] == "g@example.com"

    def test_delete_evicts(self, db, admin):
        redis = FakeRedis()
        registry = ClientRegistry(db, ClientCache(redis))
        obj = registry.add_or_update(admin, "alice@example.com")

        registry.delete(admin, obj.id)
        assert redis.data == {}

    def test_cache_failure_falls_back_to_database(self, db, admin):
        registry = ClientRegistry(db, ClientCache(FakeRedis(fail=True)))
        registry.add_or_update(admin, "alice@example.com", "Alice", 3)

        assert registry.get("alice_at_example_dot_com")["max_bookings_per_month"] == 3

    def test_invalid_cached_json_is_ignored(self, db, admin):
        redis = FakeRedis()
        ClientRegistry(db).add_or_update(admin, "alice@example.com", "Alice", 3)
        redis.data["cache:clients:alice_at_example_dot_com"] = "{not json"

        record = ClientRegistry(db, ClientCache(redis)).get("alice_at_example_dot_com")
        assert record["max_bookings_per_month"] == 3


class TestLookalikeEmails:
    def test_lookalike_emails_get_separate_records(self, db, admin):
        registry = ClientRegistry(db)
        first = registry.add_or_update(admin, "a.b@example.com", "First", 5)
        second = registry.add_or_update(admin, "a_dot_b@example.com", "Second", 1)

        assert first.id != second.id
        assert registry.get(first.id)["max_bookings_per_month"] == 5
        assert registry.get(first.id)["display_name"] == "First"
        assert registry.get(second.id)["email"] == "a_dot_b@example.com"
        assert len(registry.list_all()) == 2

    def test_sync_does_not_borrow_lookalike_quota(self, db, admin):
        ClientRegistry(db).add_or_update(admin, "a.b@example.com", "First", 5)

        assert sync_client_to_user_profile(db, "uid-x", "a_dot_b@example.com") is None
        assert ProfileStore(db).effective_quota("uid-x") == 2

    def test_fresh_lookup_requires_matching_email(self, db, admin):
        registry = ClientRegistry(db)
        registry.add_or_update(admin, "a.b@example.com", "First", 5)

        assert registry.find_by_email_fresh("A.B@example.com").display_name == "First"
        assert registry.find_by_email_fresh("a_dot_b@example.com") is None
