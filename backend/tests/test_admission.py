from datetime import date

import pytest

from slotbook.errors import (
    DateDisabled,
    InvalidArgument,
    PermissionDenied,
    QuotaExceeded,
    SlotDisabled,
)
from slotbook.services.booking.admission import AdmissionEngine
from slotbook.services.booking.overrides import OverridesConfig
from slotbook.services.booking.store import SqlBookingStore

from fakes import InMemoryOverridesStore


@pytest.fixture
def overrides():
    return InMemoryOverridesStore()


@pytest.fixture
def quotas():
    return {}


@pytest.fixture
def engine_(db, feed, overrides, quotas):
    store = SqlBookingStore(db, feed)
    return AdmissionEngine(store, overrides, lambda uid: quotas.get(uid, 2))


class TestOverrides:
    def test_disabled_date_rejects_every_slot_and_user(self, engine_, overrides, alice, bob):
        overrides.config = OverridesConfig(disabled_dates=frozenset({"2025-12-25"}))

        for user in (alice, bob):
            for slot_id in ("morning", "afternoon"):
                result = engine_.try_book(user, date(2025, 12, 25), slot_id)
                assert not result.ok
                assert isinstance(result.error, DateDisabled)
                assert result.booking_id is None

    def test_disabled_slot_rejects_only_that_slot(self, engine_, overrides, alice):
        overrides.config = OverridesConfig(
            disabled_slots=frozenset({("2025-12-24", "afternoon")})
        )

        rejected = engine_.try_book(alice, date(2025, 12, 24), "afternoon")
        assert isinstance(rejected.error, SlotDisabled)

        accepted = engine_.try_book(alice, date(2025, 12, 24), "morning")
        assert accepted.ok

    def test_disabled_date_wins_over_quota(self, engine_, overrides, quotas, alice):
        quotas[alice.user_id] = 1
        assert engine_.try_book(alice, date(2025, 12, 1), "morning").ok

        overrides.config = OverridesConfig(
            disabled_dates=frozenset({"2025-12-25"}),
            disabled_slots=frozenset({("2025-12-26", "morning")}),
        )
        assert isinstance(engine_.try_book(alice, date(2025, 12, 25), "morning").error, DateDisabled)
        assert isinstance(engine_.try_book(alice, date(2025, 12, 26), "morning").error, SlotDisabled)
        assert isinstance(engine_.try_book(alice, date(2025, 12, 27), "morning").error, QuotaExceeded)

    def test_date_checked_before_slot(self, engine_, overrides, alice):
        overrides.config = OverridesConfig(
            disabled_dates=frozenset({"2025-05-01"}),
            disabled_slots=frozenset({("2025-05-01", "morning")}),
        )
        assert isinstance(engine_.try_book(alice, date(2025, 5, 1), "morning").error, DateDisabled)


class TestQuota:
    @pytest.mark.parametrize("quota", [1, 2, 4])
    def test_quota_boundary(self, engine_, quotas, alice, quota):
        quotas[alice.user_id] = quota

        for day in range(1, quota + 1):
            assert engine_.try_book(alice, date(2025, 6, day), "morning").ok

        result = engine_.try_book(alice, date(2025, 6, 28), "afternoon")
        assert isinstance(result.error, QuotaExceeded)
        assert engine_.monthly_count(alice.user_id, date(2025, 6, 15)) == quota

    def test_quota_counts_target_month_not_today(self, engine_, alice):
        # "today" is irrelevant: only the target day's month is counted
        assert engine_.try_book(alice, date(2025, 3, 5), "morning").ok
        assert engine_.try_book(alice, date(2025, 3, 12), "afternoon").ok

        assert engine_.try_book(alice, date(2025, 4, 2), "morning").ok
        assert engine_.try_book(alice, date(2025, 4, 3), "morning").ok

    def test_example_scenario_march(self, engine_, alice):
        assert engine_.try_book(alice, date(2025, 3, 5), "morning").ok
        assert engine_.try_book(alice, date(2025, 3, 12), "afternoon").ok

        third = engine_.try_book(alice, date(2025, 3, 20), "morning")
        assert isinstance(third.error, QuotaExceeded)
        assert "2 bookings" in third.error.message

        assert engine_.try_book(alice, date(2025, 4, 1), "morning").ok

    def test_month_edges_inclusive(self, engine_, quotas, alice):
        quotas[alice.user_id] = 2
        assert engine_.try_book(alice, date(2024, 2, 1), "morning").ok
        assert engine_.try_book(alice, date(2024, 2, 29), "afternoon").ok
        assert isinstance(engine_.try_book(alice, date(2024, 2, 15), "morning").error, QuotaExceeded)
        assert engine_.try_book(alice, date(2024, 3, 1), "morning").ok

    def test_quota_is_per_user(self, engine_, alice, bob):
        assert engine_.try_book(alice, date(2025, 3, 5), "morning").ok
        assert engine_.try_book(alice, date(2025, 3, 6), "morning").ok
        assert engine_.try_book(bob, date(2025, 3, 7), "morning").ok

    def test_cancel_then_rebook_round_trip(self, engine_, alice):
        first = engine_.try_book(alice, date(2025, 3, 5), "morning")
        engine_.try_book(alice, date(2025, 3, 6), "morning")
        assert engine_.monthly_count(alice.user_id, date(2025, 3, 1)) == 2

        engine_.cancel(alice, first.booking_id)
        assert engine_.monthly_count(alice.user_id, date(2025, 3, 1)) == 1

        again = engine_.try_book(alice, date(2025, 3, 5), "morning")
        assert again.ok
        assert engine_.monthly_count(alice.user_id, date(2025, 3, 1)) == 2


class TestOccupancyNotEnforced:
    def test_two_users_can_hold_same_slot(self, engine_, alice, bob):
        assert engine_.try_book(alice, date(2025, 3, 5), "morning").ok
        assert engine_.try_book(bob, date(2025, 3, 5), "morning").ok
        assert len(engine_.bookings.list_in_range("2025-03-05", "2025-03-05")) == 2


class TestCancel:
    def test_cannot_cancel_someone_else(self, engine_, alice, bob):
        booking_id = engine_.try_book(alice, date(2025, 3, 5), "morning").booking_id

        with pytest.raises(PermissionDenied):
            engine_.cancel(bob, booking_id)

        assert engine_.bookings.get(booking_id) is not None

    def test_admin_can_cancel_anyone(self, engine_, alice, admin):
        booking_id = engine_.try_book(alice, date(2025, 3, 5), "morning").booking_id
        engine_.cancel(admin, booking_id)
        assert engine_.bookings.get(booking_id) is None


class TestInvalidInput:
    def test_unknown_slot_raises(self, engine_, alice):
        with pytest.raises(InvalidArgument):
            engine_.try_book(alice, date(2025, 3, 5), "evening")


class TestAdminOperations:
    def test_admin_update_ignores_overrides_and_quota(self, engine_, overrides, quotas, alice, admin):
        quotas[alice.user_id] = 1
        booking_id = engine_.try_book(alice, date(2025, 12, 1), "morning").booking_id
        other = engine_.admin_create_booking(admin, alice.user_id, date(2025, 12, 2), "morning")

        overrides.config = OverridesConfig(disabled_dates=frozenset({"2025-12-25"}))

        moved = engine_.admin_update_booking(admin, booking_id, date(2025, 12, 25), "afternoon")
        assert moved.date == "2025-12-25"
        assert moved.slot_id == "afternoon"

        engine_.admin_delete_booking(admin, other.id)
        assert engine_.bookings.get(other.id) is None

    def test_admin_create_skips_checks(self, engine_, overrides, quotas, alice, admin):
        quotas[alice.user_id] = 1
        overrides.config = OverridesConfig(disabled_dates=frozenset({"2025-12-25"}))

        booking = engine_.admin_create_booking(
            admin, alice.user_id, date(2025, 12, 25), "morning", alice.email
        )
        assert booking.user_id == alice.user_id
        assert booking.user_email == alice.email

    def test_client_cannot_use_admin_operations(self, engine_, alice, bob):
        booking_id = engine_.try_book(alice, date(2025, 3, 5), "morning").booking_id

        with pytest.raises(PermissionDenied):
            engine_.admin_update_booking(alice, booking_id, date(2025, 3, 6), "morning")
        with pytest.raises(PermissionDenied):
            engine_.admin_create_booking(alice, bob.user_id, date(2025, 3, 6), "morning")


class TestEvents:
    def test_booking_events_carry_owner_and_dates(self, engine_, feed, alice, admin):
        events = []
        feed.subscribe("bookings", events.append)

        booking_id = engine_.try_book(alice, date(2025, 3, 5), "morning").booking_id
        engine_.admin_update_booking(admin, booking_id, date(2025, 3, 9), "afternoon")
        engine_.cancel(alice, booking_id)

        assert [e["type"] for e in events] == [
            "booking.created",
            "booking.updated",
            "booking.deleted",
        ]
        assert all(e["user_id"] == alice.user_id for e in events)
        assert events[1]["dates"] == ["2025-03-05", "2025-03-09"]
        assert events[2]["dates"] == ["2025-03-09"]

    def test_rejected_attempt_publishes_nothing(self, engine_, feed, overrides, alice):
        events = []
        feed.subscribe("bookings", events.append)
        overrides.config = OverridesConfig(disabled_dates=frozenset({"2025-12-25"}))

        engine_.try_book(alice, date(2025, 12, 25), "morning")
        assert events == []
