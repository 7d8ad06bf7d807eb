import datetime

import pytest

from scheduling.constants import AppointmentStatus
from scheduling.exceptions import BookingLookupError
from scheduling.services.collision_service import CollisionService
from scheduling.services.dataclasses import BookingData

from .fakes import FakeBookingStorage


# Helpers
def _dt(day, hour, minute=0):
    return datetime.datetime(2024, 1, day, hour, minute)


def _booking(booking_id, start, end, resource_id=1, **kwargs):
    kwargs.setdefault("status", AppointmentStatus.OPEN)
    return BookingData(
        id=booking_id,
        resource_id=resource_id,
        start=start,
        end=end,
        title=f"Appointment {booking_id}",
        **kwargs,
    )


class TestFindCollision:
    """Single interval checks."""

    def test_overlapping_booking_is_reported(self):
        storage = FakeBookingStorage([_booking(1, _dt(1, 9), _dt(1, 10))])
        service = CollisionService(booking_storage=storage)

        collision = service.find_collision(1, _dt(1, 9, 30), _dt(1, 10, 30))

        assert collision is not None
        assert collision.id == 1
        assert collision.title == "Appointment 1"
        assert collision.start == _dt(1, 9)
        assert collision.end == _dt(1, 10)
        assert collision.occurrence_start == _dt(1, 9, 30)
        assert collision.occurrence_end == _dt(1, 10, 30)

    def test_touching_booking_is_not_a_collision(self):
        storage = FakeBookingStorage([_booking(1, _dt(1, 9), _dt(1, 10))])
        service = CollisionService(booking_storage=storage)

        assert service.find_collision(1, _dt(1, 10), _dt(1, 11)) is None

    def test_other_resources_are_ignored(self):
        storage = FakeBookingStorage([_booking(1, _dt(1, 9), _dt(1, 10), resource_id=2)])
        service = CollisionService(booking_storage=storage)

        assert service.find_collision(1, _dt(1, 9), _dt(1, 10)) is None

    def test_deleted_bookings_are_ignored(self):
        storage = FakeBookingStorage(
            [
                _booking(1, _dt(1, 9), _dt(1, 10), status=AppointmentStatus.DELETED),
                _booking(2, _dt(1, 9), _dt(1, 10), deleted_at=_dt(1, 8)),
            ]
        )
        service = CollisionService(booking_storage=storage)

        assert service.find_collision(1, _dt(1, 9), _dt(1, 10)) is None

    def test_excluded_booking_never_collides(self):
        storage = FakeBookingStorage([_booking(1, _dt(1, 9), _dt(1, 10))])
        service = CollisionService(booking_storage=storage)

        assert service.find_collision(1, _dt(1, 9), _dt(1, 10), exclude_id=1) is None

    def test_excluded_series_never_collides(self):
        storage = FakeBookingStorage(
            [
                _booking(1, _dt(1, 9), _dt(1, 10), series_id=7),
                _booking(2, _dt(1, 9, 30), _dt(1, 11), series_id=8),
            ]
        )
        service = CollisionService(booking_storage=storage)

        collision = service.find_collision(1, _dt(1, 9), _dt(1, 10), exclude_series_id=7)

        assert collision.id == 2

    def test_earliest_start_wins_regardless_of_storage_order(self):
        storage = FakeBookingStorage(
            [
                _booking(3, _dt(1, 10), _dt(1, 11)),
                _booking(2, _dt(1, 9), _dt(1, 12)),
                _booking(1, _dt(1, 9, 30), _dt(1, 10)),
            ]
        )
        service = CollisionService(booking_storage=storage)

        assert service.find_collision(1, _dt(1, 9), _dt(1, 12)).id == 2

    def test_ties_on_start_are_broken_by_id(self):
        storage = FakeBookingStorage(
            [_booking(5, _dt(1, 9), _dt(1, 10)), _booking(4, _dt(1, 9), _dt(1, 11))]
        )
        service = CollisionService(booking_storage=storage)

        assert service.find_collision(1, _dt(1, 9), _dt(1, 10)).id == 4

    def test_lookup_failure_propagates(self):
        service = CollisionService(booking_storage=FakeBookingStorage(fail=True))

        with pytest.raises(BookingLookupError):
            service.find_collision(1, _dt(1, 9), _dt(1, 10))


class TestFindFirstCollisionAcrossOccurrences:
    """Series checks."""

    def test_no_collision_checks_every_occurrence(self):
        storage = FakeBookingStorage([_booking(1, _dt(1, 9), _dt(1, 10))])
        service = CollisionService(booking_storage=storage)
        occurrences = [_dt(day, 10) for day in range(1, 6)]

        assert service.find_first_collision_across_occurrences(1, occurrences, 60) is None
        assert [lookup[1] for lookup in storage.lookups] == occurrences
        assert storage.lookups[0][2] == _dt(1, 11)

    def test_stops_at_first_colliding_occurrence(self):
        storage = FakeBookingStorage(
            [_booking(1, _dt(3, 9), _dt(3, 10)), _booking(2, _dt(5, 9), _dt(5, 10))]
        )
        service = CollisionService(booking_storage=storage)
        occurrences = [_dt(day, 9, 30) for day in range(1, 8)]

        collision = service.find_first_collision_across_occurrences(1, occurrences, 30)

        assert collision.id == 1
        assert collision.occurrence_start == _dt(3, 9, 30)
        # occurrences after the first hit are never looked up
        assert len(storage.lookups) == 3

    def test_first_in_occurrence_order_not_in_time(self):
        storage = FakeBookingStorage(
            [_booking(1, _dt(2, 9), _dt(2, 10)), _booking(2, _dt(4, 9), _dt(4, 10))]
        )
        service = CollisionService(booking_storage=storage)

        collision = service.find_first_collision_across_occurrences(
            1, [_dt(4, 9), _dt(2, 9)], 60
        )

        assert collision.id == 2

    def test_exclusions_apply_to_every_occurrence(self):
        storage = FakeBookingStorage([_booking(1, _dt(2, 9), _dt(2, 10), series_id=3)])
        service = CollisionService(booking_storage=storage)

        assert (
            service.find_first_collision_across_occurrences(
                1, [_dt(1, 9), _dt(2, 9)], 60, exclude_series_id=3
            )
            is None
        )

    def test_lookup_failure_propagates(self):
        storage = FakeBookingStorage(fail=True)
        service = CollisionService(booking_storage=storage)

        with pytest.raises(BookingLookupError):
            service.find_first_collision_across_occurrences(1, [_dt(1, 9)], 60)


class TestFindDaySlotConflicts:
    def test_reports_slots_that_would_collide(self):
        storage = FakeBookingStorage([_booking(1, _dt(1, 10), _dt(1, 11))])
        service = CollisionService(booking_storage=storage)

        conflicts = service.find_day_slot_conflicts(1, datetime.date(2024, 1, 1), 30, step_minutes=15)

        assert [conflict.slot for conflict in conflicts] == [
            datetime.time(9, 45),
            datetime.time(10, 0),
            datetime.time(10, 15),
            datetime.time(10, 30),
            datetime.time(10, 45),
        ]
        assert all(conflict.collision.id == 1 for conflict in conflicts)
        assert conflicts[0].collision.occurrence_start == _dt(1, 9, 45)

    def test_single_lookup_covers_the_day_and_duration(self):
        storage = FakeBookingStorage()
        service = CollisionService(booking_storage=storage)

        assert service.find_day_slot_conflicts(1, datetime.date(2024, 1, 1), 90) == []
        assert storage.lookups == [(1, _dt(1, 0), _dt(2, 1, 30))]

    def test_excluded_booking_frees_its_slots(self):
        storage = FakeBookingStorage([_booking(1, _dt(1, 10), _dt(1, 11))])
        service = CollisionService(booking_storage=storage)

        assert service.find_day_slot_conflicts(1, datetime.date(2024, 1, 1), 30, exclude_id=1) == []

    def test_earliest_booking_is_reported_per_slot(self):
        storage = FakeBookingStorage(
            [_booking(2, _dt(1, 10, 30), _dt(1, 11)), _booking(1, _dt(1, 10), _dt(1, 10, 30))]
        )
        service = CollisionService(booking_storage=storage)

        conflicts = service.find_day_slot_conflicts(1, datetime.date(2024, 1, 1), 60, step_minutes=30)
        by_slot = {conflict.slot: conflict.collision.id for conflict in conflicts}

        assert by_slot == {
            datetime.time(9, 30): 1,
            datetime.time(10, 0): 1,
            datetime.time(10, 30): 2,
        }
