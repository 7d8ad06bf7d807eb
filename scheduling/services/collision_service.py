import datetime
import logging
from collections.abc import Iterable
from typing import Annotated

from dependency_injector.wiring import Provide, inject

from scheduling.constants import AppointmentStatus
from scheduling.interval_utils import build_time_slots, day_bounds, overlaps
from scheduling.services.dataclasses import BookingData, CollisionData, DaySlotConflictData
from scheduling.services.protocols.booking_storage import BookingStorage


logger = logging.getLogger(__name__)


class CollisionService:
    """
    Read-only checks of candidate intervals against the existing bookings of one
    resource. Storage failures surface as `BookingLookupError`, never as "no
    collision".
    """

    @inject
    def __init__(
        self,
        booking_storage: Annotated["BookingStorage | None", Provide["booking_storage"]] = None,
    ) -> None:
        self.booking_storage = booking_storage

    @staticmethod
    def _is_live(
        booking: BookingData, exclude_id: int | None, exclude_series_id: int | None
    ) -> bool:
        if booking.deleted_at is not None or booking.status == AppointmentStatus.DELETED:
            return False
        if exclude_id is not None and booking.id == exclude_id:
            return False
        if exclude_series_id is not None and booking.series_id == exclude_series_id:
            return False
        return True

    @staticmethod
    def _to_collision(
        booking: BookingData, start: datetime.datetime, end: datetime.datetime
    ) -> CollisionData:
        return CollisionData(
            id=booking.id,
            resource_id=booking.resource_id,
            title=booking.title,
            start=booking.start,
            end=booking.end,
            status=booking.status,
            occurrence_start=start,
            occurrence_end=end,
        )

    def find_collision(
        self,
        resource_id: int,
        start: datetime.datetime,
        end: datetime.datetime,
        exclude_id: int | None = None,
        exclude_series_id: int | None = None,
    ) -> CollisionData | None:
        """
        Find the earliest existing booking of `resource_id` overlapping `[start, end)`.
        :param resource_id: ID of the user the bookings belong to.
        :param start: candidate start.
        :param end: candidate end.
        :param exclude_id: booking to ignore, used when editing that booking.
        :param exclude_series_id: series whose bookings are ignored, used when replacing it.
        :return: the colliding booking or None.
        :raises BookingLookupError: when storage could not be read.
        """
        bookings = self.booking_storage.query_bookings_for_resource(resource_id, start, end)
        hits = [
            booking
            for booking in bookings
            if self._is_live(booking, exclude_id, exclude_series_id)
            and overlaps(start, end, booking.start, booking.end)
        ]
        if not hits:
            return None

        first_hit = min(hits, key=lambda booking: (booking.start, booking.id))
        return self._to_collision(first_hit, start, end)

    def find_first_collision_across_occurrences(
        self,
        resource_id: int,
        occurrence_starts: Iterable[datetime.datetime],
        duration_minutes: int,
        exclude_id: int | None = None,
        exclude_series_id: int | None = None,
    ) -> CollisionData | None:
        """
        Check occurrences in order and stop at the first one that collides. Later
        occurrences are not looked up.
        """
        duration = datetime.timedelta(minutes=duration_minutes)
        for occurrence_start in occurrence_starts:
            collision = self.find_collision(
                resource_id,
                occurrence_start,
                occurrence_start + duration,
                exclude_id=exclude_id,
                exclude_series_id=exclude_series_id,
            )
            if collision is not None:
                logger.info(
                    "Collision for user %s at %s with appointment %s",
                    resource_id,
                    occurrence_start.isoformat(),
                    collision.id,
                )
                return collision
        return None

    def find_day_slot_conflicts(
        self,
        resource_id: int,
        day: datetime.date,
        duration_minutes: int,
        step_minutes: int = 5,
        exclude_id: int | None = None,
    ) -> list[DaySlotConflictData]:
        """
        For every start slot of `day` report whether an appointment of
        `duration_minutes` starting there would collide, and with what.
        Uses a single storage read covering the day and the longest appointment
        that may spill into it.
        """
        day_start, day_end = day_bounds(day)
        duration = datetime.timedelta(minutes=duration_minutes)
        bookings = [
            booking
            for booking in self.booking_storage.query_bookings_for_resource(
                resource_id, day_start, day_end + duration
            )
            if self._is_live(booking, exclude_id, None)
        ]
        bookings.sort(key=lambda booking: (booking.start, booking.id))

        conflicts: list[DaySlotConflictData] = []
        if not bookings:
            return conflicts

        for slot in build_time_slots(step_minutes):
            slot_start = datetime.datetime.combine(day, slot)
            slot_end = slot_start + duration
            hit = next(
                (
                    booking
                    for booking in bookings
                    if overlaps(slot_start, slot_end, booking.start, booking.end)
                ),
                None,
            )
            if hit is not None:
                conflicts.append(
                    DaySlotConflictData(
                        slot=slot, collision=self._to_collision(hit, slot_start, slot_end)
                    )
                )
        return conflicts
