import datetime
from typing import Protocol

from scheduling.services.dataclasses import (
    BookingData,
    BookingRequestData,
    SeriesRecordRequestData,
)


class BookingStorage(Protocol):
    def query_bookings_for_resource(
        self,
        resource_id: int,
        window_start: datetime.datetime,
        window_end: datetime.datetime,
    ) -> list[BookingData]:
        """
        Read the bookings of a resource that may overlap a time window.
        :param resource_id: ID of the user the bookings belong to.
        :param window_start: Start of the window.
        :param window_end: End of the window.
        :return: A superset of the overlapping bookings, deleted ones included.
        :raises BookingLookupError: when the read fails.
        """
        ...

    def create_series_record(self, request: SeriesRecordRequestData) -> int:
        """
        Persist a new series summary.
        :return: ID of the created series.
        """
        ...

    def update_series_record(self, series_id: int, request: SeriesRecordRequestData) -> None:
        """
        Overwrite the summary of an existing series.
        """
        ...

    def set_series_first_booking(
        self, series_id: int, booking_id: int, instance_count: int
    ) -> None:
        ...

    def create_booking(self, request: BookingRequestData, series_id: int | None = None) -> int:
        """
        Persist a booking, tagged with `series_id` when given.
        :return: ID of the created booking.
        """
        ...

    def soft_delete_bookings_by_series(
        self, series_id: int, deleted_by_id: int | None = None
    ) -> int:
        """
        Mark every booking of a series as deleted.
        :return: Number of bookings marked.
        """
        ...

    def soft_delete_series(self, series_id: int, deleted_by_id: int | None = None) -> None:
        ...

    def soft_delete_booking(self, booking_id: int, deleted_by_id: int | None = None) -> None:
        ...

    def purge_deleted_bookings(self) -> int:
        """
        Remove soft deleted bookings for good.
        :return: Number of bookings removed.
        """
        ...
