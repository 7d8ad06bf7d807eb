import datetime

from django.db.models import Manager

from scheduling.querysets import AppointmentQuerySet, AppointmentSeriesQuerySet


class AppointmentManager(Manager):
    """Custom manager for Appointment model to handle specific queries."""

    def get_queryset(self) -> AppointmentQuerySet:
        return AppointmentQuerySet(self.model, using=self._db)

    def filter_active(self):
        return self.get_queryset().filter_active()

    def filter_trashed(self):
        return self.get_queryset().filter_trashed()

    def filter_by_series(self, series_id: int):
        return self.get_queryset().filter_by_series(series_id)

    def get_resource_bookings_in_window(
        self, resource_id: int, start: datetime.datetime, end: datetime.datetime
    ) -> AppointmentQuerySet:
        """
        Bookings of one resource whose range overlaps `[start, end)`, including
        soft deleted ones so callers can tell them apart.
        :param resource_id: ID of the user the appointments are booked for.
        :param start: window start.
        :param end: window end.
        :return: QuerySet ordered chronologically.
        """
        return (
            self.get_queryset()
            .filter_by_resource(resource_id)
            .filter_overlapping(start, end)
            .order_by("start_time", "id")
        )


class AppointmentSeriesManager(Manager):
    """Custom manager for AppointmentSeries model to handle specific queries."""

    def get_queryset(self) -> AppointmentSeriesQuerySet:
        return AppointmentSeriesQuerySet(self.model, using=self._db)

    def filter_active(self):
        return self.get_queryset().filter_active()
