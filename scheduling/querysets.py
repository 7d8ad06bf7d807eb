import datetime

from django.db.models import Q
from django.db.models.query import QuerySet

from scheduling.constants import AppointmentStatus, SeriesStatus


class AppointmentQuerySet(QuerySet):
    def filter_active(self):
        """Appointments that are neither soft deleted nor flagged as deleted."""
        return self.filter(deleted_at__isnull=True).exclude(status=AppointmentStatus.DELETED)

    def filter_trashed(self):
        return self.filter(Q(deleted_at__isnull=False) | Q(status=AppointmentStatus.DELETED))

    def filter_by_resource(self, resource_id: int):
        return self.filter(created_for_id=resource_id)

    def filter_by_series(self, series_id: int):
        return self.filter(series_id=series_id)

    def filter_overlapping(self, start: datetime.datetime, end: datetime.datetime):
        """
        Appointments whose `[start_time, end_time)` range overlaps `[start, end)`.
        Touching endpoints do not overlap.
        """
        return self.filter(start_time__lt=end, end_time__gt=start)

    def filter_visible_to(self, user):
        if user.is_admin:
            return self
        return self.filter(created_for_id=user.pk)


class AppointmentSeriesQuerySet(QuerySet):
    def filter_active(self):
        return self.filter(deleted_at__isnull=True, status=SeriesStatus.ACTIVE)

    def filter_by_resource(self, resource_id: int):
        return self.filter(created_for_id=resource_id)

    def filter_visible_to(self, user):
        if user.is_admin:
            return self
        return self.filter(created_for_id=user.pk)
