import datetime
import logging

from django.db import DatabaseError
from django.utils import timezone

from scheduling.constants import AppointmentStatus, SeriesStatus
from scheduling.exceptions import (
    AppointmentAlreadyDeletedError,
    BookingLookupError,
    SeriesAlreadyDeletedError,
    SeriesNotFoundError,
)
from scheduling.models import Appointment, AppointmentSeries
from scheduling.services.dataclasses import (
    BookingData,
    BookingRequestData,
    SeriesRecordRequestData,
)


logger = logging.getLogger(__name__)


class DjangoBookingStorage:
    """Booking storage backed by the Django ORM models of this app."""

    def query_bookings_for_resource(
        self,
        resource_id: int,
        window_start: datetime.datetime,
        window_end: datetime.datetime,
    ) -> list[BookingData]:
        queryset = Appointment.objects.get_resource_bookings_in_window(
            resource_id, window_start, window_end
        ).values(
            "id",
            "created_for_id",
            "start_time",
            "end_time",
            "title",
            "status",
            "deleted_at",
            "series_id",
        )
        try:
            rows = list(queryset)
        except DatabaseError as e:
            raise BookingLookupError(
                f"Could not load appointments of user {resource_id}: {e}"
            ) from e

        return [
            BookingData(
                id=row["id"],
                resource_id=row["created_for_id"],
                start=row["start_time"],
                end=row["end_time"],
                title=row["title"],
                status=row["status"],
                deleted_at=row["deleted_at"],
                series_id=row["series_id"],
            )
            for row in rows
        ]

    def create_series_record(self, request: SeriesRecordRequestData) -> int:
        series = AppointmentSeries.objects.create(
            created_for_id=request.resource_id,
            created_by_id=request.created_by_id,
            title=request.title,
            description=request.description,
            appointment_type=request.appointment_type,
            start_time=request.start,
            end_time=request.end,
            duration_minutes=request.duration_minutes,
            recurrence=request.recurrence,
            instance_count=request.instance_count,
            status=SeriesStatus.ACTIVE,
        )
        return series.pk

    def update_series_record(self, series_id: int, request: SeriesRecordRequestData) -> None:
        updated = AppointmentSeries.objects.filter(pk=series_id).update(
            created_for_id=request.resource_id,
            title=request.title,
            description=request.description,
            appointment_type=request.appointment_type,
            start_time=request.start,
            end_time=request.end,
            duration_minutes=request.duration_minutes,
            recurrence=request.recurrence,
            instance_count=request.instance_count,
            modified=timezone.now(),
        )
        if not updated:
            raise SeriesNotFoundError()

    def set_series_first_booking(
        self, series_id: int, booking_id: int, instance_count: int
    ) -> None:
        AppointmentSeries.objects.filter(pk=series_id).update(
            first_appointment_id=booking_id,
            instance_count=instance_count,
            modified=timezone.now(),
        )

    def create_booking(self, request: BookingRequestData, series_id: int | None = None) -> int:
        appointment = Appointment.objects.create(
            created_for_id=request.resource_id,
            created_by_id=request.created_by_id,
            title=request.title,
            description=request.description,
            appointment_type=request.appointment_type,
            start_time=request.start,
            end_time=request.end,
            status=AppointmentStatus.OPEN,
            series_id=series_id,
            series_index=request.series_index if series_id is not None else None,
            recurrence=request.recurrence if series_id is not None else None,
        )
        return appointment.pk

    def soft_delete_bookings_by_series(
        self, series_id: int, deleted_by_id: int | None = None
    ) -> int:
        now = timezone.now()
        return (
            Appointment.objects.filter_by_series(series_id)
            .filter_active()
            .update(
                deleted_at=now,
                deleted_by_id=deleted_by_id,
                status=AppointmentStatus.DELETED,
                modified=now,
            )
        )

    def soft_delete_series(self, series_id: int, deleted_by_id: int | None = None) -> None:
        try:
            series = AppointmentSeries.objects.get(pk=series_id)
        except AppointmentSeries.DoesNotExist as e:
            raise SeriesNotFoundError() from e
        if series.is_deleted:
            raise SeriesAlreadyDeletedError()

        series.mark_deleted(deleted_by_id=deleted_by_id)
        series.status = SeriesStatus.DELETED
        series.save(update_fields=["deleted_at", "deleted_by", "status", "modified"])

    def soft_delete_booking(self, booking_id: int, deleted_by_id: int | None = None) -> None:
        appointment = Appointment.objects.get(pk=booking_id)
        if appointment.is_deleted:
            raise AppointmentAlreadyDeletedError()

        appointment.mark_deleted(deleted_by_id=deleted_by_id)
        appointment.status = AppointmentStatus.DELETED
        appointment.save(update_fields=["deleted_at", "deleted_by", "status", "modified"])

    def purge_deleted_bookings(self) -> int:
        # series summaries pointing at a purged appointment lose their first_appointment
        deleted_count, _ = Appointment.objects.filter_trashed().delete()
        logger.info("Purged %s deleted appointments", deleted_count)
        return deleted_count
