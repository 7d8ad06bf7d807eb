import datetime
from unittest.mock import patch

from django.db import DatabaseError

import pytest
from model_bakery import baker

from scheduling.constants import AppointmentStatus, SeriesStatus
from scheduling.exceptions import (
    AppointmentAlreadyDeletedError,
    BookingLookupError,
    SeriesAlreadyDeletedError,
    SeriesNotFoundError,
)
from scheduling.models import Appointment, AppointmentSeries
from scheduling.services.booking_storages.django_booking_storage import DjangoBookingStorage
from scheduling.services.dataclasses import BookingRequestData, SeriesRecordRequestData
from users.models import User


# Helpers
def _dt(day, hour, minute=0):
    return datetime.datetime(2024, 1, day, hour, minute)


class _BrokenQuerySet:
    def values(self, *args):
        return self

    def __iter__(self):
        raise DatabaseError("connection lost")


@pytest.mark.django_db
class TestDjangoBookingStorage:
    """Test suite for DjangoBookingStorage."""

    @pytest.fixture
    def resource(self):
        return baker.make(User, email="resource@example.com")

    @pytest.fixture
    def storage(self):
        return DjangoBookingStorage()

    @pytest.fixture
    def series_request(self, resource):
        return SeriesRecordRequestData(
            resource_id=resource.pk,
            title="Physio",
            description="",
            appointment_type="-",
            created_by_id=resource.pk,
            start=_dt(1, 9),
            end=_dt(1, 10),
            duration_minutes=60,
            recurrence={"enabled": True, "unit": "week"},
            instance_count=2,
        )

    def _booking_request(self, resource, start, series_index=None):
        return BookingRequestData(
            resource_id=resource.pk,
            title="Physio",
            description="",
            appointment_type="-",
            created_by_id=resource.pk,
            start=start,
            end=start + datetime.timedelta(hours=1),
            series_index=series_index,
            recurrence={"enabled": True, "unit": "week"} if series_index else None,
        )

    def test_query_returns_overlapping_bookings_of_resource(self, storage, resource):
        other_resource = baker.make(User, email="other@example.com")
        inside = baker.make(
            Appointment, created_for=resource, start_time=_dt(1, 9), end_time=_dt(1, 10)
        )
        deleted = baker.make(
            Appointment,
            created_for=resource,
            start_time=_dt(1, 9, 30),
            end_time=_dt(1, 11),
            status=AppointmentStatus.DELETED,
            deleted_at=_dt(1, 8),
        )
        baker.make(Appointment, created_for=resource, start_time=_dt(1, 11), end_time=_dt(1, 12))
        baker.make(
            Appointment, created_for=other_resource, start_time=_dt(1, 9), end_time=_dt(1, 10)
        )

        bookings = storage.query_bookings_for_resource(resource.pk, _dt(1, 9), _dt(1, 11))

        assert [booking.id for booking in bookings] == [inside.pk, deleted.pk]
        assert bookings[0].resource_id == resource.pk
        assert bookings[0].start == _dt(1, 9)
        assert bookings[1].status == AppointmentStatus.DELETED
        assert bookings[1].deleted_at is not None

    def test_query_failure_raises_lookup_error(self, storage, resource):
        with patch.object(
            Appointment.objects,
            "get_resource_bookings_in_window",
            return_value=_BrokenQuerySet(),
        ):
            with pytest.raises(BookingLookupError):
                storage.query_bookings_for_resource(resource.pk, _dt(1, 9), _dt(1, 10))

    def test_create_series_and_bookings(self, storage, resource, series_request):
        series_id = storage.create_series_record(series_request)
        booking_ids = [
            storage.create_booking(
                self._booking_request(resource, _dt(day, 9), series_index=index),
                series_id=series_id,
            )
            for index, day in enumerate((1, 8), start=1)
        ]
        storage.set_series_first_booking(series_id, booking_ids[0], len(booking_ids))

        series = AppointmentSeries.objects.get(pk=series_id)
        assert series.status == SeriesStatus.ACTIVE
        assert series.first_appointment_id == booking_ids[0]
        assert series.instance_count == 2
        appointments = list(Appointment.objects.filter_by_series(series_id))
        assert [appointment.series_index for appointment in appointments] == [1, 2]
        assert all(appointment.status == AppointmentStatus.OPEN for appointment in appointments)

    def test_create_single_booking_has_no_series_tag(self, storage, resource):
        booking_id = storage.create_booking(self._booking_request(resource, _dt(2, 9)))

        appointment = Appointment.objects.get(pk=booking_id)
        assert appointment.series_id is None
        assert appointment.series_index is None
        assert appointment.recurrence is None
        assert appointment.is_recurring is False

    def test_update_missing_series_raises(self, storage, series_request):
        with pytest.raises(SeriesNotFoundError):
            storage.update_series_record(999999, series_request)

    def test_soft_delete_bookings_by_series(self, storage, resource):
        series = baker.make(
            AppointmentSeries,
            created_for=resource,
            start_time=_dt(1, 9),
            end_time=_dt(1, 10),
            duration_minutes=60,
        )
        for day in (1, 8):
            baker.make(
                Appointment,
                created_for=resource,
                series=series,
                start_time=_dt(day, 9),
                end_time=_dt(day, 10),
            )
        untouched = baker.make(
            Appointment, created_for=resource, start_time=_dt(2, 9), end_time=_dt(2, 10)
        )

        assert storage.soft_delete_bookings_by_series(series.pk, deleted_by_id=resource.pk) == 2

        for appointment in Appointment.objects.filter_by_series(series.pk):
            assert appointment.status == AppointmentStatus.DELETED
            assert appointment.deleted_at is not None
            assert appointment.deleted_by_id == resource.pk
        untouched.refresh_from_db()
        assert untouched.deleted_at is None

    def test_soft_delete_series_twice_raises(self, storage, resource):
        series = baker.make(
            AppointmentSeries,
            created_for=resource,
            start_time=_dt(1, 9),
            end_time=_dt(1, 10),
            duration_minutes=60,
        )

        storage.soft_delete_series(series.pk, deleted_by_id=resource.pk)
        series.refresh_from_db()
        assert series.status == SeriesStatus.DELETED
        assert series.is_deleted

        with pytest.raises(SeriesAlreadyDeletedError):
            storage.soft_delete_series(series.pk)

    def test_soft_delete_missing_series_raises(self, storage):
        with pytest.raises(SeriesNotFoundError):
            storage.soft_delete_series(999999)

    def test_soft_delete_booking(self, storage, resource):
        appointment = baker.make(
            Appointment, created_for=resource, start_time=_dt(1, 9), end_time=_dt(1, 10)
        )

        storage.soft_delete_booking(appointment.pk, deleted_by_id=resource.pk)
        appointment.refresh_from_db()
        assert appointment.status == AppointmentStatus.DELETED
        assert appointment.deleted_by_id == resource.pk

        with pytest.raises(AppointmentAlreadyDeletedError):
            storage.soft_delete_booking(appointment.pk)

    def test_purge_deleted_bookings(self, storage, resource):
        series = baker.make(
            AppointmentSeries,
            created_for=resource,
            start_time=_dt(1, 9),
            end_time=_dt(1, 10),
            duration_minutes=60,
        )
        trashed = baker.make(
            Appointment,
            created_for=resource,
            series=series,
            start_time=_dt(1, 9),
            end_time=_dt(1, 10),
            status=AppointmentStatus.DELETED,
            deleted_at=_dt(1, 8),
        )
        series.first_appointment = trashed
        series.save()
        kept = baker.make(
            Appointment, created_for=resource, start_time=_dt(2, 9), end_time=_dt(2, 10)
        )

        assert storage.purge_deleted_bookings() == 1

        assert list(Appointment.objects.all()) == [kept]
        series.refresh_from_db()
        assert series.first_appointment is None
