from django_filters import rest_framework as filters

from scheduling.constants import AppointmentStatus, SeriesStatus
from scheduling.models import Appointment, AppointmentSeries


class AppointmentFilterSet(filters.FilterSet):
    """
    FilterSet for Appointment model.
    """

    start_time = filters.DateTimeFilter(
        field_name="end_time",
        lookup_expr="gt",
        label="Appointments still running after this datetime",
    )
    end_time = filters.DateTimeFilter(
        field_name="start_time",
        lookup_expr="lt",
        label="Appointments starting before this datetime",
    )
    status = filters.ChoiceFilter(choices=AppointmentStatus.choices)
    series = filters.NumberFilter(field_name="series_id", label="Filter by series ID")
    created_for = filters.NumberFilter(field_name="created_for_id", label="Filter by user ID")
    title = filters.CharFilter(
        field_name="title",
        lookup_expr="icontains",
        label="Filter by partial title match",
    )

    class Meta:
        model = Appointment
        fields = ("start_time", "end_time", "status", "series", "created_for", "title")


class AppointmentSeriesFilterSet(filters.FilterSet):
    status = filters.ChoiceFilter(choices=SeriesStatus.choices)
    created_for = filters.NumberFilter(field_name="created_for_id", label="Filter by user ID")

    class Meta:
        model = AppointmentSeries
        fields = ("status", "created_for")
