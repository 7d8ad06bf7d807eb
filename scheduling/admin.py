from django.contrib import admin

from scheduling.models import Appointment, AppointmentSeries


@admin.register(AppointmentSeries)
class AppointmentSeriesAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "title",
        "created_for",
        "start_time",
        "duration_minutes",
        "instance_count",
        "status",
        "deleted_at",
    )
    list_filter = ("status",)
    search_fields = ("title", "created_for__email")
    raw_id_fields = ("created_for", "created_by", "first_appointment", "deleted_by")


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "title",
        "created_for",
        "start_time",
        "end_time",
        "status",
        "series",
        "series_index",
        "deleted_at",
    )
    list_filter = ("status", "appointment_type")
    search_fields = ("title", "created_for__email")
    raw_id_fields = ("created_for", "created_by", "series", "deleted_by")
    date_hierarchy = "start_time"
