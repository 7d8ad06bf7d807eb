from django.conf import settings
from django.db import models
from django.db.models import F, Q
from django.utils.translation import gettext_lazy as _

from common.models import BaseModel, SoftDeletableModel
from scheduling.constants import DEFAULT_APPOINTMENT_TYPE, AppointmentStatus, SeriesStatus
from scheduling.managers import AppointmentManager, AppointmentSeriesManager


class AppointmentSeries(BaseModel, SoftDeletableModel):
    """
    Summary record of a recurring series. The appointments of the series point
    back to it and carry their 1-based position in `series_index`.
    """

    created_for = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="appointment_series",
        help_text=_("User the appointments are booked for."),
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    appointment_type = models.CharField(max_length=100, default=DEFAULT_APPOINTMENT_TYPE)
    start_time = models.DateTimeField(help_text=_("Start of the first occurrence."))
    end_time = models.DateTimeField(help_text=_("End of the first occurrence."))
    duration_minutes = models.PositiveIntegerField()
    recurrence = models.JSONField(default=dict, blank=True)
    status = models.CharField(max_length=20, choices=SeriesStatus, default=SeriesStatus.ACTIVE)
    instance_count = models.PositiveIntegerField(default=0)
    first_appointment = models.ForeignKey(
        "scheduling.Appointment",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )

    objects: AppointmentSeriesManager = AppointmentSeriesManager()

    class Meta:
        verbose_name_plural = "appointment series"
        ordering = ("-start_time", "-id")

    def __str__(self):
        return f"{self.title} ({self.instance_count} appointments)"


class Appointment(BaseModel, SoftDeletableModel):
    created_for = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="appointments",
        help_text=_("User the appointment is booked for. Collisions are checked per user."),
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    appointment_type = models.CharField(max_length=100, default=DEFAULT_APPOINTMENT_TYPE)
    start_time = models.DateTimeField(db_index=True)
    end_time = models.DateTimeField(db_index=True)
    status = models.CharField(
        max_length=20, choices=AppointmentStatus, default=AppointmentStatus.OPEN
    )
    series = models.ForeignKey(
        AppointmentSeries,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="appointments",
    )
    series_index = models.PositiveIntegerField(null=True, blank=True)
    recurrence = models.JSONField(null=True, blank=True)

    objects: AppointmentManager = AppointmentManager()

    class Meta:
        ordering = ("start_time", "id")
        constraints = [  # noqa: RUF012
            models.CheckConstraint(
                condition=Q(end_time__gt=F("start_time")),
                name="appointment_end_after_start",
            ),
        ]

    def __str__(self):
        return f"{self.title} ({self.start_time:%Y-%m-%d %H:%M})"

    @property
    def is_recurring(self) -> bool:
        return self.series_id is not None
