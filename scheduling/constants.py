from django.db.models import IntegerChoices, TextChoices


class RepeatUnit(TextChoices):
    DAY = "day", "Day"
    WEEK = "week", "Week"
    MONTH = "month", "Month"
    YEAR = "year", "Year"


class EndMode(TextChoices):
    NEVER = "never", "Never"
    ON_DATE = "on_date", "On Date"
    AFTER_COUNT = "after_count", "After Count"


class Weekday(IntegerChoices):
    SUNDAY = 0, "Sunday"
    MONDAY = 1, "Monday"
    TUESDAY = 2, "Tuesday"
    WEDNESDAY = 3, "Wednesday"
    THURSDAY = 4, "Thursday"
    FRIDAY = 5, "Friday"
    SATURDAY = 6, "Saturday"


class AppointmentStatus(TextChoices):
    OPEN = "open", "Open"
    DOCUMENTED = "documented", "Documented"
    DONE = "done", "Done"
    CANCELED = "canceled", "Canceled"
    DELETED = "deleted", "Deleted"


class SeriesStatus(TextChoices):
    ACTIVE = "active", "Active"
    DELETED = "deleted", "Deleted"


DEFAULT_APPOINTMENT_TYPE = "-"
# Explicit month days are pinned to a day every month has
MAX_MONTH_DAY = 27
DEFAULT_MAX_INTERVAL = 999
