import datetime
from dataclasses import dataclass
from dataclasses import field as dataclass_field
from typing import Literal

from scheduling.constants import EndMode, RepeatUnit


# Keys and values written by earlier clients, mapped to the current names
_LEGACY_RULE_KEYS = {
    "monthDay": "month_day",
    "endMode": "end_mode",
    "endOnDate": "end_on_date",
    "endAfterCount": "end_after_count",
}
_LEGACY_END_MODES = {
    "onDate": EndMode.ON_DATE,
    "afterCount": EndMode.AFTER_COUNT,
}


@dataclass(frozen=True)
class RecurrenceRuleData:
    """
    Declarative repetition rule. Weekdays use 0=Sunday..6=Saturday and only the
    first one is used. `end_on_date` may be a date or an ISO `YYYY-MM-DD` string.
    """

    enabled: bool = False
    interval: int = 1
    unit: str = RepeatUnit.WEEK
    weekdays: list[int] | None = None
    month_day: int | None = None
    end_mode: str = EndMode.NEVER
    end_on_date: datetime.date | str | None = None
    end_after_count: int | None = None

    def to_dict(self) -> dict:
        end_on_date = self.end_on_date
        if isinstance(end_on_date, datetime.date):
            end_on_date = end_on_date.isoformat()
        return {
            "enabled": self.enabled,
            "interval": self.interval,
            "unit": str(self.unit),
            "weekdays": list(self.weekdays) if self.weekdays is not None else None,
            "month_day": self.month_day,
            "end_mode": str(self.end_mode),
            "end_on_date": end_on_date,
            "end_after_count": self.end_after_count,
        }

    @classmethod
    def from_dict(cls, data: dict | None) -> "RecurrenceRuleData | None":
        if not data:
            return None
        values = {_LEGACY_RULE_KEYS.get(key, key): value for key, value in data.items()}
        end_mode = values.get("end_mode") or EndMode.NEVER
        weekdays = values.get("weekdays")
        return cls(
            enabled=bool(values.get("enabled", False)),
            interval=values.get("interval") or 1,
            unit=values.get("unit") or RepeatUnit.WEEK,
            weekdays=list(weekdays) if weekdays is not None else None,
            month_day=values.get("month_day"),
            end_mode=_LEGACY_END_MODES.get(end_mode, end_mode),
            end_on_date=values.get("end_on_date"),
            end_after_count=values.get("end_after_count"),
        )


@dataclass(frozen=True)
class BookingData:
    """Snapshot of an existing appointment as read from storage."""

    id: int  # noqa: A003
    resource_id: int
    start: datetime.datetime
    end: datetime.datetime
    title: str = ""
    status: str = ""
    deleted_at: datetime.datetime | None = None
    series_id: int | None = None


@dataclass(frozen=True)
class CollisionData:
    id: int  # noqa: A003
    resource_id: int
    title: str
    start: datetime.datetime
    end: datetime.datetime
    status: str
    occurrence_start: datetime.datetime
    occurrence_end: datetime.datetime


@dataclass(frozen=True)
class DaySlotConflictData:
    slot: datetime.time
    collision: CollisionData


@dataclass
class AppointmentDetailsData:
    title: str
    description: str = ""
    appointment_type: str = "-"
    created_by_id: int | None = None


@dataclass
class SeriesRecordRequestData:
    resource_id: int
    title: str
    description: str
    appointment_type: str
    created_by_id: int | None
    start: datetime.datetime
    end: datetime.datetime
    duration_minutes: int
    recurrence: dict
    instance_count: int


@dataclass
class BookingRequestData:
    resource_id: int
    title: str
    description: str
    appointment_type: str
    created_by_id: int | None
    start: datetime.datetime
    end: datetime.datetime
    series_index: int | None = None
    recurrence: dict | None = None


# Materialization results
@dataclass
class SeriesPlan:
    """
    Requests the storage has to execute, in order: soft delete the bookings of
    `replaces_series_id` (when set), write `series_record` (when set), then every
    booking request tagged with the series.
    """

    occurrences: list[datetime.datetime]
    booking_requests: list[BookingRequestData]
    series_record: SeriesRecordRequestData | None = None
    replaces_series_id: int | None = None
    kind: Literal["plan"] = "plan"


@dataclass
class InvalidRule:
    errors: list[str] = dataclass_field(default_factory=list)
    kind: Literal["invalid_rule"] = "invalid_rule"


@dataclass
class NoOccurrences:
    kind: Literal["no_occurrences"] = "no_occurrences"


@dataclass
class CollisionDetected:
    collision: CollisionData
    kind: Literal["collision"] = "collision"


@dataclass
class LookupFailed:
    reason: str
    kind: Literal["lookup_failed"] = "lookup_failed"


MaterializationResult = SeriesPlan | InvalidRule | NoOccurrences | CollisionDetected | LookupFailed


@dataclass
class AppliedPlanData:
    series_id: int | None
    booking_ids: list[int]
    replaced_booking_count: int = 0
