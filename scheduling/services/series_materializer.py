import datetime
import logging
from typing import Annotated

from dependency_injector.wiring import Provide, inject

from scheduling.constants import EndMode, RepeatUnit, Weekday
from scheduling.exceptions import BookingLookupError
from scheduling.recurrence_utils import OccurrenceGenerator, parse_end_on_date
from scheduling.services.collision_service import CollisionService
from scheduling.services.dataclasses import (
    AppointmentDetailsData,
    BookingRequestData,
    CollisionDetected,
    InvalidRule,
    LookupFailed,
    MaterializationResult,
    NoOccurrences,
    RecurrenceRuleData,
    SeriesPlan,
    SeriesRecordRequestData,
)


logger = logging.getLogger(__name__)


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_recurrence_rule(
    rule: RecurrenceRuleData,
    start: datetime.datetime,
    max_on_date_count: int | None = None,
) -> list[str]:
    """
    Return the problems that make `rule` unusable from `start`. An empty list
    means the rule is valid. Disabled rules are always valid.

    `on_date` rules are bounded by their end date only, so `max_on_date_count`
    limits how many occurrences such a rule may expand to.
    """
    if not rule.enabled:
        return []

    errors = []
    if not _is_int(rule.interval) or rule.interval < 1:
        errors.append("Interval must be a whole number of at least 1.")
    if rule.unit not in RepeatUnit.values:
        errors.append(f"Unknown repeat unit: {rule.unit}.")

    if rule.unit == RepeatUnit.WEEK and rule.weekdays:
        if any(
            not _is_int(weekday) or weekday not in Weekday.values for weekday in rule.weekdays
        ):
            errors.append("Weekdays must be between 0 (Sunday) and 6 (Saturday).")
    if rule.unit == RepeatUnit.MONTH and rule.month_day is not None:
        if not _is_int(rule.month_day) or not 1 <= rule.month_day <= 31:
            errors.append("Month day must be between 1 and 31.")

    if rule.end_mode == EndMode.ON_DATE:
        end_on_date = parse_end_on_date(rule.end_on_date)
        if end_on_date is None:
            errors.append("An end date is required when the series ends on a date.")
        elif end_on_date < start.date():
            errors.append("The end date can't be before the start date.")
        elif max_on_date_count is not None and OccurrenceGenerator.exceeds_on_date_limit(
            start, rule, max_on_date_count
        ):
            errors.append(
                f"The series would have more than {max_on_date_count} appointments. "
                "Choose an earlier end date."
            )
    elif rule.end_mode == EndMode.AFTER_COUNT:
        if not _is_int(rule.end_after_count) or rule.end_after_count < 1:
            errors.append("The number of appointments must be at least 1.")
    elif rule.end_mode != EndMode.NEVER:
        errors.append(f"Unknown end mode: {rule.end_mode}.")

    return errors


class SeriesMaterializer:
    """
    Turns a booking request into a plan of storage writes. Apart from the
    read-only collision lookup it performs no I/O.
    """

    @inject
    def __init__(
        self,
        collision_service: Annotated[
            "CollisionService | None", Provide["collision_service"]
        ] = None,
    ) -> None:
        self.collision_service = collision_service

    def materialize(
        self,
        rule: RecurrenceRuleData | None,
        start: datetime.datetime,
        duration_minutes: int,
        resource_id: int,
        max_count_cap: int,
        details: AppointmentDetailsData | None = None,
        exclude_id: int | None = None,
        existing_series_id: int | None = None,
        force_override: bool = False,
        max_on_date_count: int | None = None,
    ) -> MaterializationResult:
        """
        Build the plan for booking `rule` from `start` for `resource_id`.

        Without an enabled rule the plan holds a single booking and no series
        record. With `existing_series_id` the plan replaces that series: its
        bookings are soft deleted first and ignored by the collision check.
        `force_override` skips the collision check altogether.
        `max_on_date_count` rejects `on_date` rules expanding past that many
        occurrences.
        """
        if details is None:
            details = AppointmentDetailsData(title="")
        is_recurring = rule is not None and rule.enabled

        errors = validate_recurrence_rule(rule, start, max_on_date_count) if is_recurring else []
        if not _is_int(duration_minutes) or duration_minutes < 1:
            errors.append("Duration must be at least one minute.")
        if existing_series_id is not None and not is_recurring:
            errors.append("Replacing a series needs an enabled recurrence rule.")
        if errors:
            return InvalidRule(errors=errors)

        if is_recurring:
            occurrences = OccurrenceGenerator.generate(start, rule, max_count_cap)
        else:
            occurrences = [start]
        if not occurrences:
            return NoOccurrences()

        if not force_override:
            try:
                collision = self.collision_service.find_first_collision_across_occurrences(
                    resource_id,
                    occurrences,
                    duration_minutes,
                    exclude_id=exclude_id,
                    exclude_series_id=existing_series_id,
                )
            except BookingLookupError as e:
                logger.exception("Collision lookup failed for user %s", resource_id)
                return LookupFailed(reason=str(e))
            if collision is not None:
                return CollisionDetected(collision=collision)

        duration = datetime.timedelta(minutes=duration_minutes)
        recurrence = rule.to_dict() if is_recurring else None

        series_record = None
        if is_recurring:
            series_record = SeriesRecordRequestData(
                resource_id=resource_id,
                title=details.title,
                description=details.description,
                appointment_type=details.appointment_type,
                created_by_id=details.created_by_id,
                start=occurrences[0],
                end=occurrences[0] + duration,
                duration_minutes=duration_minutes,
                recurrence=recurrence,
                instance_count=len(occurrences),
            )

        booking_requests = [
            BookingRequestData(
                resource_id=resource_id,
                title=details.title,
                description=details.description,
                appointment_type=details.appointment_type,
                created_by_id=details.created_by_id,
                start=occurrence,
                end=occurrence + duration,
                series_index=index if is_recurring else None,
                recurrence=recurrence,
            )
            for index, occurrence in enumerate(occurrences, start=1)
        ]

        return SeriesPlan(
            occurrences=occurrences,
            booking_requests=booking_requests,
            series_record=series_record,
            replaces_series_id=existing_series_id,
        )
