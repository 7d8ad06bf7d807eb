import datetime
import logging
from typing import Annotated

from django.db import transaction

from dependency_injector.wiring import Provide, inject

from scheduling.recurrence_utils import OccurrenceGenerator
from scheduling.services.dataclasses import (
    AppliedPlanData,
    AppointmentDetailsData,
    MaterializationResult,
    RecurrenceRuleData,
    SeriesPlan,
)
from scheduling.services.protocols.booking_storage import BookingStorage
from scheduling.services.series_materializer import SeriesMaterializer


logger = logging.getLogger(__name__)


class AppointmentSeriesService:
    """
    Books single appointments and recurring series for a user, replaces and
    deletes series. Plans come from the `SeriesMaterializer` and are written
    through the booking storage inside one transaction.
    """

    @inject
    def __init__(
        self,
        booking_storage: Annotated["BookingStorage | None", Provide["booking_storage"]] = None,
        series_materializer: Annotated[
            "SeriesMaterializer | None", Provide["series_materializer"]
        ] = None,
        *,
        max_series_instances: int,
        max_on_date_count: int | None = None,
    ) -> None:
        self.booking_storage = booking_storage
        self.series_materializer = series_materializer
        self.max_series_instances = max_series_instances
        self.max_on_date_count = max_on_date_count

    def preview_occurrences(
        self, start: datetime.datetime, rule: RecurrenceRuleData | None
    ) -> list[datetime.datetime]:
        if rule is None or not rule.enabled:
            return [start]
        return OccurrenceGenerator.generate(start, rule, self.max_series_instances)

    def plan_appointments(
        self,
        resource_id: int,
        start: datetime.datetime,
        duration_minutes: int,
        details: AppointmentDetailsData,
        rule: RecurrenceRuleData | None = None,
        existing_series_id: int | None = None,
        force_override: bool = False,
    ) -> MaterializationResult:
        return self.series_materializer.materialize(
            rule,
            start,
            duration_minutes,
            resource_id,
            self.max_series_instances,
            details=details,
            existing_series_id=existing_series_id,
            force_override=force_override,
            max_on_date_count=self.max_on_date_count,
        )

    def apply_plan(self, plan: SeriesPlan, acting_user_id: int | None = None) -> AppliedPlanData:
        """
        Execute a plan: soft delete the replaced series' bookings, write the
        series record and every booking. Nothing is written if any step fails.
        """
        with transaction.atomic():
            replaced_booking_count = 0
            series_id = plan.replaces_series_id
            if series_id is not None:
                replaced_booking_count = self.booking_storage.soft_delete_bookings_by_series(
                    series_id, deleted_by_id=acting_user_id
                )

            if plan.series_record is not None:
                if series_id is not None:
                    self.booking_storage.update_series_record(series_id, plan.series_record)
                else:
                    series_id = self.booking_storage.create_series_record(plan.series_record)

            booking_ids = [
                self.booking_storage.create_booking(request, series_id=series_id)
                for request in plan.booking_requests
            ]

            if series_id is not None and booking_ids:
                self.booking_storage.set_series_first_booking(
                    series_id, booking_ids[0], len(booking_ids)
                )

        if plan.replaces_series_id is not None:
            logger.info(
                "Replaced series %s: %s appointments deleted, %s created",
                series_id,
                replaced_booking_count,
                len(booking_ids),
            )
        elif series_id is not None:
            logger.info("Created series %s with %s appointments", series_id, len(booking_ids))
        else:
            logger.info("Created appointment %s", booking_ids[0] if booking_ids else None)

        return AppliedPlanData(
            series_id=series_id,
            booking_ids=booking_ids,
            replaced_booking_count=replaced_booking_count,
        )

    def create_appointments(
        self,
        resource_id: int,
        start: datetime.datetime,
        duration_minutes: int,
        details: AppointmentDetailsData,
        rule: RecurrenceRuleData | None = None,
        force_override: bool = False,
    ) -> MaterializationResult | AppliedPlanData:
        """
        Plan and, when the plan is clean, write a single appointment or a whole
        series. Any other materialization result is handed back untouched.
        """
        result = self.plan_appointments(
            resource_id,
            start,
            duration_minutes,
            details,
            rule=rule,
            force_override=force_override,
        )
        if not isinstance(result, SeriesPlan):
            return result
        return self.apply_plan(result, acting_user_id=details.created_by_id)

    def replace_series(
        self,
        series_id: int,
        resource_id: int,
        start: datetime.datetime,
        duration_minutes: int,
        details: AppointmentDetailsData,
        rule: RecurrenceRuleData,
        force_override: bool = False,
    ) -> MaterializationResult | AppliedPlanData:
        """
        Regenerate every appointment of a series from a new rule. The old
        appointments go to the trash and the series keeps its id.
        """
        result = self.plan_appointments(
            resource_id,
            start,
            duration_minutes,
            details,
            rule=rule,
            existing_series_id=series_id,
            force_override=force_override,
        )
        if not isinstance(result, SeriesPlan):
            return result
        return self.apply_plan(result, acting_user_id=details.created_by_id)

    def delete_series(self, series_id: int, acting_user_id: int | None = None) -> int:
        """
        Move every appointment of a series and the series itself to the trash.
        :return: number of appointments deleted.
        """
        with transaction.atomic():
            deleted_count = self.booking_storage.soft_delete_bookings_by_series(
                series_id, deleted_by_id=acting_user_id
            )
            self.booking_storage.soft_delete_series(series_id, deleted_by_id=acting_user_id)
        logger.info("Deleted series %s with %s appointments", series_id, deleted_count)
        return deleted_count

    def delete_appointment(self, appointment_id: int, acting_user_id: int | None = None) -> None:
        self.booking_storage.soft_delete_booking(appointment_id, deleted_by_id=acting_user_id)
        logger.info("Deleted appointment %s", appointment_id)

    def empty_trash(self) -> int:
        return self.booking_storage.purge_deleted_bookings()
