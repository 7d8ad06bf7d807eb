import logging
from typing import Annotated

from django.conf import settings

from dependency_injector.wiring import Provide, inject
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response

from common.utils.view_utils import ReadOnlyAppointmentsModelViewSet
from scheduling.exceptions import (
    AppointmentAlreadyDeletedError,
    BookingLookupError,
    CollisionLookupUnavailable,
    SeriesAlreadyDeletedError,
)
from scheduling.filtersets import AppointmentFilterSet, AppointmentSeriesFilterSet
from scheduling.models import Appointment, AppointmentSeries
from scheduling.permissions import AppointmentPermission
from scheduling.recurrence_utils import OccurrenceGenerator
from scheduling.serializers import (
    AppointmentBookingResultSerializer,
    AppointmentBookingSerializer,
    AppointmentSerializer,
    AppointmentSeriesSerializer,
    CollisionCheckResultSerializer,
    CollisionCheckSerializer,
    CollisionConflictResponseSerializer,
    CollisionSerializer,
    DayConflictsQuerySerializer,
    DaySlotConflictSerializer,
    EmptyTrashResultSerializer,
    OccurrencePreviewResultSerializer,
    OccurrencePreviewSerializer,
    SeriesReplaceSerializer,
)
from scheduling.services.appointment_series_service import AppointmentSeriesService
from scheduling.services.collision_service import CollisionService
from scheduling.services.dataclasses import (
    AppliedPlanData,
    CollisionDetected,
    InvalidRule,
    LookupFailed,
    MaterializationResult,
    NoOccurrences,
)
from users.permissions import IsAdminRole


logger = logging.getLogger(__name__)


TRASHED_QUERY_PARAM = OpenApiParameter(
    "trashed",
    type=OpenApiTypes.BOOL,
    location=OpenApiParameter.QUERY,
    required=False,
    description="Admins only: list deleted items instead of active ones.",
)


def _wants_trash(request) -> bool:
    return request.user.is_admin and request.query_params.get("trashed") in ("true", "1")


def materialization_error_response(result: MaterializationResult | AppliedPlanData):
    """
    Map a failed materialization to its HTTP outcome. Invalid rules and empty
    series raise a 400, lookup failures a 503. Collisions answer 409 with the
    conflicting appointment. Returns None for a written plan.
    """
    if isinstance(result, InvalidRule):
        raise ValidationError({"recurrence": result.errors})
    if isinstance(result, NoOccurrences):
        raise ValidationError(
            {"recurrence": ["The recurrence settings don't produce any appointment."]}
        )
    if isinstance(result, LookupFailed):
        raise CollisionLookupUnavailable()
    if isinstance(result, CollisionDetected):
        return Response(
            {
                "detail": "The appointment collides with an existing appointment.",
                "collision": CollisionSerializer(result.collision).data,
            },
            status=status.HTTP_409_CONFLICT,
        )
    return None


class AppointmentViewSet(ReadOnlyAppointmentsModelViewSet):
    """
    Appointments of the requesting user, or of everyone for admins. Lists hide
    deleted appointments unless an admin asks for the trash.
    """

    serializer_class = AppointmentSerializer
    queryset = Appointment.objects.all()
    permission_classes = (AppointmentPermission,)
    filterset_class = AppointmentFilterSet

    def get_permissions(self):
        if self.action == "empty_trash":
            return [IsAdminRole()]
        return super().get_permissions()

    def get_queryset(self):
        queryset = super().get_queryset().filter_visible_to(self.request.user)
        if self.action != "list":
            return queryset
        if _wants_trash(self.request):
            return queryset.filter_trashed()
        return queryset.filter_active()

    @extend_schema(parameters=[TRASHED_QUERY_PARAM])
    def list(self, request, *args, **kwargs):
        return super().list(request, *args, **kwargs)

    @extend_schema(
        summary="Book an appointment or a recurring series",
        request=AppointmentBookingSerializer,
        responses={
            201: AppointmentBookingResultSerializer,
            409: CollisionConflictResponseSerializer,
        },
    )
    @inject
    def create(
        self,
        request,
        appointment_series_service: Annotated[
            AppointmentSeriesService, Provide["appointment_series_service"]
        ],
        *args,
        **kwargs,
    ):
        serializer = AppointmentBookingSerializer(data=request.data, context={"request": request})
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = appointment_series_service.create_appointments(
            resource_id=data["created_for"].pk,
            start=data["start_time"],
            duration_minutes=data["duration_minutes"],
            details=serializer.get_details(),
            rule=serializer.get_rule(),
            force_override=data["force_override"],
        )
        error_response = materialization_error_response(result)
        if error_response is not None:
            return error_response

        appointments = self.get_queryset().filter(pk__in=result.booking_ids).order_by(
            "start_time", "id"
        )
        return Response(
            {
                "series_id": result.series_id,
                "appointments": AppointmentSerializer(appointments, many=True).data,
            },
            status=status.HTTP_201_CREATED,
        )

    @extend_schema(summary="Move an appointment to the trash", responses={204: None})
    @inject
    def destroy(
        self,
        request,
        appointment_series_service: Annotated[
            AppointmentSeriesService, Provide["appointment_series_service"]
        ],
        *args,
        **kwargs,
    ):
        appointment = self.get_object()
        try:
            appointment_series_service.delete_appointment(
                appointment.pk, acting_user_id=request.user.pk
            )
        except AppointmentAlreadyDeletedError as e:
            raise ValidationError({"non_field_errors": [str(e)]}) from e
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        summary="Check a time range or a whole series for collisions",
        request=CollisionCheckSerializer,
        responses={200: CollisionCheckResultSerializer},
    )
    @action(
        methods=["post"],
        detail=False,
        url_path="check-collision",
        url_name="check-collision",
    )
    @inject
    def check_collision(
        self,
        request,
        collision_service: Annotated[CollisionService, Provide["collision_service"]],
    ):
        """
        Report the first existing appointment colliding with the given range,
        or with any occurrence of the given recurrence rule.
        """
        serializer = CollisionCheckSerializer(data=request.data, context={"request": request})
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        rule = serializer.get_rule()
        if rule is not None and rule.enabled:
            occurrences = OccurrenceGenerator.generate(
                data["start_time"], rule, settings.SCHEDULING_MAX_SERIES_INSTANCES
            )
        else:
            occurrences = [data["start_time"]]

        try:
            collision = collision_service.find_first_collision_across_occurrences(
                data["created_for"].pk,
                occurrences,
                data["duration_minutes"],
                exclude_id=data.get("exclude_id"),
                exclude_series_id=data.get("exclude_series_id"),
            )
        except BookingLookupError as e:
            logger.exception("Collision check failed for user %s", data["created_for"].pk)
            raise CollisionLookupUnavailable() from e

        return Response(
            {
                "collision": CollisionSerializer(collision).data if collision else None,
                "checked_occurrences": len(occurrences),
            }
        )

    @extend_schema(
        summary="Start times of a day that would collide",
        parameters=[DayConflictsQuerySerializer],
        responses={200: DaySlotConflictSerializer(many=True)},
    )
    @action(
        methods=["get"],
        detail=False,
        url_path="day-conflicts",
        url_name="day-conflicts",
    )
    @inject
    def day_conflicts(
        self,
        request,
        collision_service: Annotated[CollisionService, Provide["collision_service"]],
    ):
        """
        List every start slot of the day where an appointment of the given
        duration would collide, with the appointment it collides with.
        """
        serializer = DayConflictsQuerySerializer(
            data=request.query_params, context={"request": request}
        )
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            conflicts = collision_service.find_day_slot_conflicts(
                data["created_for"].pk,
                data["date"],
                data["duration_minutes"],
                step_minutes=settings.SCHEDULING_SLOT_STEP_MINUTES,
                exclude_id=data.get("exclude_id"),
            )
        except BookingLookupError as e:
            logger.exception("Day conflict lookup failed for user %s", data["created_for"].pk)
            raise CollisionLookupUnavailable() from e

        return Response(DaySlotConflictSerializer(conflicts, many=True).data)

    @extend_schema(
        summary="Preview the occurrences of a recurrence rule",
        request=OccurrencePreviewSerializer,
        responses={200: OccurrencePreviewResultSerializer},
    )
    @action(
        methods=["post"],
        detail=False,
        url_path="preview-occurrences",
        url_name="preview-occurrences",
    )
    @inject
    def preview_occurrences(
        self,
        request,
        appointment_series_service: Annotated[
            AppointmentSeriesService, Provide["appointment_series_service"]
        ],
    ):
        serializer = OccurrencePreviewSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        occurrences = appointment_series_service.preview_occurrences(
            serializer.validated_data["start_time"], serializer.get_rule()
        )
        return Response(
            OccurrencePreviewResultSerializer(
                {"occurrences": occurrences, "count": len(occurrences)}
            ).data
        )

    @extend_schema(
        summary="Delete every appointment in the trash for good",
        request=None,
        responses={200: EmptyTrashResultSerializer},
    )
    @action(
        methods=["post"],
        detail=False,
        url_path="empty-trash",
        url_name="empty-trash",
    )
    @inject
    def empty_trash(
        self,
        request,
        appointment_series_service: Annotated[
            AppointmentSeriesService, Provide["appointment_series_service"]
        ],
    ):
        deleted_count = appointment_series_service.empty_trash()
        return Response(EmptyTrashResultSerializer({"deleted_count": deleted_count}).data)


class AppointmentSeriesViewSet(ReadOnlyAppointmentsModelViewSet):
    """
    Recurring series. Everyone reads the series they are booked in; only admins
    replace or delete them.
    """

    serializer_class = AppointmentSeriesSerializer
    queryset = AppointmentSeries.objects.all()
    permission_classes = (AppointmentPermission,)
    filterset_class = AppointmentSeriesFilterSet

    def get_permissions(self):
        if self.action in ("update", "destroy"):
            return [IsAdminRole()]
        return super().get_permissions()

    def get_queryset(self):
        queryset = super().get_queryset().filter_visible_to(self.request.user)
        if self.action != "list":
            return queryset
        if _wants_trash(self.request):
            return queryset.exclude(deleted_at__isnull=True)
        return queryset.filter_active()

    @extend_schema(parameters=[TRASHED_QUERY_PARAM])
    def list(self, request, *args, **kwargs):
        return super().list(request, *args, **kwargs)

    @extend_schema(
        summary="Replace a series",
        description=(
            "Regenerates every appointment of the series from the new rule. "
            "The previous appointments of the series are moved to the trash."
        ),
        request=SeriesReplaceSerializer,
        responses={200: AppointmentSeriesSerializer, 409: CollisionConflictResponseSerializer},
    )
    @inject
    def update(
        self,
        request,
        appointment_series_service: Annotated[
            AppointmentSeriesService, Provide["appointment_series_service"]
        ],
        *args,
        **kwargs,
    ):
        series = self.get_object()
        if series.is_deleted:
            raise ValidationError({"non_field_errors": ["A deleted series can't be edited."]})

        data = {"created_for": series.created_for_id, **request.data}
        serializer = SeriesReplaceSerializer(data=data, context={"request": request})
        serializer.is_valid(raise_exception=True)
        validated_data = serializer.validated_data

        result = appointment_series_service.replace_series(
            series.pk,
            resource_id=validated_data["created_for"].pk,
            start=validated_data["start_time"],
            duration_minutes=validated_data["duration_minutes"],
            details=serializer.get_details(),
            rule=serializer.get_rule(),
            force_override=validated_data["force_override"],
        )
        error_response = materialization_error_response(result)
        if error_response is not None:
            return error_response

        series = self.get_queryset().get(pk=series.pk)
        return Response(self.get_serializer(series).data)

    @extend_schema(summary="Move a series and its appointments to the trash", responses={204: None})
    @inject
    def destroy(
        self,
        request,
        appointment_series_service: Annotated[
            AppointmentSeriesService, Provide["appointment_series_service"]
        ],
        *args,
        **kwargs,
    ):
        series = self.get_object()
        try:
            appointment_series_service.delete_series(series.pk, acting_user_id=request.user.pk)
        except SeriesAlreadyDeletedError as e:
            raise ValidationError({"non_field_errors": [str(e)]}) from e
        return Response(status=status.HTTP_204_NO_CONTENT)
