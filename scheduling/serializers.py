import datetime

from django.conf import settings

from rest_framework import serializers

from common.utils.serializer_utils import NaiveDateTimeField, VirtualModelSerializer
from scheduling.constants import DEFAULT_APPOINTMENT_TYPE, EndMode, RepeatUnit, Weekday
from scheduling.models import Appointment, AppointmentSeries
from scheduling.recurrence_utils import OccurrenceGenerator
from scheduling.services.dataclasses import AppointmentDetailsData, RecurrenceRuleData
from scheduling.virtual_models import AppointmentSeriesVirtualModel, AppointmentVirtualModel
from users.models import User
from users.serializers import UserSerializer


class AppointmentSerializer(VirtualModelSerializer):
    created_for = UserSerializer(read_only=True)

    class Meta:
        model = Appointment
        virtual_model = AppointmentVirtualModel
        fields = (
            "id",
            "title",
            "description",
            "appointment_type",
            "start_time",
            "end_time",
            "status",
            "created_for",
            "created_by",
            "series",
            "series_index",
            "recurrence",
            "deleted_at",
            "deleted_by",
            "created",
            "modified",
        )
        read_only_fields = fields


class AppointmentSeriesSerializer(VirtualModelSerializer):
    created_for = UserSerializer(read_only=True)

    class Meta:
        model = AppointmentSeries
        virtual_model = AppointmentSeriesVirtualModel
        fields = (
            "id",
            "title",
            "description",
            "appointment_type",
            "start_time",
            "end_time",
            "duration_minutes",
            "recurrence",
            "status",
            "instance_count",
            "first_appointment",
            "created_for",
            "created_by",
            "deleted_at",
            "deleted_by",
            "created",
            "modified",
        )
        read_only_fields = fields


class RecurrenceRuleSerializer(serializers.Serializer):
    """Recurrence rule input. Weekdays use 0=Sunday..6=Saturday, only the first is used."""

    enabled = serializers.BooleanField(default=False)
    interval = serializers.IntegerField(
        min_value=1, max_value=settings.SCHEDULING_MAX_INTERVAL, default=1
    )
    unit = serializers.ChoiceField(choices=RepeatUnit.choices, default=RepeatUnit.WEEK)
    weekdays = serializers.ListField(
        child=serializers.ChoiceField(choices=Weekday.choices),
        required=False,
        allow_null=True,
        allow_empty=True,
    )
    month_day = serializers.IntegerField(
        min_value=1, max_value=31, required=False, allow_null=True
    )
    end_mode = serializers.ChoiceField(choices=EndMode.choices, default=EndMode.NEVER)
    end_on_date = serializers.DateField(required=False, allow_null=True)
    end_after_count = serializers.IntegerField(
        min_value=1,
        max_value=settings.SCHEDULING_MAX_AFTER_COUNT,
        required=False,
        allow_null=True,
    )

    def validate(self, attrs):
        if not attrs.get("enabled"):
            return attrs
        if attrs.get("end_mode") == EndMode.ON_DATE and not attrs.get("end_on_date"):
            raise serializers.ValidationError(
                {"end_on_date": ["This field is required when the series ends on a date."]}
            )
        if attrs.get("end_mode") == EndMode.AFTER_COUNT and not attrs.get("end_after_count"):
            raise serializers.ValidationError(
                {"end_after_count": ["This field is required when the series ends after a count."]}
            )
        return attrs


def rule_from_validated_data(data: dict | None) -> RecurrenceRuleData | None:
    if not data:
        return None
    return RecurrenceRuleData(
        enabled=data.get("enabled", False),
        interval=data.get("interval", 1),
        unit=data.get("unit", RepeatUnit.WEEK),
        weekdays=data.get("weekdays"),
        month_day=data.get("month_day"),
        end_mode=data.get("end_mode", EndMode.NEVER),
        end_on_date=data.get("end_on_date"),
        end_after_count=data.get("end_after_count"),
    )


def validate_recurrence_size(attrs):
    """
    Reject `on_date` rules expanding past `SCHEDULING_MAX_AFTER_COUNT`
    occurrences from `start_time`.
    """
    rule = rule_from_validated_data(attrs.get("recurrence"))
    limit = settings.SCHEDULING_MAX_AFTER_COUNT
    if (
        rule is not None
        and rule.enabled
        and OccurrenceGenerator.exceeds_on_date_limit(attrs["start_time"], rule, limit)
    ):
        raise serializers.ValidationError(
            {
                "recurrence": [
                    f"The series would have more than {limit} appointments. "
                    "Choose an earlier end date."
                ]
            }
        )
    return attrs


class TimeRangeInputSerializer(serializers.Serializer):
    """
    A start and either an end or a duration in minutes, the duration winning
    when both are sent. Validated data always carries both.
    """

    start_time = NaiveDateTimeField()
    end_time = NaiveDateTimeField(required=False)
    duration_minutes = serializers.IntegerField(min_value=1, required=False)

    def validate(self, attrs):
        attrs = super().validate(attrs)
        start_time = attrs["start_time"]
        end_time = attrs.get("end_time")
        duration_minutes = attrs.get("duration_minutes")

        if duration_minutes is None:
            if end_time is None:
                raise serializers.ValidationError(
                    {"end_time": ["Either end_time or duration_minutes is required."]}
                )
            if end_time <= start_time:
                raise serializers.ValidationError({"end_time": ["End must be after the start."]})
            duration_minutes = int((end_time - start_time).total_seconds() // 60)
            if duration_minutes < 1:
                raise serializers.ValidationError(
                    {"end_time": ["Appointments must last at least one minute."]}
                )

        attrs["duration_minutes"] = duration_minutes
        attrs["end_time"] = start_time + datetime.timedelta(minutes=duration_minutes)
        return attrs


class ResourceInputMixin(serializers.Serializer):
    """
    `created_for` defaults to the requesting user. Only admins may pick another
    user or override collisions.
    """

    created_for = serializers.PrimaryKeyRelatedField(
        queryset=User.objects.filter(is_active=True), required=False
    )

    def validate_created_for(self, value):
        user = self.context["request"].user
        if value != user and not user.is_admin:
            raise serializers.ValidationError("Only admins can book for other users.")
        return value

    def validate(self, attrs):
        attrs = super().validate(attrs)
        attrs.setdefault("created_for", self.context["request"].user)
        return attrs


class AppointmentBookingSerializer(ResourceInputMixin, TimeRangeInputSerializer):
    title = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    appointment_type = serializers.CharField(
        max_length=100, required=False, default=DEFAULT_APPOINTMENT_TYPE
    )
    recurrence = RecurrenceRuleSerializer(required=False, allow_null=True)
    force_override = serializers.BooleanField(default=False)

    def validate_title(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("This field may not be blank.")
        return value

    def validate_force_override(self, value):
        if value and not self.context["request"].user.is_admin:
            raise serializers.ValidationError("Only admins can override collisions.")
        return value

    def validate(self, attrs):
        attrs = super().validate(attrs)
        if not self.context["request"].user.is_admin:
            attrs["appointment_type"] = DEFAULT_APPOINTMENT_TYPE
        return validate_recurrence_size(attrs)

    def get_details(self) -> AppointmentDetailsData:
        return AppointmentDetailsData(
            title=self.validated_data["title"],
            description=self.validated_data.get("description", "").strip(),
            appointment_type=self.validated_data["appointment_type"],
            created_by_id=self.context["request"].user.pk,
        )

    def get_rule(self) -> RecurrenceRuleData | None:
        return rule_from_validated_data(self.validated_data.get("recurrence"))


class SeriesReplaceSerializer(AppointmentBookingSerializer):
    recurrence = RecurrenceRuleSerializer()

    def validate_recurrence(self, value):
        if not value.get("enabled"):
            raise serializers.ValidationError("A series needs an enabled recurrence rule.")
        return value


class CollisionCheckSerializer(ResourceInputMixin, TimeRangeInputSerializer):
    exclude_id = serializers.IntegerField(required=False, allow_null=True)
    exclude_series_id = serializers.IntegerField(required=False, allow_null=True)
    recurrence = RecurrenceRuleSerializer(required=False, allow_null=True)

    def validate(self, attrs):
        return validate_recurrence_size(super().validate(attrs))

    def get_rule(self) -> RecurrenceRuleData | None:
        return rule_from_validated_data(self.validated_data.get("recurrence"))


class DayConflictsQuerySerializer(ResourceInputMixin):
    date = serializers.DateField()
    duration_minutes = serializers.IntegerField(min_value=1, max_value=24 * 60)
    exclude_id = serializers.IntegerField(required=False, allow_null=True)


class OccurrencePreviewSerializer(serializers.Serializer):
    start_time = NaiveDateTimeField()
    recurrence = RecurrenceRuleSerializer()

    def validate(self, attrs):
        return validate_recurrence_size(attrs)

    def get_rule(self) -> RecurrenceRuleData | None:
        return rule_from_validated_data(self.validated_data.get("recurrence"))


class CollisionSerializer(serializers.Serializer):
    id = serializers.IntegerField()  # noqa: A003
    resource_id = serializers.IntegerField()
    title = serializers.CharField()
    start = serializers.DateTimeField()
    end = serializers.DateTimeField()
    status = serializers.CharField()
    occurrence_start = serializers.DateTimeField()
    occurrence_end = serializers.DateTimeField()


class CollisionCheckResultSerializer(serializers.Serializer):
    collision = CollisionSerializer(allow_null=True)
    checked_occurrences = serializers.IntegerField()


class CollisionConflictResponseSerializer(serializers.Serializer):
    detail = serializers.CharField()
    collision = CollisionSerializer()


class DaySlotConflictSerializer(serializers.Serializer):
    slot = serializers.TimeField(format="%H:%M")
    collision = CollisionSerializer()


class OccurrencePreviewResultSerializer(serializers.Serializer):
    occurrences = serializers.ListField(child=serializers.DateTimeField())
    count = serializers.IntegerField()


class AppointmentBookingResultSerializer(serializers.Serializer):
    series_id = serializers.IntegerField(allow_null=True)
    appointments = AppointmentSerializer(many=True)


class EmptyTrashResultSerializer(serializers.Serializer):
    deleted_count = serializers.IntegerField()
