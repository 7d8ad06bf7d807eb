from django.utils.dateparse import parse_datetime

import django_virtual_models as v
from rest_framework import serializers


class VirtualModelSerializer(v.VirtualModelSerializerMixin, serializers.ModelSerializer):
    pass


class NaiveDateTimeField(serializers.DateTimeField):
    """
    Accepts ISO 8601 datetimes and always hands naive wall-clock values to the
    scheduling core. An explicit offset is dropped, the wall-clock part is kept.
    """

    def to_internal_value(self, value):
        if isinstance(value, str):
            try:
                parsed = parse_datetime(value.strip())
            except ValueError:
                parsed = None
            if parsed is not None:
                return parsed.replace(tzinfo=None)
        return super().to_internal_value(value)
