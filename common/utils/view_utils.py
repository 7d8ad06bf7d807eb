import django_virtual_models as v
from rest_framework import mixins
from rest_framework.viewsets import GenericViewSet


class FilterOnlyOnListMixin:
    def filter_queryset(self, queryset):
        if self.action != "list":
            return queryset
        return super().filter_queryset(queryset)


class ReadOnlyAppointmentsModelViewSet(
    FilterOnlyOnListMixin,
    v.GenericVirtualModelViewMixin,
    mixins.RetrieveModelMixin,
    mixins.ListModelMixin,
    GenericViewSet,
):
    """
    A viewset that provides `list()` and `retrieve()` through a virtual model
    optimized queryset. Writes are exposed as explicit actions on subclasses,
    because they go through the scheduling services instead of the serializer.
    """

    pass
