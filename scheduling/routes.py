from common.types import RouteDict
from scheduling.views import AppointmentSeriesViewSet, AppointmentViewSet


routes: list[RouteDict] = [
    {"regex": r"appointments", "viewset": AppointmentViewSet, "basename": "Appointments"},
    {
        "regex": r"appointment-series",
        "viewset": AppointmentSeriesViewSet,
        "basename": "AppointmentSeries",
    },
]
