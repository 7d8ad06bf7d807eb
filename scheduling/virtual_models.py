import django_virtual_models as v

from scheduling.models import Appointment, AppointmentSeries
from users.virtual_models import UserVirtualModel


class AppointmentVirtualModel(v.VirtualModel):
    created_for = UserVirtualModel()

    class Meta:
        model = Appointment


class AppointmentSeriesVirtualModel(v.VirtualModel):
    created_for = UserVirtualModel()

    class Meta:
        model = AppointmentSeries
