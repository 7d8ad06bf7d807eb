from dependency_injector import containers, providers

from scheduling.services.appointment_series_service import AppointmentSeriesService
from scheduling.services.booking_storages.django_booking_storage import DjangoBookingStorage
from scheduling.services.collision_service import CollisionService
from scheduling.services.series_materializer import SeriesMaterializer


class AppContainer(containers.DeclarativeContainer):
    config = providers.Configuration()

    booking_storage = providers.Factory(
        DjangoBookingStorage,
    )

    collision_service = providers.Factory(
        CollisionService,
        booking_storage=booking_storage,
    )

    series_materializer = providers.Factory(
        SeriesMaterializer,
        collision_service=collision_service,
    )

    appointment_series_service = providers.Factory(
        AppointmentSeriesService,
        booking_storage=booking_storage,
        series_materializer=series_materializer,
        max_series_instances=config.SCHEDULING_MAX_SERIES_INSTANCES,
        max_on_date_count=config.SCHEDULING_MAX_AFTER_COUNT,
    )


container: AppContainer | None = None  # set during app startup
