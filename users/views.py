from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework.permissions import IsAuthenticated

from common.utils.view_utils import ReadOnlyAppointmentsModelViewSet
from users.models import User
from users.serializers import UserSerializer


class UserViewSet(ReadOnlyAppointmentsModelViewSet):
    """
    Admins see every active user (to pick whom a booking is for); regular users
    only see themselves.
    """

    serializer_class = UserSerializer
    queryset = User.objects.filter(is_active=True).order_by("last_name", "first_name", "email")
    permission_classes = (IsAuthenticated,)

    def get_queryset(self):
        queryset = super().get_queryset()
        if self.request.user.is_admin:
            return queryset
        return queryset.filter(pk=self.request.user.pk)

    def get_object(self):
        if self.kwargs.get("pk") == "me":
            self.kwargs["pk"] = str(self.request.user.pk)
        return super().get_object()

    @extend_schema(
        parameters=[
            OpenApiParameter(
                "id",
                location="path",
                required=True,
                description="User ID to retrieve. Use 'me' to refer to the currently authenticated user.",
                type={"type": "string"},
            )
        ],
    )
    def retrieve(self, request, *args, **kwargs):
        return super().retrieve(request, *args, **kwargs)
