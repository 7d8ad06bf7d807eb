from common.utils.serializer_utils import VirtualModelSerializer

from .models import User
from .virtual_models import UserVirtualModel


class UserSerializer(VirtualModelSerializer):
    class Meta:  # type: ignore
        model = User
        virtual_model = UserVirtualModel
        fields = [  # noqa: RUF012
            "id",
            "email",
            "first_name",
            "last_name",
            "role",
            "is_active",
            "created",
            "modified",
        ]
        read_only_fields = fields
