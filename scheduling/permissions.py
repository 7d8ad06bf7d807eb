from rest_framework.permissions import BasePermission


class AppointmentPermission(BasePermission):
    """
    Authenticated users manage their own appointments, admins manage everyone's.
    """

    def has_permission(self, request, view):
        return request.user.is_authenticated

    def has_object_permission(self, request, view, obj):
        if request.user.is_admin:
            return True
        return obj.created_for_id == request.user.pk
