from common.types import RouteDict

from .views import UserViewSet


routes: list[RouteDict] = [
    {"regex": r"users", "viewset": UserViewSet, "basename": "Users"},
]
