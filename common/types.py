from typing import TypedDict

from rest_framework.viewsets import GenericViewSet, ModelViewSet, ViewSet, ViewSetMixin


class RouteDict(TypedDict):
    """
    A router registration entry: URL prefix, the viewset served under it and
    the basename used to build the `api:<basename>-<action>` URL names.
    """

    regex: str
    viewset: type[GenericViewSet] | type[ViewSet] | type[ModelViewSet] | type[ViewSetMixin]
    basename: str
