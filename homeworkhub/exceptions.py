"""API errors shared by every app that DRF does not ship out of the box."""

from rest_framework import status
from rest_framework.exceptions import APIException


class Conflict(APIException):
    """A unique field (email, classroom code, membership pair) is taken."""

    status_code = status.HTTP_409_CONFLICT
    default_detail = "Resource already exists."
    default_code = "conflict"


class UpstreamFailure(APIException):
    """File conversion or the AI grading service failed."""

    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = "An upstream service failed."
    default_code = "upstream_failure"


class ResourceExhausted(APIException):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "Could not allocate a unique value, try again later."
    default_code = "resource_exhausted"
