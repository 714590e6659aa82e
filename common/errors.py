"""Base error type shared by domain services.

Services raise subclasses carrying a machine-readable ``code`` and the HTTP
status a view should answer with; views translate them via ``error_response``.
"""

from rest_framework import status
from rest_framework.response import Response


class ServiceError(Exception):
    code = "error"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Unable to process request."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


def error_response(exc: ServiceError) -> Response:
    return Response({"detail": exc.message, "code": exc.code}, status=exc.status_code)


def validation_error_response(errors) -> Response:
    return Response({"detail": errors, "code": "invalid_request"}, status=status.HTTP_400_BAD_REQUEST)
