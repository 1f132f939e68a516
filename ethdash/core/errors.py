from __future__ import annotations

from typing import Any


class DashboardError(Exception):
    """Base error; rendered by the API as ``{"error": message}`` with ``status_code``."""

    status_code: int = 500

    def __init__(self, message: str, details: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} ({self.details})"
        return self.message


class MissingParameter(DashboardError):
    status_code = 400


class InvalidParameter(DashboardError):
    status_code = 400


class MissingCredential(DashboardError):
    status_code = 500


class UpstreamFailure(DashboardError):
    """Explorer envelope reported ``status != "1"``."""

    status_code = 400

    def __init__(self, message: str, details: Any = None, result: Any = None) -> None:
        super().__init__(message, details)
        self.result = result


class TransportFailure(DashboardError):
    status_code = 500


class InvalidDate(DashboardError):
    status_code = 500


class InvalidAmount(DashboardError):
    status_code = 500


# Errors whose own message reaches the client; anything else becomes a generic 500.
REPORTED_ERRORS: tuple[type[DashboardError], ...] = (
    MissingParameter,
    InvalidParameter,
    MissingCredential,
    UpstreamFailure,
)
