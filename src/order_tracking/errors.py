# src/order_tracking/errors.py
from __future__ import annotations


class TrackingError(RuntimeError):
    """Base class for errors raised by the tracking lookup pipeline."""


class ValidationError(TrackingError):
    """Raised when the order number or contact is missing or malformed."""


class UpstreamUnavailable(TrackingError):
    """Raised when the commerce platform API cannot be reached or rejects the call.

    `status_code` carries the HTTP status when the platform answered.
    """

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class CarrierUnavailable(TrackingError):
    """Raised inside a carrier adapter when a live call yields nothing usable.

    Never leaves the carrier tracking client; it always resolves to a
    fallback snapshot.
    """


class AnalyticsFailure(TrackingError):
    """Raised when a tracking view cannot be persisted."""


class ConfigError(TrackingError):
    """Raised when required environment variables are missing."""


__all__ = [
    "TrackingError",
    "ValidationError",
    "UpstreamUnavailable",
    "CarrierUnavailable",
    "AnalyticsFailure",
    "ConfigError",
]
