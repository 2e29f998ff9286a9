"""Error types shared by the geodesy, provider and synthesis modules."""

from __future__ import annotations


class InvalidArgument(ValueError):
    """Raised when an input cannot be used to build a trip.

    Carries the offending argument name and the received value so the CLI can
    report exactly what was rejected.
    """

    def __init__(self, name: str, value, reason: str = "invalid value"):
        self.name = name
        self.value = value
        self.reason = reason
        super().__init__(f"{name}: {reason} (got {value!r})")


class ProviderError(RuntimeError):
    """Base error for elevation and directions service failures."""


class ProviderUnavailable(ProviderError):
    """Raised when a service cannot be reached or returns an unusable body."""


class ProviderStatusNotOK(ProviderError):
    """Raised when a service answers with a status other than OK."""

    def __init__(self, service: str, status: str):
        self.service = service
        self.status = status
        super().__init__(f"{service} returned status {status}")


__all__ = [
    "InvalidArgument",
    "ProviderError",
    "ProviderUnavailable",
    "ProviderStatusNotOK",
]
