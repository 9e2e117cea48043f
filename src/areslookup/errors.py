"""Error taxonomy raised by the ARES client.

Every failure a lookup can report derives from :class:`RegistryError`:

* :class:`ValidationError` - the input was rejected before any request.
* :class:`NotFound` - ARES reports no subject for the requested IČO.
* :class:`ApiError` - ARES answered with another error status.
* :class:`TransportUnavailable` - no usable response could be obtained.
"""

from __future__ import annotations


class RegistryError(RuntimeError):
    """Base class for all ARES lookup failures.

    Attributes:
        message: Human readable description, also used as ``str(exc)``.
        status_code: HTTP status associated with the failure, if any.
        subject: The IČO or search term the failure relates to.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        subject: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.subject = subject


class ValidationError(RegistryError):
    """Input rejected before contacting ARES (bad IČO, short search term)."""

    def __init__(self, message: str, *, subject: str | None = None) -> None:
        super().__init__(message, subject=subject)


class NotFound(RegistryError):
    """ARES authoritatively reports that no subject has the given IČO."""

    def __init__(self, ico: str) -> None:
        super().__init__(
            f"Subject with IČO '{ico}' was not found in ARES.",
            status_code=404,
            subject=ico,
        )
        self.ico = ico


class ApiError(RegistryError):
    """ARES responded with an error status other than not-found."""

    def __init__(self, detail: str, status_code: int, *, subject: str | None = None) -> None:
        where = f" for '{subject}'" if subject else ""
        super().__init__(
            f"ARES API error{where} (HTTP {status_code}): {detail}",
            status_code=status_code,
            subject=subject,
        )
        self.detail = detail


class TransportUnavailable(RegistryError):
    """The request could not be completed (connection, timeout, unreadable body)."""

    def __init__(self, message: str, *, url: str | None = None, subject: str | None = None) -> None:
        super().__init__(message, subject=subject)
        self.url = url


__all__ = [
    "RegistryError",
    "ValidationError",
    "NotFound",
    "ApiError",
    "TransportUnavailable",
]
