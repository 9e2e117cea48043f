"""Provider base interfaces and shared types."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, NamedTuple, Optional, Protocol


class TransportResponse(NamedTuple):
    """Status code and decoded JSON body of a single HTTP exchange.

    ``payload`` holds plain dicts and lists, or ``None`` for an empty or
    non-JSON body.
    """

    status_code: int
    payload: Any


class Transport(Protocol):
    """Protocol for performing one request against the registry endpoint."""

    def send(
        self,
        method: str,
        path: str,
        body: Optional[Mapping[str, Any]] = None,
    ) -> TransportResponse:
        """Issue *method* against *path* and return whatever status came back."""

        ...
