"""HTTP transport for the ARES REST API."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import requests

from ..config import API_BASE, DEFAULT_TIMEOUT
from ..errors import TransportUnavailable
from ..utils.logging_setup import setup_logger
from .base import TransportResponse

_BASE_LOGGER = setup_logger()
LOGGER = _BASE_LOGGER.getChild("providers.transport")

_HEADERS = {
    "Accept": "application/json",
    "Content-Type": "application/json",
}


class RequestsTransport:
    """Transport issuing one ``requests`` call per :meth:`send`.

    Non-2xx statuses are returned like any other; only a request that
    produces no response at all raises :class:`TransportUnavailable`.
    """

    def __init__(self, base_url: str = API_BASE, *, timeout: float = DEFAULT_TIMEOUT) -> None:
        if timeout <= 0:
            raise ValueError(f"Timeout must be positive, got {timeout}")
        self.base_url = base_url.rstrip("/")
        self.timeout = float(timeout)

    def send(
        self,
        method: str,
        path: str,
        body: Mapping[str, Any] | None = None,
    ) -> TransportResponse:
        url = f"{self.base_url}{path}"
        LOGGER.debug("%s %s body=%s", method, url, body)

        try:
            response = requests.request(
                method,
                url,
                json=dict(body) if body is not None else None,
                headers=_HEADERS,
                timeout=self.timeout,
            )
        except requests.Timeout as exc:
            raise TransportUnavailable(
                f"ARES API did not answer within {self.timeout:g}s ({url}).", url=url
            ) from exc
        except requests.RequestException as exc:
            raise TransportUnavailable(f"ARES API is unavailable ({url}): {exc}", url=url) from exc

        payload: Any = None
        if response.content:
            try:
                payload = response.json()
            except ValueError:
                LOGGER.debug(
                    "Non-JSON body from %s (HTTP %s)", url, response.status_code
                )

        return TransportResponse(status_code=response.status_code, payload=payload)


__all__ = ["RequestsTransport"]
