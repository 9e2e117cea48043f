"""ARES lookup client: normalisation, caching and response classification."""

from __future__ import annotations

import enum
import hashlib
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from diskcache import Cache

from ..cache import CacheStore, RegistryCache
from ..config import DEFAULT_CACHE_TTL, Settings
from ..errors import ApiError, NotFound, RegistryError, TransportUnavailable, ValidationError
from ..ico import normalize_ico
from ..result import RegistryResult
from ..utils.logging_setup import setup_logger
from .base import Transport, TransportResponse
from .transport import RequestsTransport

_BASE_LOGGER = setup_logger()
LOGGER = _BASE_LOGGER.getChild("providers.ares")

NOT_FOUND_CODE = "NENALEZENO"
MIN_SEARCH_LENGTH = 3
DEFAULT_SEARCH_LIMIT = 10

_SUBJECT_PATH = "/ekonomicke-subjekty/{ico}"
_SEARCH_PATH = "/ekonomicke-subjekty/vyhledat"


class ResponseKind(enum.Enum):
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    API_ERROR = "api_error"


@dataclass(frozen=True)
class Classification:
    kind: ResponseKind
    status_code: int
    message: str | None = None


def classify_response(status_code: int, payload: Any) -> Classification:
    """Map an HTTP status and ARES error fields to the outcome of a request.

    A 404 status is checked before the ``kod == "NENALEZENO"`` marker; any
    other status >= 400 is an API error whose message prefers ``popis``, then
    ``kod``, then the bare HTTP status.
    """

    fields: Mapping[str, Any] = payload if isinstance(payload, Mapping) else {}

    if status_code == 404 or fields.get("kod") == NOT_FOUND_CODE:
        return Classification(ResponseKind.NOT_FOUND, status_code)

    if status_code >= 400:
        message = fields.get("popis") or fields.get("kod") or f"HTTP {status_code}"
        return Classification(ResponseKind.API_ERROR, status_code, str(message))

    return Classification(ResponseKind.SUCCESS, status_code)


def _search_cache_key(name: str, limit: int) -> str:
    digest = hashlib.md5(f"{name}|{limit}".encode("utf-8")).hexdigest()
    return f"search.{digest}"


class AresClient:
    """Caching client for the ARES economic subjects API."""

    def __init__(
        self,
        store: CacheStore | None = None,
        cache_ttl: str | int | float | timedelta = DEFAULT_CACHE_TTL,
        *,
        transport: Transport | None = None,
        namespace: str = "ares",
    ) -> None:
        self._cache = RegistryCache(store, namespace=namespace, ttl=cache_ttl)
        self._transport: Transport = transport if transport is not None else RequestsTransport()

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> AresClient:
        """Build a client from :class:`Settings` (environment by default)."""

        settings = settings or Settings.from_env()
        store: CacheStore | None = None
        if settings.cache_dir:
            store = Cache(settings.cache_dir)
        return cls(
            store,
            settings.cache_ttl,
            transport=RequestsTransport(settings.base_url, timeout=settings.timeout),
        )

    @property
    def cache(self) -> RegistryCache:
        return self._cache

    def find_by_ico(self, ico: str) -> RegistryResult:
        """Look up a subject by its IČO.

        Raises:
            ValidationError: *ico* is not a valid identification number.
            NotFound: ARES has no subject with this IČO.
            ApiError: ARES answered with another error status.
            TransportUnavailable: ARES could not be reached or read.
        """

        ico = normalize_ico(ico)

        def _fetch() -> RegistryResult:
            LOGGER.debug("Fetching ARES subject %s", ico)
            response = self._transport.send("GET", _SUBJECT_PATH.format(ico=ico))
            outcome = classify_response(response.status_code, response.payload)
            if outcome.kind is ResponseKind.NOT_FOUND:
                raise NotFound(ico)
            if outcome.kind is ResponseKind.API_ERROR:
                raise ApiError(outcome.message or "", outcome.status_code, subject=ico)
            return RegistryResult.from_api(self._require_object(response, ico))

        return self._cache.get_or_compute(f"ico.{ico}", _fetch)

    def search_by_name(self, name: str, limit: int = DEFAULT_SEARCH_LIMIT) -> list[RegistryResult]:
        """Search subjects by (part of) their business name.

        Returns an empty list when ARES finds nothing; results keep the order
        ARES returned them in.
        """

        name = name.strip()
        if len(name) < MIN_SEARCH_LENGTH:
            raise ValidationError(
                f"Search term '{name}' is too short: at least {MIN_SEARCH_LENGTH} characters required.",
                subject=name,
            )
        if limit < 1:
            raise ValidationError(f"Search limit must be at least 1, got {limit}.", subject=name)

        def _fetch() -> list[RegistryResult]:
            LOGGER.debug("Searching ARES for '%s' (limit=%s)", name, limit)
            response = self._transport.send(
                "POST",
                _SEARCH_PATH,
                {"obchodniJmeno": name, "start": 0, "pocet": limit},
            )
            outcome = classify_response(response.status_code, response.payload)
            if outcome.kind is ResponseKind.NOT_FOUND:
                LOGGER.info("ARES search for '%s' found nothing", name)
                return []
            if outcome.kind is ResponseKind.API_ERROR:
                raise ApiError(outcome.message or "", outcome.status_code, subject=name)

            payload = self._require_object(response, name)
            subjects = payload.get("ekonomickeSubjekty") or []
            return [
                RegistryResult.from_api(subject)
                for subject in subjects
                if isinstance(subject, Mapping)
            ]

        return self._cache.get_or_compute(_search_cache_key(name, limit), _fetch)

    def is_active(self, ico: str) -> bool:
        """Return whether the subject exists and has no dissolution date.

        Any lookup failure counts as "cannot confirm active" and yields ``False``.
        """

        try:
            result = self.find_by_ico(ico)
        except RegistryError as exc:
            LOGGER.info("Cannot confirm that %s is active: %s", ico, exc)
            return False
        return result.is_active

    def get_tax_id(self, ico: str) -> str | None:
        """Return the VAT ID (DIČ) for *ico*, or ``None`` if it has none."""

        return self.find_by_ico(ico).dic

    def clear_cache(self) -> int:
        """Drop all cached ARES lookups and searches."""

        return self._cache.invalidate_all()

    def clear_cache_by_ico(self, ico: str) -> bool:
        return self._cache.invalidate(f"ico.{normalize_ico(ico)}")

    def close(self) -> None:
        """Release the cache store, e.g. the disk cache opened by :meth:`from_settings`."""

        self._cache.close()

    def __enter__(self) -> AresClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @staticmethod
    def _require_object(response: TransportResponse, subject: str) -> Mapping[str, Any]:
        if not isinstance(response.payload, Mapping):
            raise TransportUnavailable(
                f"ARES returned an unreadable response for '{subject}' (HTTP {response.status_code}).",
                subject=subject,
            )
        return response.payload


__all__ = [
    "AresClient",
    "Classification",
    "NOT_FOUND_CODE",
    "ResponseKind",
    "classify_response",
]
