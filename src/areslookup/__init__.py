"""Caching client for the Czech ARES business registry."""

from .cache import CacheStore, MemoryStore, RegistryCache
from .config import Settings, parse_duration
from .errors import (
    ApiError,
    NotFound,
    RegistryError,
    TransportUnavailable,
    ValidationError,
)
from .ico import normalize_ico
from .providers import AresClient, RequestsTransport, Transport, TransportResponse, classify_response
from .result import CompanyRecord, RegistryResult
from .utils.logging_setup import setup_logger

__all__ = [
    "AresClient",
    "ApiError",
    "CacheStore",
    "CompanyRecord",
    "MemoryStore",
    "NotFound",
    "RegistryCache",
    "RegistryError",
    "RegistryResult",
    "RequestsTransport",
    "Settings",
    "Transport",
    "TransportResponse",
    "TransportUnavailable",
    "ValidationError",
    "classify_response",
    "normalize_ico",
    "parse_duration",
    "setup_logger",
]
