"""Provider implementations for ``areslookup``."""

from .ares import AresClient, classify_response
from .base import Transport, TransportResponse
from .transport import RequestsTransport

__all__ = [
    "AresClient",
    "RequestsTransport",
    "Transport",
    "TransportResponse",
    "classify_response",
]
