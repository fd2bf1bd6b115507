from .portal import (
    AuthError,
    AuthStatus,
    PageWindow,
    PortalError,
    SearchOutcome,
    SearchRecord,
    StreamDescriptor,
    StreamNotFoundError,
    TransportError,
    UpstreamFetchError,
    ValidationError,
)

__all__ = [
    "AuthError",
    "AuthStatus",
    "PageWindow",
    "PortalError",
    "SearchOutcome",
    "SearchRecord",
    "StreamDescriptor",
    "StreamNotFoundError",
    "TransportError",
    "UpstreamFetchError",
    "ValidationError",
]
