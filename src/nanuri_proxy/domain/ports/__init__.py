from .portal import PortalSearchPort, SessionStatusPort, StreamResolverPort

__all__ = [
    "PortalSearchPort",
    "SessionStatusPort",
    "StreamResolverPort",
]
