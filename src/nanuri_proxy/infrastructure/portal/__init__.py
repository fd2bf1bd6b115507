"""Session-and-extraction engine for the nanuri portal."""

from .authenticator import AuthOutcome, AuthState, PortalAuthenticator
from .cookie_jar import PortalSession, merge_cookie_header, split_set_cookie
from .detail import DetailResolver, candidate_urls
from .http_client import PortalHttpClient, PortalResponse
from .search import MAX_SEARCH_RESULTS, PortalSearcher
from .urls import absolute_url

__all__ = [
    "MAX_SEARCH_RESULTS",
    "AuthOutcome",
    "AuthState",
    "DetailResolver",
    "PortalAuthenticator",
    "PortalHttpClient",
    "PortalResponse",
    "PortalSearcher",
    "PortalSession",
    "absolute_url",
    "candidate_urls",
    "merge_cookie_header",
    "split_set_cookie",
]
