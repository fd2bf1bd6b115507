from .auth_status import AuthStatusUseCase
from .resolve_stream import ResolveStreamUseCase
from .search_catalog import SearchCatalogUseCase, SearchQuery

__all__ = [
    "AuthStatusUseCase",
    "ResolveStreamUseCase",
    "SearchCatalogUseCase",
    "SearchQuery",
]
