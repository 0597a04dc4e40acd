"""Remote catalog sources."""

from .base import (
    CatalogError,
    CatalogNotFoundError,
    CatalogResponseError,
    CatalogSource,
    CatalogTransientError,
)
from .jikan_client import JikanClient

__all__ = [
    "CatalogError",
    "CatalogNotFoundError",
    "CatalogResponseError",
    "CatalogSource",
    "CatalogTransientError",
    "JikanClient",
]
