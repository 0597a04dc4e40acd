"""
Catalog source contract.

A catalog source pages through the "top entries" listing and fetches full
records by external id. Sources return validated schema objects and raise
``CatalogError`` subclasses instead of leaking transport exceptions.
"""

from __future__ import annotations

from typing import Protocol

from ...shared.schemas import CatalogPage, CatalogRecord


class CatalogError(Exception):
    """Base exception for catalog source failures."""

    pass


class CatalogNotFoundError(CatalogError):
    """The requested page or record does not exist (HTTP 404)."""

    pass


class CatalogTransientError(CatalogError):
    """Timeout, connection failure or server error; the caller may retry later."""

    pass


class CatalogResponseError(CatalogError):
    """The source answered with a payload that does not validate."""

    pass


class CatalogSource(Protocol):
    """Contract for catalog sources."""

    def get_top_page(self, page: int) -> CatalogPage:
        """Fetch one page of the top listing (1-based)."""
        ...

    def get_full_record(self, external_id: int) -> CatalogRecord:
        """Fetch the full record for ``external_id``."""
        ...
