"""
Custom exceptions for AniCatalog operations.

Use cases raise these; CLI commands translate them into operator messages
and exit codes.
"""


class AniCatalogError(Exception):
    """Base exception for all AniCatalog errors."""

    pass


class ValidationError(AniCatalogError):
    """Raised when validation fails."""

    pass


class BusinessRuleError(AniCatalogError):
    """Raised when business rule violation occurs."""

    pass


class OperationError(AniCatalogError):
    """Raised when operation fails."""

    pass


class CatalogImportError(OperationError):
    """Raised when persisting one imported record fails."""

    def __init__(self, external_id: int, message: str):
        super().__init__(f"Import of {external_id} failed: {message}")
        self.external_id = external_id


class ResolutionError(OperationError):
    """Raised when a series placement decision cannot be applied."""

    pass


class MergeError(OperationError):
    """Raised when a merge group is aborted. No member of the group was modified."""

    def __init__(self, series_ids: list[int], message: str):
        super().__init__(f"Merge of series {series_ids} aborted: {message}")
        self.series_ids = list(series_ids)
