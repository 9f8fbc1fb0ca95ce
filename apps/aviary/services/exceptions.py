"""Domain-specific exceptions for aviary services."""


class AviaryServiceError(Exception):
    """Base exception for aviary services."""
    pass


class EntityValidationError(AviaryServiceError):
    """Raised when an entity or an update is rejected before any state change."""
    pass


class UnknownCategoryError(EntityValidationError):
    """Raised when a category tag does not name an entity type."""
    pass


class DuplicateItemError(EntityValidationError):
    """Raised when an added entity reuses an id already in the collection."""
    pass


class RemoteSyncError(AviaryServiceError):
    """Raised by a remote store when persisting a mutation fails."""
    pass
