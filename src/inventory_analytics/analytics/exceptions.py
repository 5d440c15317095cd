"""Custom exception classes for the inventory analytics engine."""


class InventoryAnalyticsError(Exception):
    """Base exception for the analytics engine."""
    pass


class ValidationError(InventoryAnalyticsError):
    """Malformed transaction or query input, rejected before any write."""
    pass


class AuthContextError(InventoryAnalyticsError):
    """No user or group context available for an operation that needs one."""
    pass


class StoreUnavailableError(InventoryAnalyticsError):
    """The transaction store failed or timed out."""
    pass


class ComputationError(InventoryAnalyticsError):
    """Unexpected failure inside the aggregation pipeline."""
    pass
