"""
Exceptions Module

Exception hierarchy for the policy bootstrap tool. Store operations signal
their outcome through the four store errors; everything else derives from
the same base so callers can catch one type.
"""


class BootstrapError(Exception):
    """Base exception for all policy bootstrap errors"""
    pass


class ConfigurationError(BootstrapError):
    """Raised when configuration is missing or invalid"""
    pass


class AuthenticationError(BootstrapError):
    """Raised when the cluster client cannot be configured"""
    pass


class StoreError(BootstrapError):
    """Unexpected failure reported by a backing store"""

    def __init__(self, message: str, status: int = None, reason: str = None):
        super().__init__(message)
        self.status = status
        self.reason = reason


class NotFoundError(StoreError):
    """The requested object does not exist"""
    pass


class AlreadyExistsError(StoreError):
    """An object with the same identity already exists"""
    pass


class ConflictError(StoreError):
    """The object was modified since it was read (stale resource version)"""
    pass


class PolicyLoadError(BootstrapError):
    """Raised when the bootstrap policy file cannot be read or applied"""
    pass


class ConversionError(BootstrapError):
    """Raised when a legacy RBAC object cannot be converted"""
    pass
