"""
Core Libraries

Shared functionality and utilities for the policy bootstrap tool.
"""

from .auth import OpenShiftAuth
from .config import BootstrapConfig, ConfigManager
from .exceptions import (
    AlreadyExistsError, AuthenticationError, BootstrapError, ConfigurationError,
    ConflictError, ConversionError, NotFoundError, PolicyLoadError, StoreError
)
from .retry import RetryPolicy, optimistic_update, retry_on_conflict
from .utils import setup_logging, disable_ssl_warnings

__all__ = [
    'OpenShiftAuth',
    'BootstrapConfig',
    'ConfigManager',
    'BootstrapError',
    'ConfigurationError',
    'AuthenticationError',
    'StoreError',
    'NotFoundError',
    'AlreadyExistsError',
    'ConflictError',
    'PolicyLoadError',
    'ConversionError',
    'RetryPolicy',
    'optimistic_update',
    'retry_on_conflict',
    'setup_logging',
    'disable_ssl_warnings'
]
