"""
Core Utilities

Common utility functions used across the policy bootstrap tool.
"""

import logging
import re
from typing import Type
from urllib.parse import urlparse

import urllib3

from .constants import ErrorMessages
from .exceptions import AuthenticationError, BootstrapError, ConfigurationError


def setup_logging(debug: bool = False) -> None:
    """
    Set up logging configuration for the application.

    Args:
        debug: Enable debug logging level
    """
    level = logging.DEBUG if debug else logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # Keep client chatter out of normal runs
    urllib3_level = logging.WARNING if debug else logging.ERROR
    logging.getLogger('urllib3').setLevel(urllib3_level)
    logging.getLogger('kubernetes').setLevel(urllib3_level)

    if debug:
        logging.getLogger(__name__).debug("Debug mode enabled")


def disable_ssl_warnings() -> None:
    """Disable SSL warnings when --skip-tls is used"""
    urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)


def mask_sensitive_info(text: str, url: str = None, token: str = None) -> str:
    """
    Mask cluster URLs and bearer tokens before they reach the logs.

    Token prefixes such as ``sha256~`` are kept so the token type stays visible.
    Only the scheme survives of a masked URL.
    """
    if not text:
        return text

    if token and token in text:
        prefix = token.split('~')[0] + '~' if '~' in token else ''
        text = text.replace(token, f"{prefix}***MASKED***")

    if url and url in text:
        scheme = urlparse(url).scheme or "https"
        text = text.replace(url, f"{scheme}://****")

    text = re.sub(r'Bearer [A-Za-z0-9+/=_-]+', 'Bearer ***MASKED***', text)
    return re.sub(r'sha256~[A-Za-z0-9_-]+', 'sha256~***MASKED***', text)


def validate_namespace(namespace: str) -> bool:
    """
    Validate if the provided string is a valid Kubernetes namespace.

    Args:
        namespace: Kubernetes namespace to validate

    Returns:
        bool: True if valid namespace

    Raises:
        ConfigurationError: If namespace is invalid
    """
    if not namespace or not isinstance(namespace, str):
        raise ConfigurationError("Namespace cannot be empty")

    if len(namespace) > 63:
        raise ConfigurationError(f"Namespace too long (max 63 chars): {namespace}")

    if not re.match(r'^[a-z0-9]([-a-z0-9]*[a-z0-9])?$', namespace):
        raise ConfigurationError(ErrorMessages.ConfigError.INVALID_NAMESPACE.format(namespace=namespace))

    return True


def validate_openshift_url(url: str) -> bool:
    """
    Validate if the provided string is a valid OpenShift API URL.

    Args:
        url: OpenShift API URL to validate

    Returns:
        bool: True if valid URL

    Raises:
        ConfigurationError: If URL is invalid
    """
    if not url or not isinstance(url, str):
        raise ConfigurationError("OpenShift URL cannot be empty")

    if not re.match(r'^https?:\/\/[a-zA-Z0-9.-]+(?:\:[0-9]+)?(?:\/.*)?$', url):
        raise ConfigurationError(ErrorMessages.ConfigError.INVALID_OPENSHIFT_URL.format(url=url))

    return True


def handle_ssl_error(error: Exception, exception_class: Type[BootstrapError] = AuthenticationError) -> None:
    """
    Centralized SSL error handling with user-friendly messages

    Args:
        error: The caught exception
        exception_class: The specific exception class to raise

    Raises:
        BootstrapError: Appropriate error type with user-friendly message
    """
    error_str = str(error)

    if "certificate verify failed" in error_str or "CERTIFICATE_VERIFY_FAILED" in error_str:
        raise exception_class(str(ErrorMessages.SSLError.CERT_VERIFICATION_FAILED))
    elif "SSLError" in error_str or "SSL:" in error_str:
        raise exception_class(ErrorMessages.SSLError.CONNECTION_ERROR.format(error=error))
    raise exception_class(f"Connection error: {error}")


def handle_api_error(error: Exception, exception_class: Type[BootstrapError] = AuthenticationError) -> None:
    """
    Centralized API error handling for Kubernetes API exceptions

    Args:
        error: The caught exception (ApiException or other)
        exception_class: The specific exception class to raise

    Raises:
        BootstrapError: Appropriate error type with user-friendly message
    """
    status = getattr(error, 'status', None)
    error_str = str(error).lower()

    if status == 401 or "unauthorized" in error_str:
        raise exception_class(str(ErrorMessages.AuthError.UNAUTHORIZED))

    if status == 403 or "forbidden" in error_str:
        raise exception_class(str(ErrorMessages.AuthError.FORBIDDEN))

    if any(indicator in error_str for indicator in ["ssl", "certificate", "tls"]):
        handle_ssl_error(error, exception_class)

    raise exception_class(f"API error: {error}")
