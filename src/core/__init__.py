"""
Core modules for the Google Drive cleaner.

This package contains the logging, error handling and cancellation
infrastructure shared by the cleaner, its command line entry point and its
HTTP service.
"""

from .cancellation import CancellationToken
from .error_handling import (
    ConfigurationError,
    DriveAPIError,
    DriveAuthenticationError,
    DriveNotFoundError,
    DriveOperationError,
    DriveQuotaError,
    DriveRateLimitError,
    InvalidArgumentError,
    ItemDeleteError,
    OperationCanceledError,
    convert_http_error,
    handle_api_errors,
    handle_drive_operations,
    require_non_empty,
    validate_drive_parameters,
)
from .logging_config import configure_logging, get_logger, log_drive_metrics, log_error_context

__all__ = [
    # Cancellation
    "CancellationToken",
    # Error handling
    "ConfigurationError",
    "DriveAPIError",
    "DriveAuthenticationError",
    "DriveNotFoundError",
    "DriveOperationError",
    "DriveQuotaError",
    "DriveRateLimitError",
    "InvalidArgumentError",
    "ItemDeleteError",
    "OperationCanceledError",
    "convert_http_error",
    "handle_api_errors",
    "handle_drive_operations",
    "require_non_empty",
    "validate_drive_parameters",
    # Logging
    "configure_logging",
    "get_logger",
    "log_drive_metrics",
    "log_error_context",
]
