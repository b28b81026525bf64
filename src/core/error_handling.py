"""
Error handling for the Google Drive cleaner.

This module provides the exception taxonomy used by the cleaner, conversion of
Google API errors into that taxonomy, and decorators that add timing and error
context logging around Drive operations and HTTP endpoints.
"""

import functools
import time
from typing import Any, Callable, Optional

from googleapiclient.errors import HttpError

from .logging_config import get_logger, log_error_context


# Custom exception classes for Google Drive operations
class DriveOperationError(Exception):
    """Base exception for Google Drive operation errors."""

    pass


class InvalidArgumentError(DriveOperationError, ValueError):
    """Exception raised when a required input is missing or empty."""

    pass


class ConfigurationError(InvalidArgumentError):
    """Exception raised when configuration is invalid."""

    pass


class OperationCanceledError(DriveOperationError):
    """Exception raised when the user cancels a running operation."""

    pass


class DriveAPIError(DriveOperationError):
    """Exception raised when Google Drive API calls fail."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class DriveAuthenticationError(DriveAPIError):
    """Exception raised when Google Drive authentication fails."""

    pass


class DriveNotFoundError(DriveAPIError):
    """Exception raised when a listed resource does not exist."""

    pass


class DriveQuotaError(DriveAPIError):
    """Exception raised when quota limits are exceeded."""

    pass


class DriveRateLimitError(DriveAPIError):
    """Exception raised when rate limits are exceeded."""

    pass


class ItemDeleteError(DriveOperationError):
    """Exception raised when a single file or folder cannot be deleted."""

    def __init__(self, message: str, item_id: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.item_id = item_id
        self.status_code = status_code


def handle_drive_operations(operation_name: str, component: str = "drive_operations"):
    """
    Decorator for handling Google Drive operations with enhanced logging.

    Errors from the cleaner's own taxonomy are re-raised unchanged with a
    debug record, since the entry point reports them;
    HttpError is converted into the matching DriveAPIError subclass, and any
    other exception is wrapped in DriveOperationError.

    Args:
        operation_name: Name of the operation being performed
        component: Component name for logging context
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            logger = get_logger(func.__module__, component)
            start_time = time.time()

            logger.debug(f"Starting {operation_name}")

            try:
                result = func(*args, **kwargs)

                duration = time.time() - start_time
                logger.debug(f"Successfully completed {operation_name} in {duration:.2f}s")

                return result

            except OperationCanceledError:
                # Cancellation is not a failure of the operation
                raise

            except DriveOperationError as e:
                # Already typed; the entry point reports it once
                duration = time.time() - start_time
                logger.debug(
                    f"{operation_name} failed after {duration:.2f}s with {e.__class__.__name__}",
                    extra={"context": {"operation": operation_name, "duration": duration}},
                )
                raise

            except HttpError as e:
                duration = time.time() - start_time
                context = {
                    "operation": operation_name,
                    "duration": duration,
                    "status_code": e.resp.status if e.resp else "unknown",
                    "args_count": len(args),
                    "kwargs_keys": list(kwargs.keys()),
                }

                drive_error = convert_http_error(e, operation_name)
                log_error_context(logger, drive_error, operation_name, context)
                raise drive_error from e

            except Exception as e:
                duration = time.time() - start_time
                context = {
                    "operation": operation_name,
                    "duration": duration,
                    "args_count": len(args),
                    "kwargs_keys": list(kwargs.keys()),
                }

                wrapped_error = DriveOperationError(f"Unexpected error in {operation_name}: {str(e)}")
                log_error_context(logger, wrapped_error, operation_name, context)
                raise wrapped_error from e

        return wrapper

    return decorator


def handle_api_errors(operation_name: str, component: str = "api"):
    """
    Decorator for handling API errors with enhanced logging.

    Args:
        operation_name: Name of the API operation being performed
        component: Component name for logging context
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            logger = get_logger(func.__module__, component)
            start_time = time.time()

            logger.info(f"Starting {operation_name}")

            try:
                result = func(*args, **kwargs)
                duration = time.time() - start_time
                logger.info(f"Successfully completed {operation_name} in {duration:.2f}s")
                return result

            except Exception as e:
                duration = time.time() - start_time
                context = {
                    "operation": operation_name,
                    "duration": duration,
                    "args_count": len(args),
                    "kwargs_keys": list(kwargs.keys()),
                }

                log_error_context(logger, e, operation_name, context)
                raise

        return wrapper

    return decorator


def require_non_empty(value: Any, field_name: str) -> str:
    """Return ``value`` if it is a non-blank string, else raise InvalidArgumentError."""
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgumentError(f"{field_name} must be a non-empty string")
    return value


def validate_drive_parameters(
    service: Optional[Any] = None,
    page_size: Optional[int] = None,
) -> None:
    """
    Validate Google Drive operation parameters.

    Only the arguments that are passed are checked. Required names and
    identifiers are checked with require_non_empty.

    Args:
        service: Google Drive service instance
        page_size: Requested listing page size

    Raises:
        InvalidArgumentError: If parameters are invalid
    """
    if page_size is not None and (isinstance(page_size, bool) or not isinstance(page_size, int) or page_size < 1):
        raise InvalidArgumentError("page_size must be a positive integer")

    if service is not None and not hasattr(service, "files"):
        raise InvalidArgumentError("service must be a valid Google Drive service instance")


def convert_http_error(http_error: HttpError, operation: str) -> DriveAPIError:
    """Convert HttpError to appropriate Drive exception."""
    status_code = http_error.resp.status if http_error.resp else 0
    error_details = str(http_error)
    content = http_error.content.decode("utf-8", errors="replace") if isinstance(http_error.content, bytes) else ""

    # Authentication errors
    if status_code == 401:
        return DriveAuthenticationError(f"Authentication failed in {operation}: {error_details}", status_code)

    # Rate limiting errors
    if status_code == 429:
        return DriveRateLimitError(f"Rate limit exceeded in {operation}: {error_details}", status_code)

    # Quota errors
    if status_code == 403 and "quota" in f"{error_details} {content}".lower():
        return DriveQuotaError(f"Quota exceeded in {operation}: {error_details}", status_code)

    # File/folder not found
    if status_code == 404:
        return DriveNotFoundError(f"File or folder not found in {operation}: {error_details}", status_code)

    # Generic API error, server errors included
    return DriveAPIError(f"Google Drive API error in {operation}: {error_details}", status_code)
