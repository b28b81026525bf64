"""Utility functions for throttling Drive API calls and describing their errors."""

import functools
import logging
import time
from typing import Any, Callable, Dict, TypeVar

from googleapiclient.errors import HttpError

logger = logging.getLogger(__name__)

# Type variable for generic function return type
T = TypeVar("T")


def rate_limit(calls_per_second: float = 1.0, max_burst: int = 1) -> Callable:
    """
    Decorator that rate limits a function to a maximum number of calls per second.

    Args:
        calls_per_second: Maximum number of calls per second
        max_burst: Maximum number of calls allowed in a burst

    Returns:
        Decorated function with rate limiting
    """
    last_called = [0.0]  # Use a list for mutable closure
    tokens = [float(max_burst)]  # Token bucket

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            current_time = time.time()
            time_since_last = current_time - last_called[0]

            # Add tokens based on time elapsed (up to max_burst)
            new_tokens = time_since_last * calls_per_second
            tokens[0] = min(max_burst, tokens[0] + new_tokens)

            # If we have less than 1 token, wait until we have at least 1
            if tokens[0] < 1.0:
                wait_time = (1.0 - tokens[0]) / calls_per_second
                logger.debug(f"Rate limiting {func.__name__}, waiting {wait_time:.2f}s")
                time.sleep(wait_time)
                tokens[0] = 1.0  # Now we have exactly 1 token

            # Consume 1 token and call the function
            tokens[0] -= 1.0
            last_called[0] = time.time()

            return func(*args, **kwargs)

        return wrapper

    return decorator


def detailed_error_response(error: Exception) -> Dict[str, Any]:
    """Generate a detailed error response dictionary from an exception.

    Args:
        error: The exception to convert to a response

    Returns:
        Dictionary with error details
    """
    response = {"error": {"type": error.__class__.__name__, "message": str(error)}}

    # Add more details for HttpError
    if isinstance(error, HttpError):
        response["error"]["status_code"] = error.resp.status
        try:
            response["error"]["details"] = error.content.decode("utf-8")
        except (AttributeError, UnicodeDecodeError):
            response["error"]["details"] = repr(error.content)
    elif getattr(error, "status_code", None) is not None:
        response["error"]["status_code"] = error.status_code

    item_id = getattr(error, "item_id", None)
    if item_id:
        response["error"]["item_id"] = item_id

    return response
