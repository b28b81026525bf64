"""Google Drive Cleaner - HTTP service module.

This module provides a Flask-based REST API around the folder cleaner.

The service supports:
- Triggering a cleanup of the configured (or requested) folders
- Service account credential status
- Health check, version and service information endpoints
- Comprehensive error handling and logging
"""

import os
import time
import traceback
from typing import Tuple

from flask import Flask, Response, jsonify, request
from werkzeug.exceptions import HTTPException

from config import CleanerSettings, load_settings
from drive_cleaner import GoogleDriveCleaner, run_cleanup
from google_drive_utils import authenticate_google_drive, check_credentials_exist
from src.core import (
    CancellationToken,
    DriveAuthenticationError,
    DriveOperationError,
    InvalidArgumentError,
    configure_logging,
    get_logger,
    handle_api_errors,
)
from throttle_utils import detailed_error_response
from version import SERVICE_NAME, get_version, get_version_info

app = Flask(__name__)

# Configure logging early
configure_logging(
    log_level=os.environ.get("LOG_LEVEL", "INFO"),
    enable_console=os.environ.get("LOG_ENABLE_CONSOLE", "true").lower() == "true",
    enable_file=os.environ.get("LOG_ENABLE_FILE", "false").lower() == "true",
    enable_structured=os.environ.get("LOG_ENABLE_STRUCTURED", "false").lower() == "true",
    log_dir=os.environ.get("LOG_DIR", "logs"),
    log_file=os.environ.get("LOG_FILE", "google-drive-cleaner.log"),
)
logger = get_logger(__name__, "app")

# Request tracking for debugging
request_count = 0


def get_settings() -> CleanerSettings:
    """Load the cleaner settings for the current request."""
    return load_settings()


# Error handling and request tracking middleware
@app.before_request
def before_request() -> None:
    """Log and track incoming requests (excluding health checks)."""
    global request_count
    request_count += 1
    request.start_time = time.time()
    request.request_id = f"{int(time.time())}-{request_count}"

    # Skip logging for health check endpoints to reduce noise
    if request.path in ["/health", "/ping"]:
        return

    logger.info(f"Request {request.request_id} started: {request.method} {request.path} [{request.remote_addr}]")


@app.after_request
def after_request(response: Response) -> Response:
    """Log response information (excluding health checks)."""
    if request.path in ["/health", "/ping"]:
        return response

    if hasattr(request, "start_time") and hasattr(request, "request_id"):
        duration = time.time() - request.start_time
        logger.info(f"Request {request.request_id} completed: {response.status_code} in {duration:.3f}s")
    return response


@app.errorhandler(Exception)
def handle_exception(e: Exception) -> Tuple[Response, int]:
    """Handle all unhandled exceptions."""
    logger.error(f"Unhandled exception: {str(e)}\n{traceback.format_exc()}")

    if isinstance(e, HTTPException):
        return (
            jsonify({"error": {"type": "HTTPException", "code": e.code, "name": e.name, "description": e.description}}),
            e.code,
        )

    return jsonify({"error": {"type": e.__class__.__name__, "message": str(e)}}), 500


def _requested_folders(settings: CleanerSettings):
    """Return the folder list from the JSON body, or the configured folders."""
    payload = request.get_json(silent=True) or {}
    folders = payload.get("folders")
    if folders is None:
        return list(settings.folders)
    if isinstance(folders, str) or not isinstance(folders, list):
        raise InvalidArgumentError("folders must be a list of folder names")
    return folders


def _error_response(error: Exception, status_code: int) -> Tuple[Response, int]:
    return jsonify(detailed_error_response(error)), status_code


@app.route("/cleanup", methods=["POST"])
@handle_api_errors("cleanup", "app")
def cleanup_endpoint() -> Tuple[Response, int]:
    """Endpoint to delete the contents of Google Drive folders.

    Optional JSON body:
    - folders: list of folder names. Defaults to the configured folders.

    The run is not cancellable from HTTP; it continues until every folder is
    processed or a fatal error stops it.
    """
    try:
        settings = get_settings()
        folders = _requested_folders(settings)

        logger.info(f"Cleaning folders: {folders}")
        cleaner = GoogleDriveCleaner.connect(settings)
        outcomes = run_cleanup(cleaner, folders, CancellationToken())

        return (
            jsonify(
                {
                    "status": "success",
                    "folders": [outcome.to_dict() for outcome in outcomes],
                    "total_deleted": sum(outcome.deleted_count for outcome in outcomes),
                }
            ),
            200,
        )

    except InvalidArgumentError as e:
        logger.warning(f"Invalid cleanup request: {e}")
        return _error_response(e, 400)
    except FileNotFoundError as e:
        logger.error(f"Service account key missing: {e}")
        return _error_response(e, 500)
    except DriveAuthenticationError as e:
        logger.error(f"Google Drive authentication failed: {e}")
        return _error_response(e, 401)
    except DriveOperationError as e:
        logger.error(f"Cleanup failed: {e}")
        return _error_response(e, 502)


@app.route("/ping")
def ping() -> Tuple[Response, int]:
    """Ultra-lightweight health check for Docker and load balancers.

    This endpoint performs no authentication or external API calls.
    """
    return "OK", 200


@app.route("/health")
def health_check() -> Tuple[Response, int]:
    """Basic health check endpoint with minimal overhead.

    Returns:
        JSON response with basic service health status
    """
    response = {
        "service": SERVICE_NAME,
        "timestamp": time.time(),
        "version": get_version(),
        "status": "healthy",
    }
    return jsonify(response), 200


@app.route("/auth/status")
def auth_status() -> Tuple[Response, int]:
    """Check whether the service account key is available, without authenticating."""
    response = {"service": SERVICE_NAME, "timestamp": time.time(), "version": get_version()}

    key_exists = check_credentials_exist(get_settings().service_account_key_path)
    if key_exists:
        response["status"] = "configured"
        response["message"] = "Service account key is available"
    else:
        response["status"] = "unconfigured"
        response["message"] = "Service account key is missing. Set GOOGLE_SERVICE_ACCOUNT_KEY_PATH."

    return jsonify(response), 200


@app.route("/service/status")
def service_status() -> Tuple[Response, int]:
    """Full service validation including authentication and API connectivity.

    Use this endpoint sparingly as it performs actual authentication and API calls.
    For regular health checks, use /health or /ping instead.
    """
    response = {"service": SERVICE_NAME, "timestamp": time.time(), "version": get_version()}

    try:
        settings = get_settings()
        start_time = time.time()
        drive_service = authenticate_google_drive(settings.service_account_key_path, settings.application_name)
        drive_service.files().list(pageSize=1, supportsAllDrives=settings.supports_all_drives).execute()
        response["api_response_time_ms"] = round((time.time() - start_time) * 1000, 2)
        response["status"] = "healthy"
        response["api_connectivity"] = True
        response["message"] = "Service is fully operational"
        return jsonify(response), 200
    except Exception as e:
        response["status"] = "unhealthy"
        response["reason"] = str(e)
        response["api_connectivity"] = False
        response["error_type"] = e.__class__.__name__
        logger.error(f"Service status check failed: {e}")
        return jsonify(response), 500


@app.route("/info")
def service_info() -> Tuple[Response, int]:
    """Returns information about the service."""
    info = {
        "service": SERVICE_NAME,
        "description": "Service for deleting the contents of Google Drive folders",
        "version": get_version(),
        "endpoints": [
            {"path": "/cleanup", "method": "POST", "description": "Delete the contents of configured folders"},
            {"path": "/auth/status", "method": "GET", "description": "Check service account key availability"},
            {"path": "/service/status", "method": "GET", "description": "Check Google Drive connectivity"},
            {"path": "/health", "method": "GET", "description": "Check service health"},
            {"path": "/info", "method": "GET", "description": "Get service information"},
            {"path": "/version", "method": "GET", "description": "Get version information"},
        ],
        "environment": os.environ.get("FLASK_ENV", "production"),
    }
    return jsonify(info), 200


@app.route("/version")
def version_endpoint() -> Tuple[Response, int]:
    """Returns detailed version information."""
    return jsonify(get_version_info()), 200


if __name__ == "__main__":
    debug_mode = os.environ.get("FLASK_DEBUG", "false").lower() == "true"
    port = int(os.environ.get("PORT", 5000))
    host = os.environ.get("FLASK_HOST", "127.0.0.1")  # Default to localhost for security

    logger.info(f"Starting Google Drive Cleaner service on {host}:{port} (debug={debug_mode})")
    app.run(debug=debug_mode, host=host, port=port)
