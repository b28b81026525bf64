"""Google Drive utilities module.

This module provides the thin layer between the cleaner and the Google Drive
v3 API: service account authentication, query building, paged listing and
single item deletion.

Key features:
- Service account authentication scoped to full Drive access
- Query escaping for the Drive search language
- Shared drive visibility flags on every listing and delete call
- Rate limiting to respect Google API quotas
- Conversion of API failures into the cleaner's error taxonomy

Nothing in this module retries; a failed call is reported to the caller once.
"""

import os
from typing import Any, Dict, List, Optional, Tuple

from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from src.core import (
    ConfigurationError,
    DriveAPIError,
    ItemDeleteError,
    convert_http_error,
    get_logger,
)
from throttle_utils import detailed_error_response, rate_limit

SCOPES = ["https://www.googleapis.com/auth/drive"]
FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"

# Partial response field masks
FOLDER_SEARCH_FIELDS = "files(id, name)"
CHILDREN_FIELDS = "nextPageToken, files(id, name, mimeType)"

logger = get_logger(__name__, "drive_utils")

# Rate limiting constants
API_CALLS_PER_SECOND = 5.0  # Maximum 5 calls per second to avoid quota issues
MAX_BURST = 10  # Allow bursts of up to 10 calls


def check_credentials_exist(key_path: Optional[str]) -> bool:
    """Checks if the service account key file exists."""
    return bool(key_path) and os.path.exists(key_path)


def load_service_account_credentials(key_path: Optional[str]) -> service_account.Credentials:
    """Load service account credentials scoped for Google Drive.

    Args:
        key_path: Path to the service account JSON key.

    Returns:
        Scoped service account credentials.

    Raises:
        ConfigurationError: If no key path is configured.
        FileNotFoundError: If the key file does not exist.
    """
    if not key_path:
        raise ConfigurationError("Service account key path is not provided in configuration.")

    if not os.path.exists(key_path):
        raise FileNotFoundError(f"Service account key file not found: {key_path}")

    logger.debug(f"Loading service account credentials from {key_path}")
    return service_account.Credentials.from_service_account_file(key_path, scopes=SCOPES)


def authenticate_google_drive(key_path: Optional[str], application_name: str = "GoogleDriveCleaner") -> Any:
    """Authenticates with Google Drive API using a service account key.

    Args:
        key_path: Path to the service account JSON key.
        application_name: Name reported in the connection log.

    Returns:
        Google Drive v3 service object.

    Raises:
        ConfigurationError: If no key path is configured.
        FileNotFoundError: If the key file does not exist.
    """
    creds = load_service_account_credentials(key_path)
    service = build("drive", "v3", credentials=creds, cache_discovery=False)
    logger.info(f"{application_name} connected to Google Drive API successfully.")
    return service


def escape_query_value(value: str) -> str:
    """Escape a literal for use inside single quotes in a Drive query."""
    return value.replace("\\", "\\\\").replace("'", "\\'")


def folder_name_query(folder_name: str) -> str:
    """Query matching non-trashed folders named exactly ``folder_name``."""
    return f"mimeType='{FOLDER_MIME_TYPE}' and name='{escape_query_value(folder_name)}' and trashed=false"


def children_query(parent_id: str) -> str:
    """Query matching the non-trashed direct children of ``parent_id``."""
    return f"'{escape_query_value(parent_id)}' in parents and trashed=false"


def is_folder(item: Dict[str, Any]) -> bool:
    """Tell whether a listed item is a folder."""
    return str(item.get("mimeType", "")).lower() == FOLDER_MIME_TYPE


@rate_limit(calls_per_second=API_CALLS_PER_SECOND, max_burst=MAX_BURST)
def list_files(
    drive_service: Any,
    query: str,
    fields: str,
    page_size: int,
    page_token: Optional[str] = None,
    supports_all_drives: bool = True,
    include_items_from_all_drives: bool = True,
    order_by: Optional[str] = None,
) -> Tuple[List[Dict[str, Any]], Optional[str]]:
    """Fetch one page of a files listing.

    Args:
        drive_service: The Google Drive service instance.
        query: Drive search query.
        fields: Partial response field mask.
        page_size: Maximum number of items in the page.
        page_token: Continuation token from the previous page, None for the first page.
        supports_all_drives: Whether the caller supports shared drives.
        include_items_from_all_drives: Whether shared drive items are included.
        order_by: Optional Drive sort expression.

    Returns:
        Tuple of (items, next_page_token). The token is None on the last page.

    Raises:
        DriveAPIError: If the request fails.
    """
    params = {
        "q": query,
        "fields": fields,
        "pageSize": page_size,
        "supportsAllDrives": supports_all_drives,
        "includeItemsFromAllDrives": include_items_from_all_drives,
    }
    if page_token:
        params["pageToken"] = page_token
    if order_by:
        params["orderBy"] = order_by

    try:
        logger.debug(f"Listing files with query: {query} (page_token={page_token!r})")
        results = drive_service.files().list(**params).execute()
    except HttpError as error:
        logger.debug(f"Listing failed: {detailed_error_response(error)}")
        raise convert_http_error(error, "list_files") from error
    except Exception as e:
        raise DriveAPIError(f"Transport error while listing files: {e}") from e

    items = results.get("files") or []
    next_page_token = results.get("nextPageToken") or None
    return items, next_page_token


@rate_limit(calls_per_second=API_CALLS_PER_SECOND, max_burst=MAX_BURST)
def delete_item(drive_service: Any, item_id: str, supports_all_drives: bool = True) -> None:
    """Permanently deletes a file or folder in Google Drive by its ID.

    Args:
        drive_service: The Google Drive service instance.
        item_id: ID of the file or folder to delete.
        supports_all_drives: Whether the item may live on a shared drive.

    Raises:
        ItemDeleteError: If the item could not be deleted, including when it is already gone.
    """
    try:
        logger.debug(f"Deleting item with ID: {item_id}")
        drive_service.files().delete(fileId=item_id, supportsAllDrives=supports_all_drives).execute()
    except HttpError as error:
        status = error.resp.status if error.resp else None
        if status == 404:
            message = f"Item with ID {item_id} not found (already deleted)"
        elif status == 403:
            message = f"Permission denied when deleting item with ID {item_id}"
        else:
            message = f"Google Drive API error while deleting item with ID {item_id}: {error}"
        raise ItemDeleteError(message, item_id, status) from error
    except Exception as e:
        raise ItemDeleteError(f"Unexpected error while deleting item with ID {item_id}: {e}", item_id) from e
