"""Cleaner configuration loaded from a JSON settings file and environment variables.

Settings file layout::

    {
      "google_drive": {
        "service_account_key_path": "credentials/service-account.json",
        "folders": ["Reports", "Exports"],
        "application_name": "GoogleDriveCleaner"
      },
      "search": {
        "page_size": 10,
        "supports_all_drives": true,
        "include_items_from_all_drives": true,
        "order_by": null
      },
      "deletion": {"page_size": 1000, "count_failed_deletes": true},
      "logging": {"folder": "logs", "level": "DEBUG"}
    }

Environment variables take precedence over the file:
    DRIVE_CLEANER_SETTINGS: Path of the settings file.
    GOOGLE_SERVICE_ACCOUNT_KEY_PATH: Service account key file.
    DRIVE_CLEANER_FOLDERS: Comma separated list of folder names to clean.
    LOG_LEVEL: Minimum log level.
    LOG_DIR: Directory for log files.
"""

import json
import logging
import os
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Mapping, Optional, Tuple

from src.core import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_DIR = "settings"
DEFAULT_APPLICATION_NAME = "GoogleDriveCleaner"
DEFAULT_SEARCH_PAGE_SIZE = 10
DEFAULT_DELETION_PAGE_SIZE = 1000
DEFAULT_LOG_DIR = "logs"
DEFAULT_LOG_LEVEL = "DEBUG"

_TRUE_VALUES = {"true", "1", "yes", "on"}
_FALSE_VALUES = {"false", "0", "no", "off"}


@dataclass(frozen=True)
class CleanerSettings:
    """Resolved settings for one cleanup run."""

    service_account_key_path: Optional[str] = None
    folders: Tuple[str, ...] = field(default_factory=tuple)
    application_name: str = DEFAULT_APPLICATION_NAME

    # Folder resolution query
    search_page_size: int = DEFAULT_SEARCH_PAGE_SIZE
    supports_all_drives: bool = True
    include_items_from_all_drives: bool = True
    order_by: Optional[str] = None

    # Recursive deletion
    deletion_page_size: int = DEFAULT_DELETION_PAGE_SIZE
    count_failed_deletes: bool = True

    log_dir: str = DEFAULT_LOG_DIR
    log_level: str = DEFAULT_LOG_LEVEL

    def with_folders(self, folders) -> "CleanerSettings":
        """Return a copy targeting ``folders`` instead of the configured list."""
        return replace(self, folders=tuple(folders))


def parse_page_size(value: Any, default: int) -> int:
    """Parse a page size, falling back to ``default`` for missing or invalid values."""
    if value is None or value == "" or isinstance(value, bool):
        return default
    try:
        page_size = int(value)
    except (TypeError, ValueError):
        logger.warning(f"Invalid page size {value!r}, using default {default}")
        return default
    if page_size < 1:
        logger.warning(f"Page size must be positive, got {page_size}; using default {default}")
        return default
    return page_size


def parse_bool(value: Any, default: bool = True) -> bool:
    """Parse a boolean flag, falling back to ``default`` for missing or invalid values."""
    if isinstance(value, bool):
        return value
    if value is None or value == "":
        return default
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    logger.warning(f"Invalid boolean value {value!r}, using default {default}")
    return default


def parse_folders(value: Any) -> Tuple[str, ...]:
    """Normalise a folder list given as a JSON array or a comma separated string."""
    if value is None:
        return ()
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, (list, tuple)):
        items = value
    else:
        raise ConfigurationError(f"folders must be a list of names, got {type(value).__name__}")
    return tuple(str(item).strip() for item in items if item is not None and str(item).strip())


def settings_file_path(path: Optional[str] = None, profile: Optional[str] = None) -> str:
    """Return the settings file to read.

    An explicit ``path`` wins, then ``DRIVE_CLEANER_SETTINGS``, then
    ``settings/appsettings.json`` (or ``appsettings.<profile>.json``).
    """
    if path:
        return path
    env_path = os.environ.get("DRIVE_CLEANER_SETTINGS")
    if env_path:
        return env_path
    file_name = f"appsettings.{profile}.json" if profile else "appsettings.json"
    return os.path.join(DEFAULT_SETTINGS_DIR, file_name)


def _read_settings_file(path: str) -> Dict[str, Any]:
    if not os.path.exists(path):
        logger.warning(f"Settings file {path} not found, using defaults and environment")
        return {}
    try:
        with open(path, encoding="utf-8") as settings_file:
            data = json.load(settings_file)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Settings file {path} is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"Settings file {path} must contain a JSON object")
    return data


def _section(data: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, Mapping):
        raise ConfigurationError(f"Settings section '{name}' must be an object")
    return section


def settings_from_mapping(data: Mapping[str, Any], environ: Optional[Mapping[str, str]] = None) -> CleanerSettings:
    """Build CleanerSettings from parsed settings data and environment overrides."""
    environ = os.environ if environ is None else environ
    drive = _section(data, "google_drive")
    search = _section(data, "search")
    deletion = _section(data, "deletion")
    logging_section = _section(data, "logging")

    folders = parse_folders(drive.get("folders"))
    if environ.get("DRIVE_CLEANER_FOLDERS"):
        folders = parse_folders(environ["DRIVE_CLEANER_FOLDERS"])

    order_by = search.get("order_by")

    return CleanerSettings(
        service_account_key_path=environ.get("GOOGLE_SERVICE_ACCOUNT_KEY_PATH")
        or drive.get("service_account_key_path"),
        folders=folders,
        application_name=drive.get("application_name") or DEFAULT_APPLICATION_NAME,
        search_page_size=parse_page_size(search.get("page_size"), DEFAULT_SEARCH_PAGE_SIZE),
        supports_all_drives=parse_bool(search.get("supports_all_drives"), True),
        include_items_from_all_drives=parse_bool(search.get("include_items_from_all_drives"), True),
        order_by=str(order_by).strip() if order_by else None,
        deletion_page_size=parse_page_size(deletion.get("page_size"), DEFAULT_DELETION_PAGE_SIZE),
        count_failed_deletes=parse_bool(deletion.get("count_failed_deletes"), True),
        log_dir=environ.get("LOG_DIR") or logging_section.get("folder") or DEFAULT_LOG_DIR,
        log_level=environ.get("LOG_LEVEL") or logging_section.get("level") or DEFAULT_LOG_LEVEL,
    )


def load_settings(path: Optional[str] = None, profile: Optional[str] = None) -> CleanerSettings:
    """Load settings from the settings file and the environment.

    Args:
        path: Explicit settings file path.
        profile: Profile name selecting ``appsettings.<profile>.json``.

    Returns:
        Resolved CleanerSettings.

    Raises:
        ConfigurationError: If the file exists but is not a valid settings document.
    """
    resolved_path = settings_file_path(path, profile)
    logger.debug(f"Loading settings from {resolved_path}")
    return settings_from_mapping(_read_settings_file(resolved_path))
