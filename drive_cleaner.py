"""Folder cleanup engine.

Resolves configured folder names to Drive folders and deletes everything they
contain. The traversal is depth first and post-order: a folder is deleted only
after each of its descendants has had a delete attempt. Traversal is strictly
sequential; listing pages and children are processed one at a time.

Failure policy:
- a failed delete of a single item is logged and the walk continues;
- a failed listing request aborts the traversal and propagates;
- cancellation is checked before each top-level folder, each page and each
  child, and unwinds the traversal with OperationCanceledError.

Nothing is retried and deletions already made are not rolled back.
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional

import google_drive_utils
from config import CleanerSettings
from src.core import (
    CancellationToken,
    ConfigurationError,
    ItemDeleteError,
    get_logger,
    handle_drive_operations,
    log_drive_metrics,
    require_non_empty,
    validate_drive_parameters,
)


@dataclass(frozen=True)
class FolderResolution:
    """Result of looking up a folder by name."""

    exists: bool
    folder_id: Optional[str] = None


@dataclass(frozen=True)
class DeletionOutcome:
    """What happened to one configured target folder."""

    folder_name: str
    exists: bool
    folder_id: Optional[str] = None
    deleted_count: int = 0

    def to_dict(self) -> dict:
        return {
            "folder_name": self.folder_name,
            "exists": self.exists,
            "folder_id": self.folder_id,
            "deleted_count": self.deleted_count,
        }


class FolderCleaner(ABC):
    """Capability interface of a storage backend the cleaner can work on."""

    logger = get_logger(__name__, "cleaner")

    @abstractmethod
    def resolve(self, folder_name: str, cancel_token: CancellationToken) -> FolderResolution:
        """Find the folder called ``folder_name``."""

    @abstractmethod
    def delete_contents(self, folder_id: str, cancel_token: CancellationToken) -> int:
        """Delete everything inside ``folder_id`` and return the deleted item count."""

    def delete_content_from_folder_by_name(self, folder_name: str, cancel_token: CancellationToken) -> int:
        """Resolve ``folder_name`` and delete its contents.

        Returns:
            Number of deleted items, 0 when the folder does not exist.
        """
        resolution = self.resolve(folder_name, cancel_token)
        if not resolution.exists or not resolution.folder_id:
            self.logger.warning(f"Folder '{folder_name}' does not exist. No content to delete.")
            return 0

        deleted = self.delete_contents(resolution.folder_id, cancel_token)
        self.logger.info(f"Deleted {deleted} items from folder '{folder_name}' (ID: {resolution.folder_id}).")
        return deleted


class GoogleDriveCleaner(FolderCleaner):
    """FolderCleaner backed by the Google Drive v3 API."""

    def __init__(self, drive_service: Any, settings: Optional[CleanerSettings] = None, logger=None):
        self.settings = settings or CleanerSettings()
        validate_drive_parameters(service=drive_service, page_size=self.settings.search_page_size)
        validate_drive_parameters(page_size=self.settings.deletion_page_size)
        self.drive_service = drive_service
        self.logger = logger or get_logger(__name__, "cleaner")

    @classmethod
    def connect(cls, settings: CleanerSettings, logger=None) -> "GoogleDriveCleaner":
        """Authenticate with the configured service account and return a cleaner.

        Raises:
            ConfigurationError: If no service account key path is configured.
            FileNotFoundError: If the key file does not exist.
        """
        if settings is None:
            raise ConfigurationError("Settings are required to connect to Google Drive.")
        drive_service = google_drive_utils.authenticate_google_drive(
            settings.service_account_key_path, settings.application_name
        )
        return cls(drive_service, settings, logger)

    @handle_drive_operations("resolve_folder", "cleaner")
    def resolve(self, folder_name: str, cancel_token: CancellationToken) -> FolderResolution:
        """Find a non-trashed folder by exact name.

        Only the first result page is read. When several folders share the
        name, the first one in backend order (or in ``order_by`` order when
        configured) is chosen and a warning is logged.
        """
        require_non_empty(folder_name, "folder_name")
        cancel_token.raise_if_cancelled()

        files, _ = google_drive_utils.list_files(
            self.drive_service,
            query=google_drive_utils.folder_name_query(folder_name),
            fields=google_drive_utils.FOLDER_SEARCH_FIELDS,
            page_size=self.settings.search_page_size,
            supports_all_drives=self.settings.supports_all_drives,
            include_items_from_all_drives=self.settings.include_items_from_all_drives,
            order_by=self.settings.order_by,
        )
        cancel_token.raise_if_cancelled()

        if not files:
            self.logger.warning(f"Folder '{folder_name}' does not exist on Google Drive.")
            return FolderResolution(exists=False, folder_id=None)

        folder_id = files[0]["id"]
        if len(files) > 1:
            self.logger.warning(
                f"Multiple folders '{folder_name}' found ({len(files)} matches). Using the one with ID: {folder_id}"
            )
        else:
            self.logger.info(f"Folder '{folder_name}' exists on Google Drive with ID: {folder_id}")
        return FolderResolution(exists=True, folder_id=folder_id)

    @handle_drive_operations("delete_folder_contents", "cleaner")
    def delete_contents(self, folder_id: str, cancel_token: CancellationToken) -> int:
        """Recursively delete the contents of a folder, keeping the folder itself.

        With ``count_failed_deletes`` enabled (the default) every delete
        attempt is counted, so the result can exceed the number of items that
        were actually removed. Otherwise only confirmed deletes are counted.
        """
        require_non_empty(folder_id, "folder_id")
        return self._delete_folder_contents(folder_id, cancel_token)

    def _delete_folder_contents(self, folder_id: str, cancel_token: CancellationToken) -> int:
        deleted_count = 0
        page_token = None

        while True:
            cancel_token.raise_if_cancelled()

            children, page_token = google_drive_utils.list_files(
                self.drive_service,
                query=google_drive_utils.children_query(folder_id),
                fields=google_drive_utils.CHILDREN_FIELDS,
                page_size=self.settings.deletion_page_size,
                page_token=page_token,
                supports_all_drives=self.settings.supports_all_drives,
                include_items_from_all_drives=self.settings.include_items_from_all_drives,
            )

            for child in children:
                cancel_token.raise_if_cancelled()

                if google_drive_utils.is_folder(child):
                    deleted_count += self._delete_folder_contents(child["id"], cancel_token)
                    # The subtree may have been cancelled on its last item
                    cancel_token.raise_if_cancelled()
                    deleted = self._delete_item(child, is_folder=True)
                else:
                    deleted = self._delete_item(child, is_folder=False)

                if deleted or self.settings.count_failed_deletes:
                    deleted_count += 1

            if not page_token:
                cancel_token.raise_if_cancelled()
                return deleted_count

    def _delete_item(self, item: dict, is_folder: bool) -> bool:
        kind = "Folder" if is_folder else "File"
        item_id = item["id"]
        name = item.get("name", "")
        try:
            google_drive_utils.delete_item(
                self.drive_service, item_id, supports_all_drives=self.settings.supports_all_drives
            )
        except ItemDeleteError as e:
            self.logger.error(f"Error deleting {kind.lower()} '{name}' (ID: {item_id}): {e}")
            return False

        self.logger.info(f"{kind} '{name}' (ID: {item_id}) deleted successfully.")
        return True


def run_cleanup(
    cleaner: FolderCleaner, folder_names: Iterable[str], cancel_token: CancellationToken
) -> List[DeletionOutcome]:
    """Clean every target folder in order.

    Missing folders are reported and skipped. Listing failures and
    cancellation stop the whole run and propagate to the caller.

    Raises:
        ConfigurationError: If no folder names are given.
        InvalidArgumentError: If a folder name is empty.
        OperationCanceledError: If the run is cancelled.
        DriveAPIError: If a listing request fails.
    """
    folder_names = list(folder_names or [])
    if not folder_names:
        raise ConfigurationError("No folders provided to check in configuration.")

    logger = cleaner.logger
    outcomes = []

    for folder_name in folder_names:
        cancel_token.raise_if_cancelled()
        require_non_empty(folder_name, "folder_name")

        resolution = cleaner.resolve(folder_name, cancel_token)
        if not resolution.exists:
            logger.warning(f"Folder: {folder_name} does not exist in Google Drive.")
            outcomes.append(DeletionOutcome(folder_name=folder_name, exists=False))
            continue

        logger.info(f"Folder: {folder_name} exists in Google Drive with ID: {resolution.folder_id}")
        start_time = time.time()
        deleted_count = cleaner.delete_contents(resolution.folder_id, cancel_token)
        logger.info(f"Deleted {deleted_count} items from '{folder_name}'.")
        log_drive_metrics(
            logger,
            "delete_folder_contents",
            folder=folder_name,
            deleted_count=deleted_count,
            duration=round(time.time() - start_time, 3),
        )
        outcomes.append(
            DeletionOutcome(
                folder_name=folder_name,
                exists=True,
                folder_id=resolution.folder_id,
                deleted_count=deleted_count,
            )
        )

    return outcomes
