import os
import tempfile
import unittest
from unittest.mock import MagicMock, patch

from googleapiclient.errors import HttpError

from google_drive_utils import (
    CHILDREN_FIELDS,
    SCOPES,
    authenticate_google_drive,
    check_credentials_exist,
    children_query,
    delete_item,
    escape_query_value,
    folder_name_query,
    is_folder,
    list_files,
    load_service_account_credentials,
)
from src.core import (
    ConfigurationError,
    DriveAPIError,
    DriveAuthenticationError,
    DriveQuotaError,
    DriveRateLimitError,
    ItemDeleteError,
)


class TestQueries(unittest.TestCase):
    """Test Drive query building."""

    def test_escape_query_value(self):
        self.assertEqual(escape_query_value("Bob's"), "Bob\\'s")
        self.assertEqual(escape_query_value("a\\b"), "a\\\\b")
        self.assertEqual(escape_query_value("plain"), "plain")

    def test_folder_name_query(self):
        query = folder_name_query("Reports")
        self.assertEqual(
            query, "mimeType='application/vnd.google-apps.folder' and name='Reports' and trashed=false"
        )

    def test_children_query(self):
        self.assertEqual(children_query("abc123"), "'abc123' in parents and trashed=false")

    def test_is_folder(self):
        self.assertTrue(is_folder({"mimeType": "application/vnd.google-apps.folder"}))
        self.assertTrue(is_folder({"mimeType": "Application/VND.Google-Apps.Folder"}))
        self.assertFalse(is_folder({"mimeType": "text/plain"}))
        self.assertFalse(is_folder({}))


class TestGoogleDriveUtils(unittest.TestCase):

    def setUp(self):
        """Set up test fixtures before each test method."""
        self.mock_drive_service = MagicMock()

    def test_list_files_first_page(self):
        """Test listing the first page of results."""
        mock_list = MagicMock()
        mock_list.execute.return_value = {"files": [{"id": "a"}, {"id": "b"}], "nextPageToken": "next"}
        self.mock_drive_service.files().list.return_value = mock_list

        items, token = list_files(self.mock_drive_service, "q", CHILDREN_FIELDS, 1000)

        self.assertEqual(items, [{"id": "a"}, {"id": "b"}])
        self.assertEqual(token, "next")
        call_args = self.mock_drive_service.files().list.call_args[1]
        self.assertEqual(call_args["q"], "q")
        self.assertEqual(call_args["pageSize"], 1000)
        self.assertTrue(call_args["supportsAllDrives"])
        self.assertTrue(call_args["includeItemsFromAllDrives"])
        self.assertNotIn("pageToken", call_args)
        self.assertNotIn("orderBy", call_args)

    def test_list_files_with_token_and_order(self):
        """Test that page token and ordering are forwarded."""
        self.mock_drive_service.files().list.return_value.execute.return_value = {"files": []}

        items, token = list_files(
            self.mock_drive_service,
            "q",
            CHILDREN_FIELDS,
            10,
            page_token="tok",
            supports_all_drives=False,
            include_items_from_all_drives=False,
            order_by="createdTime",
        )

        self.assertEqual(items, [])
        self.assertIsNone(token)
        call_args = self.mock_drive_service.files().list.call_args[1]
        self.assertEqual(call_args["pageToken"], "tok")
        self.assertEqual(call_args["orderBy"], "createdTime")
        self.assertFalse(call_args["supportsAllDrives"])
        self.assertFalse(call_args["includeItemsFromAllDrives"])

    def test_list_files_empty_token_is_last_page(self):
        """Test that an empty next page token ends pagination."""
        self.mock_drive_service.files().list.return_value.execute.return_value = {"files": None, "nextPageToken": ""}

        items, token = list_files(self.mock_drive_service, "q", CHILDREN_FIELDS, 10)

        self.assertEqual(items, [])
        self.assertIsNone(token)

    def test_list_files_http_errors_are_converted(self):
        """Test conversion of listing HttpErrors without retrying."""
        cases = [
            (401, b"Unauthorized", DriveAuthenticationError),
            (429, b"Too many requests", DriveRateLimitError),
            (403, b"User quota exceeded", DriveQuotaError),
            (500, b"Error", DriveAPIError),
        ]
        for status, content, expected in cases:
            with self.subTest(status=status):
                mock_execute = MagicMock(side_effect=HttpError(resp=MagicMock(status=status), content=content))
                self.mock_drive_service.files().list.return_value.execute = mock_execute

                with self.assertRaises(expected):
                    list_files(self.mock_drive_service, "q", CHILDREN_FIELDS, 10)
                self.assertEqual(mock_execute.call_count, 1)

    def test_list_files_unexpected_error(self):
        """Test that transport failures become DriveAPIError."""
        self.mock_drive_service.files().list.return_value.execute.side_effect = TimeoutError("timed out")

        with self.assertRaises(DriveAPIError) as context:
            list_files(self.mock_drive_service, "q", CHILDREN_FIELDS, 10)
        self.assertIsInstance(context.exception.__cause__, TimeoutError)

    def test_delete_item_success(self):
        """Test deleting an item by ID when successful."""
        delete_item(self.mock_drive_service, "test_file_id")

        self.mock_drive_service.files().delete.assert_called_once_with(fileId="test_file_id", supportsAllDrives=True)

    def test_delete_item_without_shared_drives(self):
        delete_item(self.mock_drive_service, "test_file_id", supports_all_drives=False)

        self.mock_drive_service.files().delete.assert_called_once_with(fileId="test_file_id", supportsAllDrives=False)

    def test_delete_item_permission_denied(self):
        """Test that a 403 raises ItemDeleteError carrying the item and status."""
        self.mock_drive_service.files().delete.return_value.execute.side_effect = HttpError(
            resp=MagicMock(status=403), content=b"Forbidden"
        )

        with self.assertRaises(ItemDeleteError) as context:
            delete_item(self.mock_drive_service, "test_file_id")

        self.assertEqual(context.exception.item_id, "test_file_id")
        self.assertEqual(context.exception.status_code, 403)
        self.assertIn("Permission denied", str(context.exception))

    def test_delete_item_already_gone(self):
        """Test that a 404 is reported as a failed delete."""
        self.mock_drive_service.files().delete.return_value.execute.side_effect = HttpError(
            resp=MagicMock(status=404), content=b"Not Found"
        )

        with self.assertRaises(ItemDeleteError) as context:
            delete_item(self.mock_drive_service, "test_file_id")

        self.assertEqual(context.exception.status_code, 404)
        self.assertIn("already deleted", str(context.exception))

    def test_delete_item_server_error_not_retried(self):
        """Test that server errors fail once without retries."""
        mock_execute = MagicMock(side_effect=HttpError(resp=MagicMock(status=500), content=b"Error"))
        self.mock_drive_service.files().delete.return_value.execute = mock_execute

        with self.assertRaises(ItemDeleteError):
            delete_item(self.mock_drive_service, "test_file_id")
        self.assertEqual(mock_execute.call_count, 1)

    def test_delete_item_unexpected_error(self):
        self.mock_drive_service.files().delete.return_value.execute.side_effect = OSError("broken pipe")

        with self.assertRaises(ItemDeleteError) as context:
            delete_item(self.mock_drive_service, "test_file_id")
        self.assertIsNone(context.exception.status_code)


class TestAuthentication(unittest.TestCase):
    """Test service account authentication."""

    def setUp(self):
        self.key_fd, self.key_path = tempfile.mkstemp(suffix=".json")
        with os.fdopen(self.key_fd, "w") as f:
            f.write("{}")

    def tearDown(self):
        if os.path.exists(self.key_path):
            os.remove(self.key_path)

    def test_check_credentials_exist(self):
        self.assertTrue(check_credentials_exist(self.key_path))
        self.assertFalse(check_credentials_exist(self.key_path + ".missing"))
        self.assertFalse(check_credentials_exist(None))

    def test_load_credentials_without_path(self):
        with self.assertRaises(ConfigurationError):
            load_service_account_credentials("")

    def test_load_credentials_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            load_service_account_credentials(self.key_path + ".missing")

    @patch("google_drive_utils.service_account.Credentials.from_service_account_file")
    def test_load_credentials_scoped(self, mock_from_file):
        credentials = load_service_account_credentials(self.key_path)

        mock_from_file.assert_called_once_with(self.key_path, scopes=SCOPES)
        self.assertIs(credentials, mock_from_file.return_value)

    @patch("google_drive_utils.build")
    @patch("google_drive_utils.service_account.Credentials.from_service_account_file")
    def test_authenticate_google_drive(self, mock_from_file, mock_build):
        service = authenticate_google_drive(self.key_path, "TestCleaner")

        mock_build.assert_called_once_with(
            "drive", "v3", credentials=mock_from_file.return_value, cache_discovery=False
        )
        self.assertIs(service, mock_build.return_value)


if __name__ == "__main__":
    unittest.main()
