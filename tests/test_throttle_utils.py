"""
Tests for throttle_utils module.
"""

import unittest
from unittest.mock import MagicMock, patch

from googleapiclient.errors import HttpError

from src.core import ItemDeleteError
from throttle_utils import detailed_error_response, rate_limit


class TestRateLimit(unittest.TestCase):
    """Test the rate_limit decorator."""

    @patch("throttle_utils.time.time")
    @patch("throttle_utils.time.sleep")
    def test_rate_limit_burst(self, mock_sleep, mock_time):
        """Test that calls within the burst do not wait."""
        mock_time.return_value = 100.0

        @rate_limit(calls_per_second=2, max_burst=2)
        def test_function():
            return "success"

        self.assertEqual(test_function(), "success")
        self.assertEqual(test_function(), "success")
        self.assertEqual(mock_sleep.call_count, 0)

    @patch("throttle_utils.time.time")
    @patch("throttle_utils.time.sleep")
    def test_rate_limit_waits_when_bucket_empty(self, mock_sleep, mock_time):
        """Test that a call beyond the burst waits for a token."""
        mock_time.return_value = 100.0

        @rate_limit(calls_per_second=2, max_burst=1)
        def test_function():
            return "success"

        test_function()
        test_function()

        mock_sleep.assert_called_once()
        self.assertAlmostEqual(mock_sleep.call_args[0][0], 0.5)

    def test_rate_limit_preserves_metadata(self):
        @rate_limit(calls_per_second=5, max_burst=10)
        def documented():
            """Docstring."""

        self.assertEqual(documented.__name__, "documented")
        self.assertEqual(documented.__doc__, "Docstring.")


class TestDetailedErrorResponse(unittest.TestCase):
    """Test the detailed_error_response function."""

    def test_detailed_error_response_http_error(self):
        """Test detailed error response for HttpError."""
        mock_response = MagicMock()
        mock_response.status = 404
        mock_response.reason = "Not Found"

        error = HttpError(mock_response, b'{"error": {"message": "File not found"}}')

        response = detailed_error_response(error)

        self.assertIn("error", response)
        self.assertEqual(response["error"]["type"], "HttpError")
        self.assertEqual(response["error"]["status_code"], 404)
        self.assertIn("File not found", response["error"]["details"])

    def test_detailed_error_response_invalid_content(self):
        """Test HttpError with undecodable content doesn't crash."""
        error = HttpError(MagicMock(status=400), b"\xff\xfe")

        response = detailed_error_response(error)

        self.assertEqual(response["error"]["status_code"], 400)
        self.assertIn("details", response["error"])

    def test_detailed_error_response_item_delete_error(self):
        """Test that item identity and status are included for delete failures."""
        error = ItemDeleteError("Permission denied", "file-1", 403)

        response = detailed_error_response(error)

        self.assertEqual(response["error"]["type"], "ItemDeleteError")
        self.assertEqual(response["error"]["item_id"], "file-1")
        self.assertEqual(response["error"]["status_code"], 403)

    def test_detailed_error_response_generic_error(self):
        """Test detailed error response for generic errors."""
        error = ValueError("Test error message")

        response = detailed_error_response(error)

        self.assertEqual(response["error"]["type"], "ValueError")
        self.assertEqual(response["error"]["message"], "Test error message")
        self.assertNotIn("status_code", response["error"])


if __name__ == "__main__":
    unittest.main()
