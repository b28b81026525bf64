"""
Version management for the Google Drive cleaner.
"""

import os
from datetime import datetime

# Current version - update this for releases
__version__ = "2026.10.0"

SERVICE_NAME = "google-drive-cleaner"


def get_version():
    """Get the current version of the cleaner."""
    return __version__


def get_version_info():
    """Get detailed version information."""
    return {
        "version": __version__,
        "build_date": datetime.now().isoformat(),
        "environment": os.environ.get("FLASK_ENV", "production"),
        "service": SERVICE_NAME,
    }
