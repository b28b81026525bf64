"""Command line entry point for the Google Drive cleaner.

Cleans every configured folder in turn. Ctrl+C cancels the run at the next
folder, page or item boundary; items already deleted stay deleted.

Exit codes:
    0   all folders processed
    1   fatal error (configuration, credentials, Drive API)
    130 canceled by the user
"""

import argparse
import signal
import sys
from typing import List, Optional

from config import load_settings
from drive_cleaner import GoogleDriveCleaner, run_cleanup
from src.core import (
    CancellationToken,
    ConfigurationError,
    DriveOperationError,
    InvalidArgumentError,
    OperationCanceledError,
    configure_logging,
    get_logger,
)
from version import get_version

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CANCELED = 130

logger = get_logger(__name__, "cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="drive-cleaner",
        description="Delete the contents of named Google Drive folders.",
    )
    parser.add_argument("--settings", help="Path to the JSON settings file")
    parser.add_argument("--profile", help="Settings profile, reads appsettings.<profile>.json")
    parser.add_argument(
        "--folder",
        action="append",
        dest="folders",
        metavar="NAME",
        help="Folder to clean; repeat for several. Overrides the configured folders.",
    )
    parser.add_argument("--log-level", help="Minimum log level (DEBUG, INFO, WARNING, ERROR)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {get_version()}")
    return parser


def install_interrupt_handler(cancel_token: CancellationToken):
    """Cancel ``cancel_token`` on SIGINT instead of raising KeyboardInterrupt."""

    def handle_interrupt(signum, frame):  # noqa: ARG001
        if cancel_token.cancel():
            logger.warning("Ctrl+C pressed.")

    return signal.signal(signal.SIGINT, handle_interrupt)


def main(argv: Optional[List[str]] = None, cancel_token: Optional[CancellationToken] = None) -> int:
    args = build_parser().parse_args(argv)
    cancel_token = cancel_token or CancellationToken()

    try:
        settings = load_settings(args.settings, args.profile)
    except ConfigurationError as e:
        configure_logging(enable_file=False, enable_structured=False)
        logger.critical(f"An argument was invalid: {e}")
        return EXIT_FAILURE

    if args.folders:
        settings = settings.with_folders(args.folders)

    configure_logging(log_level=args.log_level or settings.log_level, log_dir=settings.log_dir)
    previous_handler = install_interrupt_handler(cancel_token)

    try:
        cleaner = GoogleDriveCleaner.connect(settings)
        outcomes = run_cleanup(cleaner, settings.folders, cancel_token)
        total = sum(outcome.deleted_count for outcome in outcomes)
        logger.info(f"Cleanup finished: {len(outcomes)} folder(s) processed, {total} item(s) deleted.")
        return EXIT_OK
    except OperationCanceledError:
        logger.warning("Operation canceled by user.")
        return EXIT_CANCELED
    except InvalidArgumentError as e:
        logger.critical(f"An argument was invalid: {e}")
    except FileNotFoundError as e:
        logger.critical(f"A required file was not found: {e}")
    except DriveOperationError as e:
        logger.critical(f"Error occurred, exiting the program. Check logs and restart the app.\n{e}")
    except Exception as e:
        logger.exception(f"Unexpected error, exiting the program. Check logs and restart the app.\n{e}")
    finally:
        signal.signal(signal.SIGINT, previous_handler)
    return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
