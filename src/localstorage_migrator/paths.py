"""Locating legacy Local Storage databases on device file systems.

Android (Chromium WebView) keeps Local Storage under the app's data
directory::

    <app data>/app_webview/Default/Local Storage/leveldb

Older WebView releases omitted the ``Default`` profile directory.

iOS (WKWebView) keeps it under the app's ``Library`` directory, either as
``WebKit/WebsiteData/LocalStorage/<scheme>_<host>_0.localstorage`` (iOS 14
and 15) or, from iOS 16, below two salted directories whose ``origin`` file
names the web app's origin.
"""

from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)

WEBVIEW_DIR = "app_webview"
LOCAL_STORAGE_DIR = "Local Storage"
LEVELDB_DIR = "leveldb"
DEFAULT_PROFILE = "Default"

WEBKIT_DIR = "WebKit"
WEBSITE_DATA_DIR = "WebsiteData"
WEBKIT_DATABASE_NAME = "localstorage.sqlite3"

DEFAULT_SCHEME = "ionic"
DEFAULT_HOST = "app"


def app_data_dir_from_files_dir(files_dir: str | Path) -> Path:
    """Return the app data directory given its ``files`` directory."""
    path = Path(files_dir)
    return path.parent if path.name == "files" else path


def chromium_local_storage_candidates(app_data_dir: str | Path) -> list[Path]:
    """List the LevelDB locations to try, most recent layout first."""
    webview = Path(app_data_dir) / WEBVIEW_DIR
    return [
        webview / DEFAULT_PROFILE / LOCAL_STORAGE_DIR / LEVELDB_DIR,
        webview / LOCAL_STORAGE_DIR / LEVELDB_DIR,
    ]


def find_chromium_local_storage(app_data_dir: str | Path) -> Path | None:
    """Find the Local Storage LevelDB directory of an Android app.

    Args:
        app_data_dir: The app's data directory (parent of ``files``)

    Returns:
        The LevelDB directory, or None if no layout matches
    """
    for candidate in chromium_local_storage_candidates(app_data_dir):
        if candidate.is_dir():
            logger.debug(f"Found Local Storage at {candidate}")
            return candidate
    logger.debug(f"No Local Storage under {app_data_dir}")
    return None


def _origin_matches(origin_file: Path, scheme: str, host: str) -> bool:
    try:
        origin = origin_file.read_bytes().decode("utf-8", errors="replace")
    except OSError:
        return False
    # The file holds length-prefixed scheme and host strings, twice
    return scheme in origin and host in origin


def find_webkit_local_storage(
    library_dir: str | Path,
    scheme: str = DEFAULT_SCHEME,
    host: str = DEFAULT_HOST,
    bundle_id: str | None = None,
) -> Path | None:
    """Find the WebKit Local Storage database of an iOS app.

    Args:
        library_dir: The app's ``Library`` directory
        scheme: Custom URL scheme the web app was served from
        host: Host name the web app was served from
        bundle_id: Bundle identifier, present in the path on simulators

    Returns:
        Path to the SQLite database, or None if not found
    """
    website_data = Path(library_dir) / WEBKIT_DIR
    if bundle_id:
        website_data = website_data / bundle_id
    website_data = website_data / WEBSITE_DATA_DIR

    default_dir = website_data / DEFAULT_PROFILE
    if default_dir.is_dir():
        for salted in sorted(default_dir.iterdir()):
            inner = salted / salted.name
            if salted.is_dir() and _origin_matches(inner / "origin", scheme, host):
                candidate = inner / "LocalStorage" / WEBKIT_DATABASE_NAME
                if candidate.is_file():
                    logger.debug(f"Found Local Storage at {candidate}")
                    return candidate

    legacy = website_data / "LocalStorage" / f"{scheme}_{host}_0.localstorage"
    if legacy.is_file():
        logger.debug(f"Found Local Storage at {legacy}")
        return legacy

    logger.debug(f"No Local Storage under {website_data}")
    return None
