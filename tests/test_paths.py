"""Tests for locating Local Storage on device file systems."""

from localstorage_migrator.paths import (
    app_data_dir_from_files_dir,
    chromium_local_storage_candidates,
    find_chromium_local_storage,
    find_webkit_local_storage,
)


class TestAndroidPaths:
    """Test Chromium WebView layout discovery."""

    def test_app_data_dir_from_files_dir(self, tmp_path):
        assert app_data_dir_from_files_dir(tmp_path / "files") == tmp_path
        assert app_data_dir_from_files_dir(tmp_path) == tmp_path

    def test_candidates(self, tmp_path):
        assert chromium_local_storage_candidates(tmp_path) == [
            tmp_path / "app_webview" / "Default" / "Local Storage" / "leveldb",
            tmp_path / "app_webview" / "Local Storage" / "leveldb",
        ]

    def test_default_profile(self, tmp_path):
        path = tmp_path / "app_webview" / "Default" / "Local Storage" / "leveldb"
        path.mkdir(parents=True)
        assert find_chromium_local_storage(tmp_path) == path

    def test_legacy_layout(self, tmp_path):
        path = tmp_path / "app_webview" / "Local Storage" / "leveldb"
        path.mkdir(parents=True)
        assert find_chromium_local_storage(tmp_path) == path

    def test_not_found(self, tmp_path):
        assert find_chromium_local_storage(tmp_path) is None


class TestIOSPaths:
    """Test WebKit layout discovery."""

    def test_legacy_file(self, tmp_path):
        path = tmp_path / "WebKit" / "WebsiteData" / "LocalStorage" / "ionic_app_0.localstorage"
        path.parent.mkdir(parents=True)
        path.write_bytes(b"")

        assert find_webkit_local_storage(tmp_path) == path

    def test_salted_layout(self, tmp_path):
        default = tmp_path / "WebKit" / "WebsiteData" / "Default"
        inner = default / "abc123" / "abc123"
        (inner / "LocalStorage").mkdir(parents=True)
        (inner / "origin").write_bytes(b"\x05ionic\x03app\x05ionic\x03app")
        database = inner / "LocalStorage" / "localstorage.sqlite3"
        database.write_bytes(b"")

        other = default / "zzz" / "zzz"
        (other / "LocalStorage").mkdir(parents=True)
        (other / "origin").write_bytes(b"\x05https\x0bexample.com")
        (other / "LocalStorage" / "localstorage.sqlite3").write_bytes(b"")

        assert find_webkit_local_storage(tmp_path) == database

    def test_bundle_id(self, tmp_path):
        path = (tmp_path / "WebKit" / "com.example.app" / "WebsiteData" / "LocalStorage"
                / "capacitor_localhost_0.localstorage")
        path.parent.mkdir(parents=True)
        path.write_bytes(b"")

        found = find_webkit_local_storage(
            tmp_path, scheme="capacitor", host="localhost", bundle_id="com.example.app"
        )
        assert found == path

    def test_not_found(self, tmp_path):
        assert find_webkit_local_storage(tmp_path) is None
