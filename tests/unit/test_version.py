"""Tests for version module."""

from importlib.metadata import PackageNotFoundError
from unittest.mock import patch

import kafka_panel
from kafka_panel.version import __version__, get_version


class TestVersion:
    """Tests for version lookup."""

    def test_version_exported_by_package(self) -> None:
        """Test the package re-exports the version string."""
        assert kafka_panel.__version__ == __version__
        assert isinstance(__version__, str)

    def test_version_format(self) -> None:
        """Test version is semver-like or a dev marker."""
        version = get_version()
        assert "." in version or "dev" in version

    def test_fallback_when_not_installed(self) -> None:
        """Test source checkouts report a dev version."""
        with patch("kafka_panel.version.version", side_effect=PackageNotFoundError):
            assert get_version() == "0.0.0+dev"
