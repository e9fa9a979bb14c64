"""Tests for config.py - configuration and environment handling."""

from pathlib import Path
from unittest.mock import patch

import pytest

from clipnote import config


@pytest.fixture(autouse=True)
def clear_caches():
    config.get_api_url.cache_clear()
    with patch("clipnote.config.load_dotenv", return_value=False):
        config.load_environment.cache_clear()
        yield
    config.get_api_url.cache_clear()
    config.load_environment.cache_clear()


class TestApiUrl:
    """Tests for the service URL."""

    def test_default(self):
        with patch.dict("os.environ", {}, clear=True):
            assert config.get_api_url() == config.DEFAULT_API_URL

    def test_override_strips_slash(self):
        with patch.dict("os.environ", {"CLIPNOTE_API_URL": "https://grading.example/"}):
            assert config.get_api_url() == "https://grading.example"


class TestPollInterval:
    """Tests for the player poll interval."""

    def test_default(self):
        with patch.dict("os.environ", {}, clear=True):
            assert config.get_poll_interval_ms() == 500

    def test_override(self):
        with patch.dict("os.environ", {"CLIPNOTE_POLL_INTERVAL_MS": "250"}):
            assert config.get_poll_interval_ms() == 250

    @pytest.mark.parametrize("raw", ["fast", "0", "-10"])
    def test_invalid_falls_back(self, raw):
        with patch.dict("os.environ", {"CLIPNOTE_POLL_INTERVAL_MS": raw}):
            assert config.get_poll_interval_ms() == 500


class TestRequestTimeout:
    """Tests for the remote call timeout."""

    def test_override(self):
        with patch.dict("os.environ", {"CLIPNOTE_REQUEST_TIMEOUT": "2.5"}):
            assert config.get_request_timeout() == 2.5

    def test_invalid_falls_back(self):
        with patch.dict("os.environ", {"CLIPNOTE_REQUEST_TIMEOUT": "soon"}):
            assert config.get_request_timeout() == 10.0


class TestDbPath:
    """Tests for the database location."""

    def test_default_under_home(self):
        with patch.dict("os.environ", {}, clear=True):
            assert config.get_db_path() == Path.home() / ".clipnote" / "clipnote.db"

    def test_override(self, temp_dir):
        with patch.dict("os.environ", {"CLIPNOTE_DB_PATH": str(temp_dir / "x.db")}):
            assert config.get_db_path() == temp_dir / "x.db"
