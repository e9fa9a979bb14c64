"""Tests for cli.py - command-line interface."""

import sys
from pathlib import Path
from unittest.mock import patch

import pytest

from clipnote.cli import main


class TestMainArgParsing:
    """Tests for main CLI argument parsing."""

    def test_no_command_prints_help(self, capsys):
        """No command should print help."""
        with patch.object(sys, "argv", ["clipnote"]):
            main()

        captured = capsys.readouterr()
        assert "usage" in captured.out.lower()
        assert "serve" in captured.out

    def test_version_flag(self, capsys):
        """--version flag should print version and exit."""
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])
        assert exc_info.value.code == 0
        assert "clipnote" in capsys.readouterr().out

    def test_unknown_command(self):
        with pytest.raises(SystemExit) as exc_info:
            main(["transcode"])
        assert exc_info.value.code == 2


class TestServeCommand:
    """Tests for the serve command."""

    def test_defaults(self):
        with patch("clipnote.server.run_server") as mock_run:
            main(["serve"])
        mock_run.assert_called_once_with(host="127.0.0.1", port=8765, db_path=None)

    def test_custom_options(self, temp_dir):
        db_file = temp_dir / "feedback.db"
        with patch("clipnote.server.run_server") as mock_run:
            main(["-q", "serve", "--host", "0.0.0.0", "-p", "9000", "--db", str(db_file)])
        mock_run.assert_called_once_with(host="0.0.0.0", port=9000, db_path=Path(db_file))

    def test_invalid_port(self):
        with pytest.raises(SystemExit) as exc_info:
            main(["serve", "--port", "http"])
        assert exc_info.value.code == 2


class TestInitDbCommand:
    """Tests for the init-db command."""

    def test_creates_database(self, temp_dir):
        db_file = temp_dir / "sub" / "clipnote.db"
        main(["init-db", "--db", str(db_file)])
        assert db_file.exists()

    def test_log_file(self, temp_dir):
        db_file = temp_dir / "clipnote.db"
        log_file = temp_dir / "clipnote.log"
        main(["--log-file", str(log_file), "init-db", "--db", str(db_file)])
        assert "Database ready" in log_file.read_text()
