##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Genpersist
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Genpersist.
##############################################################################

"""
Tests for the `configfile.py` module.
"""

import logging
import os

import pytest
import yaml
from pytest_mock import MockerFixture

from genpersist.backends.sqlite import SQLiteDatabase
from genpersist.common.enums import CommitMode, DatabaseKind
from genpersist.config import Config
from genpersist.config.configfile import (
    configure_logging,
    connect_from_config,
    find_config_file,
    get_commit_mode,
    get_config,
    get_default_config,
    is_debug,
    load_config,
)
from genpersist.exceptions import DatabaseNotSupportedError


@pytest.fixture
def app_home(tmp_path, monkeypatch: pytest.MonkeyPatch):
    """
    Point the configuration home at an empty temporary directory and work from another one.

    Args:
        tmp_path: PyTest temporary directory.
        monkeypatch: PyTest monkeypatch fixture.

    Returns:
        The temporary home directory.
    """
    home = tmp_path / "home"
    work = tmp_path / "work"
    home.mkdir()
    work.mkdir()
    monkeypatch.setattr("genpersist.config.configfile.GENPERSIST_HOME", str(home))
    monkeypatch.chdir(work)
    return home


def write_config(directory, contents: dict) -> str:
    """
    Write a `genpersist.yaml` file.

    Args:
        directory: The directory to write the file to.
        contents: The settings to dump.

    Returns:
        The path of the written file.
    """
    filepath = os.path.join(str(directory), "genpersist.yaml")
    with open(filepath, "w") as config_file:
        yaml.dump(contents, config_file)
    return filepath


class TestFindingAndLoading:
    """Tests for locating and reading the configuration file."""

    def test_load_missing_file(self, tmp_path):
        """
        Test that a missing file loads as None.

        Args:
            tmp_path: PyTest temporary directory.
        """
        assert load_config(str(tmp_path / "nothing.yaml")) is None

    def test_load_empty_file(self, tmp_path):
        """
        Test that an empty file loads as an empty dict.

        Args:
            tmp_path: PyTest temporary directory.
        """
        filepath = tmp_path / "genpersist.yaml"
        filepath.write_text("")
        assert load_config(str(filepath)) == {}

    def test_find_in_given_directory_only(self, app_home, tmp_path):
        """
        Test that an explicit directory is the only place searched.

        Args:
            app_home: The temporary configuration home.
            tmp_path: PyTest temporary directory.
        """
        write_config(app_home, {})
        assert find_config_file(str(tmp_path)) is None
        assert find_config_file(str(app_home)) == os.path.join(str(app_home), "genpersist.yaml")

    def test_cwd_wins_over_home(self, app_home):
        """
        Test the default search order.

        Args:
            app_home: The temporary configuration home.
        """
        assert find_config_file() is None
        home_file = write_config(app_home, {})
        assert find_config_file() == home_file
        cwd_file = write_config(os.getcwd(), {})
        assert find_config_file() == cwd_file


class TestGetConfig:
    """Tests for building the `Config` object."""

    def test_defaults_without_file(self, app_home):
        """
        Test that the defaults are used when no file exists.

        Args:
            app_home: The temporary configuration home.
        """
        config = get_config()
        assert vars(config.database) == get_default_config()["database"]
        assert config.logging.level == "INFO"
        assert config.logging.colors is True

    def test_file_values_override_defaults(self, app_home):
        """
        Test that file settings win and missing settings fall back to the defaults.

        Args:
            app_home: The temporary configuration home.
        """
        write_config(app_home, {"database": {"path": "/data/app.db", "timeout": 5}, "logging": {"colors": False}})
        config = get_config()
        assert config.database.type == "sqlite"
        assert config.database.path == "/data/app.db"
        assert config.database.timeout == 5
        assert config.database.commit_mode == "auto"
        assert config.logging.colors is False
        assert config.logging.level == "INFO"

    @pytest.mark.parametrize("value, expected", [("1", True), (" 1 ", True), ("0", False), ("true", False)])
    def test_is_debug(self, monkeypatch: pytest.MonkeyPatch, value: str, expected: bool):
        """
        Test reading the debug flag from the environment.

        Args:
            monkeypatch: PyTest monkeypatch fixture.
            value: The value of `GENPERSIST_DEBUG`.
            expected: Whether debug mode is expected.
        """
        monkeypatch.setenv("GENPERSIST_DEBUG", value)
        assert is_debug() is expected

    def test_is_debug_unset(self, monkeypatch: pytest.MonkeyPatch):
        """
        Test that debug mode is off by default.

        Args:
            monkeypatch: PyTest monkeypatch fixture.
        """
        monkeypatch.delenv("GENPERSIST_DEBUG", raising=False)
        assert not is_debug()


class TestApplyingConfig:
    """Tests for opening connections and configuring logging from a `Config`."""

    @pytest.mark.parametrize("value, expected", [("auto", CommitMode.AUTO_COMMIT), ("manual", CommitMode.MANUAL)])
    def test_commit_mode(self, value: str, expected: CommitMode):
        """
        Test parsing the commit mode.

        Args:
            value: The configured value.
            expected: The expected commit mode.
        """
        assert get_commit_mode(Config({"database": {"commit_mode": value}})) is expected

    def test_commit_mode_defaults_to_auto(self):
        """Test that a missing commit mode means auto-commit."""
        assert get_commit_mode(Config({"database": {"type": "sqlite"}})) is CommitMode.AUTO_COMMIT

    def test_invalid_commit_mode(self):
        """Test that an unknown commit mode is rejected."""
        with pytest.raises(ValueError, match="Invalid commit_mode 'sometimes'"):
            get_commit_mode(Config({"database": {"commit_mode": "sometimes"}}))

    def test_connect_from_config(self, tmp_path):
        """
        Test opening a SQLite database file from the configuration.

        Args:
            tmp_path: PyTest temporary directory.
        """
        path = str(tmp_path / "db" / "app.db")
        config = Config({"database": {"type": "sqlite3", "path": path, "commit_mode": "manual"}})
        with connect_from_config(config) as conn:
            assert isinstance(conn.database, SQLiteDatabase)
            assert conn.database.path == path
            assert conn.kind is DatabaseKind.SQLITE
            assert conn.commit_mode is CommitMode.MANUAL
        assert os.path.exists(path)

    def test_connect_from_default_config(self, app_home):
        """
        Test that the default configuration opens an in-memory SQLite database.

        Args:
            app_home: The temporary configuration home.
        """
        with connect_from_config() as conn:
            assert conn.database.path == ":memory:"
            assert conn.commit_mode is CommitMode.AUTO_COMMIT

    def test_connect_unknown_type(self):
        """Test that an unsupported database type is reported."""
        with pytest.raises(DatabaseNotSupportedError):
            connect_from_config(Config({"database": {"type": "db2"}}))

    def test_configure_logging(self, mocker: MockerFixture, monkeypatch: pytest.MonkeyPatch):
        """
        Test that the logging section is passed on to `setup_logging`.

        Args:
            mocker: PyTest mocker fixture.
            monkeypatch: PyTest monkeypatch fixture.
        """
        monkeypatch.delenv("GENPERSIST_DEBUG", raising=False)
        setup_mock = mocker.patch("genpersist.config.configfile.setup_logging")
        logger = logging.getLogger("genpersist.test_configure_logging")

        configure_logging(Config({"logging": {"level": "warning", "colors": False}}), logger)

        setup_mock.assert_called_once_with(logger=logger, log_level="WARNING", colors=False)

    def test_configure_logging_debug_override(self, mocker: MockerFixture, monkeypatch: pytest.MonkeyPatch):
        """
        Test that `GENPERSIST_DEBUG=1` forces the DEBUG level on the package logger.

        Args:
            mocker: PyTest mocker fixture.
            monkeypatch: PyTest monkeypatch fixture.
        """
        monkeypatch.setenv("GENPERSIST_DEBUG", "1")
        setup_mock = mocker.patch("genpersist.config.configfile.setup_logging")

        configure_logging(Config({"logging": {"level": "ERROR", "colors": True}}))

        setup_mock.assert_called_once_with(logger=logging.getLogger("genpersist"), log_level="DEBUG", colors=True)
