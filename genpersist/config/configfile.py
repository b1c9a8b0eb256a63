##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Genpersist
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Genpersist.
##############################################################################

"""
This module provides functionality for locating and loading the application
configuration file, filling in default settings, and applying the result: opening
the configured database and configuring the library's logging.

A configuration file looks like:

    database:
      type: sqlite
      path: ~/.genpersist/data.db
      commit_mode: auto
    logging:
      level: INFO
      colors: true
"""
import logging
import os
from typing import Dict, Optional

from genpersist.backends.backend_factory import database_factory
from genpersist.backends.conn import Conn, connect
from genpersist.common.enums import CommitMode
from genpersist.config import Config
from genpersist.config.config_filepaths import APP_FILENAME, GENPERSIST_HOME
from genpersist.log_formatter import setup_logging
from genpersist.utils import dict_deep_merge, load_yaml


LOG: logging.Logger = logging.getLogger(__name__)


def load_config(filepath: str) -> Optional[Dict]:
    """
    Reads a Genpersist YAML configuration file and returns its contents as a dictionary.

    Args:
        filepath: The path to the YAML configuration file.

    Returns:
        A dictionary containing the contents of the YAML file or None if file doesn't exist.
    """
    if not os.path.isfile(filepath):
        LOG.info(f"No app config file at {filepath}")
        return None
    LOG.info(f"Reading app config from file {filepath}")
    return load_yaml(filepath) or {}


def find_config_file(path: str = None) -> Optional[str]:
    """
    Locate the application configuration file (`genpersist.yaml`).

    If no directory is provided the following locations are searched in order:
      1. The current working directory.
      2. The `GENPERSIST_HOME` directory (`~/.genpersist`).

    If a `path` is explicitly provided, only that directory is checked.

    Args:
        path: A specific directory to look for `genpersist.yaml`.

    Returns:
        The full path to the `genpersist.yaml` file if found, otherwise `None`.
    """
    if path is not None:
        app_path = os.path.join(path, APP_FILENAME)
        return app_path if os.path.isfile(app_path) else None

    for directory in (os.getcwd(), GENPERSIST_HOME):
        app_path = os.path.join(directory, APP_FILENAME)
        if os.path.isfile(app_path):
            return app_path

    return None


def get_default_config() -> Dict:
    """
    Creates the configuration used when no configuration file exists.

    Returns:
        A configuration dictionary with an in-memory SQLite database and INFO logging.
    """
    return {
        "database": {
            "type": "sqlite",
            "path": ":memory:",
            "commit_mode": CommitMode.AUTO_COMMIT.value,
        },
        "logging": {"level": "INFO", "colors": True},
    }


def _prefer_file_value(dict_a_val, dict_b_val, key, path):  # pylint: disable=unused-argument
    return dict_b_val


def get_config(path: Optional[str] = None) -> Config:
    """
    Load the configuration file and fill in default values for every missing setting.

    Args:
        path: The directory to search for the configuration file. If `None`,
            the default search locations are used.

    Returns:
        The application configuration. Built-in defaults are used when no
        configuration file can be found.
    """
    config = get_default_config()
    filepath = find_config_file(path)
    if filepath is None:
        LOG.info("No configuration file found; using the default configuration")
    else:
        dict_deep_merge(config, load_config(filepath), conflict_handler=_prefer_file_value)
    return Config(config)


def is_debug() -> bool:
    """
    Determines whether the application is running in debug mode.

    Returns:
        True if `GENPERSIST_DEBUG` is set to `1` in the environment, otherwise False.
    """
    return os.environ.get("GENPERSIST_DEBUG", "0").strip() == "1"


def get_commit_mode(config: Config) -> CommitMode:
    """
    Read the commit mode out of the database settings.

    Args:
        config: The application configuration.

    Returns:
        The configured commit mode, `AUTO_COMMIT` when unset.

    Raises:
        ValueError: If the configured value is not a commit mode.
    """
    value = getattr(config.database, "commit_mode", CommitMode.AUTO_COMMIT.value)
    try:
        return CommitMode(value)
    except ValueError as exc:
        valid = ", ".join(mode.value for mode in CommitMode)
        raise ValueError(f"Invalid commit_mode '{value}' in the database configuration. Valid values: {valid}") from exc


def connect_from_config(config: Config = None) -> Conn:
    """
    Open the configured database and wrap it in a connection handle.

    Every setting of the `database` section other than `type` and `commit_mode`
    is passed to the database class as a keyword argument.

    Args:
        config: The application configuration; loaded with `get_config` if not given.

    Returns:
        A `Conn` for the configured database.

    Raises:
        DatabaseNotSupportedError: If the configured database type is unknown.
    """
    if config is None:
        config = get_config()
    settings = dict(vars(config.database))
    database_type = settings.pop("type", "sqlite")
    commit_mode = get_commit_mode(config)
    settings.pop("commit_mode", None)
    LOG.debug(f"Connecting to a {database_type} database with settings {settings}")
    database = database_factory.create(database_type, settings)
    return connect(database, commit_mode)


def configure_logging(config: Config = None, logger: logging.Logger = None):
    """
    Configure the library logger from the `logging` section of the configuration.

    Setting `GENPERSIST_DEBUG=1` in the environment forces the DEBUG level.

    Args:
        config: The application configuration; loaded with `get_config` if not given.
        logger: The logger to configure; the `genpersist` package logger by default.
    """
    if config is None:
        config = get_config()
    if logger is None:
        logger = logging.getLogger("genpersist")
    level = "DEBUG" if is_debug() else str(getattr(config.logging, "level", "INFO")).upper()
    setup_logging(logger=logger, log_level=level, colors=bool(getattr(config.logging, "colors", True)))
