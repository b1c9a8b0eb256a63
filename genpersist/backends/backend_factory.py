##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Genpersist
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Genpersist.
##############################################################################

"""
Database factory for selecting and instantiating database collaborators.

This module defines the `DatabaseFactory` class, which maps database type names
(as they appear in the `database.type` setting of the configuration) to
[`Database`][backends.database.Database] implementations. Third-party drivers
can be plugged in through the `genpersist.databases` entry point group.
"""

from typing import Any

from genpersist.abstracts import BaseFactory
from genpersist.backends.database import Database
from genpersist.backends.sqlite.sqlite_database import SQLiteDatabase
from genpersist.exceptions import DatabaseNotSupportedError


class DatabaseFactory(BaseFactory):
    """
    Factory class for managing and instantiating supported databases.

    Attributes:
        _registry (Dict[str, Database]): Maps canonical database names to database classes.
        _aliases (Dict[str, str]): Maps alternate names to canonical database names.

    Methods:
        register: Register a new database class and optional aliases.
        list_available: Return a list of supported database names.
        create: Instantiate a database class by name or alias.
    """

    def _register_builtins(self):
        """Register built-in database implementations."""
        self.register("sqlite", SQLiteDatabase, aliases=["sqlite3"])

    def _validate_component(self, component_class: Any):
        """
        Ensure registered component is a subclass of Database.

        Args:
            component_class: The class to validate.

        Raises:
            TypeError: If the component does not subclass Database.
        """
        if not isinstance(component_class, type) or not issubclass(component_class, Database):
            raise TypeError(f"{component_class} must inherit from Database")

    def _entry_point_group(self) -> str:
        """
        Entry point group used for discovering database plugins.

        Returns:
            The entry point namespace for database plugins.
        """
        return "genpersist.databases"

    def _raise_component_error_class(self, msg: str):
        """
        Raise `DatabaseNotSupportedError` for unsupported databases.

        Args:
            msg: The message to add to the error being raised.
        """
        raise DatabaseNotSupportedError(msg)


database_factory = DatabaseFactory()
