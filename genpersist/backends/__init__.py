##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Genpersist
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Genpersist.
##############################################################################

"""
Database collaborators for Genpersist.

The `backends` package defines the narrow capability interface the persistence
layer consumes (`Database`), the `Conn` handle passed to every operation, and
the implementations shipped with Genpersist.

Subpackages:
    sqlite: SQLite implementation built on the standard library `sqlite3` module.

Modules:
    backend_factory: Contains `DatabaseFactory`, used to select and instantiate a database by name.
    conn: Defines the `Conn` handle and `connect`.
    database: Defines the abstract `Database` and the default `PreparedStatement`.
"""

from genpersist.backends.conn import Conn, connect
from genpersist.backends.database import Database, PreparedStatement


__all__ = ["Conn", "Database", "PreparedStatement", "connect"]
