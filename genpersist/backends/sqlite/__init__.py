##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Genpersist
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Genpersist.
##############################################################################

"""
SQLite database collaborator for Genpersist.

Modules:
    sqlite_database: Implements the `Database` interface on top of the standard library `sqlite3` module.
"""

from genpersist.backends.sqlite.sqlite_database import SQLiteDatabase


__all__ = ["SQLiteDatabase"]
