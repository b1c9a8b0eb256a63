##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Genpersist
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Genpersist.
##############################################################################

"""
SQLite database collaborator for Genpersist.

This module defines `SQLiteDatabase`, the [`Database`][backends.database.Database]
implementation backed by the standard library `sqlite3` module. Connections are
opened without implicit transactions so that the persistence layer fully
controls BEGIN/COMMIT/ROLLBACK, with foreign key enforcement enabled and WAL
journaling for file databases. Driver exceptions are translated into the
Genpersist exception hierarchy with the SQLite message kept verbatim.
"""

import logging
import sqlite3
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import List, Sequence

from genpersist.backends.database import Database, PreparedStatement, Row
from genpersist.common.enums import DatabaseKind
from genpersist.exceptions import DatabaseError, IntegrityViolation, KeyConflict
from genpersist.mapping.codec import DbValue


LOG = logging.getLogger(__name__)

MEMORY = ":memory:"

# SQLite reports primary key conflicts as unique violations
KEY_CONFLICT_PREFIXES = ("UNIQUE constraint failed", "PRIMARY KEY must be unique")


@contextmanager
def translate_errors(sql: str):
    """
    Translate `sqlite3` exceptions raised in the managed block.

    Args:
        sql: The statement being run, for the debug log.

    Raises:
        KeyConflict: For unique and primary key violations.
        IntegrityViolation: For any other `sqlite3.IntegrityError`.
        DatabaseError: For every other `sqlite3.Error`.
    """
    try:
        yield
    except sqlite3.IntegrityError as exc:
        LOG.debug(f"SQLite integrity error for '{sql}': {exc}")
        if str(exc).startswith(KEY_CONFLICT_PREFIXES):
            raise KeyConflict(str(exc)) from exc
        raise IntegrityViolation(str(exc)) from exc
    except sqlite3.Error as exc:
        LOG.debug(f"SQLite error for '{sql}': {exc}")
        raise DatabaseError(str(exc)) from exc


def _rows(cursor: sqlite3.Cursor) -> List[Row]:
    return [tuple(row) for row in cursor.fetchall()]


class SQLitePreparedStatement(PreparedStatement):
    """
    A statement executed repeatedly on one dedicated cursor.

    `sqlite3` keeps compiled statements in a per-connection cache keyed by SQL
    text, so re-executing the same text on the same cursor skips recompilation.
    """

    def __init__(self, database: "SQLiteDatabase", sql: str):
        super().__init__(database, sql)
        self.cursor: sqlite3.Cursor = database.conn.cursor()

    def execute(self, params: Sequence[DbValue] = ()) -> int:
        with translate_errors(self.sql):
            self.cursor.execute(self.sql, tuple(params))
        return max(self.cursor.rowcount, 0)

    def query(self, params: Sequence[DbValue] = ()) -> List[Row]:
        with translate_errors(self.sql):
            self.cursor.execute(self.sql, tuple(params))
            return _rows(self.cursor)

    def execute_returning(self, params: Sequence[DbValue] = ()) -> DbValue:
        rows = self.query(params)
        return rows[0][0] if rows else None

    def close(self):
        self.cursor.close()


class SQLiteDatabase(Database):
    """
    A SQLite database.

    Attributes:
        path (str): The database file path, or `:memory:` for an in-memory database.
        conn (sqlite3.Connection): The underlying connection.

    Methods:
        execute: Execute a statement and return the number of affected rows.
        query: Execute a query and return its rows as tuples.
        prepare: Prepare a statement bound to a dedicated cursor.
        begin: Issue `BEGIN`.
        commit: Issue `COMMIT`.
        rollback: Issue `ROLLBACK`.
        close: Close the connection.
    """

    def __init__(self, path: str = MEMORY):
        """
        Open a SQLite database.

        Args:
            path: The database file to open (created with its parent directories if
                needed), or `:memory:` for a private in-memory database.

        Raises:
            DatabaseError: If the database cannot be opened.
        """
        self.path = str(path)
        in_memory = self.path == MEMORY or not self.path
        if not in_memory:
            Path(self.path).expanduser().parent.mkdir(parents=True, exist_ok=True)

        connection_kwargs = {"check_same_thread": False}
        if sys.version_info < (3, 12):  # Autocommit wasn't added until python 3.12
            connection_kwargs["isolation_level"] = None
        else:
            connection_kwargs["autocommit"] = True

        with translate_errors("connect"):
            self.conn: sqlite3.Connection = sqlite3.connect(
                MEMORY if in_memory else str(Path(self.path).expanduser()), **connection_kwargs
            )
            if not in_memory:
                # Enable WAL mode for better concurrent access
                self.conn.execute("PRAGMA journal_mode=WAL")
            self.conn.execute("PRAGMA foreign_keys=ON")
        LOG.debug(f"Opened SQLite database at '{self.path}'.")

    @property
    def kind(self) -> DatabaseKind:
        return DatabaseKind.SQLITE

    @property
    def supports_returning(self) -> bool:
        # RETURNING was added in SQLite 3.35
        return sqlite3.sqlite_version_info >= (3, 35, 0)

    def execute(self, sql: str, params: Sequence[DbValue] = ()) -> int:
        LOG.debug(f"SQLite execute: {sql} {list(params)}")
        with translate_errors(sql):
            cursor = self.conn.execute(sql, tuple(params))
        return max(cursor.rowcount, 0)

    def query(self, sql: str, params: Sequence[DbValue] = ()) -> List[Row]:
        LOG.debug(f"SQLite query: {sql} {list(params)}")
        with translate_errors(sql):
            cursor = self.conn.execute(sql, tuple(params))
            return _rows(cursor)

    def prepare(self, sql: str) -> SQLitePreparedStatement:
        LOG.debug(f"SQLite prepare: {sql}")
        return SQLitePreparedStatement(self, sql)

    def begin(self):
        with translate_errors("BEGIN"):
            self.conn.execute("BEGIN")

    def commit(self):
        with translate_errors("COMMIT"):
            self.conn.execute("COMMIT")

    def rollback(self):
        with translate_errors("ROLLBACK"):
            self.conn.execute("ROLLBACK")

    def close(self):
        self.conn.close()
        LOG.debug(f"Closed SQLite database at '{self.path}'.")
