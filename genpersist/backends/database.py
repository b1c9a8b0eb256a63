##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Genpersist
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Genpersist.
##############################################################################

"""
This module defines the abstract base class for the database collaborators Genpersist talks to.

A `Database` is the narrow capability set the persistence layer consumes: run a
statement, run a query, run an insert that returns a generated key, and control
transactions. Drivers are expected to translate their own exceptions into
[`DatabaseError`][exceptions.DatabaseError] (or `IntegrityViolation` for
constraint failures) carrying the backend message verbatim.
"""

from abc import ABC, abstractmethod
from typing import List, Sequence, Tuple

from genpersist.common.enums import DatabaseKind
from genpersist.mapping.codec import DbValue


Row = Tuple[DbValue, ...]


class PreparedStatement:
    """
    A statement compiled once and executed many times with different parameters.

    The default implementation simply re-submits its SQL to the owning database;
    adapters whose drivers can cache statements return a subclass instead.

    Attributes:
        database (Database): The database the statement runs on.
        sql (str): The SQL text of the statement.

    Methods:
        execute: Execute the statement and return the number of affected rows.
        query: Execute the statement and return the resulting rows.
        execute_returning: Execute an `INSERT ... RETURNING` and return the generated value.
        close: Release any resources held by the statement.
    """

    def __init__(self, database: "Database", sql: str):
        self.database = database
        self.sql = sql

    def execute(self, params: Sequence[DbValue] = ()) -> int:
        """
        Execute the statement.

        Args:
            params: The values bound to the statement's placeholders.

        Returns:
            The number of affected rows.
        """
        return self.database.execute(self.sql, params)

    def query(self, params: Sequence[DbValue] = ()) -> List[Row]:
        """
        Execute the statement as a query.

        Args:
            params: The values bound to the statement's placeholders.

        Returns:
            The resulting rows.
        """
        return self.database.query(self.sql, params)

    def execute_returning(self, params: Sequence[DbValue] = ()) -> DbValue:
        """
        Execute the statement as an `INSERT ... RETURNING`.

        Args:
            params: The values bound to the statement's placeholders.

        Returns:
            The first column of the first returned row, or None if nothing was returned.
        """
        return self.database.execute_returning(self.sql, params)

    def close(self):
        """Release any resources held by the statement."""

    def __enter__(self) -> "PreparedStatement":
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()


class Database(ABC):
    """
    Base class for all database collaborators supported in Genpersist.

    Methods:
        kind: The [`DatabaseKind`][common.enums.DatabaseKind] of this database.
        supports_returning: Whether `INSERT ... RETURNING` can be used.
        execute: Execute a statement and return the number of affected rows.
        query: Execute a query and return its rows.
        execute_returning: Execute an `INSERT ... RETURNING` and return the single returned value.
        prepare: Prepare a statement for repeated execution.
        begin: Start a transaction.
        commit: Commit the current transaction.
        rollback: Roll back the current transaction.
        close: Close the underlying connection.
    """

    @property
    @abstractmethod
    def kind(self) -> DatabaseKind:
        """The kind of backend this database talks to."""
        raise NotImplementedError("Subclasses of `Database` must implement a `kind` property.")

    @property
    def supports_returning(self) -> bool:
        """True if this database accepts `INSERT ... RETURNING`."""
        return False

    @abstractmethod
    def execute(self, sql: str, params: Sequence[DbValue] = ()) -> int:
        """
        Execute a statement.

        Args:
            sql: The SQL text.
            params: The values bound to the statement's placeholders.

        Returns:
            The number of affected rows.
        """
        raise NotImplementedError("Subclasses of `Database` must implement an `execute` method.")

    @abstractmethod
    def query(self, sql: str, params: Sequence[DbValue] = ()) -> List[Row]:
        """
        Execute a query.

        Args:
            sql: The SQL text.
            params: The values bound to the statement's placeholders.

        Returns:
            The resulting rows, each a tuple of database values in column order.
        """
        raise NotImplementedError("Subclasses of `Database` must implement a `query` method.")

    def execute_returning(self, sql: str, params: Sequence[DbValue] = ()) -> DbValue:
        """
        Execute an `INSERT ... RETURNING` statement.

        Args:
            sql: The SQL text.
            params: The values bound to the statement's placeholders.

        Returns:
            The first column of the first returned row, or None if nothing was returned.
        """
        rows = self.query(sql, params)
        return rows[0][0] if rows else None

    def prepare(self, sql: str) -> PreparedStatement:
        """
        Prepare a statement for repeated execution.

        Args:
            sql: The SQL text.

        Returns:
            A [`PreparedStatement`][backends.database.PreparedStatement].
        """
        return PreparedStatement(self, sql)

    @abstractmethod
    def begin(self):
        """Start a transaction."""
        raise NotImplementedError("Subclasses of `Database` must implement a `begin` method.")

    @abstractmethod
    def commit(self):
        """Commit the current transaction."""
        raise NotImplementedError("Subclasses of `Database` must implement a `commit` method.")

    @abstractmethod
    def rollback(self):
        """Roll back the current transaction."""
        raise NotImplementedError("Subclasses of `Database` must implement a `rollback` method.")

    @abstractmethod
    def close(self):
        """Close the underlying connection."""
        raise NotImplementedError("Subclasses of `Database` must implement a `close` method.")

    def __enter__(self) -> "Database":
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()
