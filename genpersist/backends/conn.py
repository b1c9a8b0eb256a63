##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Genpersist
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Genpersist.
##############################################################################

"""
The connection handle passed to every persistence operation.

A `Conn` pairs a [`Database`][backends.database.Database] with the SQL dialect
of its kind and the commit mode the orchestrator honors. It is owned by the
caller: persistence operations never close it.
"""

import logging
from dataclasses import dataclass, field

from genpersist.backends.database import Database
from genpersist.common.enums import CommitMode, DatabaseKind
from genpersist.sql.dialects import Dialect, get_dialect


LOG = logging.getLogger(__name__)


@dataclass
class Conn:
    """
    A database connection handle.

    Attributes:
        database: The database collaborator statements are executed on.
        kind: The kind of the database, which selects the SQL dialect.
        commit_mode: `AUTO_COMMIT` to let each operation commit, `MANUAL` to leave
            transactions to the caller.
        depth: How many orchestrator operations are currently open on this
            connection; nested operations join the outermost transaction.
    """

    database: Database
    kind: DatabaseKind
    commit_mode: CommitMode = CommitMode.AUTO_COMMIT
    depth: int = field(default=0, compare=False, repr=False)

    @property
    def dialect(self) -> Dialect:
        """The SQL dialect of this connection's database kind."""
        return get_dialect(self.kind)

    def close(self):
        """Close the underlying database."""
        self.database.close()

    def __enter__(self) -> "Conn":
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()


def connect(database: Database, commit_mode: CommitMode = CommitMode.AUTO_COMMIT) -> Conn:
    """
    Wrap a database in a connection handle.

    Args:
        database: The database collaborator.
        commit_mode: The commit mode of the connection.

    Returns:
        A new `Conn`.
    """
    conn = Conn(database=database, kind=database.kind, commit_mode=commit_mode)
    LOG.debug(f"Opened a {conn.kind.value} connection in {commit_mode.value} commit mode.")
    return conn
