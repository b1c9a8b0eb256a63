##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Genpersist
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Genpersist.
##############################################################################

"""This module provides enumerations shared across Genpersist."""
from enum import Enum, IntEnum


__all__ = ("CommitMode", "DatabaseKind", "SortOrder", "TypeKind")


class DatabaseKind(Enum):
    """
    Enum for the relational backends Genpersist can generate SQL for.

    Attributes:
        SQLITE (str): SQLite 3.
        POSTGRES (str): PostgreSQL.
        MYSQL (str): MySQL and MariaDB.
        ORACLE (str): Oracle Database.
        MSSQL (str): Microsoft SQL Server.
    """

    SQLITE = "sqlite"
    POSTGRES = "postgres"
    MYSQL = "mysql"
    ORACLE = "oracle"
    MSSQL = "mssql"


class CommitMode(Enum):
    """
    Enum for the transaction handling of a connection.

    Attributes:
        AUTO_COMMIT (str): Every top-level operation commits on success and rolls back on failure.
        MANUAL (str): The orchestrator never begins or commits; the caller owns the transaction.
    """

    AUTO_COMMIT = "auto"
    MANUAL = "manual"


class SortOrder(Enum):
    """Sort direction of an ORDER BY key."""

    ASC = "ASC"
    DESC = "DESC"


class TypeKind(IntEnum):
    """
    Enum for the categories of field types the codec understands.

    Attributes:
        INT (int): Signed 64-bit integers.
        FLOAT (int): Double precision floats.
        TEXT (int): Unicode strings.
        BOOL (int): Booleans.
        ENUM (int): `enum.Enum` members, stored by ordinal unless a converter is registered.
        EMBEDDED (int): A nested dataclass flattened into several columns.
        BLOB (int): Raw bytes.
        CUSTOM (int): Any type handled by a registered converter.
    """

    INT = 0
    FLOAT = 1
    TEXT = 2
    BOOL = 3
    ENUM = 4
    EMBEDDED = 5
    BLOB = 6
    CUSTOM = 7
