##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Genpersist
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Genpersist.
##############################################################################

"""
Module of all Genpersist-specific exception types.

Every failure raised by a persistence operation is a subclass of
`PersistenceError`, so callers can catch the whole family at once or
pick out the variant they care about.
"""

# Pylint complains that these exceptions are no different from Exception
# but we don't care, we just need new names for exceptions here
# pylint: disable=W0235

__all__ = (
    "PersistenceError",
    "EntityNotFound",
    "DuplicateInsert",
    "DatabaseError",
    "IntegrityViolation",
    "KeyConflict",
    "NoUniqueKey",
    "MappingError",
    "DatabaseNotSupportedError",
)


class PersistenceError(Exception):
    """
    Base class for every error raised at a persistence operation boundary.
    """

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class EntityNotFound(PersistenceError):
    """
    Exception to signal that zero rows were found where exactly one
    was expected.
    """


class DuplicateInsert(PersistenceError):
    """
    Exception to signal that the backend rejected an insert because the
    primary key already exists.
    """


class DatabaseError(PersistenceError):
    """
    Exception wrapping any other failure reported by the database backend.
    The backend's message is kept verbatim.
    """


class IntegrityViolation(DatabaseError):
    """
    Exception raised by database adapters when the backend reports a
    constraint violation (not null, check, foreign key, ...).
    """


class KeyConflict(IntegrityViolation):
    """
    Exception raised by database adapters when a unique or primary key
    constraint rejected a write.
    """


class NoUniqueKey(PersistenceError):
    """
    Exception to signal that more than one row matched where at most one
    was expected. This usually means a uniqueness constraint is missing.
    """


class MappingError(PersistenceError):
    """
    Exception for reflection and conversion failures: unsupported record
    shapes, field/type mismatches, or unknown fields referenced by a
    where clause.
    """


class DatabaseNotSupportedError(Exception):
    """
    Exception to signal that the provided database type is not supported.
    """
