##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Genpersist
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Genpersist.
##############################################################################

"""
The success-or-error value returned by every orchestrator operation.
"""

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from genpersist.exceptions import PersistenceError


T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """
    The outcome of a persistence operation: either a value or a `PersistenceError`.

    Attributes:
        value: The value of a successful operation.
        error: The error of a failed operation, None on success.

    Methods:
        success: Build a successful result.
        failure: Build a failed result.
        unwrap: Return the value or raise the error.
        unwrap_or: Return the value or a default.
    """

    value: Optional[T] = None
    error: Optional[PersistenceError] = None

    @classmethod
    def success(cls, value: T = None) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: PersistenceError) -> "Result[T]":
        if error is None:
            raise ValueError("A failed result needs an error")
        return cls(error=error)

    @property
    def ok(self) -> bool:
        """True if the operation succeeded."""
        return self.error is None

    def unwrap(self) -> T:
        """
        Return the value of a successful result.

        Raises:
            PersistenceError: The error of a failed result.
        """
        if self.error is not None:
            raise self.error
        return self.value

    def unwrap_or(self, default: T) -> T:
        """Return the value of a successful result, or `default` on failure."""
        return default if self.error is not None else self.value
