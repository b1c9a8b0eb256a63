##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Genpersist
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Genpersist.
##############################################################################

"""
It's hard to type hint pytest fixtures in a way that makes it clear
that the variable being used is a fixture. This module will create
aliases for these fixtures in order to make it easier to track what's
happening.

The types here will be defined as such:
- `FixtureCallable`: A fixture that returns a function
- `FixtureConn`: A fixture that returns a `Conn` handle
- `FixtureDict`: A fixture that returns a dictionary
- `FixtureGenericPersistence`: A fixture that returns a `GenericPersistence` facade
- `FixtureModification`: A fixture that modifies something but never actually
                         returns/yields a value to be used in the test.
- `FixtureOrchestrator`: A fixture that returns a `PersistenceOrchestrator`
- `FixtureStr`: A fixture that returns a string
"""

from collections.abc import Callable
from typing import Annotated, Any, Dict, List, Tuple, TypeVar

import pytest

from genpersist.backends.conn import Conn
from genpersist.persistence import GenericPersistence, PersistenceOrchestrator


K = TypeVar("K")
V = TypeVar("V")

FixtureCallable = Annotated[Callable, pytest.fixture]
FixtureConn = Annotated[Conn, pytest.fixture]
FixtureDict = Annotated[Dict[K, V], pytest.fixture]
FixtureGenericPersistence = Annotated[GenericPersistence, pytest.fixture]
FixtureInt = Annotated[int, pytest.fixture]
FixtureList = Annotated[List[K], pytest.fixture]
FixtureModification = Annotated[Any, pytest.fixture]
FixtureOrchestrator = Annotated[PersistenceOrchestrator, pytest.fixture]
FixtureStr = Annotated[str, pytest.fixture]
FixtureTuple = Annotated[Tuple[K, V], pytest.fixture]
