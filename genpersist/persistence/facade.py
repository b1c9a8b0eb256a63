##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Genpersist
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Genpersist.
##############################################################################

"""
The throwing form of the persistence operations.

`GenericPersistence` mirrors every operation of
[`PersistenceOrchestrator`][persistence.orchestrator.PersistenceOrchestrator]
but returns the value directly and raises the `PersistenceError` of a failed
operation.
"""

import logging
from typing import Any, Iterable, List, Sequence, Type, TypeVar

from genpersist.backends.conn import Conn
from genpersist.mapping.codec import DbValue
from genpersist.persistence.orchestrator import PersistenceOrchestrator
from genpersist.sql.where import ALL_ENTRIES, WhereClauseExpr


E = TypeVar("E")


class GenericPersistence:
    """
    Persistence operations that raise on failure.

    Attributes:
        orchestrator (PersistenceOrchestrator): The orchestrator the operations are delegated to.
    """

    def __init__(self, logger: logging.Logger = None):
        self.orchestrator = PersistenceOrchestrator(logger)

    def select_by_id(self, conn: Conn, entity_type: Type[E], identifier: Any) -> E:
        """
        Load the entity with a given identifier.

        Raises:
            EntityNotFound: If no row has the identifier.
            NoUniqueKey: If several rows have the identifier.
        """
        return self.orchestrator.select_by_id(conn, entity_type, identifier).unwrap()

    def select(self, conn: Conn, entity_type: Type[E], where: WhereClauseExpr = ALL_ENTRIES) -> List[E]:
        """Load every entity matching a where clause."""
        return self.orchestrator.select(conn, entity_type, where).unwrap()

    def count(self, conn: Conn, entity_type: type, where: WhereClauseExpr = ALL_ENTRIES) -> int:
        """Count the rows matching a where clause."""
        return self.orchestrator.count(conn, entity_type, where).unwrap()

    def persist(self, conn: Conn, entity: E) -> E:
        """
        Insert an entity or update it if its identifier already exists.

        Raises:
            NoUniqueKey: If several rows have the entity's identifier.
        """
        return self.orchestrator.persist(conn, entity).unwrap()

    def insert(self, conn: Conn, entity: E) -> E:
        """
        Insert an entity, populating a generated identifier.

        Raises:
            DuplicateInsert: If the identifier is already taken.
        """
        return self.orchestrator.insert(conn, entity).unwrap()

    def update(self, conn: Conn, entity: Any):
        """Update the row of an entity."""
        self.orchestrator.update(conn, entity).unwrap()

    def delete(self, conn: Conn, entity: Any):
        """Delete the row of an entity."""
        self.orchestrator.delete(conn, entity).unwrap()

    def insert_many(self, conn: Conn, entities: Iterable[E]) -> List[E]:
        return self.orchestrator.insert_many(conn, entities).unwrap()

    def update_many(self, conn: Conn, entities: Iterable[Any]):
        self.orchestrator.update_many(conn, entities).unwrap()

    def delete_many(self, conn: Conn, entities: Iterable[Any]):
        self.orchestrator.delete_many(conn, entities).unwrap()

    def entities_from_rows(self, conn: Conn, entity_type: Type[E], rows: Iterable[Sequence[DbValue]]) -> List[E]:
        return self.orchestrator.entities_from_rows(conn, entity_type, rows).unwrap()

    def setup_table_for(self, conn: Conn, entity_type: type):
        """Drop and recreate the table of an entity type."""
        self.orchestrator.setup_table_for(conn, entity_type).unwrap()

    def id_value(self, entity: Any) -> Any:
        return self.orchestrator.id_value(entity).unwrap()
