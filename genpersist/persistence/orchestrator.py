##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Genpersist
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Genpersist.
##############################################################################

"""
Persistence operations over reflected entities.

`PersistenceOrchestrator` ties together reflection, row conversion, statement
generation and a [`Conn`][backends.conn.Conn]'s database. Each public operation
returns a [`Result`][persistence.result.Result]; failures never escape as
exceptions. `GenericPersistence` in [`persistence.facade`][persistence.facade]
offers the same operations raising the error instead.

Transactions follow the connection's commit mode. Under `AUTO_COMMIT` every
top-level operation runs between BEGIN and COMMIT (ROLLBACK on failure), and
operations issued while another is running on the same connection (from an
entity's `to_row`/`from_row`) join the outer transaction. Under `MANUAL` no
transaction statements are issued at all.
"""

import logging
from contextlib import contextmanager
from typing import Any, Callable, Iterable, List, Sequence, Type, TypeVar

from genpersist.backends.conn import Conn
from genpersist.backends.database import PreparedStatement
from genpersist.common.enums import CommitMode
from genpersist.exceptions import (
    DatabaseError,
    DuplicateInsert,
    EntityNotFound,
    KeyConflict,
    MappingError,
    NoUniqueKey,
    PersistenceError,
)
from genpersist.mapping.codec import DbValue, encode
from genpersist.mapping.entity import entity_from_row, entity_to_row, id_value, with_id
from genpersist.mapping.reflection import reflect
from genpersist.mapping.type_info import TypeInfo
from genpersist.persistence.result import Result
from genpersist.sql.statements import (
    Statement,
    count_stmt,
    create_table_stmt,
    delete_stmt,
    drop_table_stmt,
    insert_returning_stmt,
    insert_stmt,
    select_stmt,
    update_stmt,
)
from genpersist.sql.where import ALL_ENTRIES, WhereClauseExpr, by_id
from genpersist.utils import pluralize


LOG = logging.getLogger(__name__)
E = TypeVar("E")


class PersistenceOrchestrator:
    """
    Runs persistence operations and reports their outcome as `Result` values.

    Attributes:
        log (logging.Logger): The logger operations report to. Defaults to this
            module's logger, which is silent unless logging is configured.

    Methods:
        select_by_id: Load the entity with a given identifier.
        select: Load every entity matching a where clause.
        count: Count the rows matching a where clause.
        persist: Insert an entity or update it if its identifier already exists.
        insert: Insert an entity, populating a generated identifier.
        update: Update the row of an entity.
        delete: Delete the row of an entity.
        insert_many: Insert entities with one prepared statement and one commit.
        update_many: Update entities with one prepared statement and one commit.
        delete_many: Delete entities with one prepared statement and one commit.
        entities_from_rows: Convert already fetched rows into entities.
        setup_table_for: Drop and recreate the table of an entity type.
        id_value: Get the identifier value of an entity.
    """

    def __init__(self, logger: logging.Logger = None):
        self.log = logger if logger is not None else LOG

    def _run(self, operation: str, func: Callable[..., Any], *args) -> Result:
        """Run an operation, capturing a `PersistenceError` into a failed `Result`."""
        try:
            return Result.success(func(*args))
        except PersistenceError as exc:
            self.log.debug(f"{operation} failed with {type(exc).__name__}: {exc}")
            return Result.failure(exc)

    @contextmanager
    def _transaction(self, conn: Conn):
        """
        Run the managed block in the transaction dictated by the connection.

        Only the outermost block on an `AUTO_COMMIT` connection issues BEGIN,
        COMMIT and ROLLBACK.
        """
        owner = conn.commit_mode is CommitMode.AUTO_COMMIT and conn.depth == 0
        if owner:
            conn.database.begin()
        conn.depth += 1
        try:
            yield
            if owner:
                conn.database.commit()
        except BaseException:
            if owner:
                self._rollback(conn)
            raise
        finally:
            conn.depth -= 1

    def _rollback(self, conn: Conn):
        try:
            conn.database.rollback()
        except DatabaseError as exc:
            # the original failure is the one reported to the caller
            self.log.warning(f"Rollback failed: {exc}")

    @staticmethod
    def _bind(type_info: TypeInfo, statement: Statement, row: Sequence[DbValue]) -> List[DbValue]:
        """Order a row's values by the slots of a statement."""
        by_column = dict(zip(type_info.column_names, row))
        return [by_column[column] for column in statement.slots]

    @staticmethod
    def _encoded_id(type_info: TypeInfo, entity: Any) -> DbValue:
        return encode(getattr(entity, type_info.id_field.field_name), type_info.id_field.type_tag)

    @staticmethod
    def _type_info_of_batch(entities: Sequence[Any]) -> TypeInfo:
        type_info = reflect(entities[0])
        for entity in entities[1:]:
            if type(entity) is not type_info.entity_type:
                raise MappingError(
                    f"Batch of {type_info.type_name} contains a {type(entity).__name__}; batches must be homogeneous"
                )
        return type_info

    ########################
    # Reads
    ########################

    def _select_by_id(self, conn: Conn, entity_type: Type[E], identifier: Any) -> E:
        type_info = reflect(entity_type)
        sql, params = select_stmt(type_info, by_id(identifier), conn.dialect)
        with self._transaction(conn):
            rows = conn.database.query(sql, params)
            if not rows:
                raise EntityNotFound(f"{type_info.type_name} with id '{identifier}' does not exist in the database.")
            if len(rows) > 1:
                raise NoUniqueKey(f"{len(rows)} rows of {type_info.table_name} have id '{identifier}'.")
            return entity_from_row(conn, entity_type, rows[0])

    def select_by_id(self, conn: Conn, entity_type: Type[E], identifier: Any) -> Result[E]:
        """
        Load the entity with a given identifier.

        Args:
            conn: The connection to use.
            entity_type: The entity class.
            identifier: The identifier value.

        Returns:
            The entity, or a failure with `EntityNotFound` if no row matches and
            `NoUniqueKey` if several do.
        """
        return self._run("select_by_id", self._select_by_id, conn, entity_type, identifier)

    def _select(self, conn: Conn, entity_type: Type[E], where: WhereClauseExpr) -> List[E]:
        type_info = reflect(entity_type)
        sql, params = select_stmt(type_info, where, conn.dialect)
        with self._transaction(conn):
            rows = conn.database.query(sql, params)
            entities = [entity_from_row(conn, entity_type, row) for row in rows]
        self.log.info(f"Retrieved {len(entities)} {pluralize(type_info.type_name)} from {type_info.table_name}.")
        return entities

    def select(self, conn: Conn, entity_type: Type[E], where: WhereClauseExpr = ALL_ENTRIES) -> Result[List[E]]:
        """
        Load every entity matching a where clause.

        Args:
            conn: The connection to use.
            entity_type: The entity class.
            where: The where clause expression; every row by default.

        Returns:
            The matching entities, possibly none.
        """
        return self._run("select", self._select, conn, entity_type, where)

    def _count(self, conn: Conn, entity_type: type, where: WhereClauseExpr) -> int:
        type_info = reflect(entity_type)
        sql, params = count_stmt(type_info, where, conn.dialect)
        with self._transaction(conn):
            rows = conn.database.query(sql, params)
        return int(rows[0][0])

    def count(self, conn: Conn, entity_type: type, where: WhereClauseExpr = ALL_ENTRIES) -> Result[int]:
        """
        Count the rows of an entity type matching a where clause.

        Args:
            conn: The connection to use.
            entity_type: The entity class.
            where: The where clause expression; every row by default.

        Returns:
            The number of matching rows.
        """
        return self._run("count", self._count, conn, entity_type, where)

    def _entities_from_rows(self, conn: Conn, entity_type: Type[E], rows: Iterable[Sequence[DbValue]]) -> List[E]:
        with self._transaction(conn):
            return [entity_from_row(conn, entity_type, row) for row in rows]

    def entities_from_rows(self, conn: Conn, entity_type: Type[E], rows: Iterable[Sequence[DbValue]]) -> Result[List[E]]:
        """
        Convert rows fetched by the caller (from any query selecting the entity's
        columns in order) into entities.

        Args:
            conn: The connection the rows came from.
            entity_type: The entity class.
            rows: The rows to convert.

        Returns:
            The entities, one per row.
        """
        return self._run("entities_from_rows", self._entities_from_rows, conn, entity_type, rows)

    ########################
    # Writes
    ########################

    def _persist(self, conn: Conn, entity: E) -> E:
        type_info = reflect(entity)
        identifier = id_value(entity)
        sql, params = count_stmt(type_info, by_id(identifier), conn.dialect)
        with self._transaction(conn):
            matches = int(conn.database.query(sql, params)[0][0])
            if matches == 0:
                self.log.debug(f"No {type_info.type_name} with id '{identifier}' exists yet; inserting.")
                return self._insert_all(conn, [entity])[0]
            if matches == 1:
                self.log.debug(f"{type_info.type_name} with id '{identifier}' exists; updating.")
                self._update_all(conn, [entity])
                return entity
            raise NoUniqueKey(f"{matches} rows of {type_info.table_name} have id '{identifier}'.")

    def persist(self, conn: Conn, entity: E) -> Result[E]:
        """
        Insert an entity, or update it if a row with its identifier already exists.

        The existence check and the write are two statements; a concurrent writer
        inserting the same identifier in between surfaces as `DuplicateInsert`.

        Args:
            conn: The connection to use.
            entity: The entity to store.

        Returns:
            The stored entity, carrying its generated identifier if one was
            assigned, or a failure with `NoUniqueKey` if several rows share its identifier.
        """
        return self._run("persist", self._persist, conn, entity)

    def _insert_one(self, conn: Conn, type_info: TypeInfo, prepared: PreparedStatement, statement: Statement, entity):
        """Insert one entity through a prepared statement and assign its generated identifier."""
        values = self._bind(type_info, statement, entity_to_row(conn, entity))
        try:
            if not type_info.auto_increment:
                prepared.execute(values)
                return entity
            if self._returning(conn):
                generated = prepared.execute_returning(values)
            else:
                prepared.execute(values)
                generated = conn.database.query(conn.dialect.last_insert_id_query)[0][0]
        except KeyConflict as exc:
            raise DuplicateInsert(exc.message) from exc
        if generated is None:
            raise DatabaseError(f"The database returned no identifier for the new {type_info.type_name}")
        return with_id(entity, generated)

    @staticmethod
    def _returning(conn: Conn) -> bool:
        return conn.database.supports_returning and conn.dialect.supports_returning

    def _insert_all(self, conn: Conn, entities: List[E]) -> List[E]:
        type_info = self._type_info_of_batch(entities)
        if type_info.auto_increment and self._returning(conn):
            statement = insert_returning_stmt(type_info, conn.dialect)
        else:
            statement = insert_stmt(type_info, conn.dialect)
            if type_info.auto_increment and conn.dialect.last_insert_id_query is None:
                raise MappingError(
                    f"Cannot retrieve generated identifiers of {type_info.type_name} from a {conn.kind.value} database"
                )
        self.log.debug(f"Insert statement for {type_info.type_name}: {statement.sql}")
        with self._transaction(conn):
            with conn.database.prepare(statement.sql) as prepared:
                inserted = [self._insert_one(conn, type_info, prepared, statement, entity) for entity in entities]
        return inserted

    def _insert(self, conn: Conn, entity: E) -> E:
        inserted = self._insert_all(conn, [entity])[0]
        self.log.info(f"Inserted {type(entity).__name__} with id '{id_value(inserted)}'.")
        return inserted

    def insert(self, conn: Conn, entity: E) -> Result[E]:
        """
        Insert an entity.

        For autoincrement types the generated identifier is read back (through
        `RETURNING` when the database supports it, else the dialect's last insert
        id query) and assigned to the returned entity.

        Args:
            conn: The connection to use.
            entity: The entity to insert.

        Returns:
            The inserted entity, or a failure with `DuplicateInsert` if its
            identifier is already taken.
        """
        return self._run("insert", self._insert, conn, entity)

    def _insert_many(self, conn: Conn, entities: Iterable[E]) -> List[E]:
        entities = list(entities)
        if not entities:
            return []
        inserted = self._insert_all(conn, entities)
        self.log.info(f"Inserted {len(inserted)} {pluralize(type(entities[0]).__name__)}.")
        return inserted

    def insert_many(self, conn: Conn, entities: Iterable[E]) -> Result[List[E]]:
        """
        Insert entities in order with one prepared statement and one commit.

        The first failure rolls back the whole batch under `AUTO_COMMIT`.

        Args:
            conn: The connection to use.
            entities: The entities to insert, all of the same type.

        Returns:
            The inserted entities, carrying their generated identifiers.
        """
        return self._run("insert_many", self._insert_many, conn, entities)

    def _update_all(self, conn: Conn, entities: List[Any]) -> int:
        type_info = self._type_info_of_batch(entities)
        if len(type_info.column_names) == 1:
            self.log.debug(f"{type_info.type_name} has no columns besides its identifier; nothing to update.")
            return 0
        statement = update_stmt(type_info, conn.dialect)
        affected = 0
        with self._transaction(conn):
            with conn.database.prepare(statement.sql) as prepared:
                for entity in entities:
                    count = prepared.execute(self._bind(type_info, statement, entity_to_row(conn, entity)))
                    if count == 0:
                        self.log.warning(f"No rows were updated for {type_info.type_name} with id '{id_value(entity)}'.")
                    affected += count
        return affected

    def _update(self, conn: Conn, entity: Any):
        self._update_all(conn, [entity])
        self.log.info(f"Updated {type(entity).__name__} with id '{id_value(entity)}'.")

    def update(self, conn: Conn, entity: Any) -> Result[None]:
        """
        Update the row of an entity, keyed by its current identifier.

        A missing row is not an error.

        Args:
            conn: The connection to use.
            entity: The entity to write.
        """
        return self._run("update", self._update, conn, entity)

    def _update_many(self, conn: Conn, entities: Iterable[Any]):
        entities = list(entities)
        if entities:
            affected = self._update_all(conn, entities)
            self.log.info(f"Updated {affected} rows of {reflect(entities[0]).table_name}.")

    def update_many(self, conn: Conn, entities: Iterable[Any]) -> Result[None]:
        """
        Update entities in order with one prepared statement and one commit.

        Args:
            conn: The connection to use.
            entities: The entities to write, all of the same type.
        """
        return self._run("update_many", self._update_many, conn, entities)

    def _delete_all(self, conn: Conn, entities: List[Any]) -> int:
        type_info = self._type_info_of_batch(entities)
        statement = delete_stmt(type_info, conn.dialect)
        affected = 0
        with self._transaction(conn):
            with conn.database.prepare(statement.sql) as prepared:
                for entity in entities:
                    count = prepared.execute([self._encoded_id(type_info, entity)])
                    if count == 0:
                        self.log.warning(f"No rows were deleted for {type_info.type_name} with id '{id_value(entity)}'.")
                    affected += count
        return affected

    def _delete(self, conn: Conn, entity: Any):
        self._delete_all(conn, [entity])
        self.log.info(f"Deleted {type(entity).__name__} with id '{id_value(entity)}'.")

    def delete(self, conn: Conn, entity: Any) -> Result[None]:
        """
        Delete the row of an entity, keyed by its current identifier.

        Deleting an entity that is not stored is not an error.

        Args:
            conn: The connection to use.
            entity: The entity to delete.
        """
        return self._run("delete", self._delete, conn, entity)

    def _delete_many(self, conn: Conn, entities: Iterable[Any]):
        entities = list(entities)
        if entities:
            affected = self._delete_all(conn, entities)
            self.log.info(f"Deleted {affected} rows of {reflect(entities[0]).table_name}.")

    def delete_many(self, conn: Conn, entities: Iterable[Any]) -> Result[None]:
        """
        Delete entities in order with one prepared statement and one commit.

        Args:
            conn: The connection to use.
            entities: The entities to delete, all of the same type.
        """
        return self._run("delete_many", self._delete_many, conn, entities)

    ########################
    # Schema and helpers
    ########################

    def _setup_table_for(self, conn: Conn, entity_type: type):
        type_info = reflect(entity_type)
        with self._transaction(conn):
            conn.database.execute(drop_table_stmt(type_info).sql)
            conn.database.execute(create_table_stmt(type_info, conn.dialect).sql)
        self.log.info(f"Created table {type_info.table_name} for {type_info.type_name}.")

    def setup_table_for(self, conn: Conn, entity_type: type) -> Result[None]:
        """
        Drop the table of an entity type if it exists and create it anew.

        Args:
            conn: The connection to use.
            entity_type: The entity class.
        """
        return self._run("setup_table_for", self._setup_table_for, conn, entity_type)

    def id_value(self, entity: Any) -> Result[Any]:
        """
        Get the identifier value of an entity.

        Args:
            entity: The entity.

        Returns:
            The value of its identifier field.
        """
        return self._run("id_value", id_value, entity)
