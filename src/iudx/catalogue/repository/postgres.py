from __future__ import annotations

from typing import Any, List, Mapping, Set, Tuple

import psycopg
from psycopg import AsyncConnection, errors, sql
from psycopg.types.json import Jsonb

from shared.logging import get_logger

from ..db import run_in_transaction
from .documents import INTERNAL_ID_FIELD, Document, DocumentStore, StoreError, apply_projection

logger = get_logger("catalogue.repository.postgres")


def _equality(field: str, value: Any) -> Tuple[sql.Composable, List[Any]]:
    # scalar equal to value, or array containing it
    return (
        sql.SQL("(doc @> %s OR doc @> %s)"),
        [Jsonb({field: value}), Jsonb({field: [value]})],
    )


def compile_query(query: Mapping[str, Any]) -> Tuple[sql.Composable, List[Any]]:
    """Compile a catalogue store query into a WHERE predicate over the ``doc`` column."""

    clauses: List[sql.Composable] = []
    params: List[Any] = []
    for field, condition in query.items():
        if isinstance(condition, Mapping) and "$in" in condition:
            candidates = list(condition["$in"])
            if not candidates:
                clauses.append(sql.SQL("FALSE"))
                continue
            alternatives: List[sql.Composable] = []
            for candidate in candidates:
                clause, clause_params = _equality(field, candidate)
                alternatives.append(clause)
                params.extend(clause_params)
            clauses.append(sql.SQL("({})").format(sql.SQL(" OR ").join(alternatives)))
        else:
            clause, clause_params = _equality(field, condition)
            clauses.append(clause)
            params.extend(clause_params)
    if not clauses:
        return sql.SQL("TRUE"), params
    return sql.SQL(" AND ").join(clauses), params


def is_duplicate_key(exc: Any, constraint: str) -> bool:
    """True when a unique violation came from ``constraint`` rather than catalog DDL."""

    diag = getattr(exc, "diag", None)
    return getattr(diag, "constraint_name", None) == constraint


class PostgresDocumentStore(DocumentStore):
    """Postgres-backed store keeping each collection as a JSONB table."""

    def __init__(self, database_url: str, unique_field: str = "id") -> None:
        self._database_url = database_url
        self._unique_field = unique_field
        self._ready: Set[str] = set()

    def _unique_index(self, collection: str) -> str:
        return f"{collection}_{self._unique_field}_key"

    async def _ensure_collection(self, conn: AsyncConnection[Any], collection: str) -> None:
        if collection in self._ready:
            return
        table = sql.Identifier(collection)
        async with conn.cursor() as cur:
            await cur.execute(
                sql.SQL(
                    """
                    CREATE TABLE IF NOT EXISTS {table} (
                        _id BIGSERIAL PRIMARY KEY,
                        doc JSONB NOT NULL,
                        stored_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
                    )
                    """
                ).format(table=table)
            )
            await cur.execute(
                sql.SQL("CREATE UNIQUE INDEX IF NOT EXISTS {index} ON {table} ((doc->>{field}))").format(
                    index=sql.Identifier(self._unique_index(collection)),
                    table=table,
                    field=sql.Literal(self._unique_field),
                )
            )
            await cur.execute(
                sql.SQL("CREATE INDEX IF NOT EXISTS {index} ON {table} USING GIN (doc jsonb_path_ops)").format(
                    index=sql.Identifier(f"{collection}_doc_idx"),
                    table=table,
                )
            )
        self._ready.add(collection)

    async def find(
        self, collection: str, query: Mapping[str, Any], projection: Mapping[str, int] | None = None
    ) -> List[Document]:
        predicate, params = compile_query(query)
        statement = sql.SQL("SELECT _id, doc FROM {table} WHERE {predicate} ORDER BY _id").format(
            table=sql.Identifier(collection),
            predicate=predicate,
        )

        async def _execute(conn: AsyncConnection[Any]) -> List[Tuple[Any, Any]]:
            await self._ensure_collection(conn, collection)
            async with conn.cursor() as cur:
                await cur.execute(statement, params)
                return await cur.fetchall()

        try:
            rows = await run_in_transaction(self._database_url, _execute)
        except psycopg.Error as exc:
            logger.error("store_find_failed", collection=collection, error=str(exc))
            raise StoreError(f"find on {collection} failed") from exc

        documents: List[Document] = []
        for internal_id, doc in rows:
            document = dict(doc)
            document[INTERNAL_ID_FIELD] = str(internal_id)
            documents.append(apply_projection(document, projection))
        return documents

    async def insert(self, collection: str, document: Mapping[str, Any]) -> str:
        payload = {key: value for key, value in document.items() if key != INTERNAL_ID_FIELD}

        async def _execute(conn: AsyncConnection[Any]) -> str:
            await self._ensure_collection(conn, collection)
            async with conn.cursor() as cur:
                await cur.execute(
                    sql.SQL("INSERT INTO {table} (doc) VALUES (%s) RETURNING _id").format(
                        table=sql.Identifier(collection)
                    ),
                    (Jsonb(payload),),
                )
                row = await cur.fetchone()
            return str(row[0]) if row else ""

        try:
            return await run_in_transaction(self._database_url, _execute)
        except errors.UniqueViolation as exc:
            if is_duplicate_key(exc, self._unique_index(collection)):
                raise StoreError(f"duplicate {self._unique_field} in {collection}") from exc
            logger.error("store_insert_failed", collection=collection, error=str(exc))
            raise StoreError(f"insert into {collection} failed") from exc
        except psycopg.Error as exc:
            logger.error("store_insert_failed", collection=collection, error=str(exc))
            raise StoreError(f"insert into {collection} failed") from exc

    async def remove(self, collection: str, query: Mapping[str, Any]) -> int:
        predicate, params = compile_query(query)

        async def _execute(conn: AsyncConnection[Any]) -> int:
            await self._ensure_collection(conn, collection)
            async with conn.cursor() as cur:
                await cur.execute(
                    sql.SQL("DELETE FROM {table} WHERE {predicate}").format(
                        table=sql.Identifier(collection),
                        predicate=predicate,
                    ),
                    params,
                )
                return cur.rowcount or 0

        try:
            return await run_in_transaction(self._database_url, _execute)
        except psycopg.Error as exc:
            logger.error("store_remove_failed", collection=collection, error=str(exc))
            raise StoreError(f"remove from {collection} failed") from exc


__all__ = ["PostgresDocumentStore", "compile_query", "is_duplicate_key"]
