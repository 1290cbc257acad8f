"""Declaration introspection for live PostgreSQL tables.

Reads table and column comments (COMMENT ON ...) from the catalog through a
psycopg cursor. Catalog comments are documentation comments; generated
columns are computed.
"""

from __future__ import annotations

import logging
from typing import Any

import psycopg

from apidescribe.base import IntrospectionError
from apidescribe.describe.models import (
    CommentBlock,
    CommentKind,
    Declaration,
    Member,
    StorageKind,
)

log = logging.getLogger(__name__)

_TABLE_SQL = """
    SELECT c.oid, obj_description(c.oid, 'pg_class')
    FROM pg_class c
    JOIN pg_namespace n ON n.oid = c.relnamespace
    WHERE n.nspname = %s AND c.relname = %s
      AND c.relkind IN ('r', 'p', 'v', 'm', 'f')
"""

_COLUMNS_SQL = """
    SELECT a.attname,
           format_type(a.atttypid, a.atttypmod),
           a.attgenerated,
           col_description(a.attrelid, a.attnum)
    FROM pg_attribute a
    WHERE a.attrelid = %s AND a.attnum > 0 AND NOT a.attisdropped
    ORDER BY a.attnum
"""


def _doc(text: str | None) -> list[CommentBlock]:
    return [CommentBlock(text, CommentKind.DOC)] if text else []


def declaration_from_table(
    cursor: psycopg.Cursor[tuple[Any, ...]], table: str, schema: str = "public"
) -> Declaration:
    """Build a Declaration from a table's catalog entries.

    Args:
        cursor: A psycopg cursor with the default (tuple) row factory
        table: Table, view or materialized view name
        schema: Schema containing the table

    Raises:
        IntrospectionError: If the table does not exist or the query fails
    """
    qualified = f"{schema}.{table}"
    try:
        cursor.execute(_TABLE_SQL, (schema, table))
        row = cursor.fetchone()
        if row is None:
            raise IntrospectionError(f"Table {qualified} not found", qualified)
        oid, table_comment = row

        cursor.execute(_COLUMNS_SQL, (oid,))
        columns = cursor.fetchall()
    except psycopg.Error as e:
        raise IntrospectionError(
            f"Catalog query failed: {e}", qualified
        ) from e

    members = [
        Member(
            name=name,
            comments=_doc(comment),
            storage=StorageKind.COMPUTED if generated else StorageKind.STORED,
            type_name=type_name,
            line=position,
        )
        for position, (name, type_name, generated, comment) in enumerate(columns, 1)
    ]
    log.debug("Read %s: %d columns", qualified, len(members))

    return Declaration(
        name=table,
        comments=_doc(table_comment),
        members=members,
        key=qualified,
        source=qualified,
    )
