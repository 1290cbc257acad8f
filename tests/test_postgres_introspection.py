"""
Live table introspection tests.

Uses a fake cursor that answers the two catalog queries, so no database
is needed.
"""

import psycopg
import pytest
from apidescribe.base import IntrospectionError
from apidescribe.describe import (
    CommentKind,
    Object,
    StorageKind,
    Text,
    build_description,
)
from apidescribe.introspect.postgres import declaration_from_table


class FakeCursor:
    """Cursor stub returning canned rows for each execute() call."""

    def __init__(self, table_row, columns=(), error=None):
        self.table_row = table_row
        self.columns = list(columns)
        self.error = error
        self.queries = []

    def execute(self, query, params=None):
        if self.error is not None:
            raise self.error
        self.queries.append(params)

    def fetchone(self):
        return self.table_row

    def fetchall(self):
        return self.columns


@pytest.fixture
def pets_cursor():
    return FakeCursor(
        (16384, "Registered pets."),
        [
            ("id", "bigint", "", "Primary key."),
            ("name", "text", "", "Display name."),
            ("tag", "text", "", None),
            ("slug", "text", "s", "Lower-cased name."),
        ],
    )


class TestDeclarationFromTable:
    def test_table_and_key(self, pets_cursor):
        decl = declaration_from_table(pets_cursor, "pets", schema="app")
        assert decl.name == "pets"
        assert decl.key == "app.pets"
        assert decl.source == "app.pets"
        assert [(c.kind, c.text) for c in decl.comments] == [
            (CommentKind.DOC, "Registered pets.")
        ]

    def test_query_parameters(self, pets_cursor):
        declaration_from_table(pets_cursor, "pets")
        assert pets_cursor.queries == [("public", "pets"), (16384,)]

    def test_columns(self, pets_cursor):
        decl = declaration_from_table(pets_cursor, "pets")
        assert [(m.name, m.type_name, m.line) for m in decl.members] == [
            ("id", "bigint", 1),
            ("name", "text", 2),
            ("tag", "text", 3),
            ("slug", "text", 4),
        ]
        assert decl.members[2].comments == []

    def test_generated_column_is_computed(self, pets_cursor):
        decl = declaration_from_table(pets_cursor, "pets")
        assert decl.members[3].storage is StorageKind.COMPUTED
        assert decl.members[0].storage is StorageKind.STORED

    def test_description(self, pets_cursor):
        decl = declaration_from_table(pets_cursor, "pets")
        assert build_description(decl) == Object(
            {"id": Text("Primary key."), "name": Text("Display name.")}
        )

    def test_table_comment_only(self):
        cursor = FakeCursor((1, "A view."), [("total", "numeric", "", None)])
        decl = declaration_from_table(cursor, "totals")
        assert build_description(decl) == Text("A view.")


class TestErrors:
    def test_table_not_found(self):
        with pytest.raises(IntrospectionError, match="public.missing not found"):
            declaration_from_table(FakeCursor(None), "missing")

    def test_query_failure_is_wrapped(self):
        cursor = FakeCursor(None, error=psycopg.OperationalError("connection lost"))
        with pytest.raises(IntrospectionError, match="Catalog query failed") as exc_info:
            declaration_from_table(cursor, "pets")
        assert isinstance(exc_info.value.__cause__, psycopg.OperationalError)
