"""
SQL introspection tests.

Tests for:
- --- / /** */ documentation comments vs -- / /* */ plain comments
- COMMENT ON TABLE / COLUMN
- Generated columns
- Trailing comments and statement boundaries
- Parse errors
"""

import pytest
from apidescribe.base import IntrospectionError
from apidescribe.describe import (
    CommentKind,
    Object,
    StorageKind,
    SynthesisConfig,
    Text,
    build_description,
)
from apidescribe.introspect.sql import declarations_from_sql

PETS_SQL = """
--- Registered pets.
-- internal: partitioned later
CREATE TABLE app.pets (
    --- Primary key.
    id bigint PRIMARY KEY,
    /** Display name. */
    name text NOT NULL, -- trailing note on name
    -- Free-form tag.
    tag text,
    slug text GENERATED ALWAYS AS (lower(name)) STORED
);

CREATE TABLE owners (
    /* Contact address. */
    email text,
    pet_id bigint
);

COMMENT ON TABLE owners IS 'People who own pets.';
COMMENT ON COLUMN owners.pet_id IS 'The owned pet.';
"""


def _comments(decl_or_member):
    return [(c.kind, c.text) for c in decl_or_member.comments]


@pytest.fixture
def tables():
    return {decl.name: decl for decl in declarations_from_sql(PETS_SQL, "pets.sql")}


class TestTables:
    """One declaration per CREATE TABLE."""

    def test_tables_in_statement_order(self):
        decls = declarations_from_sql(PETS_SQL)
        assert [d.name for d in decls] == ["pets", "owners"]

    def test_keys_and_source(self, tables):
        assert tables["pets"].key == "app.pets"
        assert tables["owners"].key == "owners"
        assert tables["pets"].source == "pets.sql"
        assert tables["pets"].line == 4

    def test_table_comments(self, tables):
        assert _comments(tables["pets"]) == [
            (CommentKind.DOC, "Registered pets."),
            (CommentKind.PLAIN, "internal: partitioned later"),
        ]

    def test_comment_on_table(self, tables):
        assert _comments(tables["owners"]) == [(CommentKind.DOC, "People who own pets.")]

    def test_non_table_statements_ignored(self):
        sql = "CREATE INDEX pets_name ON pets (name);\nSELECT 1;\n"
        assert declarations_from_sql(sql) == []


class TestColumns:
    """Column comments and storage."""

    def test_column_order_and_types(self, tables):
        pets = tables["pets"]
        assert [(m.name, m.type_name) for m in pets.members] == [
            ("id", "int8"),
            ("name", "text"),
            ("tag", "text"),
            ("slug", "text"),
        ]

    def test_doc_and_plain_column_comments(self, tables):
        id_, name, tag, _ = tables["pets"].members
        assert _comments(id_) == [(CommentKind.DOC, "Primary key.")]
        assert _comments(name) == [(CommentKind.DOC, "Display name.")]
        assert _comments(tag) == [(CommentKind.PLAIN, "Free-form tag.")]

    def test_plain_block_comment(self, tables):
        email = tables["owners"].members[0]
        assert _comments(email) == [(CommentKind.PLAIN, "Contact address.")]

    def test_comment_on_column(self, tables):
        pet_id = tables["owners"].members[1]
        assert _comments(pet_id) == [(CommentKind.DOC, "The owned pet.")]

    def test_comment_on_matches_schema(self):
        sql = """
        CREATE TABLE a.pets (name text);
        CREATE TABLE b.pets (name text);
        CREATE TABLE pets (name text);
        COMMENT ON TABLE b.pets IS 'Pets in b.';
        COMMENT ON COLUMN a.pets.name IS 'A name';
        COMMENT ON COLUMN pets.name IS 'Unqualified name';
        """
        a_pets, b_pets, pets = declarations_from_sql(sql)

        assert build_description(a_pets) == Object({"name": Text("A name")})
        assert build_description(b_pets) == Text("Pets in b.")
        assert build_description(pets) == Object({"name": Text("Unqualified name")})

    def test_generated_column_is_computed(self, tables):
        slug = tables["pets"].members[-1]
        assert slug.storage is StorageKind.COMPUTED
        assert slug.comments == []

    def test_multiline_doc_block(self):
        sql = """
        CREATE TABLE t (
            /**
             * First line.
             * Second line.
             */
            value int
        );
        """
        (decl,) = declarations_from_sql(sql)
        assert _comments(decl.members[0]) == [
            (CommentKind.DOC, "First line.\nSecond line.")
        ]


class TestSynthesis:
    """Descriptions built from SQL declarations."""

    def test_pets_description(self, tables):
        assert build_description(tables["pets"]) == Object(
            {
                "id": Text("Primary key."),
                "name": Text("Display name."),
                "tag": Text("Free-form tag."),
            }
        )

    def test_pets_doc_only(self, tables):
        result = build_description(tables["pets"], SynthesisConfig(doc_only=True))
        assert result == Object(
            {"id": Text("Primary key."), "name": Text("Display name.")}
        )

    def test_owners_doc_only(self, tables):
        result = build_description(tables["owners"], SynthesisConfig(doc_only=True))
        assert result == Object({"pet_id": Text("The owned pet.")})

    def test_strings_do_not_hide_code(self):
        sql = """
        CREATE TABLE t (
            value text DEFAULT '-- not a comment',
            --- Real comment.
            other text
        );
        """
        (decl,) = declarations_from_sql(sql)
        assert build_description(decl) == Object({"other": Text("Real comment.")})


class TestErrors:
    def test_parse_error(self):
        with pytest.raises(IntrospectionError) as exc_info:
            declarations_from_sql("CREATE TABLE (;", filename="bad.sql")
        assert exc_info.value.source == "bad.sql"
        assert "Failed to parse SQL" in str(exc_info.value)
