"""Declaration introspection for SQL DDL using the pglast parser.

One Declaration per CREATE TABLE, one Member per column. Comments directly
above a table or column are attached to it:

    --- Registered pets.            (documentation)
    -- internal note                (plain)
    CREATE TABLE pets (
        /** Display name. */        (documentation)
        name text NOT NULL,
        slug text GENERATED ALWAYS AS (lower(name)) STORED
    );

COMMENT ON TABLE / COMMENT ON COLUMN statements are documentation comments.
Generated columns are computed and therefore never described.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

import pglast
from pglast.enums import ConstrType, ObjectType

from apidescribe.base import IntrospectionError
from apidescribe.describe.models import (
    CommentBlock,
    CommentKind,
    Declaration,
    Member,
    StorageKind,
)

log = logging.getLogger(__name__)

_TOKEN_RE = re.compile(
    r"""
      (?P<line>--[^\n]*)
    | (?P<block>/\*.*?\*/)
    | (?P<string>'(?:[^']|'')*'|"(?:[^"]|"")*"|\$(?P<tag>\w*)\$.*?\$(?P=tag)\$)
    | (?P<space>\s+)
    | (?P<code>[^\s'"$/-]+|.)
    """,
    re.VERBOSE | re.DOTALL,
)


@dataclass
class _Token:
    kind: str  # "comment" | "code"
    start: int
    end: int
    text: str


def _tokenize(text: str) -> list[_Token]:
    """Split SQL into comment and code tokens; whitespace is dropped."""
    tokens: list[_Token] = []
    for m in _TOKEN_RE.finditer(text):
        if m.lastgroup in ("line", "block"):
            tokens.append(_Token("comment", m.start(), m.end(), m.group()))
        elif m.lastgroup != "space":
            tokens.append(_Token("code", m.start(), m.end(), m.group()))
    return tokens


def _comment_block(raw: str) -> CommentBlock:
    if raw.startswith("---"):
        return CommentBlock(raw[3:].strip(), CommentKind.DOC)
    if raw.startswith("--"):
        return CommentBlock(raw[2:].strip(), CommentKind.PLAIN)

    kind = CommentKind.DOC if raw.startswith("/**") and raw != "/**/" else CommentKind.PLAIN
    body = raw[3:-2] if kind is CommentKind.DOC else raw[2:-2]
    lines = [re.sub(r"^\s*\*?\s?", "", line).rstrip() for line in body.split("\n")]
    return CommentBlock("\n".join(lines).strip(), kind)


class _Source:
    """SQL text with helpers for pglast locations (UTF-8 byte offsets)."""

    def __init__(self, text: str):
        self.text = text
        self.encoded = text.encode("utf-8")
        self.tokens = _tokenize(text)

    def char_offset(self, location: int) -> int:
        return len(self.encoded[:location].decode("utf-8", errors="ignore"))

    def line_of(self, offset: int) -> int:
        return self.text.count("\n", 0, offset) + 1

    def first_code_at(self, offset: int) -> int:
        for tok in self.tokens:
            if tok.kind == "code" and tok.start >= offset:
                return tok.start
        return offset

    def leading_comments(self, offset: int) -> list[CommentBlock]:
        """Comments after the previous code token, excluding its trailing comment."""
        collected: list[_Token] = []
        previous_code: _Token | None = None
        for tok in self.tokens:
            if tok.start >= offset:
                break
            if tok.kind == "code":
                previous_code = tok
                collected = []
            else:
                collected.append(tok)

        if previous_code is not None:
            code_line = self.line_of(previous_code.end)
            collected = [c for c in collected if self.line_of(c.start) != code_line]
        return [_comment_block(c.text) for c in collected]


def _names(node) -> list[str]:
    items = getattr(node, "items", node)
    if not isinstance(items, (list, tuple)):
        items = (items,)
    return [getattr(i, "sval", None) or str(i) for i in items]


def _type_name_to_str(tn) -> str:
    if tn is None:
        return ""
    names = [n.sval for n in tn.names]
    if names and names[0] == "pg_catalog":
        names = names[1:]
    base = ".".join(names)
    if tn.arrayBounds:
        base += "[]"
    return base


def _is_generated(column) -> bool:
    return any(
        c.contype == ConstrType.CONSTR_GENERATED for c in column.constraints or ()
    )


def _collect_comment_statements(
    stmts,
) -> tuple[dict[str, str], dict[tuple[str, str], str]]:
    """COMMENT ON TABLE/COLUMN texts keyed by table and (table, column).

    Tables are keyed as written, schema-qualified or not.
    """
    tables: dict[str, str] = {}
    columns: dict[tuple[str, str], str] = {}
    for raw in stmts:
        stmt = raw.stmt
        if not isinstance(stmt, pglast.ast.CommentStmt) or stmt.comment is None:
            continue
        names = _names(stmt.object)
        if stmt.objtype == ObjectType.OBJECT_TABLE and names:
            tables[".".join(names)] = stmt.comment
        elif stmt.objtype == ObjectType.OBJECT_COLUMN and len(names) >= 2:
            columns[(".".join(names[:-1]), names[-1])] = stmt.comment
    return tables, columns


def declarations_from_sql(sql: str, filename: str = "<sql>") -> list[Declaration]:
    """Build Declarations for every CREATE TABLE in a SQL script.

    Args:
        sql: SQL script text
        filename: Used in diagnostics

    Returns:
        Declarations in statement order

    Raises:
        IntrospectionError: If the script does not parse
    """
    try:
        stmts = pglast.parse_sql(sql)
    except pglast.Error as e:
        raise IntrospectionError(f"Failed to parse SQL: {e}", filename) from e

    source = _Source(sql)
    table_comments, column_comments = _collect_comment_statements(stmts)

    declarations: list[Declaration] = []
    for raw in stmts:
        stmt = raw.stmt
        if not isinstance(stmt, pglast.ast.CreateStmt):
            continue

        relation = stmt.relation
        table = relation.relname
        schema = relation.schemaname
        key = f"{schema}.{table}" if schema else table
        start = source.first_code_at(source.char_offset(raw.stmt_location or 0))

        comments = source.leading_comments(start)
        if key in table_comments:
            comments.append(CommentBlock(table_comments[key], CommentKind.DOC))

        members: list[Member] = []
        for elt in stmt.tableElts or ():
            if not isinstance(elt, pglast.ast.ColumnDef):
                continue
            offset = source.char_offset(elt.location)
            column_docs = source.leading_comments(offset)
            if (key, elt.colname) in column_comments:
                column_docs.append(
                    CommentBlock(column_comments[(key, elt.colname)], CommentKind.DOC)
                )
            members.append(
                Member(
                    name=elt.colname,
                    comments=column_docs,
                    storage=(
                        StorageKind.COMPUTED
                        if _is_generated(elt)
                        else StorageKind.STORED
                    ),
                    type_name=_type_name_to_str(elt.typeName),
                    line=source.line_of(offset),
                )
            )

        declarations.append(
            Declaration(
                name=table,
                comments=comments,
                members=members,
                key=key,
                source=filename,
                line=source.line_of(start),
            )
        )
        log.debug("Parsed table %s: %d columns", table, len(members))

    return declarations
