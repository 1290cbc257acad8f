"""Declaration introspection for Python classes.

Reads class bodies with ast and comments with tokenize:

- Documentation comments: class docstrings, `#:` comments and attribute
  docstrings (a string literal right after an assignment).
- Plain comments: any other `#` comment.
- Members: annotated assignments (stored, except ClassVar), plain
  assignments (computed) and decorated functions such as properties,
  whose decorators become attribute markers.
- Alias table: a nested `CodingKeys` enum plus `Field(alias=...)` style
  keywords on members.
"""

from __future__ import annotations

import ast
import inspect
import io
import logging
import sys
import tokenize
from typing import Iterator

from apidescribe.base import IntrospectionError
from apidescribe.describe.models import (
    AliasTable,
    CommentBlock,
    CommentKind,
    Declaration,
    Member,
    StorageKind,
)

log = logging.getLogger(__name__)

DEFAULT_ALIAS_ENUM = "CodingKeys"

# Decorators that produce ordinary methods, never instance attributes
_METHOD_DECORATORS = frozenset(
    {
        "staticmethod",
        "classmethod",
        "abstractmethod",
        "overload",
        "override",
        "validator",
        "root_validator",
        "field_validator",
        "model_validator",
        "field_serializer",
        "model_serializer",
    }
)

_FIELD_FACTORIES = frozenset({"Field", "field", "attrib", "ib"})


def _collect_comments(source: str, filename: str) -> dict[int, str]:
    """Map line number -> raw comment token, for comments alone on their line.

    A comment after code on the same line trails that code and is never
    attached to a declaration or member.
    """
    comments: dict[int, str] = {}
    try:
        for tok in tokenize.generate_tokens(io.StringIO(source).readline):
            if tok.type == tokenize.COMMENT and not tok.line[: tok.start[1]].strip():
                comments[tok.start[0]] = tok.string
    except (tokenize.TokenError, IndentationError) as e:
        raise IntrospectionError(f"Cannot tokenize source: {e}", filename) from e
    return comments


def _comment_block(raw: str) -> CommentBlock:
    if raw.startswith("#:"):
        return CommentBlock(raw[2:].strip(), CommentKind.DOC)
    return CommentBlock(raw[1:].strip(), CommentKind.PLAIN)


def _leading_comments(
    comments: dict[int, str], boundary: int, start: int
) -> list[CommentBlock]:
    """Standalone comments strictly between the previous code line and a statement."""
    return [
        _comment_block(comments[line])
        for line in range(boundary + 1, start)
        if line in comments
    ]


def _start_line(node: ast.stmt) -> int:
    decorators = getattr(node, "decorator_list", None)
    if decorators:
        return min(d.lineno for d in decorators)
    return node.lineno


def _header_end(node: ast.stmt) -> int:
    """Last line of a class or function header (bases, arguments, returns)."""
    end = node.lineno
    for name, value in ast.iter_fields(node):
        if name in ("body", "decorator_list"):
            continue
        values = value if isinstance(value, list) else [value]
        for item in values:
            if isinstance(item, ast.AST):
                for sub in ast.walk(item):
                    end = max(end, getattr(sub, "end_lineno", None) or end)
    return end


def _is_docstring(node: ast.stmt) -> bool:
    return (
        isinstance(node, ast.Expr)
        and isinstance(node.value, ast.Constant)
        and isinstance(node.value.value, str)
    )


def _terminal_name(node: ast.expr) -> str:
    """`a.b.c` -> `c`, `f(...)` -> name of f, `X[...]` -> name of X."""
    if isinstance(node, ast.Call):
        return _terminal_name(node.func)
    if isinstance(node, ast.Subscript):
        return _terminal_name(node.value)
    if isinstance(node, ast.Attribute):
        return node.attr
    if isinstance(node, ast.Name):
        return node.id
    return ""


def _is_classvar(annotation: ast.expr) -> bool:
    if isinstance(annotation, ast.Constant) and isinstance(annotation.value, str):
        # String annotation, e.g. "ClassVar[int]"
        return annotation.value.split("[", 1)[0].rsplit(".", 1)[-1] == "ClassVar"
    return _terminal_name(annotation) == "ClassVar"


def _str_constant(node: ast.expr | None) -> str | None:
    if isinstance(node, ast.Constant) and isinstance(node.value, str):
        return node.value
    return None


def _call_alias(call: ast.Call) -> str | None:
    """Alias from Field(serialization_alias=/alias=) or field(metadata={"alias": })."""
    if _terminal_name(call.func) not in _FIELD_FACTORIES:
        return None
    keywords = {kw.arg: kw.value for kw in call.keywords if kw.arg}
    for key in ("serialization_alias", "alias"):
        alias = _str_constant(keywords.get(key))
        if alias is not None:
            return alias
    metadata = keywords.get("metadata")
    if isinstance(metadata, ast.Dict):
        for k, v in zip(metadata.keys, metadata.values):
            if _str_constant(k) == "alias":
                return _str_constant(v)
    return None


def _field_alias(node: ast.AnnAssign) -> str | None:
    if isinstance(node.value, ast.Call):
        alias = _call_alias(node.value)
        if alias is not None:
            return alias
    # Annotated[T, Field(alias=...)]
    for sub in ast.walk(node.annotation):
        if isinstance(sub, ast.Call):
            alias = _call_alias(sub)
            if alias is not None:
                return alias
    return None


def _alias_entries(node: ast.ClassDef) -> dict[str, str]:
    entries: dict[str, str] = {}
    for stmt in node.body:
        if isinstance(stmt, ast.Assign) and len(stmt.targets) == 1:
            target = stmt.targets[0]
            value = _str_constant(stmt.value)
            if isinstance(target, ast.Name) and value is not None:
                entries[target.id] = value
    return entries


def _is_none(node: ast.expr) -> bool:
    return isinstance(node, ast.Constant) and node.value is None


def _target_name(node: ast.expr) -> str | None:
    if isinstance(node, ast.Constant) and isinstance(node.value, str):
        return annotation_target(node.value)
    if isinstance(node, (ast.Name, ast.Attribute)):
        return _terminal_name(node)
    if isinstance(node, ast.BinOp) and isinstance(node.op, ast.BitOr):
        parts = [n for n in (node.left, node.right) if not _is_none(n)]
        return _target_name(parts[0]) if len(parts) == 1 else None
    if isinstance(node, ast.Subscript):
        wrapper = _terminal_name(node.value)
        args = node.slice.elts if isinstance(node.slice, ast.Tuple) else [node.slice]
        if wrapper == "Optional" and len(args) == 1:
            return _target_name(args[0])
        if wrapper == "Annotated" and args:
            return _target_name(args[0])
        if wrapper == "Union":
            parts = [n for n in args if not _is_none(n)]
            return _target_name(parts[0]) if len(parts) == 1 else None
    return None


def annotation_target(type_name: str) -> str | None:
    """Name of the single class an annotation stands for.

    `X`, `"X"`, `mod.X`, `X | None`, `Optional[X]`, `Union[X, None]` and
    `Annotated[X, ...]` give `X`. Containers such as `list[X]` or
    `dict[str, X]`, and unions of several classes, give None.
    """
    try:
        tree = ast.parse(type_name.strip(), mode="eval")
    except SyntaxError:
        return None
    return _target_name(tree.body)


def _decorator_markers(node: ast.FunctionDef | ast.AsyncFunctionDef) -> list[str]:
    names = [_terminal_name(d) for d in node.decorator_list]
    if all(name in _METHOD_DECORATORS for name in names):
        return []
    return [ast.unparse(d) for d in node.decorator_list]


def _declaration_from_node(
    node: ast.ClassDef,
    comments: dict[int, str],
    boundary: int,
    *,
    key: str,
    alias_enum: str,
    filename: str,
) -> Declaration:
    decl_comments = _leading_comments(comments, boundary, _start_line(node))
    docstring = ast.get_docstring(node)
    if docstring is not None:
        decl_comments.append(CommentBlock(docstring, CommentKind.DOC))

    members: list[Member] = []
    enum_aliases: dict[str, str] = {}
    field_aliases: dict[str, str] = {}

    body = node.body
    previous_end = _header_end(node)
    for index, stmt in enumerate(body):
        start = _start_line(stmt)
        leading = _leading_comments(comments, previous_end, start)
        previous_end = stmt.end_lineno or stmt.lineno

        if index == 0 and docstring is not None and _is_docstring(stmt):
            continue

        follower = body[index + 1] if index + 1 < len(body) else None
        attr_doc = None
        if (
            isinstance(stmt, (ast.AnnAssign, ast.Assign))
            and follower is not None
            and _is_docstring(follower)
        ):
            attr_doc = CommentBlock(
                inspect.cleandoc(follower.value.value), CommentKind.DOC
            )

        if isinstance(stmt, ast.AnnAssign) and isinstance(stmt.target, ast.Name):
            name = stmt.target.id
            storage = (
                StorageKind.COMPUTED
                if _is_classvar(stmt.annotation)
                else StorageKind.STORED
            )
            alias = _field_alias(stmt)
            if alias is not None:
                field_aliases[name] = alias
            members.append(
                Member(
                    name=name,
                    comments=leading + ([attr_doc] if attr_doc else []),
                    storage=storage,
                    type_name=ast.unparse(stmt.annotation),
                    line=stmt.lineno,
                )
            )
        elif isinstance(stmt, ast.Assign):
            for target in stmt.targets:
                if isinstance(target, ast.Name):
                    members.append(
                        Member(
                            name=target.id,
                            comments=leading + ([attr_doc] if attr_doc else []),
                            storage=StorageKind.COMPUTED,
                            line=stmt.lineno,
                        )
                    )
        elif isinstance(stmt, (ast.FunctionDef, ast.AsyncFunctionDef)):
            markers = _decorator_markers(stmt)
            if markers:
                fn_doc = ast.get_docstring(stmt)
                members.append(
                    Member(
                        name=stmt.name,
                        comments=leading
                        + ([CommentBlock(fn_doc, CommentKind.DOC)] if fn_doc else []),
                        attribute_markers=markers,
                        storage=StorageKind.COMPUTED,
                        type_name=ast.unparse(stmt.returns) if stmt.returns else None,
                        line=stmt.lineno,
                    )
                )
        elif isinstance(stmt, ast.ClassDef) and stmt.name == alias_enum:
            enum_aliases = _alias_entries(stmt)

    alias_table = None
    if enum_aliases or field_aliases:
        # Enum entries take priority over per-field aliases
        alias_table = AliasTable({**field_aliases, **enum_aliases})

    return Declaration(
        name=node.name,
        comments=decl_comments,
        members=members,
        alias_table=alias_table,
        has_attributes=bool(node.decorator_list),
        key=key,
        source=filename,
        line=node.lineno,
    )


def _parse(source: str, filename: str) -> ast.Module:
    try:
        return ast.parse(source, filename=filename)
    except SyntaxError as e:
        raise IntrospectionError(e.msg, filename, e.lineno) from e


def _iter_defs(
    body: list[ast.stmt], boundary: int = 0
) -> Iterator[tuple[ast.stmt, int]]:
    """Yield (definition, boundary) pairs, looking inside if/try/with blocks.

    The boundary is the last code line before the definition.
    """
    for stmt in body:
        if isinstance(stmt, (ast.ClassDef, ast.FunctionDef, ast.AsyncFunctionDef)):
            yield stmt, boundary
        elif isinstance(stmt, (ast.If, ast.Try, ast.With, ast.For, ast.While)):
            for block in ("body", "orelse", "finalbody"):
                yield from _iter_defs(getattr(stmt, block, []), stmt.lineno)
            for handler in getattr(stmt, "handlers", []):
                yield from _iter_defs(handler.body, handler.lineno)
        boundary = stmt.end_lineno or stmt.lineno


def _find_class(tree: ast.Module, qualname: str) -> tuple[ast.ClassDef, int] | None:
    parts = [p for p in qualname.split(".") if p != "<locals>"]
    found: tuple[ast.stmt, int] | None = None
    defs = _iter_defs(tree.body)
    for part in parts:
        found = next((pair for pair in defs if pair[0].name == part), None)  # type: ignore[attr-defined]
        if found is None:
            return None
        parent = found[0]
        defs = _iter_defs(parent.body, _header_end(parent))  # type: ignore[attr-defined]
    if found is None or not isinstance(found[0], ast.ClassDef):
        return None
    return found[0], found[1]


def declaration_from_source(
    source: str,
    class_name: str,
    *,
    alias_enum: str = DEFAULT_ALIAS_ENUM,
    filename: str = "<source>",
) -> Declaration:
    """Build a Declaration for one class in Python source.

    Args:
        source: Module source text
        class_name: Class name, dotted for nested classes ("Outer.Inner")
        alias_enum: Name of the nested enum holding external names
        filename: Used in diagnostics

    Raises:
        IntrospectionError: If the source does not parse or has no such class
    """
    tree = _parse(source, filename)
    comments = _collect_comments(source, filename)
    found = _find_class(tree, class_name)
    if found is None:
        raise IntrospectionError(f"Class {class_name!r} not found", filename)
    node, boundary = found
    return _declaration_from_node(
        node,
        comments,
        boundary,
        key=f"{filename}:{class_name}",
        alias_enum=alias_enum,
        filename=filename,
    )


def declarations_from_source(
    source: str,
    *,
    alias_enum: str = DEFAULT_ALIAS_ENUM,
    filename: str = "<source>",
) -> list[Declaration]:
    """Build Declarations for every top-level class, in source order."""
    tree = _parse(source, filename)
    comments = _collect_comments(source, filename)
    return [
        _declaration_from_node(
            node,
            comments,
            boundary,
            key=f"{filename}:{node.name}",
            alias_enum=alias_enum,
            filename=filename,
        )
        for node, boundary in _iter_defs(tree.body)
        if isinstance(node, ast.ClassDef)
    ]


def declaration_from_class(
    cls: type, *, alias_enum: str = DEFAULT_ALIAS_ENUM
) -> Declaration:
    """Build a Declaration for a live class from its module's source.

    Raises:
        IntrospectionError: If the module source cannot be retrieved
    """
    module = sys.modules.get(cls.__module__)
    filename = getattr(module, "__file__", None) or cls.__module__
    try:
        source = inspect.getsource(module) if module is not None else None
    except (OSError, TypeError) as e:
        raise IntrospectionError(
            f"Source unavailable for {cls.__qualname__}: {e}", filename
        ) from e
    if source is None:
        raise IntrospectionError(f"Module {cls.__module__!r} not loaded", filename)

    decl = declaration_from_source(
        source,
        cls.__qualname__,
        alias_enum=alias_enum,
        filename=filename,
    )
    decl.key = f"{cls.__module__}.{cls.__qualname__}"
    log.debug("Introspected %s: %d members", decl.key, len(decl.members))
    return decl
