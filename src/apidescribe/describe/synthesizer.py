"""Description synthesis from declaration comments and members.

Every function here is pure. Ambiguous members are omitted from the tree,
never reported as failures; diagnostics live in apidescribe.validators.
"""

from __future__ import annotations

from typing import Callable, Iterable

from .models import (
    ROOT_DESCRIPTION_KEY,
    AliasTable,
    CommentBlock,
    Declaration,
    DescriptionNode,
    Member,
    Object,
    RootCommentPolicy,
    StorageKind,
    SynthesisConfig,
    Text,
)

TypeResolver = Callable[[Member], "Declaration | None"]


def classify_comments(comments: Iterable[CommentBlock], doc_only: bool) -> str | None:
    """Join comment blocks into a description.

    Args:
        comments: Comment blocks in source order
        doc_only: Only use documentation comments

    Returns:
        Blocks joined by newlines, or None if nothing but whitespace remains
    """
    texts = [c.text for c in comments if c.is_doc or not doc_only]
    joined = "\n".join(texts)
    if not joined.strip():
        return None
    return joined


def is_eligible(member: Member) -> bool:
    """Whether a member may appear in the description tree.

    Members with attribute markers are excluded because their storage kind
    cannot be decided from syntax alone.
    """
    if member.attribute_markers:
        return False
    return member.storage is StorageKind.STORED


def resolve_alias(name: str, table: AliasTable | None, use_aliases: bool) -> str:
    """Map a declared member name to its external name."""
    if not use_aliases or table is None:
        return name
    alias = table.get(name)
    return name if alias is None else alias


def _merge_root(node: DescriptionNode, text: str | None) -> DescriptionNode:
    if text is None or not isinstance(node, Object):
        return node
    members = dict(node.members)
    # Written last so the reserved key always holds the root text
    members.pop(ROOT_DESCRIPTION_KEY, None)
    members[ROOT_DESCRIPTION_KEY] = Text(text)
    return Object(members)


def _member_node(
    member: Member,
    text: str | None,
    config: SynthesisConfig,
    resolve_type: TypeResolver | None,
    seen: frozenset[str],
) -> DescriptionNode | None:
    if not config.nested or resolve_type is None:
        return Text(text) if text is not None else None

    nested = None
    child = resolve_type(member)
    if child is not None and child.identity not in seen:
        nested = _build(child, config, resolve_type, seen | {child.identity})

    if isinstance(nested, Object):
        if config.root_comment is RootCommentPolicy.MERGE:
            return _merge_root(nested, text)
        return nested
    if text is not None:
        return Text(text)
    return nested


def member_description(
    decl: Declaration,
    member: Member,
    config: SynthesisConfig | None = None,
    resolve_type: TypeResolver | None = None,
) -> DescriptionNode | None:
    """The node build_description gives one member of decl, or None if omitted."""
    config = config or SynthesisConfig()
    if not is_eligible(member):
        return None
    text = classify_comments(member.comments, config.doc_only)
    return _member_node(
        member, text, config, resolve_type, frozenset({decl.identity})
    )


def _build(
    decl: Declaration,
    config: SynthesisConfig,
    resolve_type: TypeResolver | None,
    seen: frozenset[str],
) -> DescriptionNode | None:
    root_text = classify_comments(decl.comments, config.doc_only)

    mapping: dict[str, DescriptionNode] = {}
    for member in decl.members:
        if not is_eligible(member):
            continue
        external = resolve_alias(member.name, decl.alias_table, config.use_aliases)
        text = classify_comments(member.comments, config.doc_only)
        node = _member_node(member, text, config, resolve_type, seen)
        if node is not None:
            # Last declared member wins on duplicate external names
            mapping[external] = node

    if mapping:
        result = Object(mapping)
        if config.root_comment is RootCommentPolicy.MERGE:
            return _merge_root(result, root_text)
        return result
    if root_text is not None:
        return Text(root_text)
    return None


def build_description(
    decl: Declaration,
    config: SynthesisConfig | None = None,
    resolve_type: TypeResolver | None = None,
) -> DescriptionNode | None:
    """Synthesize the description tree for a declaration.

    Args:
        decl: Declaration with comments, members and optional alias table
        config: Synthesis flags (defaults: aliases on, all comments)
        resolve_type: Maps a member to its type's Declaration. Only used
            when config.nested is set.

    Returns:
        Object when any member is described, else Text of the declaration's
        own comment, else None

    Example:
        decl = Declaration(
            "Pet",
            comments=[CommentBlock("A pet.", CommentKind.DOC)],
            members=[Member("name", [CommentBlock("Pet name.", CommentKind.DOC)])],
        )
        build_description(decl)  # Object({"name": Text("Pet name.")})
    """
    return _build(
        decl, config or SynthesisConfig(), resolve_type, frozenset({decl.identity})
    )
