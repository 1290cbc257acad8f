"""Test helpers for building declarations by hand."""

from apidescribe.describe import CommentBlock, CommentKind, Member, StorageKind


def doc(text: str) -> CommentBlock:
    """Documentation comment block."""
    return CommentBlock(text, CommentKind.DOC)


def plain(text: str) -> CommentBlock:
    """Plain comment block."""
    return CommentBlock(text, CommentKind.PLAIN)


def member(
    name: str,
    *comments: CommentBlock | None,
    markers: list[str] | None = None,
    computed: bool = False,
    type_name: str | None = None,
) -> Member:
    """Member with the given comments (None entries are dropped)."""
    return Member(
        name=name,
        comments=[c for c in comments if c is not None],
        attribute_markers=markers or [],
        storage=StorageKind.COMPUTED if computed else StorageKind.STORED,
        type_name=type_name,
    )
