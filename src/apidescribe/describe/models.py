"""Data models for description synthesis."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

# Reserved Object key holding a declaration's own text under RootCommentPolicy.MERGE
ROOT_DESCRIPTION_KEY = "$description"


class CommentKind(str, Enum):
    """Marker convention of a comment block."""

    DOC = "doc"  # `#:`, `---`, docstrings, COMMENT ON
    PLAIN = "plain"  # `#`, `--`, `/* */`


class StorageKind(str, Enum):
    """Whether a member holds per-instance storage."""

    STORED = "stored"
    COMPUTED = "computed"


class RootCommentPolicy(str, Enum):
    """What happens to a declaration's own comment when members are described."""

    DISCARD = "discard"
    MERGE = "merge"


@dataclass(frozen=True)
class CommentBlock:
    """A comment attached to a declaration or member, marker stripped."""

    text: str
    kind: CommentKind = CommentKind.PLAIN

    @property
    def is_doc(self) -> bool:
        return self.kind is CommentKind.DOC


@dataclass
class Member:
    """A property of a declaration."""

    name: str
    comments: list[CommentBlock] = field(default_factory=list)
    attribute_markers: list[str] = field(default_factory=list)  # presence only
    storage: StorageKind = StorageKind.STORED
    type_name: str | None = None  # Only consulted for nested recursion
    line: int = 0


@dataclass
class AliasTable:
    """Declared member name -> external (serialized) name."""

    entries: dict[str, str] = field(default_factory=dict)

    def get(self, name: str) -> str | None:
        return self.entries.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self.entries

    def __len__(self) -> int:
        return len(self.entries)


@dataclass
class Declaration:
    """The unit being described: a type with comments and ordered members."""

    name: str
    comments: list[CommentBlock] = field(default_factory=list)
    members: list[Member] = field(default_factory=list)
    alias_table: AliasTable | None = None
    has_attributes: bool = False  # Never filtered, recorded for diagnostics
    key: str | None = None  # Identity for cycle detection, defaults to name
    source: str | None = None
    line: int = 0

    @property
    def identity(self) -> str:
        return self.key or self.name


@dataclass(frozen=True)
class Text:
    """Leaf description."""

    text: str

    def to_json(self) -> str:
        return self.text


@dataclass(frozen=True)
class Object:
    """Composite description: external name -> child description."""

    members: dict[str, DescriptionNode] = field(default_factory=dict)

    def to_json(self) -> dict[str, Any]:
        return {name: node.to_json() for name, node in self.members.items()}

    def __getitem__(self, name: str) -> DescriptionNode:
        return self.members[name]

    def __contains__(self, name: object) -> bool:
        return name in self.members

    def __len__(self) -> int:
        return len(self.members)


DescriptionNode = Union[Text, Object]


def node_from_json(value: Any) -> DescriptionNode | None:
    """Rebuild a DescriptionNode from its to_json() form.

    Strings become Text, dicts become Object (recursively). Anything else,
    including None, yields None.
    """
    if isinstance(value, str):
        return Text(value)
    if isinstance(value, dict):
        members: dict[str, DescriptionNode] = {}
        for name, child in value.items():
            node = node_from_json(child)
            if node is not None:
                members[str(name)] = node
        return Object(members)
    return None


@dataclass(frozen=True)
class SynthesisConfig:
    """Caller-supplied synthesis flags.

    Attributes:
        use_aliases: Resolve member names through the declaration's alias table
        doc_only: Only documentation comments contribute text
        root_comment: Policy when both root and member descriptions exist
        nested: Recurse into member types through a caller-supplied resolver
    """

    use_aliases: bool = True
    doc_only: bool = False
    root_comment: RootCommentPolicy = RootCommentPolicy.DISCARD
    nested: bool = False


@dataclass
class SynthesisResult:
    """A declaration together with its synthesized description."""

    declaration: Declaration
    description: DescriptionNode | None
