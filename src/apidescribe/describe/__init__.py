"""apidescribe.describe - Description tree synthesis."""

from apidescribe.describe.models import (
    ROOT_DESCRIPTION_KEY,
    AliasTable,
    CommentBlock,
    CommentKind,
    Declaration,
    DescriptionNode,
    Member,
    Object,
    RootCommentPolicy,
    StorageKind,
    SynthesisConfig,
    SynthesisResult,
    Text,
    node_from_json,
)
from apidescribe.describe.synthesizer import (
    TypeResolver,
    build_description,
    classify_comments,
    is_eligible,
    member_description,
    resolve_alias,
)

__all__ = [
    "ROOT_DESCRIPTION_KEY",
    "AliasTable",
    "CommentBlock",
    "CommentKind",
    "Declaration",
    "DescriptionNode",
    "Member",
    "Object",
    "RootCommentPolicy",
    "StorageKind",
    "SynthesisConfig",
    "SynthesisResult",
    "Text",
    "TypeResolver",
    "build_description",
    "classify_comments",
    "is_eligible",
    "member_description",
    "resolve_alias",
    "node_from_json",
]
