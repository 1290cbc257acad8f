"""
apidescribe - Synthesize OpenAPI descriptions from documentation comments.

This package provides:
- build_description: Description tree synthesis for a Declaration
- auto_describe / get_description: Class decorator and accessor
- Introspection adapters for Python classes, SQL DDL and live tables
"""

from apidescribe.base import DescribeError, IntrospectionError
from apidescribe.describe import (
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
    Text,
    build_description,
)
from apidescribe.descriptable import OpenAPIDescriptable, auto_describe, get_description

__all__ = [
    "ROOT_DESCRIPTION_KEY",
    "AliasTable",
    "CommentBlock",
    "CommentKind",
    "Declaration",
    "DescribeError",
    "DescriptionNode",
    "IntrospectionError",
    "Member",
    "Object",
    "OpenAPIDescriptable",
    "RootCommentPolicy",
    "StorageKind",
    "SynthesisConfig",
    "Text",
    "auto_describe",
    "build_description",
    "get_description",
]
