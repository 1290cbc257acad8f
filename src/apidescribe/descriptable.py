"""OpenAPI description protocol and the auto_describe class decorator.

Example:
    from apidescribe import auto_describe, get_description

    @auto_describe
    class Pet:
        \"\"\"A pet in the store.\"\"\"

        #: Display name.
        name: str
        # Internal identifier.
        id: int

    get_description(Pet)
    # Object({"name": Text("Display name."), "id": Text("Internal identifier.")})
"""

from __future__ import annotations

import inspect
import logging
import sys
from typing import Any, Callable, ClassVar, TypeVar, overload

from apidescribe.base import IntrospectionError
from apidescribe.describe.models import (
    Declaration,
    DescriptionNode,
    Member,
    Object,
    RootCommentPolicy,
    SynthesisConfig,
    Text,
)
from apidescribe.describe.synthesizer import TypeResolver, build_description
from apidescribe.introspect.python import (
    DEFAULT_ALIAS_ENUM,
    annotation_target,
    declaration_from_class,
)

log = logging.getLogger(__name__)

T = TypeVar("T", bound=type)


class OpenAPIDescriptable:
    """Mixin for types that expose an OpenAPI description.

    The description is absent by default. Override the class attribute by
    hand or let auto_describe synthesize it from source comments.
    """

    openapi_description: ClassVar[DescriptionNode | None] = None


def get_description(obj: Any) -> DescriptionNode | None:
    """Return the description of a class or of an instance's class."""
    tp = obj if isinstance(obj, type) else type(obj)
    node = getattr(tp, "openapi_description", None)
    return node if isinstance(node, (Text, Object)) else None


def _is_describable(candidate: Any) -> bool:
    return inspect.isclass(candidate) and (
        issubclass(candidate, OpenAPIDescriptable)
        or "openapi_description" in vars(candidate)
    )


def _module_resolver(cls: type, alias_enum: str) -> TypeResolver:
    """Resolve member annotations to describable classes in cls's module."""
    module = sys.modules.get(cls.__module__)
    namespace = vars(module) if module is not None else {}

    def resolve(member: Member) -> Declaration | None:
        name = annotation_target(member.type_name) if member.type_name else None
        candidate = namespace.get(name) if name else None
        if not _is_describable(candidate):
            return None
        try:
            return declaration_from_class(candidate, alias_enum=alias_enum)
        except IntrospectionError as e:
            log.warning("Cannot describe nested type %s: %s", name, e)
            return None

    return resolve


@overload
def auto_describe(cls: T) -> T: ...


@overload
def auto_describe(
    cls: None = None,
    *,
    coding_keys: bool = True,
    doc_comments_only: bool = False,
    root_comment: RootCommentPolicy | str = RootCommentPolicy.DISCARD,
    nested: bool = False,
    alias_enum: str = DEFAULT_ALIAS_ENUM,
) -> Callable[[T], T]: ...


def auto_describe(
    cls=None,
    *,
    coding_keys=True,
    doc_comments_only=False,
    root_comment=RootCommentPolicy.DISCARD,
    nested=False,
    alias_enum=DEFAULT_ALIAS_ENUM,
):
    """Synthesize `openapi_description` for a class from its source comments.

    Works bare (`@auto_describe`) or with arguments. Members with decorators
    (properties and the like) are never described, since stored and computed
    attributes cannot be told apart for them.

    Args:
        coding_keys: Use the nested `CodingKeys` enum and Field aliases for
            external names
        doc_comments_only: Only use `#:` comments and docstrings
        root_comment: "discard" or "merge" the class's own text when fields
            are described
        nested: Describe fields typed with other describable classes of the
            same module using their structure
        alias_enum: Name of the nested alias enum

    Returns:
        The class, with `openapi_description` set. If the source cannot be
        read, the class is returned unchanged and a warning is logged.
    """
    config = SynthesisConfig(
        use_aliases=coding_keys,
        doc_only=doc_comments_only,
        root_comment=RootCommentPolicy(root_comment),
        nested=nested,
    )

    def wrap(target):
        try:
            decl = declaration_from_class(target, alias_enum=alias_enum)
        except IntrospectionError as e:
            log.warning("Cannot auto-describe %s: %s", target.__qualname__, e)
            return target

        resolver = _module_resolver(target, alias_enum) if nested else None
        target.openapi_description = build_description(decl, config, resolver)
        return target

    if cls is None:
        return wrap
    return wrap(cls)
