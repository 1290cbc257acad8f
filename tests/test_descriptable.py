"""
auto_describe and OpenAPIDescriptable tests.

Tests for:
- Bare and parameterized decorator use
- get_description on classes, instances and undescribed objects
- Nested descriptions through module-level classes
- Graceful fallback when source is unavailable
"""

import logging
from dataclasses import dataclass

from apidescribe import (
    ROOT_DESCRIPTION_KEY,
    Object,
    OpenAPIDescriptable,
    Text,
    auto_describe,
    get_description,
)


@auto_describe
class Pet:
    """A pet in the store."""

    #: Display name.
    name: str
    # Internal identifier.
    id: int


@auto_describe(doc_comments_only=True)
class Tag:
    #: Tag label.
    label: str
    # Not part of the public description.
    weight: int


@auto_describe
class Address(OpenAPIDescriptable):
    """Postal address."""

    #: Street and number.
    street: str
    #: Postal code.
    zip_code: str

    class CodingKeys:
        zip_code = "zipCode"


@auto_describe(nested=True)
class Customer(OpenAPIDescriptable):
    """A customer."""

    #: Where to ship orders.
    address: Address
    #: Billing address, if different.
    billing: "Address | None" = None
    #: Full name.
    name: str = ""
    #: Earlier shipping addresses.
    previous: "list[Address]" = []
    #: Addresses by label.
    labeled: "dict[str, Address] | None" = None


@auto_describe
@dataclass
class Order:
    #: Quantity ordered.
    quantity: int

    @property
    def is_large(self) -> bool:
        """Whether the order is large."""
        return self.quantity > 100


class TestAutoDescribe:
    """Descriptions synthesized at class definition time."""

    def test_bare_decorator(self):
        assert get_description(Pet) == Object(
            {"name": Text("Display name."), "id": Text("Internal identifier.")}
        )

    def test_doc_comments_only(self):
        assert get_description(Tag) == Object({"label": Text("Tag label.")})

    def test_alias_enum_used(self):
        assert get_description(Address) == Object(
            {"street": Text("Street and number."), "zipCode": Text("Postal code.")}
        )

    def test_properties_never_described(self):
        assert get_description(Order) == Object({"quantity": Text("Quantity ordered.")})

    def test_decorated_class_still_usable(self):
        assert Order(quantity=3).quantity == 3

    def test_coding_keys_disabled(self):
        @auto_describe(coding_keys=False)
        class Local:
            #: Identifier.
            user_id: int

            class CodingKeys:
                user_id = "id"

        assert get_description(Local) == Object({"user_id": Text("Identifier.")})

    def test_root_comment_merge(self):
        @auto_describe(root_comment="merge")
        class Local:
            """A local type."""

            #: Value.
            value: int

        assert get_description(Local) == Object(
            {"value": Text("Value."), ROOT_DESCRIPTION_KEY: Text("A local type.")}
        )

    def test_root_only_class(self):
        @auto_describe
        class Local:
            """Only a docstring."""

        assert get_description(Local) == Text("Only a docstring.")


class TestNested:
    """Members typed with describable classes of the same module."""

    def test_nested_structure_replaces_member_text(self):
        address = Object(
            {"street": Text("Street and number."), "zipCode": Text("Postal code.")}
        )
        assert get_description(Customer) == Object(
            {
                "address": address,
                "billing": address,
                "name": Text("Full name."),
                "previous": Text("Earlier shipping addresses."),
                "labeled": Text("Addresses by label."),
            }
        )

    def test_containers_keep_member_text(self):
        description = get_description(Customer)
        assert description["previous"] == Text("Earlier shipping addresses.")
        assert description["labeled"] == Text("Addresses by label.")

    def test_nested_off_by_default(self):
        @auto_describe
        class Local:
            #: Where to ship orders.
            address: Address

        assert get_description(Local) == Object(
            {"address": Text("Where to ship orders.")}
        )


class TestGetDescription:
    def test_instance_uses_class_description(self):
        assert get_description(Pet()) == get_description(Pet)

    def test_undescribed_class(self):
        class Plain:
            pass

        assert get_description(Plain) is None
        assert get_description(object()) is None

    def test_mixin_default_is_absent(self):
        class Plain(OpenAPIDescriptable):
            pass

        assert get_description(Plain) is None

    def test_manual_description(self):
        class Manual(OpenAPIDescriptable):
            openapi_description = Text("Hand written.")

        assert get_description(Manual) == Text("Hand written.")

    def test_non_node_attribute_ignored(self):
        class Odd:
            openapi_description = "not a node"

        assert get_description(Odd) is None


class TestUnavailableSource:
    def test_dynamic_class_left_unchanged(self, caplog):
        dynamic = type("Dynamic", (), {"__annotations__": {"value": int}})

        with caplog.at_level(logging.WARNING, logger="apidescribe.descriptable"):
            result = auto_describe(dynamic)

        assert result is dynamic
        assert get_description(dynamic) is None
        assert "Cannot auto-describe Dynamic" in caplog.text
