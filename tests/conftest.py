"""Shared pytest fixtures for apidescribe tests."""

import pytest
from apidescribe.describe import Declaration, SynthesisConfig

from tests.helpers import doc, member


@pytest.fixture
def config():
    """Default synthesis flags: aliases on, all comments."""
    return SynthesisConfig()


@pytest.fixture
def make_declaration():
    """
    Factory fixture for Declarations built from (name, comment) pairs.

    Example:
        def test_pet(make_declaration):
            decl = make_declaration("Pet", ("name", "Pet name."), root="A pet.")
    """

    def _make(name: str, *fields, root: str | None = None, **kwargs) -> Declaration:
        members = [
            member(field_name, doc(text) if text is not None else None)
            for field_name, text in fields
        ]
        comments = [doc(root)] if root is not None else []
        return Declaration(name, comments=comments, members=members, **kwargs)

    return _make
