"""Shared fixtures for simpleschema tests."""

import pytest

from simpleschema import SimpleSchema


@pytest.fixture
def person_structure():
    """Schema used throughout the end-to-end tests."""
    return {
        "name": {"type": "string", "trim": 50},
        "surname": {"type": "string", "required": True, "trim": 10},
        "age": {"type": "number", "min": 10, "max": 20},
    }


@pytest.fixture
def person_schema(person_structure):
    return SimpleSchema(person_structure)
