"""Pytest configuration for tests.

No sys.path hacks - tests should import from the installed schemacast package.
"""

import pytest

from schemacast.kernel.descriptor import list_of, prop, schema


@pytest.fixture
def user_schema():
    """``User{name: string, title?: string, houses: string[]}``."""
    return schema(
        "User",
        prop("name", "string"),
        prop("title", "string", optional=True),
        prop("houses", list_of("string")),
    )


@pytest.fixture
def user_data():
    return {"name": "Yang", "houses": ["1111 Mission St"]}
