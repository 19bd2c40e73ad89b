"""Fixtures for schedule engine tests."""

from __future__ import annotations

import pytest

from models import Resource, ResourceKind


@pytest.fixture
def equipment() -> Resource:
    """Equipment resource with three units."""
    return Resource(id="EQ1", name="Crane", kind=ResourceKind.EQUIPMENT, capacity=3)
