"""
Pytest configuration: puts the project root on the import path and provides
paged resource fixtures.
"""

import sys
from pathlib import Path

# Add the parent directory to the Python path
parent_dir = Path(__file__).parent.parent
if str(parent_dir) not in sys.path:
    sys.path.insert(0, str(parent_dir))

import pytest

from utils import FlakyPagedResource, InMemoryPagedResource, sample_students


@pytest.fixture
def students():
    """Twelve deterministic student records"""
    return sample_students(12)


@pytest.fixture
def make_resource():
    """Factory for an in-memory resource, optionally wrapped with injected timeouts"""
    def _make(records, page_size, failures=None):
        resource = InMemoryPagedResource(records, page_size=page_size)
        if failures:
            return FlakyPagedResource(resource, failures)
        return resource
    return _make
