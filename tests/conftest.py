import pytest

from studentdb.store import RecordStore


@pytest.fixture
def store():
    """Store with three records in insertion order 3, 1, 2."""
    s = RecordStore()
    s.insert(3, "Carol Tan", "Computing Science", 70.0)
    s.insert(1, "Alice Lim", "Digital Supply Chain", 88.5)
    s.insert(2, "Bob Ng", "Game Development", 70.0)
    return s
