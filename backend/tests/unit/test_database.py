"""
Tests for database URL helpers.
"""

import pytest

from travel_planner.core.database import ensure_sqlite_directory, is_sqlite_url


@pytest.mark.parametrize("url, expected", [
    ("sqlite+aiosqlite:///:memory:", True),
    ("sqlite+aiosqlite:///./data/travel_planner.db", True),
    ("postgresql+asyncpg://planner:secret@db:5432/planner", False),
])
def test_is_sqlite_url(url, expected):
    assert is_sqlite_url(url) is expected


def test_creates_parent_directory_for_file_database(tmp_path):
    db_file = tmp_path / "nested" / "data" / "planner.db"

    ensure_sqlite_directory(f"sqlite+aiosqlite:///{db_file}")

    assert db_file.parent.is_dir()
    assert not db_file.exists()


def test_memory_database_needs_no_directory(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    ensure_sqlite_directory("sqlite+aiosqlite:///:memory:")

    assert list(tmp_path.iterdir()) == []
