"""Tests for DatabaseManager."""

import pytest

from logscribe.core.database import DatabaseManager
from logscribe.core.exceptions import DatabaseError


class TestDatabaseManagerInit:
    """Test database initialization."""

    def test_creates_db_file(self, tmp_db_path):
        DatabaseManager(tmp_db_path)
        assert tmp_db_path.exists()

    def test_creates_parent_directory(self, tmp_dir):
        db_path = tmp_dir / "sub" / "dir" / "test.db"
        DatabaseManager(db_path)
        assert db_path.exists()

    def test_singleton_returns_same_instance(self, tmp_db_path):
        a = DatabaseManager(tmp_db_path)
        b = DatabaseManager()  # no path needed for second call
        assert a is b

    def test_raises_without_path_on_first_init(self):
        with pytest.raises(DatabaseError):
            DatabaseManager()

    def test_schema_created(self, tmp_db_path):
        db = DatabaseManager(tmp_db_path)
        with db._lock:
            cursor = db._conn.execute(
                "SELECT name FROM sqlite_master WHERE type='table'"
            )
            tables = {row['name'] for row in cursor.fetchall()}
        assert "kv_store" in tables


class TestDatabaseManagerKeyValue:
    """Test raw key/value operations."""

    def test_get_missing_key_returns_none(self, tmp_db_path):
        db = DatabaseManager(tmp_db_path)
        assert db.raw_get("missing") is None

    def test_set_and_get(self, tmp_db_path):
        db = DatabaseManager(tmp_db_path)
        db.raw_set("trans:abc", "rendered text")
        assert db.raw_get("trans:abc") == "rendered text"

    def test_set_overwrites(self, tmp_db_path):
        db = DatabaseManager(tmp_db_path)
        db.raw_set("k", "first")
        db.raw_set("k", "second")
        assert db.raw_get("k") == "second"

        with db._lock:
            count = db._conn.execute("SELECT COUNT(*) AS cnt FROM kv_store").fetchone()['cnt']
        assert count == 1

    def test_unicode_round_trip(self, tmp_db_path):
        db = DatabaseManager(tmp_db_path)
        db.raw_set("k", "中文标题 ├── │")
        assert db.raw_get("k") == "中文标题 ├── │"

    def test_delete(self, tmp_db_path):
        db = DatabaseManager(tmp_db_path)
        db.raw_set("k", "v")
        db.raw_delete("k")
        assert db.raw_get("k") is None

    def test_delete_missing_key_no_error(self, tmp_db_path):
        db = DatabaseManager(tmp_db_path)
        db.raw_delete("nonexistent")  # should not raise

    def test_closed_connection_raises_database_error(self, tmp_db_path):
        db = DatabaseManager(tmp_db_path)
        db.close()
        with pytest.raises(DatabaseError):
            db.raw_get("k")


class TestDatabaseManagerLifecycle:
    """Test close and reset."""

    def test_values_survive_reopen(self, tmp_db_path):
        db = DatabaseManager(tmp_db_path)
        db.raw_set("k", "persisted")
        DatabaseManager.reset()

        db2 = DatabaseManager(tmp_db_path)
        assert db2 is not db
        assert db2.raw_get("k") == "persisted"
