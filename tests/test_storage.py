"""
Tests for storage backends and transaction support
"""

import pytest
import tempfile
from datetime import datetime, timezone
from pathlib import Path

from loan_ledger.storage import InMemoryStorage, SQLiteStorage, create_storage
from loan_ledger.config import LedgerConfig


# Test data
test_data = {
    "id": "test_001",
    "loan_id": "loan_1",
    "amount": 333,
    "created_at": datetime.now(timezone.utc).isoformat(),
    "updated_at": datetime.now(timezone.utc).isoformat()
}


def exercise_basic_operations(storage):
    storage.save("test_table", "record_1", test_data)
    assert storage.load("test_table", "record_1") == test_data
    assert storage.load("test_table", "missing") is None
    
    assert storage.exists("test_table", "record_1")
    assert not storage.exists("test_table", "non_existent")
    
    storage.save("test_table", "record_2", {"id": "record_2", "loan_id": "loan_2"})
    assert len(storage.load_all("test_table")) == 2
    
    results = storage.find("test_table", {"loan_id": "loan_1"})
    assert len(results) == 1
    assert results[0]["id"] == "test_001"
    assert storage.find("test_table", {"loan_id": "loan_3"}) == []
    
    assert storage.count("test_table") == 2
    
    assert storage.delete("test_table", "record_1")
    assert not storage.delete("test_table", "record_1")
    assert storage.count("test_table") == 1
    
    storage.clear_table("test_table")
    assert storage.count("test_table") == 0


class TestStorageBackends:
    """Test basic CRUD operations"""
    
    def test_in_memory_storage_basic_operations(self):
        storage = InMemoryStorage()
        exercise_basic_operations(storage)
        storage.close()
    
    def test_in_memory_storage_returns_copies(self):
        storage = InMemoryStorage()
        storage.save("test_table", "record_1", {"id": "record_1", "items": [1, 2]})
        
        loaded = storage.load("test_table", "record_1")
        loaded["items"].append(3)
        
        assert storage.load("test_table", "record_1")["items"] == [1, 2]
    
    def test_sqlite_storage_basic_operations(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            storage = SQLiteStorage(Path(temp_dir) / "test.db")
            exercise_basic_operations(storage)
            storage.close()
    
    def test_sqlite_persists_across_connections(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            db_path = Path(temp_dir) / "test.db"
            storage = SQLiteStorage(db_path)
            storage.save("test_table", "record_1", test_data)
            storage.close()
            
            reopened = SQLiteStorage(db_path)
            assert reopened.load("test_table", "record_1") == test_data
            reopened.close()


class TestTransactionSupport:
    """Test atomic transaction support"""
    
    @pytest.fixture(params=["memory", "sqlite"])
    def storage(self, request, tmp_path):
        if request.param == "memory":
            backend = InMemoryStorage()
        else:
            backend = SQLiteStorage(tmp_path / "test.db")
        yield backend
        backend.close()
    
    def test_atomic_commits(self, storage):
        with storage.atomic():
            storage.save("test_table", "record_1", test_data)
            storage.save("test_table", "record_2", {"id": "record_2"})
        
        assert storage.count("test_table") == 2
    
    def test_atomic_rolls_back_on_error(self, storage):
        storage.save("test_table", "record_1", {"id": "record_1", "amount": 500})
        
        with pytest.raises(ValueError, match="Simulated error"):
            with storage.atomic():
                storage.save("test_table", "record_1", {"id": "record_1", "amount": 0})
                storage.save("test_table", "record_2", {"id": "record_2"})
                storage.delete("test_table", "record_1")
                raise ValueError("Simulated error")
        
        assert storage.load("test_table", "record_1") == {"id": "record_1", "amount": 500}
        assert not storage.exists("test_table", "record_2")
        assert storage.count("test_table") == 1
    
    def test_nested_atomic_rolls_back_everything(self, storage):
        with pytest.raises(RuntimeError):
            with storage.atomic():
                storage.save("test_table", "outer", {"id": "outer"})
                with storage.atomic():
                    storage.save("test_table", "inner", {"id": "inner"})
                raise RuntimeError("outer failure")
        
        assert storage.count("test_table") == 0
    
    def test_storage_usable_after_rollback(self, storage):
        with pytest.raises(ValueError):
            with storage.atomic():
                storage.save("test_table", "record_1", {"id": "record_1"})
                raise ValueError("Simulated error")
        
        with storage.atomic():
            storage.save("test_table", "record_2", {"id": "record_2"})
        
        assert [r["id"] for r in storage.load_all("test_table")] == ["record_2"]


class TestCreateStorage:
    """Test backend selection from configuration"""
    
    def test_memory_backend(self):
        storage = create_storage(LedgerConfig(storage_backend="memory"))
        assert isinstance(storage, InMemoryStorage)
    
    def test_sqlite_backend(self, tmp_path):
        db_path = tmp_path / "ledger.db"
        storage = create_storage(LedgerConfig(storage_backend="sqlite", database_path=str(db_path)))
        assert isinstance(storage, SQLiteStorage)
        assert storage.db_path == str(db_path)
        storage.close()
    
    def test_unknown_backend(self):
        with pytest.raises(ValueError, match="Unsupported storage backend"):
            create_storage(LedgerConfig(storage_backend="postgres"))
