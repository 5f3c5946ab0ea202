import pytest
from fastapi.testclient import TestClient

from abn_registry_api.app.core.config import settings
from abn_registry_api.app.core.db import init_db
from abn_registry_api.app.main import app
from abn_registry_api.app.services.abn_name_service import AbnNameService
from abn_registry_api.app.services.abn_record_service import AbnRecordService
from abn_registry_api.app.stores.abn_name_store import AbnNameStore
from abn_registry_api.app.stores.abn_record_store import AbnRecordStore


@pytest.fixture
def test_db(tmp_path, monkeypatch):
    """Point the app at a fresh SQLite file and migrate it."""
    db_file = tmp_path / "abn_test.db"
    monkeypatch.setattr(settings, "database_url", str(db_file))
    init_db()
    return db_file


@pytest.fixture
def record_store(test_db):
    return AbnRecordStore()


@pytest.fixture
def name_store(test_db):
    return AbnNameStore()


@pytest.fixture
def record_service(record_store, name_store):
    return AbnRecordService(records=record_store, names=name_store)


@pytest.fixture
def name_service(record_store, name_store):
    return AbnNameService(names=name_store, records=record_store)


@pytest.fixture
def client(test_db):
    return TestClient(app)
