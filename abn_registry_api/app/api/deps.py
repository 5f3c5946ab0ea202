"""
FastAPI dependencies that wire services to their stores.

Every request gets fresh service objects; the name service receives
the record store explicitly as its ``RecordLookup``.
"""

from abn_registry_api.app.services.abn_name_service import AbnNameService
from abn_registry_api.app.services.abn_record_service import AbnRecordService
from abn_registry_api.app.stores.abn_name_store import AbnNameStore
from abn_registry_api.app.stores.abn_record_store import AbnRecordStore


def get_record_service() -> AbnRecordService:
    return AbnRecordService(records=AbnRecordStore(), names=AbnNameStore())


def get_name_service() -> AbnNameService:
    return AbnNameService(names=AbnNameStore(), records=AbnRecordStore())
