"""
Persistence layer.

``AbnRecordStore`` and ``AbnNameStore`` own all SQL for their table.
Each operation opens a short-lived SQLite connection, runs
parameterised statements and returns plain ``dict`` documents keyed
by column name.  Unique constraint violations surface as
``DuplicateKeyError``.
"""

from .abn_name_store import AbnNameStore  # noqa: F401
from .abn_record_store import AbnRecordStore  # noqa: F401
