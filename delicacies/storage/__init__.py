"""
Storage Module for Bihari Delicacies

Persistence for schema-free marketplace records:
- Interchangeable record store backends (JSON files, MongoDB, SQL)
- Table id registry and demonstration seed data
- Filter/sort/paginate query engine
- Local upload sink for images
"""

from delicacies.storage.record_store import (
    RecordStore,
    JsonFileRecordStore,
    MongoRecordStore,
    SqlRecordStore,
    create_record_store,
    connect_mongo,
)
from delicacies.storage.query import (
    FilterSpec,
    TableQuery,
    TablePage,
    page,
    query_table,
)
from delicacies.storage.tables import (
    TABLE_COLLECTIONS,
    resolve_table,
)
from delicacies.storage.seed import seed_demo_data
from delicacies.storage.uploads import UploadSink, sanitize_filename

__all__ = [
    # Record Store
    "RecordStore",
    "JsonFileRecordStore",
    "MongoRecordStore",
    "SqlRecordStore",
    "create_record_store",
    "connect_mongo",
    # Query Engine
    "FilterSpec",
    "TableQuery",
    "TablePage",
    "page",
    "query_table",
    # Tables
    "TABLE_COLLECTIONS",
    "resolve_table",
    "seed_demo_data",
    # Uploads
    "UploadSink",
    "sanitize_filename",
]
