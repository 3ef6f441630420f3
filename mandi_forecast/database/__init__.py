from mandi_forecast.database.blob_store import BlobStore
from mandi_forecast.database.connection import create_db_engine, make_session_factory, session_scope
from mandi_forecast.database.migrations import initialize_database
from mandi_forecast.database.models import Base, StoredBlob

__all__ = [
    "BlobStore", "create_db_engine", "make_session_factory", "session_scope",
    "initialize_database", "Base", "StoredBlob",
]
