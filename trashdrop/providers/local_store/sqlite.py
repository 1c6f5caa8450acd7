import logging
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Column, MetaData, String, Table, create_engine, delete, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from trashdrop.providers.local_store.base import LocalStore

logger = logging.getLogger(__name__)

metadata = MetaData()

kv_entries = Table(
    "kv_entries",
    metadata,
    Column("collection", String(64), primary_key=True),
    Column("key", String(128), primary_key=True),
    Column("value", JSON, nullable=False),
)


class SqliteLocalStore(LocalStore):
    """
    LocalStore backed by a SQLite file through SQLAlchemy Core.

    Every call runs in its own short transaction, so a crash between calls
    never leaves a half-written entry.
    """

    def __init__(self, path: str = "trashdrop_offline.db", engine: Optional[Engine] = None):
        if engine is None:
            if path == ":memory:":
                engine = create_engine(
                    "sqlite://",
                    connect_args={"check_same_thread": False},
                    poolclass=StaticPool,
                )
            else:
                engine = create_engine(
                    f"sqlite:///{path}", connect_args={"check_same_thread": False}
                )
        self.engine = engine
        metadata.create_all(self.engine)
        logger.debug(f"Local store ready at {self.engine.url}")

    def get_all(self, collection: str) -> Dict[str, Any]:
        query = (
            select(kv_entries.c.key, kv_entries.c.value)
            .where(kv_entries.c.collection == collection)
            .order_by(kv_entries.c.key)
        )
        with self.engine.connect() as conn:
            return {row.key: row.value for row in conn.execute(query)}

    def get(self, collection: str, key: str) -> Optional[Any]:
        query = select(kv_entries.c.value).where(
            kv_entries.c.collection == collection, kv_entries.c.key == key
        )
        with self.engine.connect() as conn:
            return conn.execute(query).scalar_one_or_none()

    def put(self, collection: str, key: str, value: Any) -> None:
        statement = sqlite_insert(kv_entries).values(
            collection=collection, key=key, value=value
        )
        statement = statement.on_conflict_do_update(
            index_elements=[kv_entries.c.collection, kv_entries.c.key],
            set_={"value": statement.excluded.value},
        )
        with self.engine.begin() as conn:
            conn.execute(statement)

    def delete(self, collection: str, key: str) -> None:
        with self.engine.begin() as conn:
            conn.execute(
                delete(kv_entries).where(
                    kv_entries.c.collection == collection, kv_entries.c.key == key
                )
            )

    def clear(self, collection: str) -> None:
        with self.engine.begin() as conn:
            conn.execute(delete(kv_entries).where(kv_entries.c.collection == collection))

    def close(self) -> None:
        self.engine.dispose()
