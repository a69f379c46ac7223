"""
Upsert records into the catalog_records table (idempotent per identity)
"""

from datetime import datetime
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker
from core.exceptions import SinkWriteError
from enumeration.sinks.base import Sink
from models.catalog_record import CatalogRecord
from schemas.record import Record
import logging

logger = logging.getLogger(__name__)

_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


class DatabaseSink(Sink):
    """
    Persist records with INSERT ... ON CONFLICT DO UPDATE.

    Ensures:
    - One row per (platform_prefix, identifier), however often it is written
    - Last write wins on conflict (attributes are replaced, not merged)
    - Safe under concurrent writers: every write uses its own session and
      the database resolves conflicting inserts
    """

    kind = "db"

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    @staticmethod
    def _insert_for(session):
        dialect = session.bind.dialect.name
        try:
            return _INSERTS[dialect]
        except KeyError:
            raise SinkWriteError(
                f"Upsert is not supported on {dialect}",
                context={"sink": "db", "dialect": dialect}
            )

    async def write(self, record: Record) -> None:
        now = datetime.utcnow()
        try:
            async with self.session_factory() as session:
                insert = self._insert_for(session)
                stmt = insert(CatalogRecord).values(
                    platform_prefix=record.platform_prefix,
                    identifier=record.identifier,
                    attributes=dict(record.attributes),
                    created_at=now,
                    updated_at=now,
                )
                stmt = stmt.on_conflict_do_update(
                    index_elements=["platform_prefix", "identifier"],
                    set_={
                        "attributes": stmt.excluded.attributes,
                        "updated_at": stmt.excluded.updated_at,
                    }
                )
                await session.execute(stmt)
                await session.commit()
        except SinkWriteError:
            raise
        except SQLAlchemyError as e:
            raise SinkWriteError(
                "Failed to upsert record",
                context={
                    "sink": self.kind,
                    "operation": "UPSERT",
                    "table_name": CatalogRecord.__tablename__,
                    "platform_prefix": record.platform_prefix,
                    "identifier": record.identifier
                },
                original_exception=e
            )
