"""
Persist package collection results and look up enumerated records
"""

from datetime import datetime
from typing import List
from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker
from core.exceptions import LookupMiss, StoreError
from models.catalog_record import CatalogRecord
from models.dist_package import DistDependencyEdge, DistPackage
from schemas.package import PackageInfo
import logging

logger = logging.getLogger(__name__)

_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


class PackageStore:
    """
    Package rows, dependency edges and record lookups for one database.

    Ensures:
    - One dist_packages row per (table_prefix, name) on repeated passes
    - Edges of a universe are replaced as a whole, never merged
    """

    def __init__(self, session_factory: async_sessionmaker, batch_size: int = 500):
        self.session_factory = session_factory
        self.batch_size = batch_size

    @staticmethod
    def _insert_for(session):
        dialect = session.bind.dialect.name
        try:
            return _INSERTS[dialect]
        except KeyError:
            raise StoreError(
                f"Upsert is not supported on {dialect}",
                context={"dialect": dialect}
            )

    async def upsert_packages(self, packages: List[PackageInfo]) -> int:
        """
        Insert or update every package with its metadata and scores.

        Returns:
            Number of packages written
        """
        if not packages:
            return 0

        now = datetime.utcnow()
        written = 0
        try:
            async with self.session_factory() as session:
                insert = self._insert_for(session)
                for i in range(0, len(packages), self.batch_size):
                    batch = packages[i:i + self.batch_size]
                    rows = [
                        {**p.to_dist_package(), **p.to_dist_dependency(), "created_at": now, "updated_at": now}
                        for p in batch
                    ]
                    stmt = insert(DistPackage).values(rows)
                    stmt = stmt.on_conflict_do_update(
                        index_elements=["table_prefix", "name"],
                        set_={
                            "dist_type": stmt.excluded.dist_type,
                            "version": stmt.excluded.version,
                            "description": stmt.excluded.description,
                            "homepage": stmt.excluded.homepage,
                            "git_link": stmt.excluded.git_link,
                            "depends_count": stmt.excluded.depends_count,
                            "page_rank": stmt.excluded.page_rank,
                            "impact": stmt.excluded.impact,
                            "updated_at": stmt.excluded.updated_at,
                        }
                    )
                    await session.execute(stmt)
                    written += len(batch)
                    logger.debug(f"Batch {i // self.batch_size + 1}: upserted {len(batch)} packages")
                await session.commit()
        except StoreError:
            raise
        except SQLAlchemyError as e:
            raise StoreError(
                "Failed to upsert packages",
                context={"operation": "UPSERT", "table_name": DistPackage.__tablename__, "count": len(packages)},
                original_exception=e
            )

        logger.info(f"Upserted {written} packages into {DistPackage.__tablename__}")
        return written

    async def replace_edges(self, table_prefix: str, packages: List[PackageInfo]) -> int:
        """Swap the whole edge set of ``table_prefix`` for the packages' direct dependencies"""
        rows = [
            {"table_prefix": table_prefix, "package": p.name, "depends_on": dep, "position": position}
            for p in packages
            for position, dep in enumerate(p.direct_depends)
        ]
        try:
            async with self.session_factory() as session:
                await session.execute(
                    delete(DistDependencyEdge).where(DistDependencyEdge.table_prefix == table_prefix)
                )
                for i in range(0, len(rows), self.batch_size):
                    session.add_all(DistDependencyEdge(**row) for row in rows[i:i + self.batch_size])
                    await session.flush()
                await session.commit()
        except SQLAlchemyError as e:
            raise StoreError(
                "Failed to replace dependency edges",
                context={"operation": "REPLACE", "table_name": DistDependencyEdge.__tablename__,
                         "table_prefix": table_prefix},
                original_exception=e
            )

        logger.info(f"Stored {len(rows)} dependency edges for {table_prefix}")
        return len(rows)

    async def get_record(self, platform_prefix: str, identifier: str) -> CatalogRecord:
        """
        Enumerated record by identity.

        Raises:
            LookupMiss: no record with that identity
            StoreError: the lookup itself failed
        """
        try:
            async with self.session_factory() as session:
                result = await session.execute(
                    select(CatalogRecord).where(
                        CatalogRecord.platform_prefix == platform_prefix,
                        CatalogRecord.identifier == identifier,
                    )
                )
                record = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise StoreError(
                "Failed to look up record",
                context={"platform_prefix": platform_prefix, "identifier": identifier},
                original_exception=e
            )

        if record is None:
            raise LookupMiss(
                f"No enumerated record for {identifier}",
                context={"platform_prefix": platform_prefix, "identifier": identifier}
            )
        return record

    async def get_package(self, table_prefix: str, name: str) -> DistPackage:
        async with self.session_factory() as session:
            result = await session.execute(
                select(DistPackage).where(DistPackage.table_prefix == table_prefix, DistPackage.name == name)
            )
            package = result.scalar_one_or_none()
        if package is None:
            raise LookupMiss(
                f"No package {name} in {table_prefix}",
                context={"table_prefix": table_prefix, "name": name}
            )
        return package
