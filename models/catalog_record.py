from sqlalchemy import Column, String, DateTime, Index
from datetime import datetime
from models.base import Base, BigIntPK, JSONType


class CatalogRecord(Base):
    """
    One enumerated repository or registry package.

    Design:
    - (platform_prefix, identifier) is the identity; writers upsert on it
    - attributes holds the platform-specific payload untouched
    - updated_at moves on every upsert (last write wins)
    """
    __tablename__ = "catalog_records"

    id = Column(BigIntPK, primary_key=True, autoincrement=True)

    # Identity
    platform_prefix = Column(String(50), nullable=False)
    identifier = Column(String(512), nullable=False)

    # Platform payload (stars, created_at, url, git_link, ...)
    attributes = Column(JSONType, nullable=False, default=dict)

    # Timestamps
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("idx_catalog_record_identity", "platform_prefix", "identifier", unique=True),
    )
