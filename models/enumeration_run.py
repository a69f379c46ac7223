from sqlalchemy import Column, String, Enum, DateTime, Float, Integer, Text, Index, Uuid
from datetime import datetime
import uuid
from models.base import Base, BigIntPK, JSONType, RunStatus


class EnumerationRun(Base):
    """
    Audit row for one platform enumeration.

    Purpose:
    - Track how many records each run wrote or failed to write
    - Keep the failed and truncated ranges so a caller can retry them
    """
    __tablename__ = "enumeration_runs"

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    run_id = Column(Uuid, default=uuid.uuid4, unique=True, nullable=False, index=True)

    # Platform identification
    platform = Column(String(50), nullable=False, index=True)
    platform_prefix = Column(String(50), nullable=False)
    output_kind = Column(String(20), nullable=False)

    status = Column(Enum(RunStatus), default=RunStatus.PENDING, nullable=False, index=True)

    # Timestamps
    started_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    completed_at = Column(DateTime, nullable=True)
    duration_seconds = Column(Float, nullable=True)

    # Statistics
    records_written = Column(Integer, default=0)
    records_failed = Column(Integer, default=0)

    # Error tracking
    error_message = Column(Text, nullable=True)
    failed_ranges = Column(JSONType, nullable=True)
    truncated_ranges = Column(JSONType, nullable=True)

    # Driver options at run time
    config_snapshot = Column(JSONType, nullable=True)

    __table_args__ = (
        Index("idx_enumeration_run_platform_started", "platform", "started_at"),
    )
