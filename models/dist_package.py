from sqlalchemy import Column, String, DateTime, Float, Integer, Text, Index
from datetime import datetime
from models.base import Base, BigIntPK


class DistPackage(Base):
    """
    A package of one distribution or registry, with its link and impact data.

    One row per (table_prefix, name). Scoring columns (depends_count,
    page_rank, impact) are rewritten on every collection pass.
    """
    __tablename__ = "dist_packages"

    id = Column(BigIntPK, primary_key=True, autoincrement=True)

    # Identity
    table_prefix = Column(String(50), nullable=False)
    name = Column(String(255), nullable=False)
    dist_type = Column(String(50), nullable=False, index=True)

    # Package metadata
    version = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    homepage = Column(String(2048), nullable=True)

    # Link and scoring
    git_link = Column(String(2048), nullable=True)
    depends_count = Column(Integer, nullable=False, default=0)
    page_rank = Column(Float, nullable=False, default=0.0)
    impact = Column(Float, nullable=False, default=0.0)

    # Timestamps
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("idx_dist_package_identity", "table_prefix", "name", unique=True),
        Index("idx_dist_package_impact", "table_prefix", "impact"),
    )


class DistDependencyEdge(Base):
    """Directed edge: ``package`` declares a dependency on ``depends_on``."""
    __tablename__ = "dist_dependency_edges"

    id = Column(BigIntPK, primary_key=True, autoincrement=True)

    table_prefix = Column(String(50), nullable=False)
    package = Column(String(255), nullable=False)
    depends_on = Column(String(255), nullable=False)
    position = Column(Integer, nullable=False, default=0)  # Declaration order

    __table_args__ = (
        Index("idx_dist_edge_identity", "table_prefix", "package", "depends_on", unique=True),
        Index("idx_dist_edge_target", "table_prefix", "depends_on"),
    )
