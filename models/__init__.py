"""
SQLAlchemy ORM models for database tables.

Models:
    base: Declarative base, portable column types, RunStatus and DistType
    catalog_record: Enumerated repositories and registry packages
    enumeration_run: Per-platform enumeration audit
    dist_package: Distribution packages and their dependency edges

Database Schema:
    JSON payloads are stored as JSONB on PostgreSQL and JSON elsewhere, so the
    same models run against SQLite in tests.

Usage:
    from models.catalog_record import CatalogRecord
    from models.dist_package import DistPackage, DistDependencyEdge
    from models.base import Base, RunStatus
"""

__all__ = [
    "base",
    "catalog_record",
    "enumeration_run",
    "dist_package",
]
