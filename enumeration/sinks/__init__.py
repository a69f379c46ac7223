"""
Record sinks.

Modules:
    base: Sink abstract base class
    stdout: StdOutSink, JSON lines on standard output
    text_file: TextFileSink, JSON lines appended to a file
    database: DatabaseSink, idempotent upsert into catalog_records

Sinks are built through ``enumeration.registry.create_sink``.
"""

__all__ = [
    "base",
    "stdout",
    "text_file",
    "database",
]
