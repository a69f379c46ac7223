"""
Pydantic schemas for data validation and serialization.

Modules:
    record: Platform-agnostic catalog Record
    enumeration: EnumerationRange value object and driver EnumerationOptions
    package: PackageInfo for distribution package entries

Usage:
    from schemas.record import Record
    from schemas.enumeration import EnumerationOptions, EnumerationRange
    from schemas.package import PackageInfo

Example:
    record = Record(
        platform_prefix="github",
        identifier="octocat/hello-world",
        attributes={"stars": 120, "url": "https://github.com/octocat/hello-world"}
    )
    print(record.to_json_line())
"""

__all__ = [
    "record",
    "enumeration",
    "package",
]
