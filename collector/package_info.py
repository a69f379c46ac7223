"""
Gitlink resolution against previously enumerated records
"""

from core.exceptions import LookupMiss
from enumeration.drivers.pypi import find_git_link
from schemas.package import PackageInfo
import logging

logger = logging.getLogger(__name__)


async def resolve_gitlink(package: PackageInfo, store) -> str:
    """
    Set ``package.gitlink`` from the record with the same name under the
    package's table prefix.

    A miss is logged and leaves the gitlink empty.
    """
    try:
        record = await store.get_record(package.dist_table_prefix, package.name)
    except LookupMiss as e:
        logger.debug(f"Gitlink lookup miss: {e.message}")
        return package.gitlink

    attributes = record.attributes or {}
    link = attributes.get("git_link") or find_git_link(
        [attributes.get("url"), attributes.get("clone_url"), attributes.get("homepage")]
    )
    if link:
        package.gitlink = link
    else:
        logger.debug(f"Record {record.identifier} carries no git link")
    return package.gitlink
