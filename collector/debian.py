"""
Parse Debian control-format ``Packages`` indexes into PackageInfo entries.

Used for Debian and its derivatives (Ubuntu, Deepin, openKylin). Download
and decompression of the index happen elsewhere; this works on text.
"""

import re
from typing import Dict, Iterable, Iterator, List
from pydantic import ValidationError
from models.base import DistType
from schemas.package import PackageInfo
import logging

logger = logging.getLogger(__name__)

# "libc6 (>= 2.34)" -> "libc6", "foo:any" -> "foo"
_VERSION_CONSTRAINT = re.compile(r"\s*[\(\[<].*$")


def iter_stanzas(lines: Iterable[str]) -> Iterator[Dict[str, str]]:
    """Yield one field dict per blank-line separated stanza (continuation lines folded)"""
    stanza: Dict[str, str] = {}
    last_field = None
    for raw in lines:
        line = raw.rstrip("\n")
        if not line.strip():
            if stanza:
                yield stanza
            stanza, last_field = {}, None
            continue
        if line[0] in " \t":
            if last_field is not None:
                stanza[last_field] += "\n" + line.strip()
            continue
        field, sep, value = line.partition(":")
        if not sep:
            continue
        last_field = field.strip()
        stanza[last_field] = value.strip()
    if stanza:
        yield stanza


def parse_depends(value: str) -> List[str]:
    """
    Dependency names in declaration order.

    Alternatives (``a | b``) keep the first choice; version constraints,
    architecture qualifiers and duplicates are dropped.
    """
    names: List[str] = []
    for clause in value.split(","):
        first = clause.split("|")[0]
        name = _VERSION_CONSTRAINT.sub("", first).strip().split(":")[0]
        if name and name not in names:
            names.append(name)
    return names


def parse_packages(text: str, dist_type: DistType, table_prefix: str) -> List[PackageInfo]:
    packages: List[PackageInfo] = []
    for stanza in iter_stanzas(text.splitlines()):
        depends = parse_depends(
            ", ".join(v for v in (stanza.get("Pre-Depends"), stanza.get("Depends")) if v)
        )
        try:
            packages.append(PackageInfo(
                name=stanza.get("Package", ""),
                type=dist_type,
                dist_table_prefix=table_prefix,
                version=stanza.get("Version"),
                description=(stanza.get("Description") or "").split("\n")[0],
                homepage=stanza.get("Homepage"),
                direct_depends=depends,
            ))
        except ValidationError as e:
            logger.warning(f"Skipping malformed stanza {stanza.get('Package')!r}: {e}")
    logger.info(f"Parsed {len(packages)} {dist_type.value} packages")
    return packages
