"""
Fetch and decode distribution index artifacts.

Only Debian control-format indexes (Debian, Ubuntu, Deepin, openKylin) are
parsed here; other distributions can feed PackageCollector directly with
raw entry dicts.
"""

import gzip
import json
from pathlib import Path
from typing import Any, Dict, List, Union
from collector.debian import parse_packages
from collector.mirrors import get_mirror_urls
from core.exceptions import ConfigurationError, PlatformCommunicationError
from enumeration.http import HttpFetcher
from models.base import DistType
from schemas.package import PackageInfo
import logging

logger = logging.getLogger(__name__)

CONTROL_FORMAT_DISTS = frozenset({DistType.DEBIAN, DistType.UBUNTU, DistType.DEEPIN, DistType.OPENKYLIN})


def decode_index(url: str, payload: bytes) -> str:
    if url.endswith(".gz"):
        try:
            payload = gzip.decompress(payload)
        except (OSError, EOFError) as e:
            raise PlatformCommunicationError(
                "Index artifact is not valid gzip",
                context={"url": url},
                original_exception=e
            )
    return payload.decode("utf-8", errors="replace")


async def fetch_control_index(dist_type: DistType, table_prefix: str, fetcher: HttpFetcher) -> List[PackageInfo]:
    """Download every mirror index of a Debian-family distribution and parse it"""
    if dist_type not in CONTROL_FORMAT_DISTS:
        raise ConfigurationError(
            f"No index parser for distribution {dist_type.value}",
            context={"distribution": dist_type.value, "supported": sorted(d.value for d in CONTROL_FORMAT_DISTS)}
        )

    packages: List[PackageInfo] = []
    for url in get_mirror_urls(dist_type):
        logger.info(f"Fetching {dist_type.value} index {url}")
        response = await fetcher.get(url)
        packages.extend(parse_packages(decode_index(url, response.content), dist_type, table_prefix))
    return packages


def load_entries_file(path: Union[str, Path]) -> List[Dict[str, Any]]:
    """Raw entries from a JSON list file (``Depends``/``URL`` keys accepted)"""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise ConfigurationError(
            f"Cannot read package entries from {path}",
            context={"path": str(path)},
            original_exception=e
        )
    if not isinstance(data, list):
        raise ConfigurationError("Package entries file must hold a JSON list", context={"path": str(path)})
    return data


def load_page_rank_file(path: Union[str, Path]) -> Dict[str, float]:
    """PageRank values from a JSON object of package name -> score"""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise ConfigurationError(
            f"Cannot read PageRank values from {path}",
            context={"path": str(path)},
            original_exception=e
        )
    if not isinstance(data, dict):
        raise ConfigurationError("PageRank file must hold a JSON object", context={"path": str(path)})
    try:
        return {str(name): float(score) for name, score in data.items()}
    except (TypeError, ValueError) as e:
        raise ConfigurationError(
            "PageRank values must be numbers",
            context={"path": str(path)},
            original_exception=e
        )


def load_packages_file(path: Union[str, Path], dist_type: DistType, table_prefix: str) -> List[PackageInfo]:
    """Parse a local control-format Packages file (gzip when it ends in .gz)"""
    try:
        payload = Path(path).read_bytes()
    except OSError as e:
        raise ConfigurationError(
            f"Cannot read packages index {path}",
            context={"path": str(path)},
            original_exception=e
        )
    return parse_packages(decode_index(str(path), payload), dist_type, table_prefix)
