# ============================================================================
# File: collector/pipeline.py
# Description: One collection pass over a distribution's package universe
# ============================================================================
"""
Package collection pipeline.

Order of one pass:
1. Normalize raw entries into PackageInfo (invalid entries are skipped)
2. Build the dependency graph; fill indirect_depends and depends_count
3. Resolve gitlinks against enumerated records
4. Apply externally computed PageRank
5. Normalize impact over the whole universe
6. Persist packages and replace the dependency edges

Every step reruns cleanly: the same inputs give the same stored rows.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union
from pydantic import ValidationError
from collector.graph import build_graph, fill_dependency_counts
from collector.impact import ImpactScorer, apply_page_rank
from collector.package_info import resolve_gitlink
from collector.store import PackageStore
from models.base import DistType
from schemas.package import PackageInfo
import logging

logger = logging.getLogger(__name__)


@dataclass
class CollectionResult:
    dist_type: str
    table_prefix: str
    packages: List[PackageInfo] = field(default_factory=list)
    skipped: int = 0
    linked: int = 0
    edges: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dist_type": self.dist_type,
            "table_prefix": self.table_prefix,
            "packages": len(self.packages),
            "skipped": self.skipped,
            "linked": self.linked,
            "edges": self.edges,
        }


class PackageCollector:
    """
    Collect one distribution into the package store.

    Responsibilities:
    - Normalize entries and de-duplicate by name (last entry wins)
    - Compute fan-in over the finalized universe before scoring
    - Keep lookup misses non-fatal
    """

    def __init__(self, store: PackageStore, dist_type: DistType, table_prefix: str):
        self.store = store
        self.dist_type = dist_type
        self.table_prefix = table_prefix
        self.scorer = ImpactScorer()

    def normalize(self, entries: Iterable[Union[PackageInfo, Mapping[str, Any]]], result: CollectionResult) -> List[PackageInfo]:
        by_name: Dict[str, PackageInfo] = {}
        for entry in entries:
            if isinstance(entry, PackageInfo):
                package = entry
            else:
                try:
                    package = PackageInfo(
                        **{**entry, "type": self.dist_type, "dist_table_prefix": self.table_prefix}
                    )
                except ValidationError as e:
                    result.skipped += 1
                    logger.warning(f"Skipping invalid {self.dist_type.value} entry {entry.get('name', entry.get('Name'))!r}: {e}")
                    continue
            by_name[package.name] = package
        return list(by_name.values())

    async def collect(
        self,
        entries: Iterable[Union[PackageInfo, Mapping[str, Any]]],
        page_rank: Optional[Mapping[str, float]] = None,
    ) -> CollectionResult:
        result = CollectionResult(dist_type=self.dist_type.value, table_prefix=self.table_prefix)

        packages = self.normalize(entries, result)
        graph = build_graph(packages)
        fill_dependency_counts(packages, graph)

        for package in packages:
            if await resolve_gitlink(package, self.store):
                result.linked += 1

        apply_page_rank(packages, page_rank or {})
        self.scorer.score(packages)

        await self.store.upsert_packages(packages)
        result.edges = await self.store.replace_edges(self.table_prefix, packages)
        result.packages = packages

        logger.info(
            f"Collected {len(packages)} {self.dist_type.value} packages "
            f"({result.linked} linked, {result.skipped} skipped, {result.edges} edges)"
        )
        return result
