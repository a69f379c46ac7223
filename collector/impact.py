"""
Impact normalization and PageRank intake.

PageRank comes from a separate centrality pass over the dependency edges;
it is taken as one float per package name and never computed here.
"""

from typing import List, Mapping
from schemas.package import PackageInfo
import logging

logger = logging.getLogger(__name__)


class ImpactScorer:
    """Impact = depends_count / N over a finalized universe of N packages"""

    def score(self, packages: List[PackageInfo]) -> List[PackageInfo]:
        count = len(packages)
        if count == 0:
            logger.info("Empty package universe, nothing to score")
            return packages
        for package in packages:
            package.calculate_impact(count)
        return packages


def apply_page_rank(packages: List[PackageInfo], scores: Mapping[str, float]) -> None:
    """Copy externally computed PageRank onto packages; unknown packages get 0.0"""
    missing = 0
    for package in packages:
        if package.name in scores:
            package.page_rank = float(scores[package.name])
        else:
            package.page_rank = 0.0
            missing += 1
    if missing:
        logger.debug(f"No PageRank value for {missing} of {len(packages)} packages")
