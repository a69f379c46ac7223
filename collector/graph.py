"""
Dependency graph of one package universe.

Edges point from a package to each package it depends on, so a package's
descendants are everything it pulls in and its ancestors are everything
that pulls it in (fan-in).
"""

from typing import Iterable, List
import networkx as nx
from schemas.package import PackageInfo
import logging

logger = logging.getLogger(__name__)


def build_graph(packages: Iterable[PackageInfo]) -> nx.DiGraph:
    """
    Build package -> dependency edges.

    Dependencies outside the universe become plain nodes without
    PackageInfo; they can be depended upon but depend on nothing.
    """
    graph = nx.DiGraph()
    for package in packages:
        graph.add_node(package.name)
        for dep in package.direct_depends:
            if dep != package.name:
                graph.add_edge(package.name, dep)
    return graph


def fill_dependency_counts(packages: List[PackageInfo], graph: nx.DiGraph) -> None:
    """Set indirect_depends (transitive minus direct) and depends_count (ancestors)"""
    for package in packages:
        direct = set(package.direct_depends)
        descendants = nx.descendants(graph, package.name)
        package.indirect_depends = sorted(descendants - direct - {package.name})
        package.depends_count = len(nx.ancestors(graph, package.name) - {package.name})

    logger.info(
        f"Dependency graph: {graph.number_of_nodes()} nodes, {graph.number_of_edges()} edges, "
        f"{len(packages)} packages scored"
    )
