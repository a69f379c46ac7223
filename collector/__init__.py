"""
Distribution package collection.

Modules:
    mirrors: Immutable mirror catalogue keyed by distribution
    sources: Index download and decoding
    debian: Control-format Packages parser
    graph: networkx dependency graph and fan-in counts
    package_info: Gitlink resolution against enumerated records
    impact: Impact normalization and PageRank intake
    store: PackageStore (dist_packages, dist_dependency_edges, record lookup)
    pipeline: PackageCollector running one collection pass
"""

__all__ = [
    "mirrors",
    "sources",
    "debian",
    "graph",
    "package_info",
    "impact",
    "store",
    "pipeline",
]
