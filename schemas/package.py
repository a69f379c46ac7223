"""
Pydantic schema for distribution package entries
"""

from pydantic import BaseModel, Field, validator
from typing import Any, Dict, List
from models.base import DistType


class PackageInfo(BaseModel):
    """
    One package of a distribution, normalized from its index entry.

    Raw index JSON uses capitalized keys (``Name``, ``Version``, ``Description``,
    ``Gitlink``, ...), ``Depends`` for the dependency list and ``URL`` for the
    homepage; both those keys and the field names are accepted.

    ``depends_count`` is fan-in: how many packages of the same universe
    depend on this one directly or transitively. ``impact`` is only
    meaningful once ``depends_count`` is final for the whole universe.
    """

    name: str = Field(..., alias="Name", min_length=1, max_length=255)
    type: DistType
    dist_table_prefix: str = Field(..., min_length=1, max_length=50)

    version: str = Field("", alias="Version")
    description: str = Field("", alias="Description")
    homepage: str = Field("", alias="URL")

    direct_depends: List[str] = Field(default_factory=list, alias="Depends")
    indirect_depends: List[str] = Field(default_factory=list, alias="IndirectDepends")
    depends_count: int = Field(0, alias="DependsCount", ge=0)

    gitlink: str = Field("", alias="Gitlink")
    page_rank: float = Field(0.0, alias="PageRank")
    impact: float = Field(0.0, alias="Impact")

    @validator("name")
    def clean_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Package name cannot be empty after stripping")
        return v

    @validator("version", "description", "homepage", "gitlink", pre=True)
    def none_to_empty(cls, v):
        return "" if v is None else str(v).strip()

    @validator("direct_depends", pre=True)
    def clean_depends(cls, v):
        """Accept None, a comma separated string or a list; keep first occurrence order"""
        if v is None:
            return []
        if isinstance(v, str):
            v = v.split(",")
        seen = []
        for dep in v:
            dep = str(dep).strip()
            if dep and dep not in seen:
                seen.append(dep)
        return seen

    class Config:
        populate_by_name = True

    def calculate_impact(self, count: int) -> float:
        """Set ``impact = depends_count / count`` for a universe of ``count`` packages"""
        if count <= 0:
            raise ValueError("Package universe size must be positive")
        self.impact = self.depends_count / count
        return self.impact

    def to_dist_package(self) -> Dict[str, Any]:
        """Column values for the dist_packages row"""
        return {
            "table_prefix": self.dist_table_prefix,
            "name": self.name,
            "dist_type": self.type.value,
            "version": self.version,
            "description": self.description,
            "homepage": self.homepage,
            "depends_count": self.depends_count,
        }

    def to_dist_dependency(self) -> Dict[str, Any]:
        """Link and scoring values written back after a collection pass"""
        return {
            "git_link": self.gitlink or None,
            "impact": self.impact,
            "dist_type": self.type.value,
            "depends_count": self.depends_count,
            "page_rank": self.page_rank,
        }
