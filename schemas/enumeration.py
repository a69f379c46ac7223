"""
Pydantic schemas for enumeration ranges and driver options
"""

from pydantic import BaseModel, Field, validator
from typing import Any, Dict, Optional, Tuple
from datetime import date, datetime, timedelta, timezone

# First day GitHub accepted repositories
GITHUB_EPOCH_DATE = date(2008, 1, 1)


def today_utc() -> date:
    return datetime.now(timezone.utc).date()


class EnumerationRange(BaseModel):
    """
    One cell of the (creation date x star count) search space.

    Both bounds are inclusive. ``max_stars`` of None means unbounded. Ranges
    are value objects: the bisection scheduler creates them, a worker queries
    one exactly once, and nothing keeps them afterwards.
    """

    start_date: date
    end_date: date
    min_stars: int = Field(0, ge=0)
    max_stars: Optional[int] = Field(None, ge=0)
    overlap: int = Field(0, ge=0)

    @validator("end_date")
    def check_dates(cls, v, values):
        start = values.get("start_date")
        if start is not None and v < start:
            raise ValueError("end_date must not be before start_date")
        return v

    @validator("max_stars")
    def check_stars(cls, v, values):
        low = values.get("min_stars")
        if v is not None and low is not None and v < low:
            raise ValueError("max_stars must not be below min_stars")
        return v

    class Config:
        frozen = True

    @property
    def days(self) -> int:
        return (self.end_date - self.start_date).days + 1

    @property
    def is_single_day(self) -> bool:
        return self.start_date == self.end_date

    @property
    def is_single_star_value(self) -> bool:
        return self.max_stars is not None and self.max_stars == self.min_stars

    def split_dates(self) -> Tuple["EnumerationRange", "EnumerationRange"]:
        """Bisect the date interval at its midpoint: [start, mid], [mid+1, end]"""
        if self.is_single_day:
            raise ValueError("Cannot split a single-day range on dates")
        mid = self.start_date + timedelta(days=(self.days - 1) // 2)
        return (
            self.model_copy(update={"end_date": mid}),
            self.model_copy(update={"start_date": mid + timedelta(days=1)}),
        )

    def split_stars(
        self, observed_max: Optional[int] = None
    ) -> Tuple["EnumerationRange", "EnumerationRange"]:
        """
        Split the star interval at its midpoint.

        The upper bucket's lower bound is lowered by ``overlap`` to absorb
        star counts shifting while the search index catches up. The overlap
        is clamped to a quarter of the range width so the upper bucket
        always shrinks geometrically and stays above this range's lower
        bound. The lower bucket keeps this range's lower bound. An unbounded
        range keeps an unbounded upper bucket so repositories gaining stars
        during the run are not cut off.

        Args:
            observed_max: Highest star count seen for this range, used to
                place the midpoint when ``max_stars`` is unbounded.
        """
        high = self.max_stars if self.max_stars is not None else observed_max
        if high is None:
            raise ValueError("Unbounded star range needs an observed maximum to split")
        if high <= self.min_stars:
            raise ValueError("Cannot split a single star value")

        mid = (self.min_stars + high) // 2
        overlap = min(self.overlap, (mid - self.min_stars) // 2)
        upper_low = mid + 1 - overlap
        return (
            self.model_copy(update={"max_stars": mid}),
            self.model_copy(update={"min_stars": upper_low, "max_stars": self.max_stars}),
        )

    def to_query(self, base_query: str = "") -> str:
        """Render the GitHub search qualifiers for this range"""
        if self.max_stars is None:
            stars = f"stars:>={self.min_stars}"
        else:
            stars = f"stars:{self.min_stars}..{self.max_stars}"
        created = f"created:{self.start_date.isoformat()}..{self.end_date.isoformat()}"
        return " ".join(part for part in (base_query.strip(), created, stars) if part)

    def describe(self) -> Dict[str, Any]:
        """Plain dict used in logs, failure lists and run audit rows"""
        return {
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "min_stars": self.min_stars,
            "max_stars": self.max_stars,
        }


class EnumerationOptions(BaseModel):
    """Options shared by the platform drivers (the CLI and settings feed these)"""

    min_stars: int = Field(100, ge=0)
    star_overlap: int = Field(5, ge=0)
    require_min_stars: bool = False
    query: str = "is:public"
    start_date: date = GITHUB_EPOCH_DATE
    end_date: date = Field(default_factory=today_utc)
    workers: int = Field(10, ge=1)
    take: int = Field(1000, ge=1)
    result_cap: int = Field(1000, ge=1)

    @validator("end_date")
    def check_dates(cls, v, values):
        start = values.get("start_date")
        if start is not None and v < start:
            raise ValueError("end_date must not be before start_date")
        return v

    @classmethod
    def from_settings(cls, settings, **overrides) -> "EnumerationOptions":
        """Build options from application settings, letting explicit overrides win"""
        values = {
            "min_stars": settings.MIN_STARS,
            "star_overlap": settings.STAR_OVERLAP,
            "require_min_stars": settings.REQUIRE_MIN_STARS,
            "query": settings.BASE_QUERY,
            "workers": settings.WORKERS,
            "take": settings.TAKE,
            "result_cap": settings.SEARCH_RESULT_CAP,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    def root_range(self) -> EnumerationRange:
        """The whole search space: [start, end] x [min_stars, unbounded)"""
        return EnumerationRange(
            start_date=self.start_date,
            end_date=self.end_date,
            min_stars=self.min_stars,
            max_stars=None,
            overlap=self.star_overlap,
        )
