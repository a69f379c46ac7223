"""
Pydantic schema for the platform-agnostic catalog record
"""

from pydantic import BaseModel, Field, validator
from typing import Any, Dict, Tuple
import json


class Record(BaseModel):
    """
    Canonical unit of enumerated catalog data.

    ``(platform_prefix, identifier)`` is the identity every sink dedups on;
    ``attributes`` is passed through untouched.
    """

    platform_prefix: str = Field(..., min_length=1, max_length=50)
    identifier: str = Field(..., min_length=1, max_length=512)
    attributes: Dict[str, Any] = Field(default_factory=dict)

    @validator("identifier")
    def clean_identifier(cls, v):
        """Strip surrounding whitespace from identifiers"""
        v = v.strip()
        if not v:
            raise ValueError("Identifier cannot be empty after stripping")
        return v

    @validator("attributes", pre=True)
    def clean_attributes(cls, v):
        """Ensure attributes is a dict"""
        if v is None:
            return {}
        if not isinstance(v, dict):
            raise ValueError("Attributes must be a mapping")
        return v

    @property
    def key(self) -> Tuple[str, str]:
        return (self.platform_prefix, self.identifier)

    def to_json_line(self) -> str:
        """Serialize as one JSON line for stdout and file sinks"""
        return json.dumps(
            {
                "platform": self.platform_prefix,
                "id": self.identifier,
                "attributes": self.attributes,
            },
            default=str,
            sort_keys=True,
        )

    class Config:
        frozen = True
