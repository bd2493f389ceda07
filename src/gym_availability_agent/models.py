"""Pydantic models returned to callers of the scraper."""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class FacilityStatus(str, Enum):
    """Whether a slot is reported open or taken."""

    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"


class FacilityAvailability(BaseModel):
    """One facility/time-slot entry extracted from the results grid."""

    name: str
    availability: str
    status: FacilityStatus = FacilityStatus.AVAILABLE

    @property
    def key(self) -> tuple[str, str]:
        """Identity used when merging pages."""
        return (self.name, self.availability)


class ScrapeResponse(BaseModel):
    """Envelope handed to the HTTP layer and the CLI."""

    success: bool
    date: Optional[str] = None
    facilities: List[FacilityAvailability] = Field(default_factory=list)
    error: Optional[str] = None
