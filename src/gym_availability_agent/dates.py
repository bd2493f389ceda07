"""Target date handling for the portal's date field and calendar."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Tuple

ISO_DATE_PATTERN = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")


@dataclass(frozen=True)
class TargetDate:
    """An ISO ``YYYY-MM-DD`` date, kept as text and matched structurally."""

    year: str
    month: str
    day: str

    @classmethod
    def parse(cls, value: str) -> "TargetDate":
        match = ISO_DATE_PATTERN.match((value or "").strip())
        if not match:
            raise ValueError(f"Invalid date {value!r}; expected YYYY-MM-DD")
        year, month, day = match.groups()
        if not 1 <= int(month) <= 12 or not 1 <= int(day) <= 31:
            raise ValueError(f"Invalid date {value!r}; month or day out of range")
        return cls(year, month, day)

    @property
    def iso(self) -> str:
        return f"{self.year}-{self.month}-{self.day}"

    @property
    def portal_format(self) -> str:
        """The portal's text-input format, ``YYYY/MM/DD``."""
        return f"{self.year}/{self.month}/{self.day}"

    @property
    def day_of_month(self) -> int:
        return int(self.day)

    @property
    def day_labels(self) -> Tuple[str, ...]:
        """Calendar cell texts that denote this day, unpadded first."""
        plain = str(self.day_of_month)
        padded = plain.zfill(2)
        return (plain,) if plain == padded else (plain, padded)
