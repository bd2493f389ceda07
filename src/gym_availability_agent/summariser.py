"""Plain-text rendering of a scrape response."""

from __future__ import annotations

from typing import List

from .models import FacilityAvailability, ScrapeResponse


def build_summary(response: ScrapeResponse) -> str:
    """Return a human-friendly listing of the open slots."""

    lines: List[str] = [f"Badminton availability for {response.date or 'unknown date'}", ""]

    if not response.success:
        lines.append(f"⚠️ {response.error or 'Unable to fetch availability'}")
        return "\n".join(lines)

    if not response.facilities:
        lines.append("No open slots found.")
        return "\n".join(lines)

    lines.append(f"🏸 {len(response.facilities)} open slot(s):")
    lines.extend(f" • {format_facility(item)}" for item in response.facilities)
    return "\n".join(lines)


def format_facility(item: FacilityAvailability) -> str:
    return f"{item.name}: {item.availability}"
