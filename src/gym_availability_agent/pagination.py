"""Repeat extraction across the portal's result pages."""

from __future__ import annotations

from typing import Iterable, List

import structlog
from playwright.async_api import Page

from .dates import TargetDate
from .elements import snapshot
from .extractor import ResultExtractor
from .locator import HeuristicLocator
from .models import FacilityAvailability
from .settle import SettlePolicy, settle

LOGGER = structlog.get_logger(__name__)

DEFAULT_MAX_PAGES = 10


def dedupe_facilities(records: Iterable[FacilityAvailability]) -> List[FacilityAvailability]:
    """Keep the first record for each ``(name, availability)`` pair."""
    seen: set[tuple[str, str]] = set()
    unique: List[FacilityAvailability] = []
    for record in records:
        if record.key in seen:
            continue
        seen.add(record.key)
        unique.append(record)
    return unique


async def walk_all_pages(
    page: Page,
    target_date: TargetDate,
    *,
    extractor: ResultExtractor,
    locator: HeuristicLocator,
    settle_policy: SettlePolicy,
    max_pages: int = DEFAULT_MAX_PAGES,
) -> List[FacilityAvailability]:
    """Extract every result page, following "next" controls up to ``max_pages``."""
    accumulated: List[FacilityAvailability] = []
    pages_read = 0

    while pages_read < max_pages:
        soup = snapshot(await page.content())
        records = extractor.extract(soup, target_date)
        accumulated.extend(records)
        pages_read += 1
        LOGGER.info("pagination.page", page=pages_read, records=len(records))

        next_control = locator.locate_next_page(soup)
        if next_control is None:
            LOGGER.info("pagination.complete", pages=pages_read)
            break
        if pages_read >= max_pages:
            LOGGER.warning("pagination.limit_reached", max_pages=max_pages)
            break

        LOGGER.info("pagination.next", **next_control.descriptor.summary())
        await page.click(next_control.selector)
        await settle(page, settle_policy)

    unique = dedupe_facilities(accumulated)
    LOGGER.info("pagination.merged", pages=pages_read, total=len(accumulated), unique=len(unique))
    return unique
