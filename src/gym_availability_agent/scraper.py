"""Entry point that runs the whole portal scrape inside an error envelope."""

from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from typing import Callable, Optional, Protocol

import structlog
from playwright.async_api import Page

from .config import Settings
from .dates import TargetDate
from .extractor import ResultExtractor
from .locator import HeuristicLocator
from .models import ScrapeResponse
from .navigation import NavigationPipeline
from .pagination import walk_all_pages
from .session import PortalSession
from .vocabulary import Vocabulary, load_vocabulary

LOGGER = structlog.get_logger(__name__)

ERROR_PREFIX = "Failed to fetch availability"


class BrowserSession(Protocol):
    page: Page


SessionFactory = Callable[[Settings], AbstractAsyncContextManager[BrowserSession]]


async def scrape(
    date: Optional[str] = None,
    *,
    settings: Optional[Settings] = None,
    vocabulary: Optional[Vocabulary] = None,
    session_factory: Optional[SessionFactory] = None,
) -> ScrapeResponse:
    """Return open badminton slots for ``date``; never raises.

    Degraded navigation (no sport checkbox, no search control) yields a
    successful empty response. Any other failure is logged and reported with
    ``success=False``.
    """
    session_factory = session_factory or PortalSession
    try:
        settings = settings or Settings()
        date = date or settings.default_date
        target_date = TargetDate.parse(date)
        vocabulary = vocabulary or load_vocabulary(settings.vocabulary_path)
        locator = HeuristicLocator(vocabulary)
        extractor = ResultExtractor(vocabulary)
        LOGGER.info("scrape.start", date=target_date.iso, vocabulary=vocabulary.version)

        async with session_factory(settings) as session:
            pipeline = NavigationPipeline(session.page, locator, settings)
            outcome = await pipeline.run(target_date)
            if not outcome.results_ready:
                LOGGER.warning("scrape.degraded", date=target_date.iso, state=outcome.state.name, reason=outcome.reason)
                return ScrapeResponse(success=True, date=date, facilities=[])

            facilities = await walk_all_pages(
                session.page,
                target_date,
                extractor=extractor,
                locator=locator,
                settle_policy=settings.page_settle_policy(),
                max_pages=settings.max_pages,
            )
    except Exception as exc:
        LOGGER.exception("scrape.failed", date=date, error=str(exc))
        return ScrapeResponse(success=False, date=date, error=f"{ERROR_PREFIX}: {exc}")

    LOGGER.info("scrape.complete", date=date, facilities=len(facilities))
    return ScrapeResponse(success=True, date=date, facilities=facilities)
