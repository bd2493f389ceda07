"""Forward-only navigation from the portal landing page to the results grid."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional
from urllib.parse import urljoin

import structlog
from bs4 import BeautifulSoup
from playwright.async_api import Page

from .config import Settings
from .dates import TargetDate
from .elements import collect_elements, snapshot
from .locator import HeuristicLocator, LocatorMatch
from .settle import settle

LOGGER = structlog.get_logger(__name__)

SCRIPT_HREF_PREFIXES = ("javascript:", "#")


class NavigationState(Enum):
    LANDING = 0
    CATEGORY_CHOSEN = 1
    SPORT_SELECTED = 2
    DATE_ENTERED = 3
    SEARCH_SUBMITTED = 4
    DAY_OPENED = 5
    RESULTS_READY = 6
    FAILED = 7

    @property
    def is_terminal(self) -> bool:
        return self in (NavigationState.RESULTS_READY, NavigationState.FAILED)


class InvalidTransition(RuntimeError):
    """Raised when the pipeline attempts to move backwards or leave a terminal state."""


def advance(current: NavigationState, target: NavigationState) -> NavigationState:
    """Return ``target`` if moving there from ``current`` is a legal forward step."""
    if current.is_terminal:
        raise InvalidTransition(f"{current.name} is terminal; cannot move to {target.name}")
    if target is NavigationState.FAILED or target.value > current.value:
        return target
    raise InvalidTransition(f"Cannot move backwards from {current.name} to {target.name}")


@dataclass(frozen=True)
class NavigationOutcome:
    """Where the pipeline stopped and, for degraded runs, why."""

    state: NavigationState
    reason: Optional[str] = None

    @property
    def results_ready(self) -> bool:
        return self.state is NavigationState.RESULTS_READY


def log_step(stage: str, outcome: str, **details) -> None:
    """Emit one structured event per pipeline stage."""
    level = LOGGER.warning if outcome == "not_found" else LOGGER.info
    level("navigation.step", stage=stage, outcome=outcome, **details)


class NavigationPipeline:
    """Drive one page from the landing view to the availability grid."""

    def __init__(self, page: Page, locator: HeuristicLocator, settings: Settings):
        self._page = page
        self._locator = locator
        self._settings = settings
        self.state = NavigationState.LANDING

    def _move(self, target: NavigationState) -> None:
        self.state = advance(self.state, target)

    def _fail(self, stage: str, reason: str) -> NavigationOutcome:
        self._move(NavigationState.FAILED)
        log_step(stage, "not_found", reason=reason, state=self.state.name)
        return NavigationOutcome(self.state, reason)

    async def _snapshot(self) -> BeautifulSoup:
        return snapshot(await self._page.content())

    async def run(self, target_date: TargetDate) -> NavigationOutcome:
        """Walk every step, returning ``RESULTS_READY`` or a degraded ``FAILED``."""
        await self._open_landing()

        await self._choose_category()

        if not await self._select_sport():
            return self._fail("sport", "sport_not_found")

        await self._enter_date(target_date)

        if not await self._submit_search():
            return self._fail("search", "search_not_found")

        await self._open_day(target_date)

        self._move(NavigationState.RESULTS_READY)
        log_step("results", "found", state=self.state.name, url=self._page.url)
        return NavigationOutcome(self.state)

    async def _open_landing(self) -> None:
        url = self._settings.portal_url
        LOGGER.info("navigation.landing.start", url=url)
        response = await self._page.goto(
            url,
            wait_until="domcontentloaded",
            timeout=self._settings.timeout_seconds * 1000,
        )
        title = await self._page.title()
        LOGGER.info(
            "navigation.landing.loaded",
            status=response.status if response is not None else None,
            title=title,
        )
        inventory = collect_elements(await self._snapshot())
        LOGGER.debug(
            "navigation.landing.inventory",
            **{kind: [item.summary() for item in items] for kind, items in inventory.items()},
        )

    async def _choose_category(self) -> None:
        match = self._locator.locate_category_entry(await self._snapshot())
        if match is None:
            log_step("category", "skipped", reason="no category entry; trying sport on landing page")
            return

        log_step("category", "found", strategy=match.strategy, **match.descriptor.summary())
        href = match.descriptor.href or match.descriptor.parent_link
        if href and not href.lower().startswith(SCRIPT_HREF_PREFIXES):
            await self._page.goto(urljoin(self._page.url, href), wait_until="domcontentloaded")
        else:
            await self._page.click(match.selector)
            await self._page.wait_for_load_state("domcontentloaded")
        self._move(NavigationState.CATEGORY_CHOSEN)

    async def _select_sport(self) -> bool:
        match = self._locator.locate_sport(await self._snapshot())
        if match is None:
            return False
        log_step("sport", "found", strategy=match.strategy, **match.descriptor.summary())
        await self._page.click(match.selector)
        self._move(NavigationState.SPORT_SELECTED)
        return True

    async def _enter_date(self, target_date: TargetDate) -> None:
        match = self._locator.locate_date_input(await self._snapshot())
        if match is None:
            log_step("date", "skipped", reason="no date field; portal default applies")
        else:
            await self._page.fill(match.selector, target_date.portal_format)
            await self._page.dispatch_event(match.selector, "change")
            log_step("date", "found", value=target_date.portal_format, selector=match.selector)
        self._move(NavigationState.DATE_ENTERED)

    async def _submit_search(self) -> bool:
        match = self._locator.locate_search_control(await self._snapshot())
        if match is None:
            return False
        log_step("search", "found", strategy=match.strategy, **match.descriptor.summary())
        async with self._page.expect_navigation(
            wait_until="networkidle",
            timeout=self._settings.search_timeout_seconds * 1000,
        ):
            await self._page.click(match.selector)
        self._move(NavigationState.SEARCH_SUBMITTED)
        return True

    async def _open_day(self, target_date: TargetDate) -> None:
        match: Optional[LocatorMatch] = self._locator.locate_day(await self._snapshot(), target_date)
        if match is None:
            log_step("day", "skipped", day=target_date.day_of_month, reason="no clickable calendar cell")
            return
        await self._page.click(match.selector)
        await settle(self._page, self._settings.calendar_settle_policy())
        self._move(NavigationState.DAY_OPENED)
        log_step("day", "found", day=target_date.day_of_month, strategy=match.strategy, selector=match.selector)
