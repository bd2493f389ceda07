"""Settle policy for actions whose completion the portal does not signal."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import structlog
from playwright.async_api import Page
from tenacity import retry, retry_if_result, stop_after_delay, wait_fixed

LOGGER = structlog.get_logger(__name__)


@dataclass(frozen=True)
class SettlePolicy:
    """How long to wait after a click that may or may not reload the page.

    ``delay_seconds`` is always waited. When ``max_seconds`` is larger than the
    delay, the page is then polled until two consecutive snapshots match or the
    remaining budget runs out.
    """

    delay_seconds: float
    max_seconds: Optional[float] = None
    poll_interval_seconds: float = 0.5

    @property
    def polls(self) -> bool:
        return self.max_seconds is not None and self.max_seconds > self.delay_seconds


async def settle(page: Page, policy: SettlePolicy) -> bool:
    """Wait according to ``policy``; return whether the page was seen stable."""
    await page.wait_for_timeout(policy.delay_seconds * 1000)
    if not policy.polls:
        return True

    budget = policy.max_seconds - policy.delay_seconds
    previous: dict[str, Optional[str]] = {"html": None}

    @retry(
        stop=stop_after_delay(budget),
        wait=wait_fixed(policy.poll_interval_seconds),
        retry=retry_if_result(lambda stable: not stable),
        retry_error_callback=lambda state: False,
    )
    async def _poll() -> bool:
        current = await page.content()
        stable = current == previous["html"]
        previous["html"] = current
        return stable

    stable = await _poll()
    LOGGER.debug("settle.complete", stable=stable, delay_seconds=policy.delay_seconds, budget_seconds=budget)
    return stable
