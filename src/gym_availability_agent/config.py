"""Configuration objects for the gym availability agent."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .settle import SettlePolicy

DEFAULT_PORTAL_URL = "https://www.cm1.eprs.jp/kariya/web/view/user/homeIndex.html?te-uniquekey=1797e47d977"


class Settings(BaseSettings):
    """Runtime configuration pulled from environment variables."""

    portal_url: str = Field(default=DEFAULT_PORTAL_URL)
    headless: bool = Field(default=True)
    timeout_seconds: int = Field(default=30, description="Bound for the initial portal load.")
    search_timeout_seconds: int = Field(default=30, description="Bound for the navigation after search submit.")
    calendar_settle_seconds: float = Field(default=2.0)
    page_settle_seconds: float = Field(default=3.0)
    settle_max_seconds: Optional[float] = Field(
        default=None,
        description="Upper bound for poll-until-stable settling; unset keeps the fixed delays.",
    )
    settle_poll_interval_seconds: float = Field(default=0.5)
    max_pages: int = Field(default=10, ge=1)
    browser_executable_path: Optional[str] = Field(default=None)
    default_date: str = Field(default="2025-07-08")
    vocabulary_path: Optional[Path] = Field(default=None)
    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(
        env_prefix="GYM_AGENT_",
        env_file=(".env",),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    def calendar_settle_policy(self) -> SettlePolicy:
        """Settle policy applied after clicking a calendar day."""
        return self._settle_policy(self.calendar_settle_seconds)

    def page_settle_policy(self) -> SettlePolicy:
        """Settle policy applied after clicking a next-page control."""
        return self._settle_policy(self.page_settle_seconds)

    def _settle_policy(self, delay_seconds: float) -> SettlePolicy:
        return SettlePolicy(
            delay_seconds=delay_seconds,
            max_seconds=self.settle_max_seconds,
            poll_interval_seconds=self.settle_poll_interval_seconds,
        )
