"""Badminton gymnasium availability agent for the Kariya reservation portal."""

from importlib.metadata import PackageNotFoundError, version

from .scraper import scrape

try:
    __version__ = version("gym-availability-agent")
except PackageNotFoundError:  # pragma: no cover - fallback during local dev
    __version__ = "0.0.0"

__all__ = ["__version__", "scrape"]
