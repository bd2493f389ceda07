"""Turn whatever results markup the portal rendered into availability records.

Strategies run in order and the first one that yields any record wins. Cell
text glyphs are only read when the page carries no availability marker image
at all, so an icon grid is never reported twice.
"""

from __future__ import annotations

import re
from typing import List, Optional, Protocol, Sequence, Union

import structlog
from bs4 import BeautifulSoup, Comment, Tag
from playwright.async_api import Page

from .dates import TargetDate
from .elements import snapshot
from .models import FacilityAvailability, FacilityStatus
from .utils import contains_any, element_text, normalise_whitespace
from .vocabulary import Vocabulary

LOGGER = structlog.get_logger(__name__)

NON_CONTENT_TAGS = ("script", "style", "noscript", "template")


def available_marker_images(soup: BeautifulSoup, vocabulary: Vocabulary) -> List[Tag]:
    """Images whose alt text or source path marks a slot as open."""
    return [
        image
        for image in soup.find_all("img")
        if (image.get("alt") or "").strip() in vocabulary.available_image_alts
        or contains_any(image.get("src") or "", vocabulary.available_image_src_tokens)
    ]


class ExtractionStrategy(Protocol):
    name: str

    def extract(self, soup: BeautifulSoup) -> List[FacilityAvailability]:
        ...


class GridInference:
    """Facility and time-slot inference shared by the table-based strategies."""

    def __init__(self, vocabulary: Vocabulary):
        self._vocabulary = vocabulary

    def record_for_cell(self, cell: Tag) -> Optional[FacilityAvailability]:
        row = cell.find_parent("tr")
        table = cell.find_parent("table")
        if row is None or table is None:
            LOGGER.debug("extractor.cell_orphaned", text=element_text(cell)[:40])
            return None

        facility = self.facility_name(table)
        slot = self.time_slot(cell, row)
        return FacilityAvailability(
            name=f"{facility} ({slot})",
            availability=self._vocabulary.available_label,
            status=FacilityStatus.AVAILABLE,
        )

    def facility_name(self, table: Tag) -> str:
        """Name from the table's marker row, then known names, then the unknown label."""
        vocabulary = self._vocabulary
        marker = vocabulary.facility_marker
        pattern = re.compile(re.escape(marker) + r"\s*([^" + re.escape(marker) + r"]+)")
        for row in table.find_all("tr"):
            for cell in row.find_all(["td", "th"]):
                text = element_text(cell)
                if marker in text and contains_any(text, vocabulary.facility_types):
                    match = pattern.search(text)
                    if match:
                        return match.group(1).strip()

        table_text = element_text(table)
        for known in vocabulary.known_facilities:
            if known.match in table_text:
                return known.label
        return vocabulary.unknown_facility

    def time_slot(self, cell: Tag, row: Tag) -> str:
        """Slot label from class hints, the row header, or the column position."""
        vocabulary = self._vocabulary
        cells = row.find_all(["td", "th"])
        first_text = element_text(cells[0]) if cells else ""

        classes = " ".join(cell.get("class") or [])
        if first_text and contains_any(classes, vocabulary.time_slot_class_hints):
            return first_text

        if first_text and (
            contains_any(first_text, vocabulary.time_slot_tokens) or vocabulary.time_slot_regex.search(first_text)
        ):
            return first_text

        index = next((position for position, candidate in enumerate(cells) if candidate is cell), -1)
        return vocabulary.daypart_for_column(index)


class IconMarkerStrategy:
    """Availability shown as images (``alt="空き"`` and friends)."""

    name = "icon"

    def __init__(self, vocabulary: Vocabulary, inference: GridInference):
        self._vocabulary = vocabulary
        self._inference = inference

    def extract(self, soup: BeautifulSoup) -> List[FacilityAvailability]:
        images = available_marker_images(soup, self._vocabulary)
        unavailable = [
            image for image in soup.find_all("img")
            if (image.get("alt") or "").strip() in self._vocabulary.unavailable_image_alts
        ]
        LOGGER.info("extractor.icons", available=len(images), unavailable=len(unavailable))

        records: List[FacilityAvailability] = []
        for image in images:
            cell = image.find_parent("td")
            if cell is None:
                continue
            record = self._inference.record_for_cell(cell)
            if record is not None:
                records.append(record)
        return records


class TextGlyphStrategy:
    """Availability shown as glyphs in cell text (○, 空き)."""

    name = "text"

    def __init__(self, vocabulary: Vocabulary, inference: GridInference):
        self._vocabulary = vocabulary
        self._inference = inference

    def extract(self, soup: BeautifulSoup) -> List[FacilityAvailability]:
        vocabulary = self._vocabulary
        markers = available_marker_images(soup, vocabulary)
        if markers:
            LOGGER.info("extractor.glyphs_skipped", markers=len(markers))
            return []

        available: List[Tag] = []
        unavailable = 0
        for cell in soup.find_all("td"):
            if cell.find("td") is not None:
                continue
            text = element_text(cell)
            if contains_any(text, vocabulary.unavailable_glyphs):
                unavailable += 1
                continue
            if contains_any(text, vocabulary.available_glyphs):
                available.append(cell)
        LOGGER.info("extractor.glyphs", available=len(available), unavailable=unavailable)

        records: List[FacilityAvailability] = []
        for cell in available:
            record = self._inference.record_for_cell(cell)
            if record is not None:
                records.append(record)
        return records


class FreeTextStrategy:
    """Last resort: facility mentions in list containers or in the page text."""

    name = "free-text"

    def __init__(self, vocabulary: Vocabulary):
        self._vocabulary = vocabulary
        tokens = sorted(vocabulary.positive_status_tokens + vocabulary.negative_status_tokens, key=len, reverse=True)
        self._status_pattern = re.compile("|".join(re.escape(token) for token in tokens)) if tokens else None
        self._strip_chars = " " + vocabulary.facility_marker + ":：-－"

    def extract(self, soup: BeautifulSoup) -> List[FacilityAvailability]:
        records = self._from_containers(soup)
        if records:
            return records
        return self._from_page_text(soup)

    def _parse_line(self, text: str) -> Optional[tuple[str, str]]:
        """Split ``text`` into a facility name and the status token after it."""
        if self._status_pattern is None:
            return None
        match = self._status_pattern.search(text)
        if not match:
            return None
        name = text[: match.start()].strip(self._strip_chars) or text
        return name, match.group(0)

    def _from_containers(self, soup: BeautifulSoup) -> List[FacilityAvailability]:
        vocabulary = self._vocabulary
        records: List[FacilityAvailability] = []
        for selector in vocabulary.list_container_selectors:
            for container in soup.select(selector):
                text = element_text(container)
                if not contains_any(text, vocabulary.facility_types):
                    continue
                parsed = self._parse_line(text)
                if parsed is None:
                    continue
                name, token = parsed
                if token in vocabulary.negative_status_tokens:
                    LOGGER.debug("extractor.free_text_unavailable", name=name, token=token)
                    continue
                records.append(FacilityAvailability(name=name, availability=token, status=FacilityStatus.AVAILABLE))
        return records

    def _from_page_text(self, soup: BeautifulSoup) -> List[FacilityAvailability]:
        vocabulary = self._vocabulary
        body = soup.body or soup
        fragments = [
            str(fragment)
            for fragment in body.find_all(string=True)
            if not isinstance(fragment, Comment) and fragment.parent.name not in NON_CONTENT_TAGS
        ]
        records: List[FacilityAvailability] = []
        for line in "\n".join(fragments).splitlines():
            text = normalise_whitespace(line)
            if not text or len(text) > vocabulary.max_free_text_line_length:
                continue
            if contains_any(text, vocabulary.facility_types):
                records.append(
                    FacilityAvailability(
                        name=text,
                        availability=vocabulary.needs_confirmation_label,
                        status=FacilityStatus.AVAILABLE,
                    )
                )
        return records


class ResultExtractor:
    """Run the extraction strategies in priority order."""

    def __init__(self, vocabulary: Vocabulary, strategies: Optional[Sequence[ExtractionStrategy]] = None):
        if strategies is None:
            inference = GridInference(vocabulary)
            strategies = [
                IconMarkerStrategy(vocabulary, inference),
                TextGlyphStrategy(vocabulary, inference),
                FreeTextStrategy(vocabulary),
            ]
        self.strategies: List[ExtractionStrategy] = list(strategies)

    def extract(self, html_or_soup: Union[str, BeautifulSoup], target_date: TargetDate) -> List[FacilityAvailability]:
        soup = snapshot(html_or_soup)
        for strategy in self.strategies:
            records = strategy.extract(soup)
            if records:
                LOGGER.info("extractor.strategy", strategy=strategy.name, outcome="found", count=len(records), date=target_date.iso)
                return records
            LOGGER.debug("extractor.strategy", strategy=strategy.name, outcome="empty", date=target_date.iso)
        LOGGER.info("extractor.empty", date=target_date.iso)
        return []

    async def extract_page(self, page: Page, target_date: TargetDate) -> List[FacilityAvailability]:
        """Snapshot ``page`` and extract from it."""
        return self.extract(await page.content(), target_date)
