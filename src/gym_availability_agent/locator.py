"""Heuristic locator that resolves a keyword to a clickable element.

The portal has no stable ids or test hooks, so each lookup tries an ordered
chain of text-matching strategies against a fresh BeautifulSoup snapshot and
returns a :class:`LocatorMatch` or ``None``. Absence is a normal outcome that
callers branch on; nothing here raises for a missing element.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Sequence

import structlog
from bs4 import BeautifulSoup, Tag
from bs4.element import Comment, NavigableString, PageElement

from .dates import TargetDate
from .elements import ElementDescriptor, describe, selector_for
from .utils import contains_any, element_text
from .vocabulary import Vocabulary

LOGGER = structlog.get_logger(__name__)

CHOICE_INPUT_SELECTOR = "input[type='checkbox'], input[type='radio']"
SEARCH_CONTROL_SELECTOR = "input[type='submit'], input[type='button'], button"
DATE_INPUT_SELECTOR = "input[type='text'], input[name*='date'], input[id*='date']"
CALENDAR_SELECTOR = "a, td, .calendar a, .cal-day, [class*='day'], [class*='date']"
NEXT_PAGE_SELECTOR = "a, button, input"
SECTION_CONTAINERS = ["div", "section", "table"]


@dataclass(frozen=True)
class LocatorMatch:
    """A resolved element plus the strategy that found it."""

    selector: str
    strategy: str
    descriptor: ElementDescriptor


class HeuristicLocator:
    """Keyword/context matcher over a page snapshot."""

    def __init__(self, vocabulary: Vocabulary):
        self._vocabulary = vocabulary

    # ------------------------------------------------------------------
    # Generic keyword lookup for choice inputs (the sport checkbox)
    # ------------------------------------------------------------------
    def locate(
        self,
        keywords: Sequence[str],
        scope: Tag,
        *,
        attribute_tokens: Sequence[str] = (),
        section_keywords: Sequence[str] = (),
    ) -> Optional[LocatorMatch]:
        """Find the checkbox/radio in ``scope`` that ``keywords`` refer to."""
        candidates = scope.select(CHOICE_INPUT_SELECTOR)
        LOGGER.debug("locator.candidates", keywords=list(keywords), count=len(candidates))

        for tag in candidates:
            if self._matches_directly(tag, keywords, attribute_tokens):
                return self._match(tag, "direct")

        tag = self._find_by_context(candidates, keywords)
        if tag is not None:
            return self._match(tag, "context")

        for tag in candidates:
            if self._matches_label(tag, keywords):
                return self._match(tag, "label")

        if section_keywords:
            tag = self._find_in_section(scope, keywords, section_keywords)
            if tag is not None:
                return self._match(tag, "section")
        return None

    def locate_sport(self, soup: BeautifulSoup) -> Optional[LocatorMatch]:
        vocabulary = self._vocabulary
        return self.locate(
            vocabulary.sport_labels,
            soup,
            attribute_tokens=vocabulary.sport_attribute_tokens,
            section_keywords=vocabulary.sport_sections,
        )

    @staticmethod
    def _matches_directly(tag: Tag, keywords: Sequence[str], attribute_tokens: Sequence[str]) -> bool:
        value = tag.get("value") or ""
        name = tag.get("name") or ""
        element_id = tag.get("id") or ""
        tokens = list(keywords) + list(attribute_tokens)
        return (
            contains_any(value, keywords)
            or contains_any(element_text(tag), keywords)
            or contains_any(name, tokens)
            or contains_any(element_id, tokens)
        )

    def _find_by_context(self, candidates: Sequence[Tag], keywords: Sequence[str]) -> Optional[Tag]:
        """Closest context first: adjacent siblings, then parent, then grandparent.

        Each tier is tried across every candidate before moving outwards, so a
        container shared by several choices never decides between them.
        """
        tiers: List[tuple[str, Callable[[Tag], str]]] = [
            ("sibling", self._sibling_text),
            ("parent", lambda tag: self._container_text(tag, 1)),
            ("grandparent", lambda tag: self._container_text(tag, 2)),
        ]
        for tier, text_of in tiers:
            for tag in candidates:
                if contains_any(text_of(tag), keywords):
                    LOGGER.debug("locator.context", tier=tier, tag=tag.name)
                    return tag
        return None

    @classmethod
    def _sibling_text(cls, tag: Tag) -> str:
        texts = []
        for siblings in (tag.previous_siblings, tag.next_siblings):
            node = cls._adjacent(siblings)
            if node is None or cls._describes_other_input(node, tag):
                continue
            texts.append(element_text(node) if isinstance(node, Tag) else str(node).strip())
        return " ".join(texts)

    @staticmethod
    def _adjacent(siblings: Iterable[PageElement]) -> Optional[PageElement]:
        for node in siblings:
            if isinstance(node, Comment):
                continue
            if isinstance(node, NavigableString) and not node.strip():
                continue
            return node
        return None

    @staticmethod
    def _describes_other_input(node: PageElement, tag: Tag) -> bool:
        """Sibling markup that is, contains, or labels a different input."""
        if not isinstance(node, Tag):
            return False
        if node.name == "input" or node.select_one(CHOICE_INPUT_SELECTOR) is not None:
            return True
        target = node.get("for")
        return node.name == "label" and bool(target) and target != tag.get("id")

    @staticmethod
    def _container_text(tag: Tag, depth: int) -> str:
        """Text of the ancestor ``depth`` levels up, unless it holds other choices too."""
        container = tag
        for _ in range(depth):
            container = container.parent
            if container is None or isinstance(container, BeautifulSoup):
                return ""
        if len(container.select(CHOICE_INPUT_SELECTOR)) > 1:
            return ""
        return element_text(container)

    @staticmethod
    def _matches_label(tag: Tag, keywords: Sequence[str]) -> bool:
        element_id = tag.get("id")
        if not element_id:
            return False
        root = tag
        while root.parent is not None:
            root = root.parent
        for label in root.find_all("label", attrs={"for": element_id}):
            if contains_any(element_text(label), keywords):
                return True
        return False

    @staticmethod
    def _find_in_section(scope: Tag, keywords: Sequence[str], section_keywords: Sequence[str]) -> Optional[Tag]:
        for text_node in scope.find_all(string=lambda text: contains_any(str(text), section_keywords)):
            header = text_node.parent
            if not isinstance(header, Tag):
                continue
            section = header.find_parent(SECTION_CONTAINERS) or header.parent
            if section is None:
                continue
            LOGGER.debug("locator.section", header=element_text(header)[:60])
            for candidate in section.find_all("input"):
                parent = candidate.parent
                if isinstance(parent, Tag) and contains_any(element_text(parent), keywords):
                    return candidate
        return None

    # ------------------------------------------------------------------
    # Step-specific lookups
    # ------------------------------------------------------------------
    def locate_category_entry(self, soup: BeautifulSoup) -> Optional[LocatorMatch]:
        """Entry link for the "by purpose/headcount" category search."""
        vocabulary = self._vocabulary
        for link in soup.find_all("a"):
            image = link.find("img")
            alt = (image.get("alt") or "") if image is not None else ""
            href = link.get("href") or ""
            if (
                contains_any(element_text(link), vocabulary.category_labels)
                or contains_any(alt, vocabulary.category_labels)
                or contains_any(href, vocabulary.category_href_tokens)
            ):
                return self._match(link, "link")

        for image in soup.find_all("img"):
            if contains_any(image.get("alt") or "", vocabulary.category_labels):
                parent_link = image.find_parent("a")
                target = parent_link if parent_link is not None else image
                return self._match(target, "image")
        return None

    def locate_date_input(self, soup: BeautifulSoup) -> Optional[LocatorMatch]:
        vocabulary = self._vocabulary
        for tag in soup.select(DATE_INPUT_SELECTOR):
            if (
                contains_any(tag.get("placeholder") or "", vocabulary.date_placeholder_tokens)
                or contains_any(tag.get("name") or "", vocabulary.date_attribute_tokens)
                or contains_any(tag.get("id") or "", vocabulary.date_attribute_tokens)
            ):
                return self._match(tag, "date")
        return None

    def locate_search_control(self, soup: BeautifulSoup) -> Optional[LocatorMatch]:
        vocabulary = self._vocabulary
        for tag in soup.select(SEARCH_CONTROL_SELECTOR):
            if (
                contains_any(tag.get("value") or "", vocabulary.search_labels)
                or contains_any(element_text(tag), vocabulary.search_labels)
                or contains_any(tag.get("name") or "", vocabulary.search_attribute_tokens)
                or contains_any(tag.get("id") or "", vocabulary.search_attribute_tokens)
            ):
                return self._match(tag, "search")
        return None

    def locate_day(self, soup: BeautifulSoup, target_date: TargetDate) -> Optional[LocatorMatch]:
        """Calendar cell or link for ``target_date``'s day of month.

        Text-matching elements that cannot be clicked (days outside the
        bookable range) are skipped in favour of later candidates.
        """
        labels = target_date.day_labels
        for tag in soup.select(CALENDAR_SELECTOR):
            if element_text(tag) not in labels:
                continue
            if self._is_clickable(tag):
                return self._match(tag, "calendar")
            LOGGER.debug("locator.day_skipped", day=element_text(tag), tag=tag.name)

        for cell in soup.find_all("td"):
            if element_text(cell) not in labels:
                continue
            link = cell.find("a")
            if link is not None:
                return self._match(link, "calendar-cell-link")
            if describe(cell, selector="").is_interactive:
                return self._match(cell, "calendar-cell")
        return None

    def locate_next_page(self, soup: BeautifulSoup) -> Optional[LocatorMatch]:
        """Enabled "next page" control, or ``None`` on the last page."""
        vocabulary = self._vocabulary
        for tag in soup.select(NEXT_PAGE_SELECTOR):
            text = element_text(tag)
            value = (tag.get("value") or "").strip()
            if not (
                contains_any(text, vocabulary.next_page_labels)
                or contains_any(value, vocabulary.next_page_labels)
                or text in vocabulary.next_page_glyphs
                or value in vocabulary.next_page_glyphs
            ):
                continue
            match = self._match(tag, "next-page")
            if match.descriptor.disabled:
                LOGGER.debug("locator.next_disabled", **match.descriptor.summary())
                continue
            return match
        return None

    # ------------------------------------------------------------------
    def _is_clickable(self, tag: Tag) -> bool:
        classes = tag.get("class") or []
        class_name = " ".join(classes) if isinstance(classes, list) else str(classes)
        return bool(tag.get("href") or tag.get("onclick")) or contains_any(
            class_name, self._vocabulary.clickable_class_tokens
        )

    def _match(self, tag: Tag, strategy: str) -> LocatorMatch:
        selector = selector_for(tag, self._vocabulary.generic_checkbox_values)
        descriptor = describe(tag, selector=selector)
        return LocatorMatch(selector=selector, strategy=strategy, descriptor=descriptor)

