"""Versioned keyword vocabulary used by the locator and the extractor.

The portal's Japanese copy is the part most likely to change, so every label,
glyph and keyword the pipeline matches against lives in ``vocabulary.json``
rather than in the matching code.
"""

from __future__ import annotations

import json
import re
from importlib import resources
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


class VocabularyError(ValueError):
    """Raised when a vocabulary file is missing or malformed."""


class KnownFacility(BaseModel):
    """Facility label inferred from a substring of a result table."""

    match: str
    label: str


class Vocabulary(BaseModel):
    """Keyword sets for one version of the portal's copy."""

    model_config = ConfigDict(frozen=True)

    version: str
    category_labels: List[str]
    category_href_tokens: List[str] = Field(default_factory=list)
    sport_labels: List[str]
    sport_attribute_tokens: List[str] = Field(default_factory=list)
    sport_sections: List[str] = Field(default_factory=list)
    generic_checkbox_values: List[str] = Field(default_factory=list)
    date_placeholder_tokens: List[str] = Field(default_factory=list)
    date_attribute_tokens: List[str] = Field(default_factory=list)
    search_labels: List[str]
    search_attribute_tokens: List[str] = Field(default_factory=list)
    next_page_labels: List[str]
    next_page_glyphs: List[str] = Field(default_factory=list)
    clickable_class_tokens: List[str] = Field(default_factory=list)
    available_image_alts: List[str]
    available_image_src_tokens: List[str] = Field(default_factory=list)
    unavailable_image_alts: List[str] = Field(default_factory=list)
    available_glyphs: List[str]
    unavailable_glyphs: List[str] = Field(default_factory=list)
    facility_marker: str
    facility_types: List[str]
    known_facilities: List[KnownFacility] = Field(default_factory=list)
    unknown_facility: str
    time_slot_class_hints: List[str] = Field(default_factory=list)
    time_slot_tokens: List[str] = Field(default_factory=list)
    time_slot_pattern: str
    dayparts: List[str]
    slot_fallback_template: str = "slot {index}"
    available_label: str
    needs_confirmation_label: str
    list_container_selectors: List[str] = Field(default_factory=list)
    positive_status_tokens: List[str] = Field(default_factory=list)
    negative_status_tokens: List[str] = Field(default_factory=list)
    max_free_text_line_length: int = Field(default=100, gt=0)

    @field_validator("time_slot_pattern")
    @classmethod
    def _compiles(cls, value: str) -> str:
        try:
            re.compile(value)
        except re.error as exc:
            raise ValueError(f"time_slot_pattern is not a valid regex: {exc}") from exc
        return value

    @field_validator("dayparts")
    @classmethod
    def _four_dayparts(cls, value: List[str]) -> List[str]:
        if len(value) != 4:
            raise ValueError("dayparts must list exactly four labels")
        return value

    @property
    def time_slot_regex(self) -> re.Pattern[str]:
        return re.compile(self.time_slot_pattern)

    def daypart_for_column(self, index: int) -> str:
        """Positional fallback: columns 1-4 map to the four canonical dayparts."""
        if 1 <= index <= len(self.dayparts):
            return self.dayparts[index - 1]
        return self.slot_fallback_template.format(index=index)


def load_vocabulary(path: Optional[Path] = None) -> Vocabulary:
    """Load the packaged vocabulary, or ``path`` when given."""
    try:
        if path is None:
            raw = resources.files(__package__).joinpath("vocabulary.json").read_text(encoding="utf-8")
        else:
            raw = Path(path).read_text(encoding="utf-8")
        return Vocabulary.model_validate(json.loads(raw))
    except (OSError, json.JSONDecodeError, ValidationError) as exc:
        raise VocabularyError(f"Unable to load vocabulary from {path or 'package data'}: {exc}") from exc
