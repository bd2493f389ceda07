"""Engine-agnostic snapshot of the interactive elements on a portal page.

Every navigation step re-reads ``page.content()`` and works on the resulting
BeautifulSoup tree. Matches are turned back into CSS selectors that Playwright
can act on, preferring ``id``/``name`` attributes over structural paths.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Union

from bs4 import BeautifulSoup, Tag

from .utils import element_text

BUTTON_INPUT_TYPES = {"button", "submit", "image", "reset"}


@dataclass(frozen=True)
class ElementDescriptor:
    """Normalised view of one DOM element."""

    role: str
    tag: str
    text: str = ""
    href: str = ""
    id: str = ""
    class_name: str = ""
    name: str = ""
    value: str = ""
    alt_text: str = ""
    parent_link: str = ""
    input_type: str = ""
    placeholder: str = ""
    onclick: str = ""
    style: str = ""
    disabled: bool = False
    selector: str = ""

    @property
    def is_interactive(self) -> bool:
        """Has an href, an inline click handler, or a pointer cursor."""
        return bool(self.href or self.onclick or "pointer" in self.style.replace(" ", ""))

    def summary(self) -> Dict[str, str]:
        """Compact dict for log events."""
        fields = {
            "role": self.role,
            "text": self.text[:60],
            "id": self.id,
            "name": self.name,
            "value": self.value,
            "href": self.href,
            "selector": self.selector,
        }
        return {key: value for key, value in fields.items() if value}


def snapshot(html_or_soup: Union[str, BeautifulSoup]) -> BeautifulSoup:
    """Parse page HTML, passing an existing soup through unchanged."""
    if isinstance(html_or_soup, BeautifulSoup):
        return html_or_soup
    return BeautifulSoup(html_or_soup or "", "html.parser")


def role_of(tag: Tag) -> str:
    name = tag.name.lower()
    if name == "a":
        return "link"
    if name == "button":
        return "button"
    if name == "input":
        input_type = (tag.get("type") or "text").lower()
        return "button" if input_type in BUTTON_INPUT_TYPES else "input"
    if name == "img":
        return "image"
    if name in {"td", "th"}:
        return "cell"
    return name


def describe(tag: Tag, *, selector: Optional[str] = None) -> ElementDescriptor:
    """Build an :class:`ElementDescriptor` for ``tag``."""
    image = tag if tag.name == "img" else tag.find("img")
    parent_link = tag.find_parent("a")
    classes = tag.get("class") or []
    if isinstance(classes, str):
        classes = classes.split()
    text = element_text(tag)
    if not text and tag.name == "input":
        text = _attr(tag, "value")
    return ElementDescriptor(
        role=role_of(tag),
        tag=tag.name.lower(),
        text=text,
        href=_attr(tag, "href"),
        id=_attr(tag, "id"),
        class_name=" ".join(classes),
        name=_attr(tag, "name"),
        value=_attr(tag, "value"),
        alt_text=_attr(image, "alt") if image is not None else "",
        parent_link=_attr(parent_link, "href") if parent_link is not None else "",
        input_type=_attr(tag, "type").lower(),
        placeholder=_attr(tag, "placeholder"),
        onclick=_attr(tag, "onclick"),
        style=_attr(tag, "style").lower(),
        disabled=tag.has_attr("disabled") or _attr(tag, "aria-disabled").lower() == "true" or "disabled" in classes,
        selector=selector if selector is not None else selector_for(tag),
    )


def collect_elements(soup: BeautifulSoup) -> Dict[str, List[ElementDescriptor]]:
    """Inventory of links, buttons, images and inputs, used for diagnostics."""
    return {
        "links": [describe(tag, selector="") for tag in soup.find_all("a")],
        "buttons": [describe(tag, selector="") for tag in soup.select("button, input[type='button'], input[type='submit']")],
        "images": [describe(tag, selector="") for tag in soup.find_all("img")],
        "inputs": [describe(tag, selector="") for tag in soup.select("input[type='checkbox'], input[type='radio'], input[type='text']")],
    }


def selector_for(tag: Tag, generic_values: Iterable[str] = ()) -> str:
    """Return a CSS selector that resolves to ``tag`` alone.

    ``id`` and ``name`` qualified selectors win; a ``value`` selector is only
    used when the value is distinctive (many checkboxes share ``true``/``1``).
    The structural ``nth-of-type`` path is the last resort.
    """
    root = document_of(tag)
    tag_name = tag.name.lower()
    element_id = _attr(tag, "id")
    if element_id:
        candidate = f'[id="{_escape(element_id)}"]'
        if _is_unique(root, candidate):
            return candidate

    name = _attr(tag, "name")
    value = _attr(tag, "value")
    if name:
        candidate = f'{tag_name}[name="{_escape(name)}"]'
        if _is_unique(root, candidate):
            return candidate
        if value:
            candidate = f'{candidate}[value="{_escape(value)}"]'
            if _is_unique(root, candidate):
                return candidate

    generic = {item.lower() for item in generic_values}
    if value and value.lower() not in generic:
        candidate = f'{tag_name}[value="{_escape(value)}"]'
        if _is_unique(root, candidate):
            return candidate

    return css_path(tag)


def css_path(tag: Tag) -> str:
    """Structural ``tag:nth-of-type(n)`` path, anchored on the nearest unique id."""
    root = document_of(tag)
    parts: List[str] = []
    current: Optional[Tag] = tag
    while isinstance(current, Tag) and not isinstance(current, BeautifulSoup) and current.name != "html":
        element_id = _attr(current, "id")
        if element_id and current is not tag:
            anchor = f'[id="{_escape(element_id)}"]'
            if _is_unique(root, anchor):
                parts.append(anchor)
                break
        parent = current.parent
        siblings = parent.find_all(current.name, recursive=False) if parent is not None else [current]
        position = next((index for index, sibling in enumerate(siblings, start=1) if sibling is current), 1)
        parts.append(f"{current.name.lower()}:nth-of-type({position})")
        current = parent
    return " > ".join(reversed(parts))


def document_of(tag: Tag) -> Tag:
    root = tag
    while root.parent is not None:
        root = root.parent
    return root


def _is_unique(root: Tag, selector: str) -> bool:
    return len(root.select(selector, limit=2)) == 1


def _attr(tag: Optional[Tag], key: str) -> str:
    if tag is None:
        return ""
    value = tag.get(key)
    if value is None:
        return ""
    if isinstance(value, list):
        return " ".join(value)
    return str(value).strip()


def _escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')
