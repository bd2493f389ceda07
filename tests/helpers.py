"""Fakes standing in for Playwright objects in unit tests."""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Union

from gym_availability_agent.vocabulary import load_vocabulary

VOCABULARY = load_vocabulary()


@dataclass
class FakeResponse:
    status: int = 200


@dataclass
class FakePage:
    """Serves canned HTML and records every action the pipeline takes.

    ``on_click`` maps a selector to the HTML shown after clicking it, or to a
    callable receiving the page.
    """

    html: str = "<html><body></body></html>"
    url: str = "https://portal.example/web/homeIndex.html"
    routes: Dict[str, str] = field(default_factory=dict)
    on_click: Dict[str, Union[str, Callable[["FakePage"], None]]] = field(default_factory=dict)
    contents: Optional[Sequence[str]] = None
    actions: List[tuple] = field(default_factory=list)
    handlers: Dict[str, list] = field(default_factory=dict)

    async def goto(self, url: str, **kwargs) -> FakeResponse:
        self.actions.append(("goto", url, kwargs))
        self.url = url
        if url in self.routes:
            self.html = self.routes[url]
        return FakeResponse()

    async def title(self) -> str:
        return "施設予約システム"

    async def content(self) -> str:
        self.actions.append(("content",))
        if self.contents:
            index = min(self.content_calls - 1, len(self.contents) - 1)
            return self.contents[index]
        return self.html

    @property
    def content_calls(self) -> int:
        return sum(1 for action in self.actions if action[0] == "content")

    async def click(self, selector: str, **kwargs) -> None:
        self.actions.append(("click", selector))
        outcome = self.on_click.get(selector)
        if callable(outcome):
            outcome(self)
        elif outcome is not None:
            self.html = outcome

    async def fill(self, selector: str, value: str, **kwargs) -> None:
        self.actions.append(("fill", selector, value))

    async def dispatch_event(self, selector: str, event: str, **kwargs) -> None:
        self.actions.append(("dispatch_event", selector, event))

    async def wait_for_timeout(self, timeout: float) -> None:
        self.actions.append(("wait_for_timeout", timeout))

    async def wait_for_load_state(self, state: str = "load", **kwargs) -> None:
        self.actions.append(("wait_for_load_state", state))

    @asynccontextmanager
    async def expect_navigation(self, **kwargs):
        self.actions.append(("expect_navigation", kwargs))
        yield

    def on(self, event: str, handler) -> None:
        self.handlers.setdefault(event, []).append(handler)

    def calls(self, name: str) -> List[tuple]:
        return [action for action in self.actions if action[0] == name]


class FakeSession:
    """Async context manager matching ``PortalSession``'s surface."""

    def __init__(self, page: FakePage):
        self.page = page
        self.entered = False
        self.closed = False

    async def __aenter__(self) -> "FakeSession":
        self.entered = True
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.closed = True


def page_html(body: str) -> str:
    return f"<html><head><title>portal</title></head><body>{body}</body></html>"
