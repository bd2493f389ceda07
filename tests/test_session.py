import pytest

from gym_availability_agent import session as session_module
from gym_availability_agent.config import Settings
from gym_availability_agent.session import LAUNCH_ARGS, PortalSession


class Closable:
    def __init__(self, log, name, fail=False):
        self.log = log
        self.name = name
        self.fail = fail

    async def close(self):
        self.log.append(self.name)
        if self.fail:
            raise RuntimeError(f"{self.name} already closed")


class StubPage:
    def __init__(self):
        self.handlers = {}

    def on(self, event, handler):
        self.handlers[event] = handler


class StubContext(Closable):
    def __init__(self, log, fail=False):
        super().__init__(log, "context", fail)
        self.page = StubPage()

    async def new_page(self):
        return self.page


class StubBrowser(Closable):
    def __init__(self, log, context_error=None, fail_close=False):
        super().__init__(log, "browser", fail_close)
        self.context_error = context_error
        self.context = StubContext(log)

    async def new_context(self):
        if self.context_error:
            raise self.context_error
        return self.context


class StubChromium:
    def __init__(self, browser):
        self.browser = browser
        self.launch_kwargs = None

    async def launch(self, **kwargs):
        self.launch_kwargs = kwargs
        return self.browser


class StubPlaywright:
    def __init__(self, log, browser):
        self.log = log
        self.chromium = StubChromium(browser)

    async def stop(self):
        self.log.append("playwright")


class StubStarter:
    def __init__(self, playwright):
        self.playwright = playwright

    async def start(self):
        return self.playwright


def install(monkeypatch, **browser_kwargs):
    log = []
    playwright = StubPlaywright(log, StubBrowser(log, **browser_kwargs))
    monkeypatch.setattr(session_module, "async_playwright", lambda: StubStarter(playwright))
    return log, playwright


@pytest.mark.asyncio
async def test_session_launches_and_releases_everything(monkeypatch):
    log, playwright = install(monkeypatch)
    settings = Settings(headless=True, browser_executable_path="/usr/bin/chromium")

    async with PortalSession(settings) as portal:
        assert set(portal.page.handlers) == {"pageerror", "crash", "console"}

    assert playwright.chromium.launch_kwargs == {
        "headless": True,
        "executable_path": "/usr/bin/chromium",
        "args": LAUNCH_ARGS,
    }
    assert log == ["context", "browser", "playwright"]
    with pytest.raises(RuntimeError):
        portal.page


@pytest.mark.asyncio
async def test_session_cleans_up_when_startup_fails(monkeypatch):
    log, _ = install(monkeypatch, context_error=RuntimeError("context refused"))

    with pytest.raises(RuntimeError, match="context refused"):
        async with PortalSession(Settings()):
            pass

    assert log == ["browser", "playwright"]


@pytest.mark.asyncio
async def test_close_continues_past_failing_step(monkeypatch):
    log, _ = install(monkeypatch, fail_close=True)

    async with PortalSession(Settings()):
        pass

    assert log == ["context", "browser", "playwright"]


class RecordingLogger:
    def __init__(self):
        self.events = []

    def _record(self, level):
        def log(event, **kwargs):
            self.events.append((level, event, kwargs))
        return log

    def __getattr__(self, level):
        return self._record(level)


class ConsoleMessage:
    def __init__(self, type, text):
        self.type = type
        self.text = text


class CrashedPage:
    url = "https://portal.example/web/rsvWTransInstSrchVacantAction.do"


@pytest.mark.asyncio
async def test_page_script_errors_are_logged_without_aborting(monkeypatch):
    log, _ = install(monkeypatch)
    logger = RecordingLogger()
    monkeypatch.setattr(session_module, "LOGGER", logger)

    async with PortalSession(Settings()) as portal:
        handlers = portal.page.handlers
        handlers["pageerror"](Exception("ReferenceError: calendarInit is not defined"))
        handlers["console"](ConsoleMessage("error", "Failed to load resource"))
        handlers["console"](ConsoleMessage("log", "ready"))
        handlers["crash"](CrashedPage())
        assert portal.page is not None

    events = [(level, event) for level, event, _ in logger.events if event.startswith("session.page") or event == "session.console_error"]
    assert events == [
        ("warning", "session.page_error"),
        ("debug", "session.console_error"),
        ("error", "session.page_crashed"),
    ]
    page_error = next(kwargs for _, event, kwargs in logger.events if event == "session.page_error")
    assert page_error == {"error": "ReferenceError: calendarInit is not defined"}
    assert log == ["context", "browser", "playwright"]
