# tests/conftest.py
import os

import pytest
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from fastjobs_kiv import config
from fastjobs_kiv import session as session_mod


# ---------------------------------------------------------------------
# Live tests are opt-in: use --live or RUN_LIVE_TESTS=1
# ---------------------------------------------------------------------
def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--live",
        action="store_true",
        default=False,
        help="Run tests marked as 'live' (real browser against the FastJobs portal).",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list) -> None:
    run_live = config.getoption("--live") or os.getenv("RUN_LIVE_TESTS") == "1"
    if run_live:
        return
    skip_live = pytest.mark.skip(reason="live tests disabled (use --live or RUN_LIVE_TESTS=1)")
    for item in items:
        if "live" in item.keywords:
            item.add_marker(skip_live)


# ---------------------------------------------------------------------
# Test-wide defaults (autouse)
# ---------------------------------------------------------------------
@pytest.fixture(autouse=True)
def no_email(monkeypatch):
    monkeypatch.setattr(config, "EMAIL_ENABLED", "0")
    yield


@pytest.fixture(autouse=True)
def _log_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "LOG_DIR", tmp_path / "logs")
    yield


# ---------------------------------------------------------------------
# Playwright doubles
#
# A page is a tree of FakeElements. `children` maps a selector to a list
# of elements, or to a zero-arg callable returning one (re-evaluated every
# time a locator is built, so the DOM can change between calls).
# ---------------------------------------------------------------------
class FakeElement:
    def __init__(self, text="", attrs=None, children=None, visible=True, text_error=None):
        self.text = text
        self.attrs = attrs or {}
        self.children = children or {}
        self.visible = visible
        self.text_error = text_error
        self.clicks = 0
        self.value = None

    def find(self, selector):
        found = self.children.get(selector, [])
        return list(found() if callable(found) else found)


class FakeLocator:
    def __init__(self, elements, selector=""):
        self.elements = list(elements)
        self.selector = selector

    def _one(self, timeout=None):
        if not self.elements:
            raise PlaywrightTimeoutError(f"Timeout {timeout or 30000}ms exceeded waiting for {self.selector!r}")
        return self.elements[0]

    @property
    def first(self):
        return FakeLocator(self.elements[:1], self.selector)

    def nth(self, i):
        return FakeLocator(self.elements[i:i + 1], self.selector)

    def count(self):
        return len(self.elements)

    def all(self):
        return [FakeLocator([e], self.selector) for e in self.elements]

    def locator(self, selector):
        found = []
        for e in self.elements:
            found.extend(e.find(selector))
        return FakeLocator(found, selector)

    def inner_text(self, timeout=None):
        el = self._one(timeout)
        if el.text_error:
            raise el.text_error
        return el.text

    def get_attribute(self, name, timeout=None):
        return self._one(timeout).attrs.get(name)

    def is_visible(self):
        return bool(self.elements) and self.elements[0].visible

    def wait_for(self, timeout=None, state=None):
        self._one(timeout)

    def click(self, timeout=None):
        self._one(timeout).clicks += 1

    def fill(self, value, timeout=None):
        self._one(timeout).value = value


class FakeResponse:
    def __init__(self, ok=True):
        self.ok = ok


class FakePage:
    def __init__(self, url="about:blank", children=None, texts=None, redirects=None, responses=None):
        self.url = url
        self.root = FakeElement(children=children or {})
        self.texts = texts or {}
        self.redirects = redirects or {}
        self.responses = responses or {}
        self.gotos = []
        self.reloads = 0
        self.waits = []
        # Set to simulate a page whose browser has gone away.
        self.dead = False

    def goto(self, url, wait_until=None, timeout=None):
        self.gotos.append(url)
        target = self.redirects.get(url, url)
        if isinstance(target, Exception):
            raise target
        self.url = target
        return self.responses.get(url, FakeResponse(True))

    def locator(self, selector):
        return FakeLocator(self.root.find(selector), selector)

    def wait_for_selector(self, selector, timeout=None):
        return self.locator(selector).wait_for(timeout=timeout)

    def text_content(self, selector, timeout=None):
        value = self.texts.get(selector)
        if isinstance(value, Exception):
            raise value
        if value is None and selector not in self.texts:
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded waiting for {selector!r}")
        return value

    def _check_alive(self):
        if self.dead:
            raise PlaywrightError("Target page, context or browser has been closed")

    def is_closed(self):
        return self.dead

    def reload(self, wait_until=None, timeout=None):
        self._check_alive()
        self.reloads += 1

    def wait_for_timeout(self, ms):
        self._check_alive()
        self.waits.append(ms)


class FakeContext:
    def __init__(self, page, state=None, state_error=None):
        self.page = page
        self.state_error = state_error
        self.state = state or {"cookies": [{"name": "sid", "value": "abc"}], "origins": []}

    def new_page(self):
        return self.page

    def storage_state(self):
        if self.state_error:
            raise self.state_error
        return self.state


class FakeBrowser:
    def __init__(self, page, context_error=None, state_error=None):
        self.page = page
        self.context_error = context_error
        self.state_error = state_error
        self.context_kwargs = None
        self.closed = False

    def new_context(self, **kwargs):
        self.context_kwargs = kwargs
        if self.context_error:
            raise self.context_error
        return FakeContext(self.page, state_error=self.state_error)

    def close(self):
        self.closed = True


class FakeLauncher:
    """Hands out the queued browsers in order; records every launch."""

    def __init__(self, *browsers):
        self.queue = list(browsers)
        self.launched = []

    def __call__(self):
        if not self.queue:
            raise AssertionError("unexpected browser launch")
        browser = self.queue.pop(0)
        self.launched.append(browser)
        return browser


def dashboard_page(redirect_to_login=False):
    redirects = {config.DASHBOARD_URL: config.LOGIN_URL} if redirect_to_login else {}
    return FakePage(redirects=redirects)


def login_page(ok=True, form=True):
    children = {
        session_mod.CREDENTIAL_FIELD_SELECTOR: [FakeElement(), FakeElement()],
        session_mod.LOGIN_BUTTON_SELECTOR: [FakeElement()],
    }
    if form:
        children[session_mod.LOGIN_FORM_SELECTOR] = [FakeElement()]
    return FakePage(children=children, responses={config.DASHBOARD_URL: FakeResponse(ok)})


@pytest.fixture
def fakes():
    """Namespace-style access to the doubles from tests."""

    class _Fakes:
        Element = FakeElement
        Locator = FakeLocator
        Page = FakePage
        Response = FakeResponse
        Browser = FakeBrowser
        Launcher = FakeLauncher
        PlaywrightError = PlaywrightError
        TimeoutError = PlaywrightTimeoutError

        dashboard_page = staticmethod(dashboard_page)
        login_page = staticmethod(login_page)

    return _Fakes
