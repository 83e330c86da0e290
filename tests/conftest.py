import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

import scraper


class FakeLocator:
    def __init__(self, count: int):
        self._count = count

    async def count(self) -> int:
        return self._count


class FakePage:
    """
    Stands in for a Playwright page. cards is a list of {leaf_selector: text} dicts in
    document order; eval_on_selector_all mimics the in-page script on them.
    """

    def __init__(self, cards=None, hidden=False, goto_error=None, wait_error=None, eval_error=None):
        self.cards = list(cards or [])
        self.hidden = hidden
        self.goto_error = goto_error
        self.wait_error = wait_error
        self.eval_error = eval_error
        self.visited = []
        self.waited = []
        self.evaluated = []
        self.handlers = {}

    async def goto(self, url, timeout=None):
        self.visited.append((url, timeout))
        if self.goto_error:
            raise self.goto_error

    async def wait_for_selector(self, selector, state="visible", timeout=None):
        self.waited.append((selector, state, timeout))
        if self.wait_error:
            raise self.wait_error
        if not self.cards or self.hidden:
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded.")

    def locator(self, selector):
        return FakeLocator(len(self.cards))

    async def eval_on_selector_all(self, selector, expression, arg):
        self.evaluated.append((selector, arg))
        if self.eval_error:
            raise self.eval_error
        name_sel, rating_sel, total_sel = arg

        def text(card, sel):
            if not sel or sel not in card:
                return None
            return card[sel].strip()

        return [
            {"title": text(c, name_sel), "productRating": text(c, rating_sel), "totalRatings": text(c, total_sel)}
            for c in self.cards
        ]

    def on(self, event, handler):
        self.handlers[event] = handler


class FakeContext:
    def __init__(self, page):
        self.page = page

    async def new_page(self):
        return self.page


class FakeBrowser:
    def __init__(self, page, context_error=None):
        self.page = page
        self.context_error = context_error
        self.context_kwargs = []
        self.close_calls = 0

    async def new_context(self, **kwargs):
        self.context_kwargs.append(kwargs)
        if self.context_error:
            raise self.context_error
        return FakeContext(self.page)

    async def close(self):
        self.close_calls += 1


class FakeChromium:
    def __init__(self, browser, launch_error=None):
        self.browser = browser
        self.launch_error = launch_error
        self.launch_kwargs = []

    async def launch(self, **kwargs):
        self.launch_kwargs.append(kwargs)
        if self.launch_error:
            raise self.launch_error
        return self.browser


class FakePlaywright:
    def __init__(self, browser, launch_error=None, stop_error=None):
        self.chromium = FakeChromium(browser, launch_error)
        self.browser = browser
        self.stop_error = stop_error
        self.stop_calls = 0

    async def stop(self):
        self.stop_calls += 1
        if self.stop_error:
            raise self.stop_error


class _FakeManager:
    def __init__(self, pw):
        self.pw = pw

    async def start(self):
        return self.pw


@pytest.fixture
def make_page():
    return FakePage


@pytest.fixture
def fake_playwright(monkeypatch):
    """Patch scraper.async_playwright; returns an installer taking the page to serve."""
    installed = []

    def install(page=None, launch_error=None, stop_error=None, context_error=None):
        browser = FakeBrowser(page or FakePage(), context_error)
        pw = FakePlaywright(browser, launch_error, stop_error)
        monkeypatch.setattr(scraper, "async_playwright", lambda: _FakeManager(pw))
        installed.append(pw)
        return pw

    return install


@pytest.fixture
def list_request():
    return {
        "pageUrl": "https://example.test/list",
        "productCardSelector": ".card",
        "productNameSelector": ".name",
        "productRatingSelector": ".rating",
        "totalRatingsSelector": ".count",
    }
