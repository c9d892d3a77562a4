import os
import re
import socket
import sys
import urllib.request
from pathlib import Path
from types import SimpleNamespace

import pytest


REPO_ROOT = Path(__file__).resolve().parents[1]
SRC = REPO_ROOT / "src"
FIXTURES = REPO_ROOT / "tests" / "fixtures"

# Prefer repo sources over any installed package.
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from playwright.async_api import TimeoutError as PlaywrightTimeoutError  # noqa: E402

from mass_property_info.config import Settings  # noqa: E402
from mass_property_info.form.driver import RESULTS_SELECTOR, SUBMIT_SELECTOR  # noqa: E402


@pytest.fixture(autouse=True)
def block_network(monkeypatch):
    if os.getenv("LIVE") == "1":
        return

    real_connect = socket.socket.connect

    def guarded_connect(sock, address):
        host = address[0]
        if host not in ("127.0.0.1", "localhost"):
            raise RuntimeError("Network access blocked in tests")
        return real_connect(sock, address)

    monkeypatch.setattr(socket.socket, "connect", guarded_connect)
    monkeypatch.setattr(
        urllib.request,
        "urlopen",
        lambda *args, **kwargs: (_ for _ in ()).throw(
            RuntimeError("Network access blocked in tests")
        ),
    )


class FakeSelect:
    def __init__(self, id="", name="", options=()):
        self.id = id
        self.name = name
        self.options = list(options)
        self.value = ""

    @property
    def key(self):
        return self.id or self.name


class FakeHandle:
    def __init__(self, page, select=None):
        self.page = page
        self.select = select

    async def evaluate(self, script, *args):
        return [{"value": v, "text": t} for v, t in self.select.options]

    async def click(self):
        self.page.events.append(("click",))


class FakeKeyboard:
    def __init__(self, page):
        self.page = page

    async def press(self, key):
        self.page.events.append(("press", key))


class FakePage:
    """In-memory stand-in for the Playwright page calls the driver makes.

    `on_select` maps a select key (id or name) to a hook called with
    (page, value) after that select is assigned; hooks emulate the server
    repopulating downstream selects.
    """

    def __init__(
        self,
        selects,
        *,
        on_select=None,
        submit_button=True,
        results_present=True,
        content_html="<html><body></body></html>",
        goto_error=None,
    ):
        self.selects = list(selects)
        self.on_select = on_select or {}
        self.submit_button = submit_button
        self.results_present = results_present
        self.content_html = content_html
        self.goto_error = goto_error
        self.keyboard = FakeKeyboard(self)
        self.events = []

    def _find(self, selector):
        if selector.startswith("#"):
            return next((s for s in self.selects if s.id == selector[1:]), None)
        m = re.match(r'select\[name="(.+)"\]$', selector)
        if m:
            return next((s for s in self.selects if s.name == m.group(1)), None)
        m = re.match(r"select >> nth=(\d+)$", selector)
        if m:
            idx = int(m.group(1))
            return self.selects[idx] if idx < len(self.selects) else None
        return None

    def select(self, key):
        return next(s for s in self.selects if s.key == key)

    async def goto(self, url, wait_until=None, timeout=None):
        self.events.append(("goto", url))
        if self.goto_error is not None:
            raise self.goto_error

    async def wait_for_selector(self, selector, timeout=None):
        if selector == "select" and not self.selects:
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded.")

    async def eval_on_selector_all(self, selector, script):
        return [
            {
                "index": idx,
                "id": s.id,
                "name": s.name,
                "options": [{"value": v, "text": t} for v, t in s.options],
            }
            for idx, s in enumerate(self.selects)
        ]

    async def query_selector(self, selector):
        if selector == SUBMIT_SELECTOR:
            return FakeHandle(self) if self.submit_button else None
        if selector == RESULTS_SELECTOR:
            return FakeHandle(self) if self.results_present else None
        found = self._find(selector)
        return FakeHandle(self, found) if found is not None else None

    async def select_option(self, selector, value=None):
        target = self._find(selector)
        target.value = value
        self.events.append(("select", target.key, value))
        hook = self.on_select.get(target.key)
        if hook is not None:
            hook(self, value)

    async def content(self):
        return self.content_html

    def selected(self):
        return [e[1:] for e in self.events if e[0] == "select"]


class FakeBrowser:
    def __init__(self, page, *, close_error=None):
        self.page = page
        self.close_error = close_error
        self.close_calls = 0
        self.page_kwargs = None

    async def new_page(self, *, viewport, user_agent):
        self.page_kwargs = {"viewport": viewport, "user_agent": user_agent}
        return self.page

    async def close(self):
        self.close_calls += 1
        if self.close_error is not None:
            raise self.close_error


class CountingLauncher:
    def __init__(self, browser):
        self.browser = browser
        self.calls = 0

    async def __call__(self, settings):
        self.calls += 1
        return self.browser


def cascading_page(**kwargs):
    """A town/street/number form where each selection fills the next select."""

    town = FakeSelect(
        id="ddlTown",
        options=[("", "Select a town"), ("12", "BOSTON"), ("7", "CAMBRIDGE")],
    )
    street = FakeSelect(id="ddlStreet", options=[("", "Select a street")])
    number = FakeSelect(id="ddlNumber", options=[("", "Select a number")])

    def fill_streets(page, value):
        page.select("ddlStreet").options = [
            ("", "Select a street"),
            ("301", "MAIN ST"),
            ("302", "ELM ST"),
        ]

    def fill_numbers(page, value):
        page.select("ddlNumber").options = [
            ("", "Select a number"),
            ("121", "121"),
            ("123", "123"),
        ]

    hooks = {"ddlTown": fill_streets, "ddlStreet": fill_numbers}
    hooks.update(kwargs.pop("on_select", {}))
    return FakePage([town, street, number], on_select=hooks, **kwargs)


def read_fixture(name):
    return (FIXTURES / name).read_text(encoding="utf-8")


@pytest.fixture()
def fast_settings():
    return Settings(
        form_url="https://assessor.example/MassPropertyInfo.aspx",
        page_load_timeout_s=0.05,
        form_ready_timeout_s=0.05,
        repopulate_timeout_s=0.05,
        results_timeout_s=0.05,
        poll_interval_s=0.01,
        grace_delay_s=0.0,
        pre_submit_delay_s=0.0,
        settle_delay_s=0.0,
    )


@pytest.fixture()
def fakes():
    """Expose the fake browser objects to test modules."""

    return SimpleNamespace(
        FakeSelect=FakeSelect,
        FakePage=FakePage,
        FakeBrowser=FakeBrowser,
        CountingLauncher=CountingLauncher,
        cascading_page=cascading_page,
        read_fixture=read_fixture,
    )
