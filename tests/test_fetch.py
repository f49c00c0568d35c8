# tests/test_fetch.py

import requests
from selenium.common.exceptions import NoSuchElementException, WebDriverException

from tablecrawl import fetch
from tablecrawl.fetch import (
    BrowserPageSource,
    FetchResult,
    HttpPageSource,
    make_chrome_driver,
    session_from_driver,
)


class FakeResponse:
    def __init__(self, status_code, text):
        self.status_code = status_code
        self.text = text


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def get(self, url, headers=None, timeout=None):
        self.calls.append((url, headers, timeout))
        if self.error:
            raise self.error
        return self.response


class FakeDriver:
    def __init__(self, html="<table></table>", error=None, has_table=True):
        self.html = html
        self.error = error
        self.has_table = has_table
        self.visited = []

    def get(self, url):
        if self.error:
            raise self.error
        self.visited.append(url)

    @property
    def page_source(self):
        return self.html

    def find_element(self, by, value):
        if not self.has_table:
            raise NoSuchElementException(value)
        return object()

    def get_cookies(self):
        return [
            {"name": "sid", "value": "abc", "domain": "example.com", "path": "/"},
            {"name": "lang", "value": "en", "domain": "example.com"},
        ]


# --- Test FetchResult ---

def test_fetch_result_ok():
    assert FetchResult("u", 200).ok
    assert FetchResult("u", 204).ok
    assert not FetchResult("u", 404).ok
    assert not FetchResult("u", 0).ok

# --- Test HttpPageSource ---

def test_http_page_source_returns_status_and_body():
    session = FakeSession(FakeResponse(200, "<html>ok</html>"))
    source = HttpPageSource(session=session, headers={"Referer": "https://example.com"}, timeout=5)

    result = source.fetch_page("https://example.com/players?start=0")

    assert result.ok
    assert result.body == "<html>ok</html>"
    url, headers, timeout = session.calls[0]
    assert url == "https://example.com/players?start=0"
    assert "User-Agent" in headers and headers["Referer"] == "https://example.com"
    assert timeout == 5

def test_http_page_source_passes_error_status_through():
    result = HttpPageSource(session=FakeSession(FakeResponse(503, "busy"))).fetch_page("u")
    assert result.status == 503
    assert not result.ok

def test_http_page_source_network_error_is_status_zero():
    session = FakeSession(error=requests.ConnectionError("refused"))
    result = HttpPageSource(session=session).fetch_page("https://example.com")

    assert result.status == 0
    assert not result.ok
    assert "refused" in result.error

# --- Test BrowserPageSource ---

def test_browser_page_source_returns_page_source():
    driver = FakeDriver(html="<table><tr><td>x</td></tr></table>")
    result = BrowserPageSource(driver).fetch_page("https://example.com/staffs?pos=Coach")

    assert result.ok
    assert "<td>x</td>" in result.body
    assert driver.visited == ["https://example.com/staffs?pos=Coach"]

def test_browser_page_source_wait_timeout_still_returns_page():
    driver = FakeDriver(html="<p>empty</p>", has_table=False)
    result = BrowserPageSource(driver, timeout=0).fetch_page("u")

    assert result.ok
    assert result.body == "<p>empty</p>"

def test_browser_page_source_driver_error():
    driver = FakeDriver(error=WebDriverException("chrome not reachable"))
    result = BrowserPageSource(driver, wait_selector=None).fetch_page("u")

    assert result.status == 0
    assert "chrome not reachable" in result.error

# --- Test driver helpers ---

def test_session_from_driver_copies_cookies():
    session = session_from_driver(FakeDriver())
    assert session.cookies.get("sid") == "abc"
    assert session.cookies.get("lang") == "en"

def test_make_chrome_driver_options(monkeypatch):
    created = {}

    class FakeManager:
        def install(self):
            return "/tmp/chromedriver"

    def fake_chrome(service=None, options=None):
        created["service"] = service
        created["options"] = options
        return "driver"

    monkeypatch.setattr(fetch, "ChromeDriverManager", FakeManager)
    monkeypatch.setattr(fetch, "Service", lambda path: ("service", path))
    monkeypatch.setattr(fetch.webdriver, "Chrome", fake_chrome)

    assert make_chrome_driver(headless=True, profile_dir="/tmp/profile") == "driver"
    assert created["service"] == ("service", "/tmp/chromedriver")
    args = created["options"].arguments
    assert "--headless=new" in args
    assert "--user-data-dir=/tmp/profile" in args

    make_chrome_driver(headless=False)
    assert "--headless=new" not in created["options"].arguments
