# tablecrawl/fetch.py

import logging
from dataclasses import dataclass
from typing import Optional

import requests
from selenium import webdriver
from selenium.common.exceptions import TimeoutException, WebDriverException
from selenium.webdriver.chrome.options import Options
from selenium.webdriver.chrome.service import Service
from selenium.webdriver.common.by import By
from selenium.webdriver.support import expected_conditions as EC
from selenium.webdriver.support.ui import WebDriverWait
from webdriver_manager.chrome import ChromeDriverManager

logger = logging.getLogger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


@dataclass(frozen=True)
class FetchResult:
    url: str
    status: int
    body: str = ""
    error: Optional[str] = None

    @property
    def ok(self):
        return 200 <= self.status < 300


class HttpPageSource:
    """
    Fetch list pages with a requests Session. Credentials travel in the
    session's cookie jar, e.g. one copied from a logged-in browser with
    session_from_driver().
    """

    def __init__(self, session=None, headers=None, timeout=30):
        self.session = session or requests.Session()
        self.headers = {"User-Agent": USER_AGENT}
        if headers:
            self.headers.update(headers)
        self.timeout = timeout

    def fetch_page(self, url):
        try:
            response = self.session.get(url, headers=self.headers, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error("Request failed for %s: %s", url, e)
            return FetchResult(url, 0, "", str(e))
        return FetchResult(url, response.status_code, response.text)


class BrowserPageSource:
    """
    Load list pages in a selenium-driven browser that already holds the
    site session. The browser does not expose HTTP status codes, so a loaded
    page counts as 200; whether it holds data is up to the table locator.
    """

    def __init__(self, driver, wait_selector="table", timeout=10):
        self.driver = driver
        self.wait_selector = wait_selector
        self.timeout = timeout

    def fetch_page(self, url):
        try:
            self.driver.get(url)
            if self.wait_selector:
                try:
                    WebDriverWait(self.driver, self.timeout).until(
                        EC.presence_of_element_located((By.CSS_SELECTOR, self.wait_selector))
                    )
                except TimeoutException:
                    logger.debug("No %r after %ss on %s", self.wait_selector, self.timeout, url)
            return FetchResult(url, 200, self.driver.page_source)
        except WebDriverException as e:
            logger.error("Browser failed to load %s: %s", url, e)
            return FetchResult(url, 0, "", str(e))


def make_chrome_driver(headless=True, profile_dir=None):
    """Chrome via webdriver_manager; `profile_dir` reuses a logged-in browser profile."""
    options = Options()
    if headless:
        options.add_argument("--headless=new")
    options.add_argument("--disable-gpu")
    if profile_dir:
        options.add_argument(f"--user-data-dir={profile_dir}")
    return webdriver.Chrome(service=Service(ChromeDriverManager().install()), options=options)


def session_from_driver(driver, session=None):
    """Copy the browser's cookies into a requests Session."""
    session = session or requests.Session()
    for cookie in driver.get_cookies():
        session.cookies.set(
            cookie["name"],
            cookie["value"],
            domain=cookie.get("domain"),
            path=cookie.get("path", "/"),
        )
    return session
