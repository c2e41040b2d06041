"""Scoped scrape sessions.

A session owns exactly one external resource (a headless Chromium driven by
Playwright, or a ``requests`` session) for a single collector invocation and
yields the rendered search page. The resource is released in ``finally``
blocks, so every exit path (success, extraction error, timeout,
cancellation) closes it exactly once.
"""

from __future__ import annotations

import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional

import requests
from bs4 import BeautifulSoup
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError
from playwright.sync_api import sync_playwright

from .collectors.retailers import FetchMode, RetailerConfig
from .models import (
    NavigationFailure,
    ResourceAcquisitionFailure,
    SessionCancelled,
    SessionTimeout,
)
from .utils import DEFAULT_HEADERS, DEFAULT_USER_AGENT

logger = logging.getLogger("price_search.session")


@dataclass(frozen=True)
class SessionOptions:
    """Timeouts and client identity shared by every session."""

    headless: bool = True
    user_agent: str = DEFAULT_USER_AGENT
    navigation_timeout: float = 15.0
    wait_timeout: float = 10.0
    poll_interval: float = 0.5
    locale: str = "en-CA"


@dataclass(frozen=True)
class RenderedPage:
    """Snapshot of a search page once its results region has rendered."""

    url: str
    html: str


def _check_cancelled(
    retailer: RetailerConfig, cancel_event: Optional[threading.Event]
) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise SessionCancelled(retailer.store, "Search cancelled by caller.")


def _wait_for_marker(
    page,
    retailer: RetailerConfig,
    options: SessionOptions,
    cancel_event: Optional[threading.Event],
) -> None:
    """Poll for the results marker in short slices until the wait bound expires."""
    deadline = time.monotonic() + options.wait_timeout
    while True:
        _check_cancelled(retailer, cancel_event)
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise SessionTimeout(
                retailer.store,
                f"Results did not render within {options.wait_timeout:g}s.",
            )
        slice_ms = max(1, int(min(remaining, options.poll_interval) * 1000))
        try:
            page.wait_for_selector(
                retailer.marker_selector, state="attached", timeout=slice_ms
            )
            return
        except PlaywrightTimeoutError:
            continue


@contextmanager
def browser_session(
    retailer: RetailerConfig,
    url: str,
    options: SessionOptions,
    cancel_event: Optional[threading.Event] = None,
) -> Iterator[RenderedPage]:
    """Render ``url`` in a headless Chromium and yield the page HTML."""
    _check_cancelled(retailer, cancel_event)
    try:
        playwright = sync_playwright().start()
    except Exception as exc:
        raise ResourceAcquisitionFailure(
            retailer.store, f"Could not start Playwright: {exc}"
        ) from exc

    try:
        try:
            browser = playwright.chromium.launch(
                headless=options.headless,
                args=["--disable-blink-features=AutomationControlled"],
            )
        except PlaywrightError as exc:
            raise ResourceAcquisitionFailure(
                retailer.store, f"Could not launch Chromium: {exc}"
            ) from exc

        try:
            context = browser.new_context(
                user_agent=options.user_agent,
                locale=options.locale,
                viewport={"width": 1400, "height": 900},
                extra_http_headers={
                    "Accept-Language": DEFAULT_HEADERS["Accept-Language"]
                },
            )
            page = context.new_page()
            _check_cancelled(retailer, cancel_event)
            try:
                response = page.goto(
                    url,
                    wait_until="domcontentloaded",
                    timeout=options.navigation_timeout * 1000,
                )
            except PlaywrightError as exc:
                raise NavigationFailure(
                    retailer.store, f"Navigation to {url} failed: {exc}"
                ) from exc
            if response is not None and response.status >= 400:
                raise NavigationFailure(
                    retailer.store, f"HTTP {response.status} loading {url}."
                )

            _wait_for_marker(page, retailer, options, cancel_event)
            yield RenderedPage(url=url, html=page.content())
        finally:
            browser.close()
            logger.debug("Closed browser for %s.", retailer.store)
    finally:
        playwright.stop()


@contextmanager
def http_session(
    retailer: RetailerConfig,
    url: str,
    options: SessionOptions,
    cancel_event: Optional[threading.Event] = None,
) -> Iterator[RenderedPage]:
    """Fetch ``url`` over plain HTTP for retailers that render server side."""
    _check_cancelled(retailer, cancel_event)
    session = requests.Session()
    try:
        session.headers.update({**DEFAULT_HEADERS, "User-Agent": options.user_agent})
        try:
            response = session.get(url, timeout=options.navigation_timeout)
        except requests.Timeout as exc:
            raise SessionTimeout(
                retailer.store, f"Timed out loading {url}."
            ) from exc
        except requests.RequestException as exc:
            raise NavigationFailure(
                retailer.store, f"Request to {url} failed: {exc}"
            ) from exc

        if response.status_code != 200:
            raise NavigationFailure(
                retailer.store, f"HTTP {response.status_code} loading {url}."
            )

        html = response.text
        if BeautifulSoup(html, "html.parser").select_one(retailer.marker_selector) is None:
            raise SessionTimeout(
                retailer.store, "Results marker not present in the response."
            )

        _check_cancelled(retailer, cancel_event)
        yield RenderedPage(url=url, html=html)
    finally:
        session.close()


def open_session(
    retailer: RetailerConfig,
    url: str,
    options: SessionOptions,
    cancel_event: Optional[threading.Event] = None,
):
    """Pick the session kind configured for ``retailer``."""
    if retailer.fetch_mode is FetchMode.HTTP:
        return http_session(retailer, url, options, cancel_event)
    return browser_session(retailer, url, options, cancel_event)
