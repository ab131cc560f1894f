"""
Narrow browser capability set used by the extractor, navigator and fetchers.

Everything that talks to the browser goes through BrowserSession so the
traversal logic can run against a fake in tests.
"""
import json
import logging
from typing import Any, Optional, Protocol

from playwright.async_api import Error as PlaywrightError, Page

from lesson_harvester.errors import SessionError

logger = logging.getLogger(__name__)


def presence_script(selector: str) -> str:
    """In-page expression that is true when `selector` matches an element."""
    return f"!!document.querySelector({json.dumps(selector)})"


class BrowserSession(Protocol):
    async def navigate(self, url: str) -> None: ...

    async def evaluate(self, script: str) -> Any: ...

    async def wait_visible(self, selector: str, timeout: Optional[int] = None) -> None: ...

    async def scroll_into_view(self, selector: str) -> None: ...

    async def click(self, selector: str) -> None: ...

    async def read_attribute(self, selector: str, name: str) -> Optional[str]: ...


class PlaywrightSession:
    """BrowserSession backed by a single Playwright page.

    Playwright errors (including its timeouts) are re-raised as SessionError.
    Timeouts are in milliseconds, like Playwright's own.
    """

    def __init__(self, page: Page, page_load_timeout: int = 60000, wait_timeout: int = 30000):
        self.page = page
        self.page_load_timeout = page_load_timeout
        self.wait_timeout = wait_timeout

    async def navigate(self, url: str) -> None:
        logger.debug(f"goto {url}")
        try:
            response = await self.page.goto(url, timeout=self.page_load_timeout)
        except PlaywrightError as e:
            raise SessionError(f"navigation to {url} failed: {e}") from e
        if response is not None and response.status >= 500:
            raise SessionError(f"navigation to {url} failed: HTTP {response.status}")

    async def evaluate(self, script: str) -> Any:
        try:
            return await self.page.evaluate(script)
        except PlaywrightError as e:
            raise SessionError(f"script evaluation failed: {e}") from e

    async def wait_visible(self, selector: str, timeout: Optional[int] = None) -> None:
        try:
            await self.page.wait_for_selector(
                selector,
                state='visible',
                timeout=self.wait_timeout if timeout is None else timeout,
            )
        except PlaywrightError as e:
            raise SessionError(f"{selector!r} did not become visible: {e}") from e

    async def scroll_into_view(self, selector: str) -> None:
        try:
            await self.page.locator(selector).first.scroll_into_view_if_needed(timeout=self.wait_timeout)
        except PlaywrightError as e:
            raise SessionError(f"could not scroll to {selector!r}: {e}") from e

    async def click(self, selector: str) -> None:
        try:
            await self.page.click(selector, timeout=self.wait_timeout)
        except PlaywrightError as e:
            raise SessionError(f"could not click {selector!r}: {e}") from e

    async def read_attribute(self, selector: str, name: str) -> Optional[str]:
        try:
            return await self.page.get_attribute(selector, name, timeout=self.wait_timeout)
        except PlaywrightError as e:
            raise SessionError(f"could not read {name!r} of {selector!r}: {e}") from e
