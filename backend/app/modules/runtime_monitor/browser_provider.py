"""
Browser acquisition for runtime monitoring

Two launch strategies behind one interface:
- LocalChromiumProvider: Playwright's bundled Chromium (dev machines, containers)
- ServerlessChromiumProvider: a pre-installed Chromium binary with the
  restricted flag set that Lambda/Vercel-style runtimes require

The provider is chosen once per process (get_browser_provider). Session
code only ever sees a BrowserHandle.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import List, Optional

from playwright.async_api import Browser, Playwright, async_playwright

from app.core.config import settings
from app.core.exceptions import BrowserLaunchError
from app.core.logging_config import logger


LOCAL_CHROMIUM_ARGS: List[str] = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
]

SERVERLESS_CHROMIUM_ARGS: List[str] = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--single-process",
    "--no-zygote",
    "--no-first-run",
    "--disable-extensions",
    "--disable-background-networking",
    "--hide-scrollbars",
    "--mute-audio",
]


class BrowserHandle:
    """
    A launched browser plus the Playwright driver that owns it.

    close() is idempotent and never raises; it is bounded by
    BROWSER_CLOSE_TIMEOUT_MS so a wedged browser cannot hang a request.
    """

    def __init__(self, playwright: Playwright, browser: Browser, mode: str = "local"):
        self.playwright = playwright
        self.browser = browser
        self.mode = mode
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True

        timeout = settings.BROWSER_CLOSE_TIMEOUT_MS / 1000
        try:
            await asyncio.wait_for(self.browser.close(), timeout=timeout)
        except Exception as e:
            logger.warning(f"[BrowserProvider] Browser close failed: {e}")
        try:
            await asyncio.wait_for(self.playwright.stop(), timeout=timeout)
        except Exception as e:
            logger.warning(f"[BrowserProvider] Playwright stop failed: {e}")


class BrowserProvider(ABC):
    """Launches headless Chromium instances"""

    mode: str = "local"

    @abstractmethod
    def launch_args(self) -> List[str]:
        pass

    def executable_path(self) -> Optional[str]:
        return None

    async def launch(self) -> BrowserHandle:
        """Start a Playwright driver and launch one browser on it"""
        playwright = await async_playwright().start()
        try:
            browser = await playwright.chromium.launch(
                headless=True,
                args=self.launch_args(),
                executable_path=self.executable_path(),
                timeout=settings.BROWSER_LAUNCH_TIMEOUT_MS,
            )
        except Exception as e:
            try:
                await playwright.stop()
            except Exception as stop_error:
                logger.warning(f"[BrowserProvider] Playwright stop after failed launch: {stop_error}")
            raise BrowserLaunchError(str(e), mode=self.mode)

        logger.debug(f"[BrowserProvider] Launched {self.mode} Chromium")
        return BrowserHandle(playwright, browser, mode=self.mode)


class LocalChromiumProvider(BrowserProvider):
    mode = "local"

    def launch_args(self) -> List[str]:
        return list(LOCAL_CHROMIUM_ARGS)


class ServerlessChromiumProvider(BrowserProvider):
    mode = "serverless"

    def __init__(self, chromium_path: Optional[str] = None):
        self.chromium_path = chromium_path or settings.SERVERLESS_CHROMIUM_PATH

    def launch_args(self) -> List[str]:
        return list(SERVERLESS_CHROMIUM_ARGS)

    def executable_path(self) -> Optional[str]:
        return self.chromium_path


_browser_provider: Optional[BrowserProvider] = None


def get_browser_provider() -> BrowserProvider:
    """Select the launch strategy once per process"""
    global _browser_provider
    if _browser_provider is None:
        if settings.use_serverless_browser:
            _browser_provider = ServerlessChromiumProvider()
        else:
            _browser_provider = LocalChromiumProvider()
        logger.info(f"[BrowserProvider] Using {_browser_provider.mode} Chromium")
    return _browser_provider


def reset_browser_provider() -> None:
    """Forget the cached provider (tests, config reload)"""
    global _browser_provider
    _browser_provider = None
