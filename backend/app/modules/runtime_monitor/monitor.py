"""
Runtime Monitor - headless browser pass over a live sandbox preview

Loads the preview in Chromium, listens to console output, uncaught
exceptions, HTTP responses and failed requests, and returns a typed
MonitorResult. Navigation failure and best-effort step failures are
reported in the result; only unexpected faults propagate, and always
after the browser has been released.
"""

import base64
import time
from typing import Optional

from playwright.async_api import Error as PlaywrightError

from app.core.config import settings
from app.core.logging_config import logger
from app.modules.runtime_monitor import classifier
from app.modules.runtime_monitor.browser_provider import (
    BrowserHandle,
    BrowserProvider,
    get_browser_provider,
)
from app.modules.runtime_monitor.collector import RuntimeErrorCollector
from app.schemas.runtime import MonitorConfig, MonitorResult, MonitorSummary


ROOT_HAS_CHILDREN_JS = """
(rootId) => {
    const root = document.getElementById(rootId);
    return !!root && root.children.length > 0;
}
"""


class RuntimeMonitor:
    """Runs one browser session per monitor() call"""

    def __init__(self, browser_provider: Optional[BrowserProvider] = None):
        self._browser_provider = browser_provider

    @property
    def browser_provider(self) -> BrowserProvider:
        return self._browser_provider or get_browser_provider()

    async def monitor(self, config: MonitorConfig) -> MonitorResult:
        started = time.monotonic()
        timeout_ms = config.timeout or settings.RUNTIME_MONITOR_TIMEOUT_MS
        collector = RuntimeErrorCollector(config)

        logger.log_monitor_event(
            config.sandbox_id, "session_started",
            sandbox_url=config.sandbox_url, timeout_ms=timeout_ms,
        )

        handle: BrowserHandle = await self.browser_provider.launch()
        try:
            context = await handle.browser.new_context(
                viewport={
                    "width": settings.RUNTIME_VIEWPORT_WIDTH,
                    "height": settings.RUNTIME_VIEWPORT_HEIGHT,
                },
                ignore_https_errors=True,
            )
            page = await context.new_page()
            collector.attach(page)

            try:
                await page.goto(
                    config.sandbox_url,
                    wait_until="domcontentloaded",
                    timeout=timeout_ms,
                )
            except PlaywrightError as e:
                await handle.close()
                return self._navigation_failed(config, str(e), started)

            await self._settle(page, config)
            await self._check_root(page, collector)

            screenshot = None
            if config.capture_screenshots and collector.errors:
                screenshot = await self._screenshot(page, config)
        finally:
            await handle.close()

        duration_ms = _elapsed_ms(started)
        result = collector.build_result(duration_ms, screenshot=screenshot)

        logger.log_monitor_event(
            config.sandbox_id, "session_completed",
            has_errors=result.has_errors,
            error_count=len(result.errors),
            warning_count=len(result.warnings),
            duration_ms=duration_ms,
        )
        return result

    def _navigation_failed(self, config: MonitorConfig, reason: str, started: float) -> MonitorResult:
        logger.warning(f"[RuntimeMonitor:{config.sandbox_id}] Navigation failed: {reason}")
        entry = classifier.navigation_failure(config.sandbox_url, reason)
        return MonitorResult(
            success=False,
            sandbox_id=config.sandbox_id,
            has_errors=True,
            errors=[entry],
            warnings=[],
            summary=MonitorSummary(
                total_errors=1,
                console_errors=0,
                network_errors=1,
                exceptions=0,
            ),
            monitor_duration=_elapsed_ms(started),
        )

    async def _settle(self, page, config: MonitorConfig) -> None:
        """Give client-side rendering a fixed interval after domcontentloaded"""
        try:
            await page.wait_for_timeout(settings.RUNTIME_PAGE_LOAD_WAIT_MS)
        except Exception as e:
            logger.debug(f"[RuntimeMonitor:{config.sandbox_id}] Settle wait interrupted: {e}")

    async def _check_root(self, page, collector: RuntimeErrorCollector) -> None:
        try:
            rendered = await page.evaluate(ROOT_HAS_CHILDREN_JS, settings.RUNTIME_ROOT_ELEMENT_ID)
        except Exception as e:
            logger.debug(f"[RuntimeMonitor:{collector.config.sandbox_id}] Root check failed: {e}")
            rendered = False

        if not rendered:
            collector.add_warning(classifier.empty_root_warning())

    async def _screenshot(self, page, config: MonitorConfig) -> Optional[str]:
        try:
            png = await page.screenshot(full_page=True)
        except Exception as e:
            logger.debug(f"[RuntimeMonitor:{config.sandbox_id}] Screenshot failed: {e}")
            return None
        return base64.b64encode(png).decode("ascii")


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


# Singleton instance
runtime_monitor = RuntimeMonitor()
