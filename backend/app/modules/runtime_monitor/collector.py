"""
Session-scoped collector for runtime findings.

One collector per monitoring session. Playwright dispatches listener
callbacks on the session's event loop, so handlers only classify and append.
"""

from typing import Any, List, Optional

from app.core.logging_config import logger
from app.modules.runtime_monitor import classifier
from app.schemas.runtime import (
    MonitorConfig,
    MonitorResult,
    MonitorSummary,
    RuntimeErrorEntry,
    RuntimeErrorType,
)


class RuntimeErrorCollector:
    """Accumulates classified errors and warnings for a single session"""

    def __init__(self, config: MonitorConfig):
        self.config = config
        self.errors: List[RuntimeErrorEntry] = []
        self.warnings: List[RuntimeErrorEntry] = []

    # ---------- listener wiring ----------

    def attach(self, page: Any) -> None:
        """Register all four listeners. Must run before navigation."""
        page.on("console", self._on_console)
        page.on("pageerror", self._on_page_error)
        page.on("response", self._on_response)
        page.on("requestfailed", self._on_request_failed)

    def _on_console(self, msg: Any) -> None:
        try:
            self.record(classifier.classify_console(msg.type, msg.text))
        except Exception as e:
            logger.debug(f"[RuntimeMonitor:{self.config.sandbox_id}] console handler failed: {e}")

    def _on_page_error(self, error: Any) -> None:
        try:
            message = getattr(error, "message", None) or str(error)
            stack = getattr(error, "stack", None)
            self.record(classifier.classify_page_error(message, stack))
        except Exception as e:
            logger.debug(f"[RuntimeMonitor:{self.config.sandbox_id}] pageerror handler failed: {e}")

    def _on_response(self, response: Any) -> None:
        try:
            self.record(classifier.classify_response(response.status, response.url))
        except Exception as e:
            logger.debug(f"[RuntimeMonitor:{self.config.sandbox_id}] response handler failed: {e}")

    def _on_request_failed(self, request: Any) -> None:
        try:
            self.record(classifier.classify_request_failure(request.url, request.failure))
        except Exception as e:
            logger.debug(f"[RuntimeMonitor:{self.config.sandbox_id}] requestfailed handler failed: {e}")

    # ---------- accumulation ----------

    def record(self, entry: Optional[RuntimeErrorEntry]) -> bool:
        """
        Route a classified entry into errors or warnings.

        Blocking severities (critical, error) go to errors, the rest to
        warnings. Entries whose type is outside the allow-list are dropped.

        Returns:
            True if the entry was kept
        """
        if entry is None or not self.config.should_capture(entry.type):
            return False

        if entry.is_blocking:
            self.errors.append(entry)
        else:
            self.warnings.append(entry)

        logger.log_monitor_event(
            self.config.sandbox_id,
            "signal_captured",
            error_type=entry.type.value,
            severity=entry.severity.value,
        )
        return True

    def add_warning(self, entry: RuntimeErrorEntry) -> None:
        """Append an advisory entry directly, bypassing the allow-list"""
        self.warnings.append(entry)

    @property
    def has_errors(self) -> bool:
        return any(e.is_blocking for e in self.errors)

    def summary(self) -> MonitorSummary:
        return MonitorSummary(
            total_errors=len(self.errors) + len(self.warnings),
            console_errors=sum(1 for e in self.errors if e.type.value.startswith("console-")),
            network_errors=sum(1 for e in self.errors if e.type.value.startswith("network-")),
            exceptions=sum(1 for e in self.errors if e.type == RuntimeErrorType.EXCEPTION),
        )

    def build_result(self, duration_ms: int, screenshot: Optional[str] = None) -> MonitorResult:
        return MonitorResult(
            success=True,
            sandbox_id=self.config.sandbox_id,
            has_errors=self.has_errors,
            errors=list(self.errors),
            warnings=list(self.warnings),
            summary=self.summary(),
            monitor_duration=duration_ms,
            screenshot=screenshot,
        )
