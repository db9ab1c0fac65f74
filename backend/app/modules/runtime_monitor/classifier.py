"""
Runtime Signal Classifier - maps raw browser signals to the error taxonomy

Pure functions: the same raw signal always yields the same (type, severity)
pair. Listener plumbing lives in collector.py; nothing here touches a page.

| Signal        | Condition                 | type            | severity |
|---------------|---------------------------|-----------------|----------|
| console       | level = error             | console-error   | error    |
| console       | level = warning           | console-warning | warning  |
| pageerror     | uncaught exception        | exception       | critical |
| response      | status = 404              | network-404     | error    |
| response      | status >= 500             | network-500     | critical |
| response      | 400 <= status < 500       | network-other   | warning  |
| requestfailed | transport failure         | network-other   | warning  |
"""

from typing import Optional

from app.modules.runtime_monitor.source_parser import parse_error_source
from app.schemas.runtime import (
    SEVERITY_BY_TYPE,
    ErrorSource,
    RuntimeErrorEntry,
    RuntimeErrorSeverity,
    RuntimeErrorType,
)


EMPTY_ROOT_MESSAGE = "React root is empty - page may not have rendered"


def make_entry(
    error_type: RuntimeErrorType,
    message: str,
    *,
    stack: Optional[str] = None,
    url: Optional[str] = None,
    status_code: Optional[int] = None,
    source: Optional[ErrorSource] = None,
    severity: Optional[RuntimeErrorSeverity] = None,
) -> RuntimeErrorEntry:
    """Create an entry with a fresh id/timestamp and type-derived severity"""
    return RuntimeErrorEntry(
        type=error_type,
        severity=severity or SEVERITY_BY_TYPE[error_type],
        message=message,
        stack=stack,
        url=url,
        status_code=status_code,
        source=source,
    )


def classify_console(level: str, text: str) -> Optional[RuntimeErrorEntry]:
    """console.error -> console-error, console.warn -> console-warning, else ignored"""
    if level == "error":
        return make_entry(
            RuntimeErrorType.CONSOLE_ERROR,
            text,
            source=parse_error_source(text),
        )
    if level == "warning":
        return make_entry(RuntimeErrorType.CONSOLE_WARNING, text)
    return None


def classify_page_error(message: str, stack: Optional[str] = None) -> RuntimeErrorEntry:
    """Uncaught exception thrown by page script"""
    return make_entry(
        RuntimeErrorType.EXCEPTION,
        message,
        stack=stack or None,
        source=parse_error_source(stack or message),
    )


def classify_response(status: int, url: str) -> Optional[RuntimeErrorEntry]:
    """HTTP responses: 404, 5xx and other 4xx are findings; everything else is ignored"""
    if status == 404:
        return make_entry(
            RuntimeErrorType.NETWORK_404,
            f"404 Not Found: {url}",
            url=url,
            status_code=404,
        )
    if status >= 500:
        return make_entry(
            RuntimeErrorType.NETWORK_500,
            f"HTTP {status}: {url}",
            url=url,
            status_code=status,
        )
    if 400 <= status < 500:
        return make_entry(
            RuntimeErrorType.NETWORK_OTHER,
            f"HTTP {status}: {url}",
            url=url,
            status_code=status,
        )
    return None


def classify_request_failure(url: str, error_text: Optional[str]) -> RuntimeErrorEntry:
    """Transport-level failure (DNS, connection reset, aborted ...)"""
    return make_entry(
        RuntimeErrorType.NETWORK_OTHER,
        f"Request failed: {error_text or 'Unknown error'} - {url}",
        url=url,
    )


def navigation_failure(url: str, reason: str) -> RuntimeErrorEntry:
    """The preview itself did not load: the one critical network-other entry"""
    return make_entry(
        RuntimeErrorType.NETWORK_OTHER,
        f"Failed to navigate to sandbox: {reason}",
        url=url,
        severity=RuntimeErrorSeverity.CRITICAL,
    )


def empty_root_warning() -> RuntimeErrorEntry:
    """Advisory: the mount element has no children after the settle interval"""
    return make_entry(RuntimeErrorType.CONSOLE_WARNING, EMPTY_ROOT_MESSAGE)
