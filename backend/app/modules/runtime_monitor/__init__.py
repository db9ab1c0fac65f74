"""
Runtime monitoring: browser session, signal classification, result assembly
"""

from app.modules.runtime_monitor.browser_provider import (
    BrowserHandle,
    BrowserProvider,
    LocalChromiumProvider,
    ServerlessChromiumProvider,
    get_browser_provider,
)
from app.modules.runtime_monitor.collector import RuntimeErrorCollector
from app.modules.runtime_monitor.monitor import RuntimeMonitor, runtime_monitor
from app.modules.runtime_monitor.source_parser import parse_error_source

__all__ = [
    'BrowserHandle',
    'BrowserProvider',
    'LocalChromiumProvider',
    'ServerlessChromiumProvider',
    'get_browser_provider',
    'RuntimeErrorCollector',
    'RuntimeMonitor',
    'runtime_monitor',
    'parse_error_source',
]
