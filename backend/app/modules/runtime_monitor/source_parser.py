"""
Best-effort extraction of (file, line, column) from error text.

Advisory metadata only: a miss returns None and never blocks collection.
"""

import re
from typing import Optional, Pattern
from urllib.parse import urlparse

from app.schemas.runtime import ErrorSource


# Ordered: first match wins.
# 1. Stack frame location: "at App (App.jsx:42:15)"
FRAME_PATTERN: Pattern[str] = re.compile(r'\(([^)]+):(\d+):(\d+)\)')
# 2. Bare script reference: "App.jsx:42"
SIMPLE_PATTERN: Pattern[str] = re.compile(r'([^\s]+\.jsx?):(\d+)')


def _strip_origin(file: str) -> str:
    """
    Reduce a served URL to its path.

    Browsers report module URLs ("http://localhost:5173/src/App.jsx?t=171")
    where a project path is wanted.
    """
    if "://" not in file:
        return file
    parsed = urlparse(file)
    return parsed.path or file


def parse_error_source(text: Optional[str]) -> Optional[ErrorSource]:
    """Parse a source location out of an error message or stack trace"""
    if not text:
        return None

    match = FRAME_PATTERN.search(text)
    if match:
        return ErrorSource(
            file=_strip_origin(match.group(1)),
            line=int(match.group(2)),
            column=int(match.group(3)),
        )

    match = SIMPLE_PATTERN.search(text)
    if match:
        return ErrorSource(
            file=_strip_origin(match.group(1)),
            line=int(match.group(2)),
        )

    return None
