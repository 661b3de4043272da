"""Session id extraction for eGuard.

Precedence (deterministic):
  1. Cookie — if ``cookie_name`` is configured and a Cookie header is
     supplied, the first ``name=value`` pair whose name equals
     ``cookie_name`` exactly (case-sensitive) wins.
  2. Header — if ``header_name`` is configured and the supplied
     ``(name, value)`` pair's name matches case-insensitively:
       header_bearer=True  → value trimmed, ``"Bearer "`` prefix stripped;
                             without the prefix the raw value passes through
       header_bearer=False → raw value
  3. Otherwise None.

A missing session id is None, never an exception; the host decides what an
unauthenticated request on a protected route means.

The host selects which single header to pass; the extractor never scans a
full header set.
"""

from __future__ import annotations

from typing import Optional

from eguard.config import SessionExtraction
from eguard.constants import BEARER_PREFIX
from eguard.utils.logger import get_logger

logger = get_logger(__name__)


def parse_cookie(cookie_header: str, cookie_name: str) -> Optional[str]:
    """Return the value of the first ``cookie_name`` pair in a Cookie header.

    Pairs are split on ``;`` and trimmed; each is split on the FIRST ``=``
    (values may contain ``=``). Segments without ``=`` are skipped and the
    scan continues.

        >>> parse_cookie("a=1; sid=xyz; b=2", "sid")
        'xyz'
    """
    for pair in cookie_header.split(";"):
        key, sep, value = pair.strip().partition("=")
        if not sep:
            continue
        if key == cookie_name:
            return value
    return None


class SessionExtractor:
    """Pure session id lookup over the configured SessionExtraction."""

    def __init__(self, settings: SessionExtraction) -> None:
        self._settings = settings
        if settings.cookie_name is None and settings.header_name is None:
            logger.warning(
                "Neither session_extraction.cookie_name nor header_name is set, "
                "no session id will ever be extracted"
            )

    def extract(
        self,
        cookie_header: Optional[str] = None,
        header: Optional[tuple[str, str]] = None,
    ) -> Optional[str]:
        settings = self._settings

        if settings.cookie_name is not None and cookie_header is not None:
            value = parse_cookie(cookie_header, settings.cookie_name)
            if value is not None:
                return value

        if settings.header_name is not None and header is not None:
            name, value = header
            if name.lower() == settings.header_name.lower():
                if settings.header_bearer:
                    trimmed = value.strip()
                    if trimmed.startswith(BEARER_PREFIX):
                        return trimmed[len(BEARER_PREFIX):]
                return value

        return None
