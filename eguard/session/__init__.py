"""eGuard session id extraction.

Public API:
    SessionExtractor — cookie-then-header session id lookup
    parse_cookie     — first value for a cookie key in a raw Cookie header
"""
from eguard.session.extractor import SessionExtractor, parse_cookie

__all__ = ["SessionExtractor", "parse_cookie"]
