"""Unit tests for eguard/utils/logger.py and eguard/utils/ulid.py."""

from __future__ import annotations

import re

import pytest

from eguard.utils.logger import (
    PerformanceLogger,
    clear_request_id,
    mask_session_id,
    request_id_var,
    set_request_id,
)
from eguard.utils.ulid import generate_ulid

# Crockford Base32 charset: 0-9 and A-Z, excluding I, L, O, U
ULID_CHARSET = re.compile(r"^[0-9A-HJKMNP-TV-Z]{26}$")


class TestMaskSessionId:
    def test_keeps_prefix(self) -> None:
        assert mask_session_id("abcdef123456") == "abcd…"

    def test_short_ids_fully_masked(self) -> None:
        assert mask_session_id("abcd") == "…"
        assert mask_session_id("") == "…"

    def test_none(self) -> None:
        assert mask_session_id(None) is None


class TestRequestId:
    def test_set_and_clear(self) -> None:
        set_request_id("01TEST")
        assert request_id_var.get() == "01TEST"
        clear_request_id()
        assert request_id_var.get() is None


class TestPerformanceLogger:
    def test_duration_recorded(self) -> None:
        with PerformanceLogger("op") as perf:
            pass
        assert perf.duration_ms >= 0

    def test_exception_not_swallowed(self) -> None:
        with pytest.raises(RuntimeError):
            with PerformanceLogger("op"):
                raise RuntimeError("boom")


class TestGenerateUlid:
    def test_format(self) -> None:
        assert ULID_CHARSET.match(generate_ulid())

    def test_unique(self) -> None:
        ids = {generate_ulid() for _ in range(1000)}
        assert len(ids) == 1000
