"""Tests for page cursor encoding."""

from __future__ import annotations

import base64

import pytest

from catalogsearch.core.cursor import decode_page_cursor, encode_page_cursor


class TestPageCursor:
    @pytest.mark.parametrize("page", [0, 1, 4, 37, 10_000])
    def test_decode_returns_encoded_page(self, page: int) -> None:
        assert decode_page_cursor(encode_page_cursor(page)) == page

    def test_cursor_is_base64_of_page_number(self) -> None:
        assert encode_page_cursor(1) == "MQ=="

    def test_absent_cursor_is_first_page(self) -> None:
        assert decode_page_cursor(None) == 0
        assert decode_page_cursor("") == 0

    @pytest.mark.parametrize(
        "cursor",
        [
            "not a cursor!",
            base64.b64encode(b"abc").decode(),
            base64.b64encode(b"1.5").decode(),
            base64.b64encode(b"\xff\xfe").decode(),
            "MQ",  # truncated padding
            base64.b64encode(b"1_0").decode(),
            base64.b64encode(b" 3").decode(),
            base64.b64encode("\u0663".encode()).decode(),  # arabic-indic three
        ],
    )
    def test_malformed_cursor_is_first_page(self, cursor: str) -> None:
        assert decode_page_cursor(cursor) == 0

    def test_negative_page_is_first_page(self) -> None:
        assert decode_page_cursor(base64.b64encode(b"-3").decode()) == 0
