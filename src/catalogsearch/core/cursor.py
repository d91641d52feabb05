"""Page cursors — opaque tokens carrying a zero-based page index."""

from __future__ import annotations

import base64
import binascii


def encode_page_cursor(page: int) -> str:
    """Encode a zero-based page index as an opaque cursor."""
    return base64.b64encode(str(page).encode("utf-8")).decode("ascii")


def decode_page_cursor(cursor: str | None) -> int:
    """Decode a cursor back into a page index.

    Absent, malformed, non-numeric or negative cursors all resolve to page 0;
    a bad cursor never fails the request.
    """
    if not cursor:
        return 0
    try:
        text = base64.b64decode(cursor, validate=True).decode("ascii")
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return 0
    # Plain decimal digits only; int() would also take "1_0" or " 3".
    if not text.isdigit():
        return 0
    return int(text)
