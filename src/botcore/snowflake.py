"""Discord snowflake identifiers."""

from __future__ import annotations

SNOWFLAKE_MAX = (1 << 64) - 1
_MAX_DIGITS = len(str(SNOWFLAKE_MAX))


def parse_snowflake(text: str) -> int | None:
    """Parse *text* as an unsigned 64-bit integer.

    Only ASCII digits are accepted, so signs, whitespace, underscores and
    non-ASCII digits all fail. Values above ``2**64 - 1`` fail instead of
    wrapping.
    """
    if not text or not text.isascii() or not text.isdigit():
        return None
    digits = text.lstrip("0") or "0"
    if len(digits) > _MAX_DIGITS:
        return None
    value = int(digits)
    if value > SNOWFLAKE_MAX:
        return None
    return value
