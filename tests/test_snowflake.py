import pytest

from botcore.snowflake import SNOWFLAKE_MAX, parse_snowflake


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("0", 0),
        ("123", 123),
        ("0042", 42),
        ("18446744073709551615", SNOWFLAKE_MAX),
        ("000000018446744073709551615", SNOWFLAKE_MAX),
    ],
)
def test_parse_snowflake_accepts_digits(text: str, expected: int) -> None:
    assert parse_snowflake(text) == expected


@pytest.mark.parametrize(
    "text",
    [
        "",
        "18446744073709551616",
        "99999999999999999999999",
        "-1",
        "+1",
        " 1",
        "1 ",
        "1_000",
        "12a",
        "١٢",
        "9" * 5000,
    ],
)
def test_parse_snowflake_rejects(text: str) -> None:
    assert parse_snowflake(text) is None
