"""Answer counting — one answer per non-blank line."""

import pytest

from dailyten.progress.ledger import count_answers


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("one idea", 1),
        ("a\nb\nc\nd", 4),
        ("a\n\nb\n   \nc", 3),
        ("\n\n\n", 0),
        ("", 0),
        ("  padded  \n\tindented", 2),
        ("windows\r\nline\r\nendings", 3),
    ],
)
def test_count_answers(text, expected):
    assert count_answers(text) == expected


def test_list_with_trailing_newline():
    text = "\n".join(f"idea {i}" for i in range(7)) + "\n"
    assert count_answers(text) == 7
