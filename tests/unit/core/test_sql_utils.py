"""Tests for LIKE pattern escaping."""

import pytest

from core.utils.sql import like_pattern


@pytest.mark.parametrize("text,expected", [
    ("ada", "%ada%"),
    ("100%", "%100\\%%"),
    ("a_b", "%a\\_b%"),
    ("c:\\cv", "%c:\\\\cv%"),
])
def test_like_pattern(text, expected):
    assert like_pattern(text) == expected
