"""Helpers for building SQL filters from user input."""

LIKE_ESCAPE = "\\"


def like_pattern(text: str) -> str:
    """
    A case-sensitive LIKE pattern matching text anywhere.

    %, _ and the escape character are taken literally; use with
    ``.like(pattern, escape=LIKE_ESCAPE)``.
    """
    escaped = (
        text.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )
    return f"%{escaped}%"
