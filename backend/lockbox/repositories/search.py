"""Case-insensitive LIKE helpers.

PostgreSQL compares text case-sensitively, so searches lower both sides.
Both helpers accept a ``Query`` or a ``Select`` and return the same kind.
"""

from typing import Sequence, TypeVar

from sqlalchemy import func, or_

StatementT = TypeVar("StatementT")


def _pattern(text: str) -> str:
    return f"%{text.lower()}%"


def search_case_insensitive_on_field(statement: StatementT, column, text: str) -> StatementT:
    """Filter *statement* on ``LOWER(column) LIKE '%text%'``."""
    return statement.filter(func.lower(column).like(_pattern(text)))


def search_case_insensitive_on_multiple_fields(statement: StatementT, columns: Sequence, text: str) -> StatementT:
    """Filter *statement* on any of *columns* matching *text*, case-insensitively."""
    value = _pattern(text)
    return statement.filter(or_(*[func.lower(column).like(value) for column in columns]))
