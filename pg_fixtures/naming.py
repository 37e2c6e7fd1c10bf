"""Synthetic fixture record names."""

from typing import Any

import inflection


def fixture_name(table: str, identifier: Any) -> str:
    """
    Build the fixture key for a record.

    Integer keys are zero-padded to five digits so fixture files sort
    naturally; other key types are used verbatim.

    Args:
        table: Table name (plural, e.g. "authors")
        identifier: Primary key value

    Returns:
        Name such as "author_00007"

    Example:
        >>> fixture_name("authors", 7)
        'author_00007'
    """
    singular = inflection.singularize(table)
    if isinstance(identifier, int) and not isinstance(identifier, bool):
        return f"{singular}_{identifier:05d}"
    return f"{singular}_{identifier}"


def join_fixture_name(index: int) -> str:
    """Name of the index-th join table row, e.g. "join_00002"."""
    return f"join_{index:05d}"
