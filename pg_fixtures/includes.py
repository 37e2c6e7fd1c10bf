"""
Include specifications for fixture export.

An include spec says which associations to follow from each exported
record. Callers usually pass plain Python values, which are converted
into an explicit variant tree:

    "posts"                      -> Leaf("posts")
    ["posts", "profile"]         -> IncludeSequence([Leaf, Leaf])
    {"posts": "comments"}        -> FollowThen("posts", Leaf("comments"))
    {"posts": ..., "tags": ...}  -> IncludeSequence([FollowThen, FollowThen])
"""

from dataclasses import dataclass
from typing import Any, Union

from pg_fixtures.exceptions import InvalidSpecificationError


@dataclass(frozen=True)
class Leaf:
    """Collect the records reached through one association."""

    name: str


@dataclass(frozen=True)
class IncludeSequence:
    """Sibling specs applied from the same starting record."""

    specs: tuple["IncludeSpec", ...]


@dataclass(frozen=True)
class FollowThen:
    """Follow an association, then apply the nested spec to its records."""

    name: str
    nested: "IncludeSpec"


IncludeSpec = Union[Leaf, IncludeSequence, FollowThen]


def parse_includes(value: Any) -> IncludeSpec:
    """
    Convert a plain include value into an IncludeSpec.

    Args:
        value: str, list/tuple, dict, or an already-built IncludeSpec

    Returns:
        IncludeSpec variant

    Raises:
        InvalidSpecificationError: If any part of the value has another shape
    """
    if isinstance(value, (Leaf, IncludeSequence, FollowThen)):
        return value

    if isinstance(value, str):
        return Leaf(value)

    if isinstance(value, (list, tuple)):
        return IncludeSequence(tuple(parse_includes(item) for item in value))

    if isinstance(value, dict):
        pairs = []
        for name, nested in value.items():
            if not isinstance(name, str):
                raise InvalidSpecificationError(name)
            pairs.append(FollowThen(name, parse_includes(nested)))
        if len(pairs) == 1:
            return pairs[0]
        return IncludeSequence(tuple(pairs))

    raise InvalidSpecificationError(value)
