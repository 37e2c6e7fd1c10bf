"""Tests for include specification parsing."""

import pytest

from pg_fixtures.exceptions import InvalidSpecificationError
from pg_fixtures.includes import FollowThen, IncludeSequence, Leaf, parse_includes


def test_string_becomes_leaf():
    """A bare association name is a leaf."""
    assert parse_includes("posts") == Leaf("posts")


def test_list_becomes_sequence():
    """Lists and tuples become sibling sequences."""
    assert parse_includes(["posts", "profile"]) == IncludeSequence(
        (Leaf("posts"), Leaf("profile"))
    )
    assert parse_includes(("posts",)) == IncludeSequence((Leaf("posts"),))


def test_single_pair_mapping_becomes_follow_then():
    """{"posts": "comments"} follows posts, then collects comments."""
    assert parse_includes({"posts": "comments"}) == FollowThen("posts", Leaf("comments"))


def test_multi_pair_mapping_becomes_sequence_of_follows():
    """Each mapping pair is a separate follow from the same record."""
    spec = parse_includes({"posts": "comments", "books": []})

    assert spec == IncludeSequence(
        (
            FollowThen("posts", Leaf("comments")),
            FollowThen("books", IncludeSequence(())),
        )
    )


def test_nested_shapes():
    """Shapes nest arbitrarily."""
    spec = parse_includes(["profile", {"posts": ["comments", {"author": "books"}]}])

    assert spec == IncludeSequence(
        (
            Leaf("profile"),
            FollowThen(
                "posts",
                IncludeSequence(
                    (Leaf("comments"), FollowThen("author", Leaf("books")))
                ),
            ),
        )
    )


def test_built_spec_passes_through():
    """Already-built specs are returned unchanged."""
    spec = FollowThen("posts", Leaf("comments"))
    assert parse_includes(spec) is spec


@pytest.mark.parametrize("value", [42, 3.5, None, {"posts": None}, ["posts", 1], {1: "posts"}])
def test_unknown_shapes_raise(value):
    """Anything other than str/list/dict is a programmer error."""
    with pytest.raises(InvalidSpecificationError) as exc_info:
        parse_includes(value)

    assert "Unknown includes type" in str(exc_info.value)
