# tests/services/test_finder_rules.py
"""Unit tests for character-finder scoring."""

import pytest

from quill.models import CharacterRect
from quill.schemas.character import Point, Selection
from quill.services.characters import evaluate_selection, is_character_found

RECTS = [
    CharacterRect(name="waldo", top=10, left=10, right=20, bottom=20),
    CharacterRect(name="odlaw", top=50, left=50, right=60, bottom=60),
]


@pytest.mark.parametrize(
    ("x", "y", "expected"),
    [(15, 15, True), (10, 15, False), (20, 15, False), (15, 10, False), (15, 20, False), (0, 0, False)],
)
def test_point_must_be_strictly_inside(x: int, y: int, expected: bool) -> None:
    assert is_character_found(Point(x=x, y=y), RECTS[0]) is expected


def test_all_found() -> None:
    evaluation, all_found = evaluate_selection(
        {"waldo": Point(x=15, y=15), "odlaw": Point(x=55, y=55)}, RECTS
    )
    assert evaluation == {"waldo": True, "odlaw": True}
    assert all_found is True


def test_partial_selection_is_not_a_win() -> None:
    evaluation, all_found = evaluate_selection({"waldo": Point(x=15, y=15)}, RECTS)
    assert evaluation == {"waldo": True}
    assert all_found is False


def test_unknown_names_score_false() -> None:
    evaluation, all_found = evaluate_selection({"wenda": Point(x=15, y=15)}, RECTS)
    assert evaluation == {"wenda": False}
    assert all_found is False


def test_no_characters_can_never_be_won() -> None:
    assert evaluate_selection({}, []) == ({}, False)


def test_points_are_truncated_and_clamped() -> None:
    selection = Selection.model_validate({"waldo": {"x": 15.9, "y": -3}})
    assert selection.root["waldo"] == Point(x=15, y=0)
