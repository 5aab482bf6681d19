"""Roster projections and the single active-overlay view state."""
import pytest

from services.errors import InvalidStateError
from services.roster import filter_by_group, group_counts, group_students
from services.view_state import ActiveOverlay, ViewState

STUDENTS = [
    {"name": "Anouk", "leergroep": 2},
    {"name": "Bram", "leergroep": 1},
    {"name": "Daan", "leergroep": 2},
    {"name": "Emma", "leergroep": 3},
]


def test_filter_all_returns_everyone_in_order():
    assert [s["name"] for s in filter_by_group(STUDENTS, "all")] == ["Anouk", "Bram", "Daan", "Emma"]


def test_filter_single_group():
    assert [s["name"] for s in filter_by_group(STUDENTS, 2)] == ["Anouk", "Daan"]


def test_grouping_has_three_fixed_buckets():
    grouped = group_students(STUDENTS[:2])
    assert list(grouped) == [1, 2, 3]
    assert grouped[3] == []
    assert [s["name"] for s in grouped[2]] == ["Anouk"]


def test_counts():
    assert group_counts(STUDENTS) == {1: 1, 2: 2, 3: 1}


def test_only_one_overlay_at_a_time():
    state = ViewState()
    assert state.overlay is ActiveOverlay.NONE

    state.open_share()
    state.open_export()
    assert state.overlay is ActiveOverlay.EXPORT_OPEN

    state.close()
    assert state.overlay is ActiveOverlay.NONE


def test_cropper_opens_from_form_and_returns_to_it():
    state = ViewState()
    state.open_form(student_id=7)
    state.open_cropper()
    assert state.overlay is ActiveOverlay.CROPPER_OPEN

    state.close_cropper()
    assert state.overlay is ActiveOverlay.FORM_OPEN
    assert state.editing_student_id == 7


def test_cropper_needs_open_form():
    state = ViewState()
    with pytest.raises(InvalidStateError):
        state.open_cropper()
