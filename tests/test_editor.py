import pytest

from vocaltract.editor import (
    CommitHistory,
    DeletePoint,
    DraggingPlayhead,
    DraggingPoint,
    Idle,
    InsertPoint,
    MovePoint,
    PointerDown,
    PointerMove,
    PointerUp,
    SeekPlayhead,
    transition,
)
from vocaltract.tracks import make_track


@pytest.fixture
def track():
    return make_track('lips', [(0.0, 0.2), (0.5, 0.6), (1.0, 0.2)])


def test_press_on_empty_space_inserts_and_drags(track):
    state, commands = transition(Idle(), PointerDown(0.25, 0.9), track)
    assert state == DraggingPoint('lips', 1)
    assert commands == [InsertPoint('lips', 0.25, 0.9), CommitHistory('Add point')]


def test_press_on_point_starts_drag(track):
    state, commands = transition(Idle(), PointerDown(0.5, 0.6, hitIndex=1), track)
    assert state == DraggingPoint('lips', 1)
    assert commands == []


def test_drag_reports_old_index_and_tracks_new_one(track):
    state, commands = transition(DraggingPoint('lips', 1), PointerMove(0.9, 0.4), track)
    assert commands == [MovePoint('lips', 1, 0.9, 0.4)]
    assert state == DraggingPoint('lips', 1)

    moved = track.move(1, 0.9, 0.4)
    state, commands = transition(DraggingPoint('lips', 1), PointerMove(1.0, 0.3), moved)
    assert state == DraggingPoint('lips', 2)


def test_drag_clamps_time(track):
    _, commands = transition(DraggingPoint('lips', 1), PointerMove(1.7, 0.4), track)
    assert commands[0].t == 1.0


def test_release_commits_edit(track):
    state, commands = transition(DraggingPoint('lips', 1), PointerUp(), track)
    assert state == Idle()
    assert commands == [CommitHistory('Edit point')]


def test_secondary_press_deletes(track):
    state, commands = transition(Idle(), PointerDown(0.5, hitIndex=1, secondary=True), track)
    assert state == Idle()
    assert commands == [DeletePoint('lips', 1), CommitHistory('Delete point')]


def test_secondary_press_keeps_last_two_points():
    two = make_track('lips')
    state, commands = transition(Idle(), PointerDown(0.0, hitIndex=0, secondary=True), two)
    assert state == Idle()
    assert commands == []


def test_ruler_press_does_not_insert(track):
    state, commands = transition(Idle(), PointerDown(0.3, onRuler=True), track)
    assert state == Idle()
    assert commands == []


def test_play_mode_scrubs_playhead(track):
    state, commands = transition(Idle(), PointerDown(0.4, 0.5), track, editMode=False)
    assert state == DraggingPlayhead()
    assert commands == [SeekPlayhead(0.4)]
    state, commands = transition(state, PointerMove(-0.2), track, editMode=False)
    assert commands == [SeekPlayhead(0.0)]
    state, commands = transition(state, PointerUp(), track, editMode=False)
    assert state == Idle()


def test_idle_ignores_moves(track):
    assert transition(Idle(), PointerMove(0.3), track) == (Idle(), [])


def test_unknown_state_raises(track):
    with pytest.raises(TypeError):
        transition(object(), PointerUp(), track)
