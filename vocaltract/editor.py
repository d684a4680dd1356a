# Created on 2026-10-18
# Description: Timeline pointer interaction as an explicit state machine.
"""Timeline pointer interaction.

``transition`` is a pure function: given the current state, an input event
and the selected track, it returns the next state plus the edit commands
the workspace should apply. Hit-testing happens in the view; events carry
its result.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

from .tracks import Track

__all__ = [
    "Idle",
    "DraggingPoint",
    "DraggingPlayhead",
    "PointerDown",
    "PointerMove",
    "PointerUp",
    "InsertPoint",
    "MovePoint",
    "DeletePoint",
    "SeekPlayhead",
    "CommitHistory",
    "transition",
]


# ---- states ----

@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class DraggingPoint:
    trackId: str
    index: int


@dataclass(frozen=True)
class DraggingPlayhead:
    pass


EditorState = Union[Idle, DraggingPoint, DraggingPlayhead]


# ---- events ----

@dataclass(frozen=True)
class PointerDown:
    """Press at normalised time ``t`` and track value ``value``.

    ``hitIndex`` is the keyframe under the pointer, if any; ``secondary`` marks
    a right-button press.
    """

    t: float
    value: float = 0.0
    onRuler: bool = False
    hitIndex: Optional[int] = None
    secondary: bool = False


@dataclass(frozen=True)
class PointerMove:
    t: float
    value: float = 0.0


@dataclass(frozen=True)
class PointerUp:
    pass


Event = Union[PointerDown, PointerMove, PointerUp]


# ---- commands ----

@dataclass(frozen=True)
class InsertPoint:
    trackId: str
    t: float
    v: float


@dataclass(frozen=True)
class MovePoint:
    trackId: str
    index: int
    t: float
    v: float


@dataclass(frozen=True)
class DeletePoint:
    trackId: str
    index: int


@dataclass(frozen=True)
class SeekPlayhead:
    t: float


@dataclass(frozen=True)
class CommitHistory:
    label: str


Command = Union[InsertPoint, MovePoint, DeletePoint, SeekPlayhead, CommitHistory]


def _clamp_t(t: float) -> float:
    return min(1.0, max(0.0, float(t)))


def _press(event: PointerDown, track: Optional[Track], editMode: bool) -> Tuple[EditorState, List[Command]]:
    t = _clamp_t(event.t)
    if not editMode:
        return DraggingPlayhead(), [SeekPlayhead(t)]
    if track is None:
        return Idle(), []
    if event.secondary:
        if event.hitIndex is not None and len(track.points) > 2:
            return Idle(), [DeletePoint(track.id, event.hitIndex), CommitHistory('Delete point')]
        return Idle(), []
    if event.hitIndex is not None:
        return DraggingPoint(track.id, event.hitIndex), []
    if event.onRuler:
        return Idle(), []
    _, index = track.insert_with_index(t, event.value)
    return DraggingPoint(track.id, index), [InsertPoint(track.id, t, event.value), CommitHistory('Add point')]


def transition(
    state: EditorState,
    event: Event,
    track: Optional[Track] = None,
    editMode: bool = True,
) -> Tuple[EditorState, List[Command]]:
    """Next state and commands for ``event``; ``track`` is the selected track."""
    if isinstance(state, Idle):
        if isinstance(event, PointerDown):
            return _press(event, track, editMode)
        return state, []

    if isinstance(state, DraggingPlayhead):
        if isinstance(event, PointerMove):
            return state, [SeekPlayhead(_clamp_t(event.t))]
        if isinstance(event, PointerUp):
            return Idle(), []
        return state, []

    if isinstance(state, DraggingPoint):
        if isinstance(event, PointerMove):
            if track is None or track.id != state.trackId:
                return Idle(), []
            t = _clamp_t(event.t)
            _, new_index = track.move_with_index(state.index, t, event.value)
            return DraggingPoint(state.trackId, new_index), [MovePoint(state.trackId, state.index, t, event.value)]
        if isinstance(event, PointerUp):
            return Idle(), [CommitHistory('Edit point')]
        return state, []

    raise TypeError(f'Unknown editor state: {state!r}')
