import json

import numpy as np
import pytest

from vocaltract.buffers import AudioClip
from vocaltract.history import EngineState, HistoryBuffer
from vocaltract.sources import ExcitationConfig, NoiseColor, NoiseConfig, SourceKind


def _states(count):
    return [EngineState(formantIntensity=float(i)) for i in range(count)]


def test_depth_is_capped_fifo():
    history = HistoryBuffer(10)
    for i, state in enumerate(_states(15)):
        history.push(f'edit {i}', state)
    assert len(history) == 10
    assert history.entries()[0].label == 'edit 5'
    assert history.current.label == 'edit 14'


def test_push_skips_unchanged_state():
    history = HistoryBuffer()
    state = EngineState()
    assert history.push('first', state)
    assert not history.push('again', EngineState())
    assert len(history) == 1


def test_undo_redo_walks_entries():
    history = HistoryBuffer()
    a, b, c = _states(3)
    for label, state in (('a', a), ('b', b), ('c', c)):
        history.push(label, state)
    assert history.undo().state == b
    assert history.undo().state == a
    assert history.undo() is None
    assert history.redo().state == b
    assert history.can_redo()


def test_push_after_undo_drops_redo_branch():
    history = HistoryBuffer()
    a, b, c, d = _states(4)
    for state in (a, b, c):
        history.push('edit', state)
    history.undo()
    history.push('branch', d)
    assert not history.can_redo()
    assert [e.state for e in history.entries()] == [a, b, d]


@pytest.mark.parametrize('depth', [0, 1, 9])
def test_depth_has_a_floor_of_ten(depth):
    with pytest.raises(ValueError):
        HistoryBuffer(depth)
    assert HistoryBuffer(10).depth == 10


def test_state_dict_round_trip():
    state = EngineState(
        excitation=ExcitationConfig(waveform='square', pulseWidth=0.25, color=NoiseColor.PINK),
        noise=NoiseConfig(color=NoiseColor.PINK, seed=3),
        formantIntensity=0.4,
        durationSeconds=3.5,
    )
    data = json.loads(json.dumps(state.to_dict()))
    assert EngineState.from_dict(data) == state


def test_state_clips_are_resolved_by_name():
    clip = AudioClip(np.zeros(10), 16000, 'voice.wav')
    state = EngineState(excitation=ExcitationConfig(SourceKind.FILE, clip=clip))
    data = state.to_dict()
    assert data['excitation']['clip'] == 'voice.wav'
    assert EngineState.from_dict(data, {'voice.wav': clip}) == state
    with pytest.raises(KeyError):
        EngineState.from_dict(data)
