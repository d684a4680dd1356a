import pytest

from vocaltract.buffers import AudioClip
from vocaltract.constants import TRACK_IDS
from vocaltract.tracks import make_track

from signals import sine


@pytest.fixture
def sine_clip():
    def _make(freq=220.0, seconds=0.5, sr=16000, amplitude=0.5, name='tone.wav'):
        return AudioClip(sine(freq, seconds, sr, amplitude), sr, name)
    return _make


@pytest.fixture
def flat_tracks():
    """Standard tracks with a constant gain of 1.0 and no envelope."""
    tracks = {track_id: make_track(track_id) for track_id in TRACK_IDS}
    tracks['gain'] = make_track('gain', [(0.0, 1.0), (1.0, 1.0)])
    return tracks
