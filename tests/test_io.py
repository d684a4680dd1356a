import wave

import numpy as np

from vocaltract.buffers import SampleBuffer
from vocaltract.io import write_wav


def _read(path):
    with wave.open(path, 'rb') as wf:
        params = wf.getparams()
        frames = np.frombuffer(wf.readframes(wf.getnframes()), dtype=np.int16)
    return params, frames


def test_write_mono_pcm16(tmp_path):
    samples = np.array([0.0, 0.5, -0.5, 1.0, -1.0], dtype=np.float32)
    path = write_wav(str(tmp_path / 'out.wav'), SampleBuffer.from_mono(samples, 16000))
    params, frames = _read(path)
    assert params.nchannels == 1
    assert params.sampwidth == 2
    assert params.framerate == 16000
    np.testing.assert_array_equal(frames, [0, 16383, -16383, 32767, -32767])


def test_write_clips_and_mixes_down(tmp_path):
    stereo = np.array([[2.0, 0.5], [2.0, -0.5]], dtype=np.float32)
    path = write_wav(str(tmp_path / 'stereo.wav'), SampleBuffer(stereo, 8000))
    params, frames = _read(path)
    assert params.nchannels == 1
    np.testing.assert_array_equal(frames, [32767, 0])
