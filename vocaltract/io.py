"""Audio I/O helpers."""
from __future__ import annotations

import os
import wave

import numpy as np

from .buffers import SampleBuffer
from .core import _mix_to_mono

__all__ = ["write_wav"]


def write_wav(path: str, buffer: SampleBuffer) -> str:
    """Write ``buffer`` to ``path`` as 16-bit PCM mono WAV.

    Multi-channel buffers are averaged to mono; samples outside [-1, 1] clip.
    """
    audio = _mix_to_mono(buffer.channels)
    data16 = np.clip(audio * 32767.0, -32768, 32767).astype(np.int16)
    with wave.open(path, 'wb') as wf:
        wf.setnchannels(1)
        wf.setsampwidth(2)
        wf.setframerate(buffer.sampleRate)
        wf.writeframes(data16.tobytes())
    return os.path.abspath(path)
