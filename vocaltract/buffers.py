"""Audio containers exchanged with the file library and the export layer."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from .constants import DTYPE
from .core import _mix_to_mono, _resample

__all__ = ["AudioClip", "SampleBuffer"]


def _as_channel_matrix(data: np.ndarray) -> np.ndarray:
    arr = np.array(data, dtype=DTYPE, copy=True)
    if arr.ndim == 1:
        arr = arr[np.newaxis, :]
    if arr.ndim != 2:
        raise ValueError('Audio data must be 1-D (mono) or 2-D (channels, frames)')
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True, eq=False)
class AudioClip:
    """Decoded audio handed in by the file library (channel data + sample rate).

    The engine never decodes files itself; callers build clips from whatever
    decoder they use. Channel data is copied and frozen on construction.
    """

    channels: np.ndarray
    sampleRate: int
    name: str = ''

    def __post_init__(self) -> None:
        if int(self.sampleRate) <= 0:
            raise ValueError('Sample rate must be positive')
        object.__setattr__(self, 'channels', _as_channel_matrix(self.channels))
        object.__setattr__(self, 'sampleRate', int(self.sampleRate))

    @property
    def channelCount(self) -> int:
        return int(self.channels.shape[0])

    @property
    def frameCount(self) -> int:
        return int(self.channels.shape[1])

    @property
    def durationSeconds(self) -> float:
        return self.frameCount / float(self.sampleRate)

    def mono(self, sampleRate: Optional[int] = None) -> np.ndarray:
        """Return a float64 mono mix, optionally resampled to ``sampleRate``."""
        mono = _mix_to_mono(self.channels)
        if sampleRate is not None and int(sampleRate) != self.sampleRate:
            mono = _resample(mono, self.sampleRate, int(sampleRate))
        return np.asarray(mono, dtype=np.float64)


@dataclass(frozen=True, eq=False)
class SampleBuffer:
    """Rendered audio: ``channels`` is a read-only (channels, frames) float32 array."""

    channels: np.ndarray
    sampleRate: int

    def __post_init__(self) -> None:
        object.__setattr__(self, 'channels', _as_channel_matrix(self.channels))
        object.__setattr__(self, 'sampleRate', int(self.sampleRate))

    @classmethod
    def from_mono(cls, samples: np.ndarray, sampleRate: int) -> "SampleBuffer":
        return cls(np.asarray(samples)[np.newaxis, :], sampleRate)

    @property
    def channelCount(self) -> int:
        return int(self.channels.shape[0])

    @property
    def frameCount(self) -> int:
        return int(self.channels.shape[1])

    @property
    def durationSeconds(self) -> float:
        return self.frameCount / float(self.sampleRate)

    @property
    def samples(self) -> np.ndarray:
        """First channel, the whole signal for mono renders."""
        return self.channels[0]

    def to_clip(self, name: str = '') -> AudioClip:
        """Wrap the render so it can feed another render, vocoder or analysis."""
        return AudioClip(self.channels, self.sampleRate, name)
