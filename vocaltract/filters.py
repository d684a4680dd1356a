# Created on 2026-10-18
# Description: Biquad filter design, processing and the parametric EQ chain.
"""Biquad filter design, processing and the parametric EQ chain."""
from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from math import cos, pi, sin, sqrt
from typing import Any, Dict, Iterable, Mapping, Sequence, Tuple

import numpy as np
from scipy.signal import lfilter

from .constants import EPS, MIN_FILTER_FREQ_HZ, NYQUIST_SAFETY
from .core import _clamp

__all__ = [
    "EQBandType",
    "EQBand",
    "default_eq_bands",
    "apply_eq_chain",
    "biquad_magnitude",
    "eq_chain_response",
    "design_biquad",
    "_clamp_frequency",
    "_clamp_frequency_track",
    "_peaking_biquad_coeff",
    "_lowpass_biquad_coeff",
    "_highpass_biquad_coeff",
    "_lowshelf_biquad_coeff",
    "_highshelf_biquad_coeff",
    "_bandpass_biquad_coeff",
    "_peaking_biquad_coeff_track",
    "_lowpass_biquad_coeff_track",
    "_biquad_process",
    "_biquad_process_timevarying",
]

Coefficients = Tuple[float, float, float, float, float]

_RBJ_MIN_Q = 0.05
_BYPASS: Coefficients = (1.0, 0.0, 0.0, 0.0, 0.0)


class EQBandType(str, Enum):
    HIGHPASS = 'highpass'
    LOWSHELF = 'lowshelf'
    PEAKING = 'peaking'
    HIGHSHELF = 'highshelf'
    LOWPASS = 'lowpass'


@dataclass(frozen=True)
class EQBand:
    """One bypassable band of the parametric EQ."""

    type: EQBandType
    frequency: float
    gain: float = 0.0
    q: float = 0.7
    enabled: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, 'type', EQBandType(self.type))
        if not self.frequency > 0.0:
            raise ValueError('EQ band frequency must be positive')
        if not self.q > 0.0:
            raise ValueError('EQ band Q must be positive')

    def coefficients(self, sr: int) -> Coefficients:
        return design_biquad(self.type, self.frequency, self.q, self.gain, sr)

    def with_gain(self, gain: float) -> "EQBand":
        return replace(self, gain=float(gain))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.type.value,
            'frequency': self.frequency,
            'gain': self.gain,
            'q': self.q,
            'enabled': self.enabled,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "EQBand":
        return cls(
            type=EQBandType(data['type']),
            frequency=float(data['frequency']),
            gain=float(data.get('gain', 0.0)),
            q=float(data.get('q', 0.7)),
            enabled=bool(data.get('enabled', True)),
        )


def default_eq_bands() -> Tuple[EQBand, ...]:
    """Neutral five-band chain; the pass filters start bypassed."""
    return (
        EQBand(EQBandType.HIGHPASS, 40.0, 0.0, 0.707, enabled=False),
        EQBand(EQBandType.LOWSHELF, 100.0, 0.0, 0.7),
        EQBand(EQBandType.PEAKING, 1500.0, 0.0, 1.0),
        EQBand(EQBandType.HIGHSHELF, 8000.0, 0.0, 0.7),
        EQBand(EQBandType.LOWPASS, 18000.0, 0.0, 0.707, enabled=False),
    )


def _clamp_frequency(freq: float, sr: int) -> float:
    """Clamp a filter frequency into [20 Hz, 0.49 * sr]."""
    return _clamp(float(freq), MIN_FILTER_FREQ_HZ, NYQUIST_SAFETY * sr)


def _clamp_frequency_track(freq: np.ndarray, sr: int) -> np.ndarray:
    return np.clip(np.asarray(freq, dtype=np.float64), MIN_FILTER_FREQ_HZ, NYQUIST_SAFETY * sr)


def _peaking_biquad_coeff(f0: float, Q: float, gain_db: float, sr: int) -> Coefficients:
    """RBJ peaking EQ coefficients."""
    if sr <= 0:
        return _BYPASS
    A = 10.0 ** (gain_db / 40.0)
    w0 = 2.0 * pi * _clamp_frequency(f0, sr) / sr
    alpha = sin(w0) / (2.0 * max(Q, _RBJ_MIN_Q))
    cos_w0 = cos(w0)
    b0 = 1.0 + alpha * A
    b1 = -2.0 * cos_w0
    b2 = 1.0 - alpha * A
    a0 = 1.0 + alpha / A
    a1 = -2.0 * cos_w0
    a2 = 1.0 - alpha / A
    return (b0 / a0, b1 / a0, b2 / a0, a1 / a0, a2 / a0)


def _lowpass_biquad_coeff(cutoff: float, Q: float, sr: int) -> Coefficients:
    """RBJ low-pass filter coefficients."""
    if sr <= 0:
        return _BYPASS
    w0 = 2.0 * pi * _clamp_frequency(cutoff, sr) / sr
    alpha = sin(w0) / (2.0 * max(Q, _RBJ_MIN_Q))
    cos_w0 = cos(w0)
    b0 = (1.0 - cos_w0) * 0.5
    b1 = 1.0 - cos_w0
    b2 = (1.0 - cos_w0) * 0.5
    a0 = 1.0 + alpha
    a1 = -2.0 * cos_w0
    a2 = 1.0 - alpha
    return (b0 / a0, b1 / a0, b2 / a0, a1 / a0, a2 / a0)


def _highpass_biquad_coeff(cutoff: float, Q: float, sr: int) -> Coefficients:
    """RBJ high-pass filter coefficients."""
    if sr <= 0:
        return _BYPASS
    w0 = 2.0 * pi * _clamp_frequency(cutoff, sr) / sr
    alpha = sin(w0) / (2.0 * max(Q, _RBJ_MIN_Q))
    cos_w0 = cos(w0)
    b0 = (1.0 + cos_w0) * 0.5
    b1 = -(1.0 + cos_w0)
    b2 = (1.0 + cos_w0) * 0.5
    a0 = 1.0 + alpha
    a1 = -2.0 * cos_w0
    a2 = 1.0 - alpha
    return (b0 / a0, b1 / a0, b2 / a0, a1 / a0, a2 / a0)


def _lowshelf_biquad_coeff(f0: float, Q: float, gain_db: float, sr: int) -> Coefficients:
    """RBJ low-shelf coefficients."""
    if sr <= 0:
        return _BYPASS
    A = 10.0 ** (gain_db / 40.0)
    w0 = 2.0 * pi * _clamp_frequency(f0, sr) / sr
    alpha = sin(w0) / (2.0 * max(Q, _RBJ_MIN_Q))
    cos_w0 = cos(w0)
    two_sqrt_a_alpha = 2.0 * sqrt(A) * alpha
    b0 = A * ((A + 1.0) - (A - 1.0) * cos_w0 + two_sqrt_a_alpha)
    b1 = 2.0 * A * ((A - 1.0) - (A + 1.0) * cos_w0)
    b2 = A * ((A + 1.0) - (A - 1.0) * cos_w0 - two_sqrt_a_alpha)
    a0 = (A + 1.0) + (A - 1.0) * cos_w0 + two_sqrt_a_alpha
    a1 = -2.0 * ((A - 1.0) + (A + 1.0) * cos_w0)
    a2 = (A + 1.0) + (A - 1.0) * cos_w0 - two_sqrt_a_alpha
    return (b0 / a0, b1 / a0, b2 / a0, a1 / a0, a2 / a0)


def _highshelf_biquad_coeff(f0: float, Q: float, gain_db: float, sr: int) -> Coefficients:
    """RBJ high-shelf coefficients."""
    if sr <= 0:
        return _BYPASS
    A = 10.0 ** (gain_db / 40.0)
    w0 = 2.0 * pi * _clamp_frequency(f0, sr) / sr
    alpha = sin(w0) / (2.0 * max(Q, _RBJ_MIN_Q))
    cos_w0 = cos(w0)
    two_sqrt_a_alpha = 2.0 * sqrt(A) * alpha
    b0 = A * ((A + 1.0) + (A - 1.0) * cos_w0 + two_sqrt_a_alpha)
    b1 = -2.0 * A * ((A - 1.0) + (A + 1.0) * cos_w0)
    b2 = A * ((A + 1.0) + (A - 1.0) * cos_w0 - two_sqrt_a_alpha)
    a0 = (A + 1.0) - (A - 1.0) * cos_w0 + two_sqrt_a_alpha
    a1 = 2.0 * ((A - 1.0) - (A + 1.0) * cos_w0)
    a2 = (A + 1.0) - (A - 1.0) * cos_w0 - two_sqrt_a_alpha
    return (b0 / a0, b1 / a0, b2 / a0, a1 / a0, a2 / a0)


def _bandpass_biquad_coeff(f0: float, Q: float, sr: int) -> Coefficients:
    """RBJ band-pass filter coefficients (constant 0 dB peak gain)."""
    if sr <= 0:
        return _BYPASS
    w0 = 2.0 * pi * _clamp_frequency(f0, sr) / sr
    alpha = sin(w0) / (2.0 * max(Q, _RBJ_MIN_Q))
    b0 = alpha
    b1 = 0.0
    b2 = -alpha
    a0 = 1.0 + alpha
    a1 = -2.0 * cos(w0)
    a2 = 1.0 - alpha
    return (b0 / a0, b1 / a0, b2 / a0, a1 / a0, a2 / a0)


def design_biquad(kind: EQBandType, freq: float, Q: float, gain_db: float, sr: int) -> Coefficients:
    """Normalised ``(b0, b1, b2, a1, a2)`` for one of the EQ band shapes."""
    kind = EQBandType(kind)
    if kind is EQBandType.PEAKING:
        return _peaking_biquad_coeff(freq, Q, gain_db, sr)
    if kind is EQBandType.LOWSHELF:
        return _lowshelf_biquad_coeff(freq, Q, gain_db, sr)
    if kind is EQBandType.HIGHSHELF:
        return _highshelf_biquad_coeff(freq, Q, gain_db, sr)
    if kind is EQBandType.LOWPASS:
        return _lowpass_biquad_coeff(freq, Q, sr)
    return _highpass_biquad_coeff(freq, Q, sr)


def _peaking_biquad_coeff_track(
    freq: np.ndarray,
    Q: np.ndarray,
    gain_db: np.ndarray,
    sr: int,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """Vectorised RBJ peaking coefficients for time-varying parameters."""
    freq = _clamp_frequency_track(freq, sr)
    Q = np.broadcast_to(np.asarray(Q, dtype=np.float64), freq.shape)
    gain_db = np.broadcast_to(np.asarray(gain_db, dtype=np.float64), freq.shape)
    A = 10.0 ** (gain_db / 40.0)
    w0 = 2.0 * np.pi * freq / float(sr)
    alpha = np.sin(w0) / (2.0 * np.maximum(Q, _RBJ_MIN_Q))
    cos_w0 = np.cos(w0)
    a0 = 1.0 + alpha / A
    b0 = (1.0 + alpha * A) / a0
    b1 = (-2.0 * cos_w0) / a0
    b2 = (1.0 - alpha * A) / a0
    a1 = b1
    a2 = (1.0 - alpha / A) / a0
    return b0, b1, b2, a1, a2


def _lowpass_biquad_coeff_track(
    cutoff: np.ndarray,
    Q: float,
    sr: int,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """Vectorised RBJ low-pass coefficients for a moving cutoff."""
    cutoff = _clamp_frequency_track(cutoff, sr)
    w0 = 2.0 * np.pi * cutoff / float(sr)
    alpha = np.sin(w0) / (2.0 * max(Q, _RBJ_MIN_Q))
    cos_w0 = np.cos(w0)
    a0 = 1.0 + alpha
    b0 = (1.0 - cos_w0) * 0.5 / a0
    b1 = (1.0 - cos_w0) / a0
    b2 = b0
    a1 = (-2.0 * cos_w0) / a0
    a2 = (1.0 - alpha) / a0
    return b0, b1, b2, a1, a2


def _biquad_process(x: np.ndarray, b0: float, b1: float, b2: float, a1: float, a2: float) -> np.ndarray:
    """Process ``x`` with a single static biquad filter."""
    x = np.asarray(x, dtype=np.float64)
    if x.size == 0:
        return x.copy()
    return lfilter([b0, b1, b2], [1.0, a1, a2], x)


def _biquad_process_timevarying(
    x: np.ndarray,
    b0: np.ndarray,
    b1: np.ndarray,
    b2: np.ndarray,
    a1: np.ndarray,
    a2: np.ndarray,
) -> np.ndarray:
    """Process ``x`` with per-sample biquad coefficients (direct form I)."""
    x = np.asarray(x, dtype=np.float64)
    length = len(x)
    if not (len(b0) == len(b1) == len(b2) == len(a1) == len(a2) == length):
        raise ValueError('Coefficient tracks must match the source length')

    # Plain lists keep the per-sample loop out of numpy scalar overhead.
    xs = x.tolist()
    c0, c1, c2 = np.asarray(b0).tolist(), np.asarray(b1).tolist(), np.asarray(b2).tolist()
    d1, d2 = np.asarray(a1).tolist(), np.asarray(a2).tolist()
    y = [0.0] * length
    x1 = x2 = y1 = y2 = 0.0
    for i in range(length):
        xi = xs[i]
        yi = c0[i] * xi + c1[i] * x1 + c2[i] * x2 - d1[i] * y1 - d2[i] * y2
        y[i] = yi
        x2 = x1
        x1 = xi
        y2 = y1
        y1 = yi
    return np.asarray(y, dtype=np.float64)


def apply_eq_chain(x: np.ndarray, bands: Iterable[EQBand], sr: int) -> np.ndarray:
    """Run ``x`` through every enabled band in order."""
    y = np.asarray(x, dtype=np.float64)
    for band in bands:
        if not band.enabled:
            continue
        y = _biquad_process(y, *band.coefficients(sr))
    return y


def biquad_magnitude(coeffs: Coefficients, freqs: Sequence[float], sr: int) -> np.ndarray:
    """Linear magnitude response of normalised biquad ``coeffs`` at ``freqs``."""
    b0, b1, b2, a1, a2 = coeffs
    w = 2.0 * np.pi * np.asarray(freqs, dtype=np.float64) / float(sr)
    z1 = np.exp(-1j * w)
    z2 = z1 * z1
    num = b0 + b1 * z1 + b2 * z2
    den = 1.0 + a1 * z1 + a2 * z2
    return np.abs(num) / np.maximum(np.abs(den), EPS)


def eq_chain_response(bands: Iterable[EQBand], freqs: Sequence[float], sr: int) -> np.ndarray:
    """Combined magnitude of the enabled bands, for drawing the EQ curve."""
    total = np.ones(len(freqs), dtype=np.float64)
    for band in bands:
        if band.enabled:
            total *= biquad_magnitude(band.coefficients(sr), freqs, sr)
    return total
