# Created on 2026-10-18
# Description: Core numeric helpers shared across the engine modules.
"""Core numeric helpers shared across the engine modules."""
from __future__ import annotations

from math import gcd

import numpy as np
from scipy.signal import resample_poly

from .constants import EPS, PEAK_DEFAULT

__all__ = [
    "_clamp",
    "_clamp01",
    "_limit_peak",
    "_apply_fade_out",
    "_control_steps",
    "_ramp_controls",
    "_resample",
    "_mix_to_mono",
]


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def _clamp01(value: float) -> float:
    return _clamp(float(value), 0.0, 1.0)


def _limit_peak(sig: np.ndarray, ceiling: float = PEAK_DEFAULT) -> np.ndarray:
    """Scale ``sig`` down so its peak does not exceed ``ceiling``.

    Quiet signals are left untouched; only overs are attenuated.
    """
    if sig.size == 0:
        return sig
    peak = float(np.max(np.abs(sig)))
    if not np.isfinite(peak) or peak <= ceiling:
        return sig
    return sig * (ceiling / (peak + EPS))


def _apply_fade_out(sig: np.ndarray, sr: int, fade_seconds: float) -> np.ndarray:
    """Apply a linear fade reaching zero on the final sample."""
    n = len(sig)
    fade = min(n, int(round(fade_seconds * sr)))
    if fade <= 0:
        return sig
    out = sig.copy()
    out[-fade:] *= np.linspace(1.0, 0.0, fade, dtype=out.dtype)
    return out


def _control_steps(duration_s: float, control_rate_hz: float, min_steps: int) -> int:
    """Number of control segments used for coarse automation over a render."""
    return max(int(min_steps), int(np.ceil(duration_s * control_rate_hz)))


def _ramp_controls(values: np.ndarray, n_samples: int) -> np.ndarray:
    """Linearly ramp evenly spaced control values to one value per sample.

    ``values[0]`` lands on sample 0 and ``values[-1]`` on the last sample.
    """
    values = np.asarray(values, dtype=np.float64)
    if n_samples <= 0:
        return np.zeros(0, dtype=np.float64)
    if values.size == 1 or n_samples == 1:
        return np.full(n_samples, float(values[0]), dtype=np.float64)
    ctrl_pos = np.linspace(0.0, 1.0, values.size, dtype=np.float64)
    sample_pos = np.linspace(0.0, 1.0, n_samples, dtype=np.float64)
    return np.interp(sample_pos, ctrl_pos, values)


def _resample(x: np.ndarray, src_rate: int, dst_rate: int) -> np.ndarray:
    """Polyphase resampling along the last axis."""
    if src_rate == dst_rate or x.shape[-1] == 0:
        return np.asarray(x, dtype=np.float64)
    g = gcd(int(src_rate), int(dst_rate))
    up = int(dst_rate) // g
    down = int(src_rate) // g
    return resample_poly(np.asarray(x, dtype=np.float64), up, down, axis=-1)


def _mix_to_mono(channels: np.ndarray) -> np.ndarray:
    """Average a (channels, frames) array down to a single channel."""
    channels = np.asarray(channels, dtype=np.float64)
    if channels.ndim == 1:
        return channels
    if channels.shape[0] == 1:
        return channels[0]
    return channels.mean(axis=0)
