# Created on 2026-10-18
# Description: Excitation and breath-noise source generators.
"""Excitation source generators.

The periodic oscillators are PolyBLEP band-limited and follow the pitch
track at the control rate; every noise sample is drawn from a seeded
``numpy.random.Generator`` so renders are repeatable.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import numpy as np
from scipy.signal import lfilter

from .buffers import AudioClip
from .constants import BREATH_LOWPASS_HZ, CONTROL_RATE_HZ, MIN_CONTROL_STEPS
from .core import _clamp01, _control_steps, _ramp_controls
from .filters import _biquad_process, _lowpass_biquad_coeff
from .tracks import Track, sample_track

logger = logging.getLogger(__name__)

__all__ = [
    "SourceKind",
    "Waveform",
    "NoiseColor",
    "ExcitationConfig",
    "NoiseConfig",
    "white_noise",
    "pink_noise",
    "oscillator",
    "fit_clip",
    "pitch_to_samples",
    "generate_excitation",
    "generate_breath",
]

_BREATH_LOWPASS_Q = 0.707

# Paul Kellet's economy pink filter: (pole, white gain) per section.
_PINK_SECTIONS = (
    (0.99886, 0.0555179),
    (0.99332, 0.0750759),
    (0.96900, 0.1538520),
    (0.86650, 0.3104856),
    (0.55000, 0.5329522),
    (-0.7616, -0.0168980),
)
_PINK_DIRECT_GAIN = 0.5362
_PINK_DELAYED_GAIN = 0.115926
_PINK_OUTPUT_SCALE = 0.11
_TRIANGLE_LEAK = 0.9995


class SourceKind(str, Enum):
    SYNTH = 'synth'
    FILE = 'file'


class Waveform(str, Enum):
    SAWTOOTH = 'sawtooth'
    SINE = 'sine'
    SQUARE = 'square'
    TRIANGLE = 'triangle'
    COMPLEX = 'complex'
    NOISE = 'noise'


class NoiseColor(str, Enum):
    WHITE = 'white'
    PINK = 'pink'


@dataclass(frozen=True)
class ExcitationConfig:
    """Voiced source selection: a synth oscillator or a user clip."""

    kind: SourceKind = SourceKind.SYNTH
    waveform: Waveform = Waveform.SAWTOOTH
    clip: Optional[AudioClip] = None
    loop: bool = True
    pulseWidth: float = 0.5
    color: NoiseColor = NoiseColor.WHITE

    def __post_init__(self) -> None:
        object.__setattr__(self, 'kind', SourceKind(self.kind))
        object.__setattr__(self, 'waveform', Waveform(self.waveform))
        object.__setattr__(self, 'pulseWidth', _clamp01(self.pulseWidth))
        object.__setattr__(self, 'color', NoiseColor(self.color))


@dataclass(frozen=True)
class NoiseConfig:
    """Breath branch settings; ``clip`` replaces the generated noise when set."""

    breathOn: bool = True
    breathGain: float = 0.1
    color: NoiseColor = NoiseColor.WHITE
    clip: Optional[AudioClip] = None
    loop: bool = True
    seed: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, 'color', NoiseColor(self.color))


def white_noise(n: int, rng: np.random.Generator) -> np.ndarray:
    """Uniform white noise in [-1, 1)."""
    return rng.uniform(-1.0, 1.0, size=max(int(n), 0))


def pink_noise(n: int, rng: np.random.Generator) -> np.ndarray:
    """Pink noise from white noise through the Kellet filter bank."""
    white = white_noise(n, rng)
    if white.size == 0:
        return white
    out = white * _PINK_DIRECT_GAIN
    for pole, gain in _PINK_SECTIONS:
        out += lfilter([gain], [1.0, -pole], white)
    out[1:] += white[:-1] * _PINK_DELAYED_GAIN
    return out * _PINK_OUTPUT_SCALE


def _polyblep(t: np.ndarray, dt: np.ndarray) -> np.ndarray:
    """Polynomial band-limited step correction for phase ``t`` in [0, 1)."""
    out = np.zeros_like(t)
    dt = np.maximum(dt, 1e-9)
    rising = t < dt
    x = t[rising] / dt[rising]
    out[rising] = x + x - x * x - 1.0
    falling = t > 1.0 - dt
    x = (t[falling] - 1.0) / dt[falling]
    out[falling] = x * x + x + x + 1.0
    return out


def _phase(freq: np.ndarray, sr: int) -> np.ndarray:
    increments = np.asarray(freq, dtype=np.float64) / float(sr)
    phase = np.concatenate(([0.0], np.cumsum(increments[:-1])))
    return np.mod(phase, 1.0), np.abs(increments)


def oscillator(waveform: Waveform, freq: np.ndarray, sr: int, pulseWidth: float = 0.5) -> np.ndarray:
    """Band-limited oscillator following a per-sample frequency trajectory."""
    waveform = Waveform(waveform)
    if waveform is Waveform.NOISE:
        raise ValueError('Noise is not a periodic waveform')
    freq = np.asarray(freq, dtype=np.float64)
    if freq.size == 0:
        return np.zeros(0, dtype=np.float64)
    t, dt = _phase(freq, sr)

    if waveform is Waveform.SINE:
        return np.sin(2.0 * np.pi * t)
    square = np.where(t < 0.5, 1.0, -1.0)
    square = square + _polyblep(t, dt) - _polyblep(np.mod(t + 0.5, 1.0), dt)
    if waveform is Waveform.TRIANGLE:
        # leaky integral of the band-limited square, starting at the trough
        tri, _ = lfilter([1.0], [1.0, -_TRIANGLE_LEAK], 4.0 * dt * square, zi=[-_TRIANGLE_LEAK])
        return tri

    saw = 2.0 * t - 1.0 - _polyblep(t, dt)
    if waveform is Waveform.SAWTOOTH:
        return saw
    if waveform is Waveform.SQUARE:
        return square
    pw = _clamp01(pulseWidth)
    return (1.0 - pw) * saw + pw * square


def fit_clip(samples: np.ndarray, n: int, loop: bool) -> np.ndarray:
    """Loop or zero-pad ``samples`` to exactly ``n`` samples."""
    samples = np.asarray(samples, dtype=np.float64)
    out = np.zeros(max(int(n), 0), dtype=np.float64)
    if samples.size == 0 or out.size == 0:
        return out
    if loop:
        reps = -(-out.size // samples.size)
        return np.tile(samples, reps)[: out.size]
    count = min(out.size, samples.size)
    out[:count] = samples[:count]
    return out


def _clip_signal(clip: AudioClip, n: int, sr: int, loop: bool) -> np.ndarray:
    return fit_clip(clip.mono(sr), n, loop)


def pitch_to_samples(pitchTrack: Track, totalSamples: int, controlSteps: int) -> np.ndarray:
    """Sample the pitch track at control points and ramp it to audio rate."""
    controls = sample_track(pitchTrack.healed(), controlSteps + 1)
    return _ramp_controls(controls, totalSamples)


def generate_excitation(
    config: ExcitationConfig,
    totalSamples: int,
    pitchTrack: Track,
    sampleRate: int,
    rng: np.random.Generator,
    controlSteps: Optional[int] = None,
) -> np.ndarray:
    """Voiced excitation of ``totalSamples`` samples."""
    if config.kind is SourceKind.FILE:
        if config.clip is None:
            raise ValueError('A file excitation needs a clip')
        logger.debug('Excitation from clip %r (%d frames)', config.clip.name, config.clip.frameCount)
        return _clip_signal(config.clip, totalSamples, sampleRate, config.loop)

    if config.waveform is Waveform.NOISE:
        if config.color is NoiseColor.PINK:
            return pink_noise(totalSamples, rng)
        return white_noise(totalSamples, rng)

    if controlSteps is None:
        controlSteps = _control_steps(totalSamples / float(sampleRate), CONTROL_RATE_HZ, MIN_CONTROL_STEPS)
    freq = pitch_to_samples(pitchTrack, totalSamples, controlSteps)
    return oscillator(config.waveform, freq, sampleRate, config.pulseWidth)


def generate_breath(
    config: NoiseConfig,
    totalSamples: int,
    breathGain: np.ndarray,
    sampleRate: int,
    rng: np.random.Generator,
) -> np.ndarray:
    """Low-passed breath noise scaled by the per-sample breath gain."""
    if not config.breathOn:
        return np.zeros(totalSamples, dtype=np.float64)
    if config.clip is not None:
        noise = _clip_signal(config.clip, totalSamples, sampleRate, config.loop)
    elif config.color is NoiseColor.PINK:
        noise = pink_noise(totalSamples, rng)
    else:
        noise = white_noise(totalSamples, rng)
    noise = _biquad_process(noise, *_lowpass_biquad_coeff(BREATH_LOWPASS_HZ, _BREATH_LOWPASS_Q, sampleRate))
    return noise * np.asarray(breathGain, dtype=np.float64) * float(config.breathGain)
