# Created on 2026-10-18
# Description: Offline render of keyframed articulator tracks to audio.
"""Offline render scheduler.

``render`` turns an immutable :class:`EngineConfig` into a
:class:`~vocaltract.buffers.SampleBuffer`:

excitation + breath -> F1/F2/F3 peaking cascade -> nasal low-pass -> EQ
-> headroom limit -> gain track -> fade-out.

Automation is evaluated at a coarse control rate and ramped linearly to
audio rate, so parameter moves never step.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from math import isfinite
from typing import Dict, Iterable, Mapping, Tuple

import numpy as np

from .buffers import SampleBuffer
from .constants import (
    BREATH,
    CONTROL_RATE_HZ,
    DTYPE,
    FADE_OUT_SECONDS,
    GAIN,
    MIN_CONTROL_STEPS,
    PEAK_DEFAULT,
    PITCH,
    TRACK_IDS,
)
from .core import _apply_fade_out, _control_steps, _limit_peak, _ramp_controls
from .errors import InvalidConfigError
from .filters import EQBand, apply_eq_chain, default_eq_bands
from .sources import (
    ExcitationConfig,
    NoiseConfig,
    SourceKind,
    generate_breath,
    generate_excitation,
)
from .tracks import Track, default_tracks, sample_track
from .tract import apply_tract_cascade, control_trajectories

logger = logging.getLogger(__name__)

__all__ = ["EngineConfig", "validate_config", "render", "render_samples"]


@dataclass(frozen=True)
class EngineConfig:
    """Everything a render needs, captured as one immutable snapshot."""

    durationSeconds: float = 2.0
    sampleRate: int = 44100
    excitation: ExcitationConfig = field(default_factory=ExcitationConfig)
    noise: NoiseConfig = field(default_factory=NoiseConfig)
    formantIntensity: float = 1.0
    eqBands: Tuple[EQBand, ...] = field(default_factory=default_eq_bands)
    tracks: Tuple[Track, ...] = field(default_factory=lambda: tuple(default_tracks().values()))
    fadeOutSeconds: float = FADE_OUT_SECONDS
    controlRateHz: float = CONTROL_RATE_HZ

    def __post_init__(self) -> None:
        object.__setattr__(self, 'eqBands', tuple(self.eqBands))
        tracks = self.tracks.values() if isinstance(self.tracks, Mapping) else self.tracks
        object.__setattr__(self, 'tracks', tuple(tracks))

    @property
    def trackMap(self) -> Dict[str, Track]:
        return {track.id: track for track in self.tracks}

    def track(self, trackId: str) -> Track:
        for track in self.tracks:
            if track.id == trackId:
                return track
        raise KeyError(f'Unknown track id requested: {trackId}')

    def with_tracks(self, tracks: Iterable[Track]) -> "EngineConfig":
        return replace(self, tracks=tuple(tracks))


def validate_config(config: EngineConfig) -> None:
    """Raise :class:`InvalidConfigError` for a config that cannot be rendered."""
    duration = float(config.durationSeconds)
    if not isfinite(duration) or duration <= 0.0:
        raise InvalidConfigError(f'Duration must be positive, got {config.durationSeconds!r}')
    if int(config.sampleRate) <= 0:
        raise InvalidConfigError(f'Sample rate must be positive, got {config.sampleRate!r}')
    if config.controlRateHz <= 0.0:
        raise InvalidConfigError('Control rate must be positive')
    if config.fadeOutSeconds < 0.0:
        raise InvalidConfigError('Fade-out length cannot be negative')
    if not config.tracks:
        raise InvalidConfigError('No tracks to render')
    present = {track.id for track in config.tracks}
    missing = [track_id for track_id in TRACK_IDS if track_id not in present]
    if missing:
        raise InvalidConfigError(f"Missing required tracks: {', '.join(missing)}")
    if config.excitation.kind is SourceKind.FILE and config.excitation.clip is None:
        raise InvalidConfigError('File excitation selected without a clip')


def render_samples(config: EngineConfig) -> np.ndarray:
    """Render ``config`` to a float64 mono array."""
    validate_config(config)
    sr = int(config.sampleRate)
    duration = float(config.durationSeconds)
    n = max(1, int(round(duration * sr)))
    steps = _control_steps(duration, config.controlRateHz, MIN_CONTROL_STEPS)
    tracks = {track.id: track.healed() for track in config.tracks}
    logger.debug('Rendering %d samples at %d Hz with %d control steps', n, sr, steps)

    rng = np.random.default_rng(config.noise.seed)
    excitation = generate_excitation(config.excitation, n, tracks[PITCH], sr, rng, steps)
    breath_gain = _ramp_controls(sample_track(tracks[BREATH], steps + 1), n)
    breath = generate_breath(config.noise, n, breath_gain, sr, rng)

    controls = control_trajectories(tracks, steps)
    y = apply_tract_cascade(excitation + breath, controls, sr, config.formantIntensity)
    y = apply_eq_chain(y, config.eqBands, sr)
    y = _limit_peak(y, PEAK_DEFAULT)
    y = y * _ramp_controls(sample_track(tracks[GAIN], steps + 1), n)
    return _apply_fade_out(y, sr, config.fadeOutSeconds)


def render(config: EngineConfig) -> SampleBuffer:
    """Render ``config`` to a mono :class:`SampleBuffer`."""
    samples = render_samples(config)
    return SampleBuffer.from_mono(samples.astype(DTYPE), config.sampleRate)
