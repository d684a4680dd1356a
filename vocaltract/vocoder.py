# Created on 2026-10-18
# Description: Channel vocoder resynthesis.
"""Channel vocoder.

The modulator is split into log-spaced bands; each band's envelope (full-wave
rectified, then low-passed) scales the matching band of the carrier.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

import numpy as np

from .buffers import AudioClip, SampleBuffer
from .constants import DTYPE, NYQUIST_SAFETY
from .errors import InvalidConfigError
from .filters import (
    EQBand,
    _bandpass_biquad_coeff,
    _biquad_process,
    _lowpass_biquad_coeff,
    apply_eq_chain,
    default_eq_bands,
)
from .sources import Waveform, fit_clip, oscillator, white_noise

logger = logging.getLogger(__name__)

__all__ = ["CarrierKind", "VocoderConfig", "band_centres", "vocode", "MIN_BANDS", "MAX_BANDS"]

MIN_BANDS = 40
MAX_BANDS = 128
_ENVELOPE_Q = 0.707


class CarrierKind(str, Enum):
    SYNTH = 'synth'
    FILE = 'file'


@dataclass(frozen=True)
class VocoderConfig:
    bands: int = 40
    q: float = 5.0
    makeUpGain: float = 2.0
    mix: float = 1.0
    minFrequency: float = 100.0
    maxFrequency: float = 10000.0
    envelopeCutoffHz: float = 50.0
    carrierKind: CarrierKind = CarrierKind.FILE
    carrierWaveform: Waveform = Waveform.SAWTOOTH
    carrierPitch: float = 110.0
    carrierDetuneCents: float = 0.0
    noiseMix: float = 0.1
    seed: int = 0
    eqBands: Tuple[EQBand, ...] = field(default_factory=default_eq_bands)

    def __post_init__(self) -> None:
        object.__setattr__(self, 'carrierKind', CarrierKind(self.carrierKind))
        object.__setattr__(self, 'carrierWaveform', Waveform(self.carrierWaveform))
        object.__setattr__(self, 'eqBands', tuple(self.eqBands))


def _validate(config: VocoderConfig) -> None:
    if not MIN_BANDS <= int(config.bands) <= MAX_BANDS:
        raise InvalidConfigError(
            f'Band count must be between {MIN_BANDS} and {MAX_BANDS}, got {config.bands}'
        )
    if config.q <= 0.0:
        raise InvalidConfigError('Band Q must be positive')
    if not 0.0 < config.minFrequency < config.maxFrequency:
        raise InvalidConfigError('Band range needs 0 < minFrequency < maxFrequency')
    if not 0.0 <= config.mix <= 1.0:
        raise InvalidConfigError('Mix must be within [0, 1]')
    if not 0.0 <= config.noiseMix <= 1.0:
        raise InvalidConfigError('Noise mix must be within [0, 1]')
    if config.envelopeCutoffHz <= 0.0:
        raise InvalidConfigError('Envelope cutoff must be positive')


def band_centres(bands: int, minFrequency: float, maxFrequency: float, sr: int) -> np.ndarray:
    """Log-spaced band centres, with the top of the range kept below Nyquist."""
    top = min(float(maxFrequency), NYQUIST_SAFETY * sr)
    if top <= minFrequency:
        raise InvalidConfigError(f'Sample rate {sr} Hz leaves no room above {minFrequency} Hz')
    log_min = np.log(float(minFrequency))
    log_max = np.log(top)
    positions = (np.arange(int(bands), dtype=np.float64) + 0.5) / float(bands)
    return np.exp(log_min + (log_max - log_min) * positions)


def _synth_carrier(config: VocoderConfig, n: int, sr: int) -> np.ndarray:
    if config.carrierWaveform is Waveform.NOISE:
        rng = np.random.default_rng(config.seed)
        return white_noise(n, rng)
    freq = config.carrierPitch * 2.0 ** (config.carrierDetuneCents / 1200.0)
    tone = oscillator(config.carrierWaveform, np.full(n, freq), sr)
    if config.noiseMix <= 0.0:
        return tone
    rng = np.random.default_rng(config.seed)
    return tone * (1.0 - config.noiseMix) + white_noise(n, rng) * config.noiseMix


def vocode(
    carrier: Optional[AudioClip],
    modulator: AudioClip,
    config: Optional[VocoderConfig] = None,
) -> SampleBuffer:
    """Impose ``modulator``'s band envelopes onto ``carrier``.

    The output runs at the modulator's sample rate and length. A clip carrier
    is resampled and looped to fit; with ``carrierKind`` synth the carrier is
    an oscillator plus white noise instead.
    """
    config = config or VocoderConfig()
    _validate(config)
    if config.carrierKind is CarrierKind.FILE and carrier is None:
        raise InvalidConfigError('File carrier selected without a clip')

    sr = modulator.sampleRate
    mod = modulator.mono()
    n = mod.size
    if config.carrierKind is CarrierKind.FILE:
        car = fit_clip(carrier.mono(sr), n, loop=True)
    else:
        car = _synth_carrier(config, n, sr)

    centres = band_centres(config.bands, config.minFrequency, config.maxFrequency, sr)
    logger.debug('Vocoding %d samples with %d bands (%.1f-%.1f Hz)', n, centres.size, centres[0], centres[-1])
    smoother = _lowpass_biquad_coeff(config.envelopeCutoffHz, _ENVELOPE_Q, sr)

    wet = np.zeros(n, dtype=np.float64)
    for f in centres:
        band = _bandpass_biquad_coeff(float(f), config.q, sr)
        envelope = _biquad_process(np.abs(_biquad_process(mod, *band)), *smoother)
        wet += _biquad_process(car, *band) * np.maximum(envelope, 0.0)
    wet *= config.makeUpGain

    out = wet * config.mix + mod * (1.0 - config.mix)
    out = apply_eq_chain(out, config.eqBands, sr)
    return SampleBuffer.from_mono(out.astype(DTYPE), sr)
