# Created on 2026-10-18
# Description: Frame-wise formant, energy and pitch analysis of reference recordings.
"""Acoustic analysis of a reference recording.

Every 10 ms a 25 ms Hamming window is pre-emphasised and fitted with an
order-16 autocorrelation LPC model; F1-F3 are picked from peaks of the LPC
envelope. Each frame is then scored against a table of vowel anchors with a
Gaussian kernel over (F1, F2) distance.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import numpy as np
from scipy.signal import correlate

from .anchors import DEFAULT_LANGUAGE, AnalysisAnchor, anchor_index, get_anchor_table
from .buffers import AudioClip
from .constants import EPS
from .errors import InvalidConfigError
from .tracks import KeyframePoint, simplify_points

logger = logging.getLogger(__name__)

__all__ = [
    "AnalysisFrame",
    "AnalysisResult",
    "analyze",
    "classify",
    "lpc_coefficients",
    "lpc_envelope",
    "extract_vowel_hints",
    "detect_pitch",
]

WINDOW_SECONDS = 0.025
HOP_SECONDS = 0.01
LPC_ORDER = 16
PRE_EMPHASIS = 0.95
KERNEL_DISTANCE_HZ = 450.0
HINT_BOOST = 5.0

_WHITE_NOISE_CORRECTION = 1e-3
_PEAK_FLOOR_DB = 30.0
_ENVELOPE_MIN_HZ = 50.0
_ENVELOPE_MAX_HZ = 5500.0
_ENVELOPE_STEP_HZ = 10.0
_F1_RANGE = (150.0, 1100.0)
_F2_MAX = 3000.0
_F3_MAX = 5200.0
_F2_MIN_GAP = 200.0
_F3_MIN_GAP = 400.0
_F3_FALLBACK_GAP = 600.0
_INITIAL_FORMANTS = (500.0, 1500.0, 2500.0)
_FORMANT_SMOOTHING = 0.3

_F1_WEIGHT = 1.5
_F2_WEIGHT = 0.8

_PITCH_WINDOW = 2048
_PITCH_HOP = 1024
_PITCH_MIN_HZ = 50.0
_PITCH_MAX_HZ = 600.0
_PITCH_RMS_GATE = 0.02


@dataclass(frozen=True)
class AnalysisFrame:
    timeSeconds: float
    f1: float
    f2: float
    f3: float
    energy: float
    zeroCrossingRate: float
    vowelProbability: Tuple[float, ...] = ()


@dataclass(frozen=True)
class AnalysisResult:
    """Frames of one analysis pass; ``failureReason`` is set when none could be produced."""

    frames: Tuple[AnalysisFrame, ...]
    anchors: Tuple[AnalysisAnchor, ...]
    durationSeconds: float
    sampleRate: int
    sensitivity: float = 1.0
    hints: Tuple[str, ...] = field(default_factory=tuple)
    failureReason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.failureReason is None and len(self.frames) > 0

    @property
    def maxEnergy(self) -> float:
        return max((f.energy for f in self.frames), default=0.0)

    @classmethod
    def failed(cls, reason: str, anchors: Sequence[AnalysisAnchor], duration: float, sr: int) -> "AnalysisResult":
        return cls((), tuple(anchors), float(duration), int(sr), failureReason=reason)


# ---- LPC ----

def _levinson_durbin(r: np.ndarray, order: int) -> np.ndarray:
    """Prediction polynomial ``a`` (``a[0] == 1``) from autocorrelation ``r``."""
    a = np.zeros(order + 1, dtype=np.float64)
    a[0] = 1.0
    err = float(r[0])
    for k in range(1, order + 1):
        if err <= EPS:
            break
        acc = float(np.dot(a[:k], r[k:0:-1]))
        reflection = -acc / err
        a[1:k] = a[1:k] + reflection * a[k - 1:0:-1]
        a[k] = reflection
        err *= 1.0 - reflection * reflection
    return a


def lpc_coefficients(segment: np.ndarray, order: int = LPC_ORDER) -> np.ndarray:
    """Autocorrelation-method LPC with a small white-noise correction."""
    seg = np.asarray(segment, dtype=np.float64)
    n = seg.size
    r = np.array([np.dot(seg[: n - k], seg[k:]) if k < n else 0.0 for k in range(order + 1)])
    r[0] *= 1.0 + _WHITE_NOISE_CORRECTION
    return _levinson_durbin(r, order)


def _envelope_basis(sr: int, order: int) -> Tuple[np.ndarray, np.ndarray]:
    freqs = np.arange(_ENVELOPE_MIN_HZ, _ENVELOPE_MAX_HZ, _ENVELOPE_STEP_HZ)
    w = 2.0 * np.pi * freqs / float(sr)
    basis = np.exp(-1j * np.outer(w, np.arange(order + 1)))
    return freqs, basis


def lpc_envelope(a: np.ndarray, sr: int) -> Tuple[np.ndarray, np.ndarray]:
    """(frequencies, magnitude) of ``1/|A(e^jw)|`` on the 10 Hz analysis grid."""
    freqs, basis = _envelope_basis(sr, len(a) - 1)
    return freqs, 1.0 / np.maximum(np.abs(basis @ a), EPS)


def _pick_peaks(freqs: np.ndarray, mag: np.ndarray) -> np.ndarray:
    """Envelope maxima within ``_PEAK_FLOOR_DB`` of the strongest one, ascending."""
    slope = np.diff(np.concatenate(([0.0], mag)))
    is_peak = (slope[:-1] > 0.0) & (slope[1:] < 0.0)
    idx = np.nonzero(is_peak)[0]
    if idx.size == 0:
        return idx.astype(np.float64)
    db = 20.0 * np.log10(np.maximum(mag[idx], EPS))
    idx = idx[db >= db.max() - _PEAK_FLOOR_DB]
    return freqs[idx]


def _first_between(peaks: np.ndarray, lo: float, hi: float, inclusive_lo: bool = False) -> Optional[float]:
    mask = (peaks >= lo) if inclusive_lo else (peaks > lo)
    mask &= peaks < hi
    hits = peaks[mask]
    return float(hits[0]) if hits.size else None


def _assign_formants(peaks: np.ndarray, last: Tuple[float, float, float]) -> Tuple[float, float, float]:
    f1 = _first_between(peaks, _F1_RANGE[0], _F1_RANGE[1], inclusive_lo=True)
    if f1 is None:
        return last
    min_f2 = f1 + _F2_MIN_GAP
    f2 = _first_between(peaks, min_f2, _F2_MAX)
    if f2 is None:
        f2 = max(min_f2, last[1])
        return f1, f2, max(f2 + _F3_FALLBACK_GAP, last[2])
    min_f3 = f2 + _F3_MIN_GAP
    f3 = _first_between(peaks, min_f3, _F3_MAX)
    if f3 is None:
        f3 = max(min_f3, last[2])
    return f1, f2, f3


def _raw_frames(
    data: np.ndarray,
    sr: int,
    window_seconds: float,
    hop_seconds: float,
    order: int,
) -> List[Tuple[float, float, float, float, float, float]]:
    """(t, f1, f2, f3, energy, zcr) per frame, before smoothing."""
    n_win = int(window_seconds * sr)
    n_hop = max(1, int(hop_seconds * sr))
    if n_win < 2 or data.size < n_win:
        return []

    window = np.hamming(n_win)
    freqs, basis = _envelope_basis(sr, order)
    frames = []
    last = _INITIAL_FORMANTS
    for start in range(0, data.size - n_win + 1, n_hop):
        raw = data[start:start + n_win]
        signs = raw >= 0.0
        zcr = np.count_nonzero(signs[1:] != signs[:-1]) / float(n_win)

        emphasised = np.empty_like(raw)
        emphasised[0] = raw[0]
        emphasised[1:] = raw[1:] - PRE_EMPHASIS * raw[:-1]
        segment = emphasised * window
        energy = float(np.sqrt(np.mean(segment * segment)))

        if energy > EPS:
            a = lpc_coefficients(segment, order)
            mag = 1.0 / np.maximum(np.abs(basis @ a), EPS)
            last = _assign_formants(_pick_peaks(freqs, mag), last)
        frames.append((start / float(sr), last[0], last[1], last[2], energy, float(zcr)))
    return frames


# ---- classification ----

def classify(
    f1: float,
    f2: float,
    anchors: Sequence[AnalysisAnchor],
    sensitivity: float = 1.0,
    hint: Optional[str] = None,
) -> Tuple[float, ...]:
    """Normalised Gaussian-kernel membership of (F1, F2) in each anchor.

    ``hint`` names an anchor label whose weight is multiplied by 5 before
    normalisation. When every kernel underflows the result is uniform.
    """
    if sensitivity <= 0.0:
        raise ValueError('Sensitivity must be positive')
    if not anchors:
        return ()
    targets = np.array([(a.targetFormant1, a.targetFormant2) for a in anchors], dtype=np.float64)
    d1 = (float(f1) - targets[:, 0]) * _F1_WEIGHT
    d2 = (float(f2) - targets[:, 1]) * _F2_WEIGHT
    sigma = KERNEL_DISTANCE_HZ / float(sensitivity)
    probs = np.exp(-(d1 * d1 + d2 * d2) / (2.0 * sigma * sigma))
    if hint is not None:
        index = anchor_index(tuple(anchors)).get(hint)
        if index is not None:
            probs[index] *= HINT_BOOST
    total = float(probs.sum())
    if not np.isfinite(total) or total <= 0.0:
        return tuple([1.0 / len(anchors)] * len(anchors))
    return tuple(float(p) for p in probs / total)


def _hint_for_time(hints: Sequence[str], t: float, duration: float) -> Optional[str]:
    if not hints or duration <= 0.0:
        return None
    segment = duration / len(hints)
    return hints[min(int(t // segment), len(hints) - 1)]


def analyze(
    recording: AudioClip,
    anchors: Optional[Sequence[AnalysisAnchor]] = None,
    sensitivity: float = 1.0,
    hints: Sequence[str] = (),
    *,
    windowSeconds: float = WINDOW_SECONDS,
    hopSeconds: float = HOP_SECONDS,
    lpcOrder: int = LPC_ORDER,
) -> AnalysisResult:
    """Analyse ``recording`` frame by frame.

    Returns a failed :class:`AnalysisResult` (no frames) when the input is
    shorter than one window or carries no energy.
    """
    if sensitivity <= 0.0:
        raise InvalidConfigError('Sensitivity must be positive')
    if windowSeconds <= 0.0 or hopSeconds <= 0.0:
        raise InvalidConfigError('Analysis window and hop must be positive')
    if lpcOrder < 2:
        raise InvalidConfigError('LPC order must be at least 2')
    anchors = tuple(anchors) if anchors is not None else get_anchor_table(DEFAULT_LANGUAGE)
    hints = tuple(hints)
    sr = recording.sampleRate
    duration = recording.durationSeconds

    raw = _raw_frames(recording.mono(), sr, windowSeconds, hopSeconds, lpcOrder)
    if not raw:
        logger.info('Analysis of %r failed: shorter than one analysis window', recording.name)
        return AnalysisResult.failed('too short', anchors, duration, sr)
    if max(r[4] for r in raw) <= EPS:
        logger.info('Analysis of %r failed: no signal energy', recording.name)
        return AnalysisResult.failed('silent', anchors, duration, sr)

    frames = []
    prev = _INITIAL_FORMANTS
    for t, f1, f2, f3, energy, zcr in raw:
        smoothed = tuple(
            p * _FORMANT_SMOOTHING + c * (1.0 - _FORMANT_SMOOTHING) for p, c in zip(prev, (f1, f2, f3))
        )
        prev = smoothed
        probs = classify(smoothed[0], smoothed[1], anchors, sensitivity, _hint_for_time(hints, t, duration))
        frames.append(AnalysisFrame(t, smoothed[0], smoothed[1], smoothed[2], energy, zcr, probs))
    logger.debug('Analysed %d frames from %r', len(frames), recording.name)
    return AnalysisResult(tuple(frames), anchors, duration, sr, float(sensitivity), hints)


# ---- filename hints ----

_HINT_PATTERNS = (
    ('A', re.compile('a|あ|か|さ|た|나|하|마|야|라|와|가|자|다|바|파|아', re.IGNORECASE)),
    ('I', re.compile('i|い|き|し|ち|니|히|미|리|기|지|디|비|피|이', re.IGNORECASE)),
    ('U', re.compile('u|う|く|す|つ|누|후|무|유|루|구|주|두|부|푸|우', re.IGNORECASE)),
    ('E', re.compile('e|え|け|せ|て|네|헤|메|레|게|제|데|베|페|에', re.IGNORECASE)),
    ('O', re.compile('o|お|こ|そ|と|노|호|모|요|로|고|조|도|보|포|오', re.IGNORECASE)),
)
_NASAL_PATTERN = re.compile('n|ん|응|앙|잉|옹|웅|은|는', re.IGNORECASE)
_NAME_SPLIT = re.compile(r"[_'\-\s.]+")
# Hangul final-consonant indices for ㄴ, ㅁ and ㅇ.
_NASAL_FINALS = {4, 16, 21}


def _ends_with_nasal_coda(part: str) -> bool:
    code = ord(part[-1]) - 0xAC00
    return 0 <= code < 11172 and code % 28 in _NASAL_FINALS


def extract_vowel_hints(name: str) -> List[str]:
    """Vowel labels guessed from a file name, one per syllable-like token.

    ``"a_i_u.wav"`` gives ``['A', 'I', 'U']``; tokens ending in a nasal
    (``n``, ``ん`` or a hangul ㄴ/ㅁ/ㅇ coda) give ``'N'``.
    """
    stem = name.rsplit('.', 1)[0] if '.' in name else name
    stem = stem or name
    hints = []
    for part in _NAME_SPLIT.split(stem):
        if not part:
            continue
        lower = part.lower()
        if _ends_with_nasal_coda(part) or (
            _NASAL_PATTERN.search(part) and (lower.endswith('n') or 'ん' in part)
        ):
            hints.append('N')
            continue
        for label, pattern in _HINT_PATTERNS:
            if pattern.search(part):
                hints.append(label)
                break
    return hints


# ---- pitch ----

def detect_pitch(clip: AudioClip, sensitivity: float = 0.5) -> List[KeyframePoint]:
    """Autocorrelation pitch track as ``KeyframePoint(timeSeconds, hz)`` points.

    Windows below the RMS gate are skipped; the result is thinned with
    :func:`~vocaltract.tracks.simplify_points`.
    """
    data = clip.mono()
    sr = clip.sampleRate
    min_lag = int(sr / _PITCH_MAX_HZ)
    max_lag = int(sr / _PITCH_MIN_HZ)
    points = []
    for start in range(0, data.size - _PITCH_WINDOW, _PITCH_HOP):
        segment = data[start:start + _PITCH_WINDOW]
        rms = float(np.sqrt(np.mean(segment * segment)))
        if rms < _PITCH_RMS_GATE:
            continue
        corr = correlate(segment, segment, mode='full', method='fft')[_PITCH_WINDOW - 1:]
        lags = corr[min_lag:min(max_lag, _PITCH_WINDOW)]
        if lags.size == 0:
            continue
        best = min_lag + int(np.argmax(lags))
        freq = sr / float(best)
        if _PITCH_MIN_HZ <= freq <= _PITCH_MAX_HZ:
            points.append(KeyframePoint(start / float(sr), freq))
    return simplify_points(points, sensitivity)
