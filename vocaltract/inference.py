# Created on 2026-10-18
# Description: Turn analysis frames or external model output into articulator tracks.
"""Voice-to-animation inference.

:func:`synthesize_tracks` converts an :class:`~vocaltract.analysis.AnalysisResult`
into the six articulator tracks: anchor poses are blended by vowel
probability, quiet frames close the lips, consonant cues pull the pose, and
an EMA plus change-threshold keeps the emitted keyframes sparse.
"""
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Sequence

import numpy as np

from .analysis import AnalysisResult, detect_pitch
from .anchors import AnalysisAnchor
from .buffers import AudioClip
from .constants import DTYPE, MODEL_PARAMETER_COUNT, MODEL_SAMPLE_RATE, PITCH, POSE_TRACK_IDS
from .core import _clamp
from .errors import AnalysisFailedError, ExternalModelError
from .tracks import KeyframePoint, Track, make_track

logger = logging.getLogger(__name__)

__all__ = [
    "synthesize_tracks",
    "gate_silence",
    "apply_consonant_cues",
    "prepare_model_input",
    "tracks_from_model_output",
    "pitch_track_from_recording",
]

SILENCE_RATIO = 0.1
SILENCE_FLOOR = 0.1
CHANGE_THRESHOLD_BASE = 0.09
CHANGE_THRESHOLD_OFFSET = 3.5
MAX_KEYFRAME_GAP_SECONDS = 1.5
DEFAULT_SMOOTHING = 0.55

# Column order follows POSE_TRACK_IDS.
_X, _Y, _LIPS, _LIP_LEN, _THROAT, _NASAL = range(6)
_INITIAL_POSE = np.array([0.5, 0.5, 0.5, 0.5, 0.5, 0.0])
_FRICATIVE_POSE = np.array([0.8, 0.85, 0.3, 0.3, 0.3, 0.0])
_FRICATIVE_ZCR = 0.3
_FRICATIVE_SLOPE = 5.0
_CLOSURE_ZCR = 0.1
_CLOSURE_MAX_ENERGY = 0.35
_MURMUR_MIN_ENERGY = 0.2


def gate_silence(pose: np.ndarray, energy: float, threshold: float) -> np.ndarray:
    """Shrink lips and nasal to at most 10% for frames quieter than ``threshold``."""
    if threshold <= 0.0 or energy >= threshold:
        return pose
    out = np.array(pose, dtype=np.float64)
    scale = SILENCE_FLOOR * max(energy, 0.0) / threshold
    out[_LIPS] *= scale
    out[_NASAL] *= scale
    return out


def apply_consonant_cues(pose: np.ndarray, relEnergy: float, zcr: float) -> np.ndarray:
    """Closure and fricative heuristics on top of the blended vowel pose.

    A quiet, low-ZCR frame is a closure: nasal when some voiced murmur is
    left, a stop otherwise. A high ZCR pulls towards a fricative pose.
    """
    out = np.array(pose, dtype=np.float64)
    if SILENCE_RATIO <= relEnergy < _CLOSURE_MAX_ENERGY and zcr < _CLOSURE_ZCR:
        out[_LIPS] = 0.0
        out[_NASAL] = 1.0 if relEnergy >= _MURMUR_MIN_ENERGY else 0.0
    pull = _clamp((zcr - _FRICATIVE_ZCR) * _FRICATIVE_SLOPE, 0.0, 1.0)
    if pull > 0.0:
        out = out * (1.0 - pull) + _FRICATIVE_POSE * pull
    return out


def _pose_matrix(anchors: Sequence[AnalysisAnchor]) -> np.ndarray:
    return np.array([a.tractPose.as_tuple() for a in anchors], dtype=np.float64)


def _pose_tracks(times: Sequence[float], poses: Sequence[np.ndarray]) -> Dict[str, Track]:
    tracks = {}
    for col, track_id in enumerate(POSE_TRACK_IDS):
        points = [KeyframePoint(t, float(p[col])) for t, p in zip(times, poses)]
        tracks[track_id] = make_track(track_id, points).healed()
    return tracks


def synthesize_tracks(
    result: AnalysisResult,
    anchors: Optional[Sequence[AnalysisAnchor]] = None,
    smoothing: float = DEFAULT_SMOOTHING,
    detectConsonants: bool = True,
    sensitivity: Optional[float] = None,
) -> Dict[str, Track]:
    """Articulator tracks keyed by id, reconstructed from ``result``."""
    if not result.ok:
        raise AnalysisFailedError(f'Analysis produced no usable frames ({result.failureReason})')
    if not 0.0 <= smoothing < 1.0:
        raise ValueError('Smoothing must be within [0, 1)')
    anchors = tuple(anchors) if anchors is not None else result.anchors
    sensitivity = result.sensitivity if sensitivity is None else float(sensitivity)
    frames = result.frames
    if len(frames[0].vowelProbability) != len(anchors):
        raise ValueError('Frame probabilities do not match the anchor table')

    poses = _pose_matrix(anchors)
    max_energy = result.maxEnergy
    silence = max_energy * SILENCE_RATIO
    alpha = 1.0 - smoothing
    change_threshold = CHANGE_THRESHOLD_BASE * (CHANGE_THRESHOLD_OFFSET - sensitivity)
    duration = frames[-1].timeSeconds

    current = _INITIAL_POSE.copy()
    saved = current.copy()
    saved_time = -np.inf
    times: List[float] = []
    emitted: List[np.ndarray] = []
    for i, frame in enumerate(frames):
        target = np.asarray(frame.vowelProbability, dtype=np.float64) @ poses
        if detectConsonants:
            rel = frame.energy / max_energy if max_energy > 0.0 else 0.0
            target = apply_consonant_cues(target, rel, frame.zeroCrossingRate)
        target = gate_silence(target, frame.energy, silence)
        current = current + alpha * (target - current)
        if frame.energy < silence:
            # smoothing must not reopen a gated mouth
            current[_LIPS] = min(current[_LIPS], target[_LIPS])
            current[_NASAL] = min(current[_NASAL], target[_NASAL])

        delta = float(np.sum(np.abs((current - saved)[[_X, _Y, _LIPS, _NASAL]])))
        is_last = i == len(frames) - 1
        if is_last or delta > change_threshold or frame.timeSeconds - saved_time > MAX_KEYFRAME_GAP_SECONDS:
            times.append(frame.timeSeconds / duration if duration > 0.0 else 0.0)
            emitted.append(current.copy())
            saved = current.copy()
            saved_time = frame.timeSeconds
    logger.debug('Emitted %d keyframes from %d frames', len(times), len(frames))
    return _pose_tracks(times, emitted)


def prepare_model_input(clip: AudioClip) -> np.ndarray:
    """Mono float32 samples at the model's 16 kHz input rate."""
    return clip.mono(MODEL_SAMPLE_RATE).astype(DTYPE)


def tracks_from_model_output(
    output: Iterable,
    durationSeconds: float,
    maxKeyframes: int = 200,
) -> Dict[str, Track]:
    """Articulator tracks from a model's ``[time, 6]`` (or interleaved) output.

    Values are clamped to [0, 1]; at most ``maxKeyframes`` evenly chosen
    frames become keyframes.
    """
    if output is None:
        raise ExternalModelError('Model returned no output')
    try:
        arr = np.asarray(output, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise ExternalModelError(f'Model output is not numeric: {exc}') from exc
    while arr.ndim > 2 and arr.shape[0] == 1:
        arr = arr[0]
    if arr.ndim == 1:
        if arr.size % MODEL_PARAMETER_COUNT:
            raise ExternalModelError(
                f'Interleaved output length {arr.size} is not a multiple of {MODEL_PARAMETER_COUNT}'
            )
        arr = arr.reshape(-1, MODEL_PARAMETER_COUNT)
    if arr.ndim != 2 or arr.shape[1] != MODEL_PARAMETER_COUNT:
        raise ExternalModelError(f'Expected a [time, {MODEL_PARAMETER_COUNT}] matrix, got shape {arr.shape}')
    if arr.shape[0] == 0:
        raise ExternalModelError('Model output has no frames')
    if not np.all(np.isfinite(arr)):
        raise ExternalModelError('Model output contains non-finite values')
    if durationSeconds <= 0.0:
        raise ValueError('Duration must be positive')
    if maxKeyframes < 2:
        raise ValueError('maxKeyframes must be at least 2')

    arr = np.clip(arr, 0.0, 1.0)
    count = arr.shape[0]
    logger.debug('Model output: %d frames over %.3f s', count, durationSeconds)
    picks = np.unique(np.round(np.linspace(0, count - 1, min(count, maxKeyframes))).astype(int))
    times = picks / float(count - 1) if count > 1 else np.zeros(1)
    return _pose_tracks(times.tolist(), [arr[i] for i in picks])


def pitch_track_from_recording(clip: AudioClip, sensitivity: float = 0.5) -> Optional[Track]:
    """Pitch track from ``clip``; ``None`` when no voiced window was found."""
    points = detect_pitch(clip, sensitivity)
    if not points:
        logger.info('No voiced windows found in %r', clip.name)
        return None
    duration = clip.durationSeconds
    normalised = [KeyframePoint(p.t / duration, p.v) for p in points]
    return make_track(PITCH, normalised).healed()
