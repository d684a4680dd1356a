# Created on 2026-10-18
# Description: Articulatory pose to formant mapping and the formant/nasal cascade.
"""Articulatory pose to formant mapping and the formant/nasal filter cascade."""
from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Dict, Mapping, Tuple

import numpy as np

from .constants import (
    FORMANT_GAINS_DB,
    FORMANT_Q,
    GENDER,
    LIP_LENGTH,
    LIPS,
    NASAL,
    THROAT,
    TONGUE_X,
    TONGUE_Y,
)
from .core import _clamp01, _ramp_controls
from .filters import (
    _biquad_process_timevarying,
    _clamp_frequency_track,
    _lowpass_biquad_coeff_track,
    _peaking_biquad_coeff_track,
)
from .tracks import Track, sample_track

__all__ = [
    "TractPose",
    "FormantTargets",
    "formant_targets",
    "pose_formants",
    "control_trajectories",
    "apply_tract_cascade",
]

_NASAL_LOWPASS_Q = 0.707


@dataclass(frozen=True)
class TractPose:
    """Six articulatory parameters, each normalised to [0, 1]."""

    tongueX: float = 0.5
    tongueY: float = 0.5
    lips: float = 0.5
    lipLen: float = 0.5
    throat: float = 0.5
    nasal: float = 0.0

    def __post_init__(self) -> None:
        for f in fields(self):
            object.__setattr__(self, f.name, _clamp01(getattr(self, f.name)))

    def as_tuple(self) -> Tuple[float, ...]:
        return (self.tongueX, self.tongueY, self.lips, self.lipLen, self.throat, self.nasal)

    def to_dict(self) -> Dict[str, float]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TractPose":
        return cls(**{f.name: float(data[f.name]) for f in fields(cls) if f.name in data})


@dataclass(frozen=True)
class FormantTargets:
    """Formant centres, F1 bandwidth (as Q) and nasal cutoff; scalars or arrays."""

    f1: Any
    f2: Any
    f3: Any
    f1Q: Any
    nasalCutoff: Any


def formant_targets(tongueX, tongueY, lips, lipLen, throat, nasal, gender=1.0) -> FormantTargets:
    """Map articulator values (scalars or arrays) to formant frequencies in Hz."""
    x = np.asarray(tongueX, dtype=np.float64)
    y = np.asarray(tongueY, dtype=np.float64)
    lp = np.asarray(lips, dtype=np.float64)
    ln = np.asarray(lipLen, dtype=np.float64)
    th = np.asarray(throat, dtype=np.float64)
    n = np.asarray(nasal, dtype=np.float64)
    g = np.asarray(gender, dtype=np.float64)

    length_factor = 1.0 - ln * 0.3
    aperture_factor = 0.5 + lp * 0.5
    f1 = np.maximum(200.0 + (1.0 - y) * 600.0 - th * 50.0, 50.0) * length_factor * aperture_factor
    f2 = (800.0 + x * 1400.0) * length_factor * aperture_factor
    f3 = (2000.0 + lp * 1500.0) * length_factor
    nasal_cutoff = np.maximum(10000.0 - n * 9000.0, 400.0)
    return FormantTargets(
        f1=f1 * g,
        f2=f2 * g,
        f3=f3 * g,
        f1Q=2.0 + th * 4.0,
        nasalCutoff=nasal_cutoff * g,
    )


def pose_formants(pose: TractPose, gender: float = 1.0) -> Tuple[float, float, float]:
    """(F1, F2, F3) in Hz for a single pose."""
    targets = formant_targets(*pose.as_tuple(), gender=gender)
    return float(targets.f1), float(targets.f2), float(targets.f3)


def control_trajectories(tracks: Mapping[str, Track], steps: int) -> FormantTargets:
    """Evaluate the articulator tracks at ``steps + 1`` control instants."""
    count = int(steps) + 1

    def _sample(track_id: str) -> np.ndarray:
        return sample_track(tracks[track_id].healed(), count)

    return formant_targets(
        _sample(TONGUE_X),
        _sample(TONGUE_Y),
        _sample(LIPS),
        _sample(LIP_LENGTH),
        _sample(THROAT),
        _sample(NASAL),
        _sample(GENDER),
    )


def apply_tract_cascade(
    src: np.ndarray,
    controls: FormantTargets,
    sr: int,
    formantIntensity: float = 1.0,
) -> np.ndarray:
    """Run ``src`` through F1 -> F2 -> F3 peaking filters and the nasal low-pass.

    ``controls`` holds control-rate trajectories; they are ramped linearly to
    one value per sample and clamped below Nyquist before filter design.
    """
    x = np.asarray(src, dtype=np.float64)
    n = x.size
    if n == 0:
        return x.copy()

    def _ramp(values) -> np.ndarray:
        return _ramp_controls(np.atleast_1d(values), n)

    intensity = max(float(formantIntensity), 0.0)
    f1 = _clamp_frequency_track(_ramp(controls.f1), sr)
    f2 = _clamp_frequency_track(_ramp(controls.f2), sr)
    f3 = _clamp_frequency_track(_ramp(controls.f3), sr)
    f1_q = _ramp(controls.f1Q)
    cutoff = _clamp_frequency_track(_ramp(controls.nasalCutoff), sr)

    g1, g2, g3 = (gain * intensity for gain in FORMANT_GAINS_DB)
    y = _biquad_process_timevarying(x, *_peaking_biquad_coeff_track(f1, f1_q, g1, sr))
    y = _biquad_process_timevarying(y, *_peaking_biquad_coeff_track(f2, FORMANT_Q, g2, sr))
    y = _biquad_process_timevarying(y, *_peaking_biquad_coeff_track(f3, FORMANT_Q, g3, sr))
    y = _biquad_process_timevarying(y, *_lowpass_biquad_coeff_track(cutoff, _NASAL_LOWPASS_Q, sr))
    return y
