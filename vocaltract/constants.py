# Created on 2026-10-18
# Description: Shared constants and lookup tables for the articulatory engine.
"""Shared constants and lookup tables for the articulatory engine."""
from __future__ import annotations

from typing import Dict, Sequence, Tuple

import numpy as np

__all__ = [
    "DTYPE",
    "EPS",
    "PEAK_DEFAULT",
    "MIN_FILTER_FREQ_HZ",
    "NYQUIST_SAFETY",
    "CONTROL_RATE_HZ",
    "MIN_CONTROL_STEPS",
    "FADE_OUT_SECONDS",
    "MIN_HISTORY_DEPTH",
    "TONGUE_X",
    "TONGUE_Y",
    "LIPS",
    "LIP_LENGTH",
    "THROAT",
    "NASAL",
    "PITCH",
    "GENDER",
    "GAIN",
    "BREATH",
    "POSE_TRACK_IDS",
    "TRACK_IDS",
    "DEFAULT_TRACK_LAYOUT",
    "FORMANT_Q",
    "FORMANT_GAINS_DB",
    "BREATH_LOWPASS_HZ",
    "MODEL_SAMPLE_RATE",
    "MODEL_PARAMETER_COUNT",
]

DTYPE = np.float32
EPS = 1e-12
PEAK_DEFAULT = 0.9

MIN_FILTER_FREQ_HZ = 20.0
NYQUIST_SAFETY = 0.49

# Automation is sampled at 60 control points per second, never fewer than 60 per render.
CONTROL_RATE_HZ = 60.0
MIN_CONTROL_STEPS = 60
FADE_OUT_SECONDS = 0.1
MIN_HISTORY_DEPTH = 10

TONGUE_X = 'tongueX'
TONGUE_Y = 'tongueY'
LIPS = 'lips'
LIP_LENGTH = 'lipLen'
THROAT = 'throat'
NASAL = 'nasal'
PITCH = 'pitch'
GENDER = 'gender'
GAIN = 'gain'
BREATH = 'breath'

# Order matches the external model's [time, 6] output columns.
POSE_TRACK_IDS: Tuple[str, ...] = (TONGUE_X, TONGUE_Y, LIPS, LIP_LENGTH, THROAT, NASAL)
TRACK_IDS: Tuple[str, ...] = POSE_TRACK_IDS + (PITCH, GENDER, GAIN, BREATH)

# ---- track defaults: id -> (display role, (min, max), default points) ----
DEFAULT_TRACK_LAYOUT: Dict[str, Tuple[str, Tuple[float, float], Sequence[Tuple[float, float]]]] = {
    TONGUE_X:   ('Tongue position (X)', (0.0, 1.0), ((0.0, 0.5), (1.0, 0.5))),
    TONGUE_Y:   ('Tongue height (Y)', (0.0, 1.0), ((0.0, 0.4), (1.0, 0.4))),
    LIPS:       ('Lip aperture', (0.0, 1.0), ((0.0, 0.7), (1.0, 0.7))),
    LIP_LENGTH: ('Lip length', (0.0, 1.0), ((0.0, 0.5), (1.0, 0.5))),
    THROAT:     ('Throat tension', (0.0, 1.0), ((0.0, 0.5), (1.0, 0.5))),
    NASAL:      ('Velum (nasal)', (0.0, 1.0), ((0.0, 0.2), (1.0, 0.2))),
    PITCH:      ('Pitch (Hz)', (50.0, 600.0), ((0.0, 220.0), (1.0, 220.0))),
    GENDER:     ('Gender shift', (0.5, 2.0), ((0.0, 1.0), (1.0, 1.0))),
    GAIN:       ('Gain', (0.0, 1.5), ((0.0, 0.0), (0.1, 1.0), (0.9, 1.0), (1.0, 0.0))),
    BREATH:     ('Breath noise', (0.0, 0.1), ((0.0, 0.01), (1.0, 0.01))),
}

# ---- formant cascade (F1, F2, F3) ----
FORMANT_Q = 4.0
FORMANT_GAINS_DB: Tuple[float, float, float] = (12.0, 12.0, 10.0)

BREATH_LOWPASS_HZ = 6000.0

MODEL_SAMPLE_RATE = 16000
MODEL_PARAMETER_COUNT = len(POSE_TRACK_IDS)
