# Created on 2026-10-18
# Description: Vowel anchor tables used by the formant classifier.
"""Vowel anchor tables.

Each anchor pairs a target (F1, F2) with the tract pose that produces that
vowel. Tables are module-level tuples and never change at runtime.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Mapping, Tuple

from .tract import TractPose

__all__ = [
    "AnalysisAnchor",
    "COMMON_ANCHORS",
    "ANCHOR_TABLES",
    "DEFAULT_LANGUAGE",
    "get_anchor_table",
    "available_languages",
    "anchor_index",
]


@dataclass(frozen=True)
class AnalysisAnchor:
    """A reference vowel: label, target formants (Hz) and tract pose."""

    label: str
    targetFormant1: float
    targetFormant2: float
    tractPose: TractPose


def _anchor(label: str, f1: float, f2: float, pose: Tuple[float, ...]) -> AnalysisAnchor:
    return AnalysisAnchor(label, f1, f2, TractPose(*pose))


# Pose order: tongueX, tongueY, lips, lipLen, throat, nasal.
COMMON_ANCHORS: Tuple[AnalysisAnchor, ...] = (
    _anchor('A', 800.0, 1200.0, (0.2, 0.1, 0.9, 0.5, 0.1, 0.0)),
    _anchor('E', 500.0, 1800.0, (0.6, 0.5, 0.7, 0.5, 0.3, 0.0)),
    _anchor('I', 300.0, 2500.0, (0.9, 0.9, 0.2, 0.5, 0.2, 0.0)),
    _anchor('O', 500.0, 850.0, (0.2, 0.4, 0.3, 0.6, 0.5, 0.0)),
    _anchor('U', 320.0, 1100.0, (0.1, 0.8, 0.2, 0.8, 0.4, 0.0)),
    _anchor('N', 220.0, 1300.0, (0.5, 0.1, 0.0, 0.8, 0.4, 1.0)),
)

_KOREAN_EXTRA = (
    _anchor('EU', 320.0, 1250.0, (0.4, 0.8, 0.4, 0.3, 0.4, 0.0)),
    _anchor('EO', 600.0, 1000.0, (0.3, 0.3, 0.6, 0.4, 0.3, 0.0)),
)

_ENGLISH_EXTRA = (
    _anchor('AE', 700.0, 1800.0, (0.7, 0.2, 0.8, 0.4, 0.2, 0.0)),
    _anchor('ER', 480.0, 1350.0, (0.5, 0.5, 0.4, 0.6, 0.5, 0.0)),
)

# Japanese /u/ is unrounded and more central than the common U.
_JAPANESE_U = _anchor('U', 350.0, 1400.0, (0.4, 0.8, 0.3, 0.3, 0.4, 0.0))

ANCHOR_TABLES: Mapping[str, Tuple[AnalysisAnchor, ...]] = {
    'ko': COMMON_ANCHORS + _KOREAN_EXTRA,
    'en': COMMON_ANCHORS + _ENGLISH_EXTRA,
    'ja': tuple(_JAPANESE_U if a.label == 'U' else a for a in COMMON_ANCHORS),
}

DEFAULT_LANGUAGE = 'ko'


def available_languages() -> Tuple[str, ...]:
    return tuple(sorted(ANCHOR_TABLES))


def get_anchor_table(language: str = DEFAULT_LANGUAGE) -> Tuple[AnalysisAnchor, ...]:
    try:
        return ANCHOR_TABLES[language]
    except KeyError:
        raise ValueError(
            f"Unknown anchor language '{language}'; available: {', '.join(available_languages())}"
        ) from None


def anchor_index(anchors: Tuple[AnalysisAnchor, ...]) -> Dict[str, int]:
    """Label -> position lookup for ``anchors``."""
    return {anchor.label: i for i, anchor in enumerate(anchors)}
