# Created on 2026-10-18
# Description: Immutable editor state snapshots and a bounded undo/redo stack.
"""Immutable editor state snapshots and a bounded undo/redo stack."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .buffers import AudioClip
from .constants import MIN_HISTORY_DEPTH
from .filters import EQBand, default_eq_bands
from .sources import ExcitationConfig, NoiseConfig
from .tracks import Track, default_tracks

logger = logging.getLogger(__name__)

__all__ = ["EngineState", "HistorySnapshot", "HistoryBuffer", "DEFAULT_HISTORY_DEPTH"]

DEFAULT_HISTORY_DEPTH = MIN_HISTORY_DEPTH


def _clip_ref(clip: Optional[AudioClip]) -> Optional[str]:
    return clip.name if clip is not None else None


def _resolve_clip(name: Optional[str], clips: Mapping[str, AudioClip]) -> Optional[AudioClip]:
    if name is None:
        return None
    try:
        return clips[name]
    except KeyError:
        raise KeyError(f'Unknown clip requested: {name}') from None


@dataclass(frozen=True)
class EngineState:
    """Everything the user edits: tracks, sources and filter settings."""

    tracks: Tuple[Track, ...] = field(default_factory=lambda: tuple(default_tracks().values()))
    excitation: ExcitationConfig = field(default_factory=ExcitationConfig)
    noise: NoiseConfig = field(default_factory=NoiseConfig)
    formantIntensity: float = 1.0
    eqBands: Tuple[EQBand, ...] = field(default_factory=default_eq_bands)
    durationSeconds: float = 2.0

    def __post_init__(self) -> None:
        object.__setattr__(self, 'tracks', tuple(self.tracks))
        object.__setattr__(self, 'eqBands', tuple(self.eqBands))

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready form; clips are stored by name."""
        return {
            'tracks': [t.to_dict() for t in self.tracks],
            'excitation': {
                'kind': self.excitation.kind.value,
                'waveform': self.excitation.waveform.value,
                'clip': _clip_ref(self.excitation.clip),
                'loop': self.excitation.loop,
                'pulseWidth': self.excitation.pulseWidth,
                'color': self.excitation.color.value,
            },
            'noise': {
                'breathOn': self.noise.breathOn,
                'breathGain': self.noise.breathGain,
                'color': self.noise.color.value,
                'clip': _clip_ref(self.noise.clip),
                'loop': self.noise.loop,
                'seed': self.noise.seed,
            },
            'formantIntensity': self.formantIntensity,
            'eqBands': [b.to_dict() for b in self.eqBands],
            'durationSeconds': self.durationSeconds,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], clips: Optional[Mapping[str, AudioClip]] = None) -> "EngineState":
        """Rebuild a state; clip names are looked up in ``clips``."""
        clips = clips or {}
        exc = dict(data.get('excitation', {}))
        noise = dict(data.get('noise', {}))
        exc['clip'] = _resolve_clip(exc.get('clip'), clips)
        noise['clip'] = _resolve_clip(noise.get('clip'), clips)
        tracks = data.get('tracks')
        bands = data.get('eqBands')
        return cls(
            tracks=tuple(Track.from_dict(t) for t in tracks) if tracks else tuple(default_tracks().values()),
            excitation=ExcitationConfig(**exc),
            noise=NoiseConfig(**noise),
            formantIntensity=float(data.get('formantIntensity', 1.0)),
            eqBands=tuple(EQBand.from_dict(b) for b in bands) if bands else default_eq_bands(),
            durationSeconds=float(data.get('durationSeconds', 2.0)),
        )


@dataclass(frozen=True)
class HistorySnapshot:
    label: str
    state: EngineState
    timestamp: float = field(default_factory=time.time)


class HistoryBuffer:
    """Bounded linear undo history.

    ``push`` after an ``undo`` drops the redo branch; once ``depth`` entries
    exist the oldest one is evicted.
    """

    def __init__(self, depth: int = DEFAULT_HISTORY_DEPTH) -> None:
        if depth < MIN_HISTORY_DEPTH:
            raise ValueError(f'History depth must be at least {MIN_HISTORY_DEPTH}')
        self.depth = int(depth)
        self._entries: List[HistorySnapshot] = []
        self._index = -1

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def current(self) -> Optional[HistorySnapshot]:
        return self._entries[self._index] if self._entries else None

    def entries(self) -> Tuple[HistorySnapshot, ...]:
        return tuple(self._entries)

    def push(self, label: str, state: EngineState) -> bool:
        """Record ``state``; returns False when it equals the current entry."""
        current = self.current
        if current is not None and current.state == state:
            return False
        del self._entries[self._index + 1:]
        self._entries.append(HistorySnapshot(label, state))
        if len(self._entries) > self.depth:
            evicted = self._entries.pop(0)
            logger.debug('History full, dropping %r', evicted.label)
        self._index = len(self._entries) - 1
        return True

    def can_undo(self) -> bool:
        return self._index > 0

    def can_redo(self) -> bool:
        return self._index < len(self._entries) - 1

    def undo(self) -> Optional[HistorySnapshot]:
        if not self.can_undo():
            return None
        self._index -= 1
        return self._entries[self._index]

    def redo(self) -> Optional[HistorySnapshot]:
        if not self.can_redo():
            return None
        self._index += 1
        return self._entries[self._index]

    def clear(self) -> None:
        self._entries.clear()
        self._index = -1
