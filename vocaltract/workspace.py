# Created on 2026-10-18
# Description: Interactive-thread owner of the tracks, sources and undo history.
"""Interactive-thread owner of the tracks, sources and undo history.

:class:`TractWorkspace` is the only mutable object in the engine. Every
edit swaps in a new immutable :class:`~vocaltract.history.EngineState`, so
:meth:`TractWorkspace.build_config` can hand a consistent snapshot to a
background render while editing continues.
"""
from __future__ import annotations

import logging
from dataclasses import replace
from concurrent.futures import Future
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .analysis import AnalysisResult, analyze
from .anchors import AnalysisAnchor, get_anchor_table
from .buffers import AudioClip
from .constants import TONGUE_X
from .editor import (
    CommitHistory,
    DeletePoint,
    Idle,
    InsertPoint,
    MovePoint,
    SeekPlayhead,
    transition,
)
from .filters import EQBand
from .history import EngineState, HistoryBuffer, HistorySnapshot
from .inference import pitch_track_from_recording, synthesize_tracks, tracks_from_model_output
from .settings import EngineSettings
from .sources import ExcitationConfig, NoiseConfig
from .synthesis import EngineConfig, render
from .tasks import TaskRunner
from .tracks import Interpolation, Track

logger = logging.getLogger(__name__)

__all__ = ["TractWorkspace"]


class TractWorkspace:
    """Track store plus history, driven from the interactive thread."""

    def __init__(self, settings: Optional[EngineSettings] = None, state: Optional[EngineState] = None) -> None:
        self.settings = settings or EngineSettings()
        self._state = state or EngineState(durationSeconds=self.settings.durationSeconds)
        self.history = HistoryBuffer(self.settings.historyDepth)
        self.history.push('Initial state', self._state)
        self.editorState = Idle()
        self.editMode = True
        self.selectedTrackId = TONGUE_X
        self.playhead = 0.0
        self.tasks = TaskRunner(self.settings.maxWorkers)

    # ---- state access ----
    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def tracks(self) -> Dict[str, Track]:
        return {track.id: track for track in self._state.tracks}

    def track(self, trackId: str) -> Track:
        for track in self._state.tracks:
            if track.id == trackId:
                return track
        raise KeyError(f'Unknown track id requested: {trackId}')

    def get_value_at_time(self, trackId: str, t: float) -> float:
        return self.track(trackId).evaluate(t)

    # ---- track edits ----
    def _replace_tracks(self, updated: Mapping[str, Track]) -> None:
        tracks = tuple(updated.get(track.id, track) for track in self._state.tracks)
        self._state = replace(self._state, tracks=tracks)

    def insert_point(self, trackId: str, t: float, v: float) -> int:
        """Add a keyframe; returns its index in the re-sorted track."""
        track, index = self.track(trackId).insert_with_index(t, v)
        self._replace_tracks({trackId: track})
        return index

    def move_point(self, trackId: str, index: int, t: float, v: float) -> int:
        """Move a keyframe; returns its index after re-sorting."""
        track, new_index = self.track(trackId).move_with_index(index, t, v)
        self._replace_tracks({trackId: track})
        return new_index

    def delete_point(self, trackId: str, index: int) -> bool:
        """Remove a keyframe; False when the track is already at two points."""
        before = self.track(trackId)
        after = before.delete(index)
        if after is before:
            return False
        self._replace_tracks({trackId: after})
        return True

    def set_interpolation_mode(self, trackId: str, mode: Interpolation) -> None:
        self._replace_tracks({trackId: self.track(trackId).with_interpolation(mode)})

    def set_tracks(self, tracks: Iterable[Track]) -> None:
        """Overwrite the tracks with matching ids."""
        self._replace_tracks({track.id: track for track in tracks})

    # ---- sources and filters ----
    def set_excitation(self, excitation: ExcitationConfig) -> None:
        self._state = replace(self._state, excitation=excitation)

    def set_noise(self, noise: NoiseConfig) -> None:
        self._state = replace(self._state, noise=noise)

    def set_eq_bands(self, bands: Iterable[EQBand]) -> None:
        self._state = replace(self._state, eqBands=tuple(bands))

    def set_formant_intensity(self, intensity: float) -> None:
        self._state = replace(self._state, formantIntensity=float(intensity))

    def set_duration(self, durationSeconds: float) -> None:
        self._state = replace(self._state, durationSeconds=float(durationSeconds))

    # ---- history ----
    def commit(self, label: str) -> bool:
        """Record the current state in the history."""
        return self.history.push(label, self._state)

    def snapshot(self, label: str = 'Snapshot') -> HistorySnapshot:
        return HistorySnapshot(label, self._state)

    def restore(self, snapshot: HistorySnapshot) -> None:
        self._state = snapshot.state
        self.history.push(snapshot.label, self._state)

    def undo(self) -> bool:
        entry = self.history.undo()
        if entry is None:
            return False
        self._state = entry.state
        return True

    def redo(self) -> bool:
        entry = self.history.redo()
        if entry is None:
            return False
        self._state = entry.state
        return True

    # ---- analysis ----
    @property
    def anchors(self) -> Tuple[AnalysisAnchor, ...]:
        return get_anchor_table(self.settings.language)

    def analyze(self, clip: AudioClip, hints: Sequence[str] = ()) -> AnalysisResult:
        """Analyse ``clip`` with the anchor table, sensitivity and framing from the settings."""
        settings = self.settings
        return analyze(
            clip,
            self.anchors,
            settings.sensitivity,
            hints,
            windowSeconds=settings.analysisWindowSeconds,
            hopSeconds=settings.analysisHopSeconds,
            lpcOrder=settings.lpcOrder,
        )

    def apply_analysis(
        self,
        result: AnalysisResult,
        smoothing: Optional[float] = None,
        detectConsonants: bool = True,
        sensitivity: Optional[float] = None,
    ) -> Dict[str, Track]:
        """Overwrite the articulator tracks with keyframes inferred from ``result``."""
        smoothing = self.settings.smoothing if smoothing is None else smoothing
        tracks = synthesize_tracks(result, None, smoothing, detectConsonants, sensitivity)
        self.set_tracks(tracks.values())
        self.commit('Apply analysis')
        return tracks

    def apply_model_output(self, output, durationSeconds: float, maxKeyframes: int = 200) -> Dict[str, Track]:
        tracks = tracks_from_model_output(output, durationSeconds, maxKeyframes)
        self.set_tracks(tracks.values())
        self.commit('Apply model output')
        return tracks

    def apply_pitch(self, clip: AudioClip, sensitivity: float = 0.5) -> Optional[Track]:
        track = pitch_track_from_recording(clip, sensitivity)
        if track is not None:
            self.set_tracks([track])
            self.commit('Apply pitch')
        return track

    # ---- render ----
    def build_config(self, sampleRate: Optional[int] = None, seed: Optional[int] = None) -> EngineConfig:
        """Immutable render config for the current state."""
        noise = self._state.noise if seed is None else replace(self._state.noise, seed=int(seed))
        return EngineConfig(
            durationSeconds=self._state.durationSeconds,
            sampleRate=int(sampleRate or self.settings.sampleRate),
            excitation=self._state.excitation,
            noise=noise,
            formantIntensity=self._state.formantIntensity,
            eqBands=self._state.eqBands,
            tracks=self._state.tracks,
            fadeOutSeconds=self.settings.fadeOutSeconds,
            controlRateHz=self.settings.controlRateHz,
        )

    def render_in_background(
        self,
        callback: Optional[Callable[[Any], None]] = None,
        error_callback: Optional[Callable[[BaseException], None]] = None,
        sampleRate: Optional[int] = None,
    ) -> Future:
        """Render a snapshot of the current state on the ``"render"`` channel.

        Callbacks run on a worker thread; hand their results back to the
        interactive thread before touching this workspace.
        """
        config = self.build_config(sampleRate)
        return self.tasks.submit('render', render, config, callback=callback, error_callback=error_callback)

    def analyze_in_background(
        self,
        clip: AudioClip,
        hints: Sequence[str] = (),
        callback: Optional[Callable[[Any], None]] = None,
        error_callback: Optional[Callable[[BaseException], None]] = None,
    ) -> Future:
        """Run :meth:`analyze` on the ``"analysis"`` channel; same threading rule as renders."""
        return self.tasks.submit(
            'analysis', self.analyze, clip, tuple(hints), callback=callback, error_callback=error_callback
        )

    def close(self, wait: bool = True) -> None:
        self.tasks.shutdown(wait=wait)

    # ---- timeline ----
    def dispatch(self, event) -> List[object]:
        """Feed a pointer event through the editor and apply its commands."""
        trackId = getattr(self.editorState, 'trackId', self.selectedTrackId)
        self.editorState, commands = transition(
            self.editorState, event, self.track(trackId), self.editMode
        )
        for command in commands:
            if isinstance(command, InsertPoint):
                self.insert_point(command.trackId, command.t, command.v)
            elif isinstance(command, MovePoint):
                self.move_point(command.trackId, command.index, command.t, command.v)
            elif isinstance(command, DeletePoint):
                self.delete_point(command.trackId, command.index)
            elif isinstance(command, SeekPlayhead):
                self.playhead = command.t
            elif isinstance(command, CommitHistory):
                self.commit(command.label)
        return commands
