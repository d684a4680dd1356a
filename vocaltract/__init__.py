"""Keyframe-driven articulatory synthesis and acoustic analysis engine."""
from __future__ import annotations

from .constants import (
    DTYPE,
    EPS,
    PEAK_DEFAULT,
    POSE_TRACK_IDS,
    TRACK_IDS,
)
from .errors import (
    AnalysisFailedError,
    ExternalModelError,
    InvalidConfigError,
    SettingsError,
)
from .buffers import AudioClip, SampleBuffer
from .tracks import (
    Interpolation,
    KeyframePoint,
    Track,
    default_tracks,
    evaluate,
    make_track,
    sample_track,
    simplify_points,
)
from .filters import EQBand, EQBandType, apply_eq_chain, biquad_magnitude, default_eq_bands
from .sources import ExcitationConfig, NoiseColor, NoiseConfig, SourceKind, Waveform
from .tract import TractPose, pose_formants
from .synthesis import EngineConfig, render
from .vocoder import CarrierKind, VocoderConfig, vocode
from .anchors import AnalysisAnchor, get_anchor_table
from .analysis import (
    AnalysisFrame,
    AnalysisResult,
    analyze,
    classify,
    detect_pitch,
    extract_vowel_hints,
)
from .inference import (
    pitch_track_from_recording,
    prepare_model_input,
    synthesize_tracks,
    tracks_from_model_output,
)
from .history import EngineState, HistoryBuffer, HistorySnapshot
from .settings import EngineSettings, load_settings
from .tasks import TaskRunner
from .workspace import TractWorkspace
from .io import write_wav

__all__ = [
    "DTYPE",
    "EPS",
    "PEAK_DEFAULT",
    "POSE_TRACK_IDS",
    "TRACK_IDS",
    "AnalysisFailedError",
    "ExternalModelError",
    "InvalidConfigError",
    "SettingsError",
    "AudioClip",
    "SampleBuffer",
    "Interpolation",
    "KeyframePoint",
    "Track",
    "default_tracks",
    "evaluate",
    "make_track",
    "sample_track",
    "simplify_points",
    "EQBand",
    "EQBandType",
    "apply_eq_chain",
    "biquad_magnitude",
    "default_eq_bands",
    "ExcitationConfig",
    "NoiseColor",
    "NoiseConfig",
    "SourceKind",
    "Waveform",
    "TractPose",
    "pose_formants",
    "EngineConfig",
    "render",
    "CarrierKind",
    "VocoderConfig",
    "vocode",
    "AnalysisAnchor",
    "get_anchor_table",
    "AnalysisFrame",
    "AnalysisResult",
    "analyze",
    "classify",
    "detect_pitch",
    "extract_vowel_hints",
    "pitch_track_from_recording",
    "prepare_model_input",
    "synthesize_tracks",
    "tracks_from_model_output",
    "EngineState",
    "HistoryBuffer",
    "HistorySnapshot",
    "EngineSettings",
    "load_settings",
    "TaskRunner",
    "TractWorkspace",
    "write_wav",
]
