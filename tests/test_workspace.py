import numpy as np
import pytest

from vocaltract.analysis import AnalysisFrame, AnalysisResult
from vocaltract.anchors import get_anchor_table
from vocaltract.editor import PointerDown, PointerMove, PointerUp
from vocaltract.errors import AnalysisFailedError
from vocaltract.filters import EQBand, EQBandType
from vocaltract.settings import EngineSettings
from vocaltract.synthesis import render
from vocaltract.tracks import Interpolation, KeyframePoint
from vocaltract import workspace as workspace_module
from vocaltract.workspace import TractWorkspace


@pytest.fixture
def workspace():
    return TractWorkspace(EngineSettings(sampleRate=16000, durationSeconds=0.2))


def test_defaults(workspace):
    assert workspace.get_value_at_time('tongueX', 0.5) == pytest.approx(0.5)
    assert workspace.state.durationSeconds == 0.2
    assert len(workspace.history) == 1
    with pytest.raises(KeyError):
        workspace.track('tail')


def test_point_edits(workspace):
    index = workspace.insert_point('tongueY', 0.5, 0.9)
    assert index == 1
    assert workspace.get_value_at_time('tongueY', 0.5) == pytest.approx(0.9)
    assert workspace.move_point('tongueY', 1, 0.95, 0.1) == 1
    assert workspace.delete_point('tongueY', 1)
    assert not workspace.delete_point('tongueY', 0)
    assert len(workspace.track('tongueY').points) == 2


def test_interpolation_mode(workspace):
    workspace.set_interpolation_mode('pitch', Interpolation.CURVE)
    assert workspace.track('pitch').interpolation is Interpolation.CURVE


def test_commit_undo_redo(workspace):
    workspace.insert_point('lips', 0.5, 0.1)
    assert workspace.commit('Add point')
    assert not workspace.commit('Add point')
    workspace.undo()
    assert len(workspace.track('lips').points) == 2
    workspace.redo()
    assert len(workspace.track('lips').points) == 3
    assert not workspace.redo()


def test_snapshot_restore(workspace):
    snapshot = workspace.snapshot('Before')
    workspace.set_formant_intensity(0.2)
    workspace.commit('Intensity')
    workspace.restore(snapshot)
    assert workspace.state == snapshot.state
    assert workspace.history.current.label == 'Before'


def test_pointer_drag_inserts_moves_and_commits(workspace):
    workspace.selectedTrackId = 'throat'
    workspace.dispatch(PointerDown(0.5, 0.9))
    workspace.dispatch(PointerMove(0.2, 0.1))
    workspace.dispatch(PointerUp())
    assert KeyframePoint(0.2, 0.1) in workspace.track('throat').points
    assert [e.label for e in workspace.history.entries()] == ['Initial state', 'Add point', 'Edit point']
    workspace.undo()
    assert KeyframePoint(0.5, 0.9) in workspace.track('throat').points


def test_play_mode_moves_playhead(workspace):
    workspace.editMode = False
    workspace.dispatch(PointerDown(0.7))
    assert workspace.playhead == 0.7
    assert len(workspace.history) == 1


def test_build_config_is_a_snapshot(workspace):
    workspace.set_eq_bands([EQBand(EQBandType.PEAKING, 1000.0, 3.0, 1.0)])
    config = workspace.build_config(seed=4)
    workspace.insert_point('lips', 0.5, 0.0)
    assert len(config.track('lips').points) == 2
    assert config.noise.seed == 4
    assert config.sampleRate == 16000
    buffer = render(config)
    assert buffer.frameCount == int(round(0.2 * 16000))
    assert np.all(np.isfinite(buffer.samples))


def test_apply_analysis_replaces_pose_tracks(workspace):
    anchors = get_anchor_table('ko')
    frames = tuple(
        AnalysisFrame(i * 0.01, 300.0, 2500.0, 3000.0, 1.0, 0.02, tuple(1.0 if a.label == 'I' else 0.0 for a in anchors))
        for i in range(40)
    )
    result = AnalysisResult(frames, anchors, 0.4, 16000)
    pitch_before = workspace.track('pitch')
    workspace.apply_analysis(result)
    assert workspace.get_value_at_time('tongueX', 1.0) == pytest.approx(0.9, abs=0.01)
    assert workspace.track('pitch') == pitch_before
    assert workspace.history.current.label == 'Apply analysis'


def test_apply_failed_analysis_raises(workspace):
    failed = AnalysisResult.failed('too short', get_anchor_table('ko'), 0.0, 16000)
    with pytest.raises(AnalysisFailedError):
        workspace.apply_analysis(failed)


def test_apply_model_output_and_pitch(workspace, sine_clip):
    workspace.apply_model_output(np.full((20, 6), 0.25), 1.0)
    assert workspace.get_value_at_time('nasal', 0.5) == pytest.approx(0.25)
    track = workspace.apply_pitch(sine_clip(220.0, seconds=1.0))
    assert track is not None
    assert workspace.get_value_at_time('pitch', 0.5) == pytest.approx(220.0, abs=5.0)


def test_analyze_uses_language_and_framing_from_settings(sine_clip):
    settings = EngineSettings(language='en', analysisHopSeconds=0.02, sensitivity=0.7)
    workspace = TractWorkspace(settings)
    result = workspace.analyze(sine_clip(220.0, seconds=0.5), hints=['A'])
    assert result.ok
    assert result.anchors == get_anchor_table('en')
    assert result.sensitivity == 0.7
    assert result.frames[1].timeSeconds - result.frames[0].timeSeconds == pytest.approx(0.02)
    workspace.close()


def test_analyze_forwards_every_analysis_setting(monkeypatch, sine_clip):
    calls = []
    monkeypatch.setattr(workspace_module, 'analyze', lambda *args, **kwargs: calls.append((args, kwargs)))
    settings = EngineSettings(analysisWindowSeconds=0.03, analysisHopSeconds=0.015, lpcOrder=12, sensitivity=0.4)
    clip = sine_clip(220.0)
    TractWorkspace(settings).analyze(clip, hints=('I',))
    args, kwargs = calls[0]
    assert args == (clip, get_anchor_table(settings.language), 0.4, ('I',))
    assert kwargs == {'windowSeconds': 0.03, 'hopSeconds': 0.015, 'lpcOrder': 12}


def test_task_runner_follows_max_workers():
    workspace = TractWorkspace(EngineSettings(maxWorkers=3))
    assert workspace.tasks.max_workers == 3
    workspace.close()


def test_background_render_and_analysis(workspace, sine_clip):
    buffers = []
    results = []
    workspace.render_in_background(callback=buffers.append)
    workspace.analyze_in_background(sine_clip(220.0), callback=results.append)
    workspace.close()
    assert buffers[0].frameCount == int(round(0.2 * 16000))
    assert results[0].ok
