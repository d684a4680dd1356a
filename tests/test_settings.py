import json

import pytest

from vocaltract.errors import SettingsError
from vocaltract.settings import SETTINGS_ENV_VAR, EngineSettings, load_settings


def test_defaults():
    settings = EngineSettings()
    assert settings.sampleRate == 44100
    assert settings.historyDepth == 10
    assert settings.language == 'ko'
    assert settings.validate() is settings


def test_from_file(tmp_path):
    path = tmp_path / 'settings.json'
    path.write_text(json.dumps({'sampleRate': '22050', 'language': 'en', 'smoothing': 0.3}), encoding='utf-8')
    settings = EngineSettings.from_file(str(path))
    assert settings.sampleRate == 22050
    assert settings.language == 'en'
    assert settings.smoothing == 0.3


def test_unknown_keys_are_ignored(caplog):
    settings = EngineSettings.from_dict({'colour': 'blue', 'maxWorkers': 4})
    assert settings.maxWorkers == 4
    assert 'colour' in caplog.text


def test_missing_file(tmp_path):
    with pytest.raises(SettingsError, match='not found'):
        EngineSettings.from_file(str(tmp_path / 'absent.json'))


def test_invalid_json(tmp_path):
    path = tmp_path / 'broken.json'
    path.write_text('{"sampleRate": ', encoding='utf-8')
    with pytest.raises(SettingsError, match='not valid JSON'):
        EngineSettings.from_file(str(path))


@pytest.mark.parametrize('data', [
    {'sampleRate': 0},
    {'language': 'xx'},
    {'smoothing': 1.0},
    {'historyDepth': 0},
    {'historyDepth': 9},
    {'sensitivity': 'high'},
    ['not', 'an', 'object'],
])
def test_invalid_values(data):
    with pytest.raises(SettingsError):
        EngineSettings.from_dict(data)


def test_load_settings_from_environment(tmp_path, monkeypatch):
    path = tmp_path / 'env.json'
    path.write_text(json.dumps({'durationSeconds': 4.0}), encoding='utf-8')
    monkeypatch.setenv(SETTINGS_ENV_VAR, str(path))
    assert load_settings().durationSeconds == 4.0


def test_load_settings_defaults(monkeypatch):
    monkeypatch.delenv(SETTINGS_ENV_VAR, raising=False)
    assert load_settings() == EngineSettings()
