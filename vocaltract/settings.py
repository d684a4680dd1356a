# Created on 2026-10-18
# Description: Engine defaults loaded from an optional JSON settings file.
"""Engine defaults loaded from an optional JSON settings file."""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, fields
from typing import Any, Dict, Optional

from .anchors import ANCHOR_TABLES, DEFAULT_LANGUAGE
from .constants import CONTROL_RATE_HZ, FADE_OUT_SECONDS, MIN_HISTORY_DEPTH
from .errors import SettingsError

logger = logging.getLogger(__name__)

__all__ = ["EngineSettings", "load_settings", "SETTINGS_ENV_VAR"]

SETTINGS_ENV_VAR = "VOCALTRACT_SETTINGS"
CONFIG_FILE_ENCODING = "utf-8"


@dataclass(frozen=True)
class EngineSettings:
    """Defaults applied to new workspaces, renders and analyses."""

    sampleRate: int = 44100
    durationSeconds: float = 2.0
    controlRateHz: float = CONTROL_RATE_HZ
    fadeOutSeconds: float = FADE_OUT_SECONDS
    historyDepth: int = MIN_HISTORY_DEPTH
    analysisWindowSeconds: float = 0.025
    analysisHopSeconds: float = 0.01
    lpcOrder: int = 16
    language: str = DEFAULT_LANGUAGE
    smoothing: float = 0.55
    sensitivity: float = 1.0
    maxWorkers: int = 2

    def validate(self) -> "EngineSettings":
        """Raise :class:`SettingsError` when a value is out of range."""
        if self.sampleRate <= 0:
            raise SettingsError("sampleRate must be positive.")
        if self.durationSeconds <= 0.0:
            raise SettingsError("durationSeconds must be positive.")
        if self.controlRateHz <= 0.0:
            raise SettingsError("controlRateHz must be positive.")
        if self.historyDepth < MIN_HISTORY_DEPTH:
            raise SettingsError(f"historyDepth must be at least {MIN_HISTORY_DEPTH}.")
        if self.analysisWindowSeconds <= 0.0 or self.analysisHopSeconds <= 0.0:
            raise SettingsError("analysisWindowSeconds and analysisHopSeconds must be positive.")
        if self.lpcOrder < 2:
            raise SettingsError("lpcOrder must be at least 2.")
        if self.language not in ANCHOR_TABLES:
            raise SettingsError(f"Unknown language in settings: {self.language}")
        if not 0.0 <= self.smoothing < 1.0:
            raise SettingsError("smoothing must be within [0, 1).")
        if self.sensitivity <= 0.0:
            raise SettingsError("sensitivity must be positive.")
        if self.maxWorkers < 1:
            raise SettingsError("maxWorkers must be at least 1.")
        return self

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EngineSettings":
        """Build settings from a mapping, ignoring unknown keys.

        Args:
            data (Dict[str, Any]): Parsed settings, keyed by field name.

        Returns:
            EngineSettings: Validated settings instance.
        """
        if not isinstance(data, dict):
            raise SettingsError("Settings must be a JSON object.")
        known = {f.name: f for f in fields(cls)}
        values: Dict[str, Any] = {}
        for key, raw in data.items():
            if key not in known:
                logger.warning("Ignoring unknown settings key: %s", key)
                continue
            default = getattr(cls, key)
            try:
                values[key] = type(default)(raw)
            except (TypeError, ValueError) as error:
                raise SettingsError(f"Invalid value for {key}: {raw!r}") from error
        return cls(**values).validate()

    @classmethod
    def from_file(cls, path: str) -> "EngineSettings":
        """Build settings from a JSON configuration file.

        Args:
            path (str): Path to the configuration JSON file.

        Returns:
            EngineSettings: Parsed settings instance built from the file content.
        """
        try:
            with open(path, "r", encoding=CONFIG_FILE_ENCODING) as config_file:
                data = json.load(config_file)
        except FileNotFoundError as error:
            raise SettingsError(f"Settings file not found: {path}") from error
        except json.JSONDecodeError as error:
            raise SettingsError(f"Settings file is not valid JSON: {path}") from error
        return cls.from_dict(data)


def load_settings(path: Optional[str] = None) -> EngineSettings:
    """Load settings from ``path`` or the ``VOCALTRACT_SETTINGS`` file.

    Returns:
        EngineSettings: Defaults when neither is given.
    """
    path = path or os.getenv(SETTINGS_ENV_VAR)
    if not path:
        return EngineSettings()
    logger.debug("Loading engine settings from %s", path)
    return EngineSettings.from_file(path)
