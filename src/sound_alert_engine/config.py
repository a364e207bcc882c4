"""Configuration utilities for the sound alert engine.

This module centralizes engine defaults and supports loading a unified
YAML configuration file covering logging, audio capture, analysis and
detection gating.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml

from .gate import DEFAULT_GATE_RULES, GateRule
from .listener import AudioConfig
from .models import EnabledMask, SignatureKind

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(message)s"
LOG_DATE_FORMAT = "%H:%M:%S"


@dataclass
class SystemConfig:
    """System-level configuration settings.

    Attributes:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional path to a log file.
    """

    log_level: str = "INFO"
    log_file: Optional[str] = None


@dataclass
class EngineConfig:
    """Analysis and gating settings for the Engine.

    The defaults are the calibration the classifier thresholds were tuned
    against; changing the decibel range shifts every byte-scale threshold.

    Attributes:
        fft_size: Transform size in samples (bins = fft_size / 2).
        smoothing_time_constant: Spectral smoothing between cycles.
        min_decibels: Level mapped to byte 0.
        max_decibels: Level mapped to byte 255.
        level_gain: RMS gain applied before clamping the level to [0, 1].
        level_smoothing: Fraction of the gap to the target level closed per cycle.
        gate_rules: Confidence threshold and cooldown per signature kind.
    """

    fft_size: int = 16384
    smoothing_time_constant: float = 0.1
    min_decibels: float = -90.0
    max_decibels: float = -10.0
    level_gain: float = 5.0
    level_smoothing: float = 0.25
    gate_rules: Dict[SignatureKind, GateRule] = field(
        default_factory=lambda: dict(DEFAULT_GATE_RULES)
    )

    @property
    def bin_count(self) -> int:
        return self.fft_size // 2


@dataclass
class DetectionConfig:
    """Which signatures are enabled at startup."""

    enabled: Dict[SignatureKind, bool] = field(
        default_factory=lambda: {kind: True for kind in SignatureKind}
    )

    def mask(self) -> EnabledMask:
        return EnabledMask(self.enabled)


@dataclass
class GlobalConfig:
    """Unified configuration for the entire application.

    This class serves as the single source of truth for configuration,
    loading system settings, audio parameters, analysis settings and
    detection toggles from a single YAML file.
    """

    system: SystemConfig = field(default_factory=SystemConfig)
    audio: AudioConfig = field(default_factory=AudioConfig)
    engine: EngineConfig = field(default_factory=EngineConfig)
    detection: DetectionConfig = field(default_factory=DetectionConfig)

    @classmethod
    def load(cls, path: Union[str, Path]) -> "GlobalConfig":
        """Load the global configuration from a YAML file.

        The YAML file should have the following structure:
        ```yaml
        system:
          log_level: INFO
        audio:
          sample_rate: 48000
          chunk_size: 1024
        engine:
          fft_size: 16384
        detection:
          enabled:
            doorbell: false
          gates:
            fire: {confidence_threshold: 0.75, cooldown_ms: 3000}
        ```

        Args:
            path: Path to the main configuration YAML file.

        Returns:
            A GlobalConfig object populated with the settings.

        Raises:
            FileNotFoundError: If the file does not exist.
            ValueError: If a signature name is not recognized.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}

        config = cls.from_dict(data)
        logger.debug(f"Loaded configuration from {path}")
        return config

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "GlobalConfig":
        """Build a GlobalConfig from already-parsed YAML data."""
        # 1. System
        sys_data = data.get("system") or {}
        system_config = SystemConfig(
            log_level=str(sys_data.get("log_level", "INFO")).upper(),
            log_file=sys_data.get("log_file"),
        )

        # 2. Audio capture
        audio_data = data.get("audio") or {}
        audio_config = AudioConfig(
            sample_rate=int(audio_data.get("sample_rate", 48000)),
            chunk_size=int(audio_data.get("chunk_size", 1024)),
            channels=int(audio_data.get("channels", 1)),
            device_index=audio_data.get("device_index"),
        )

        # 3. Analysis
        engine_data = data.get("engine") or {}
        engine_config = EngineConfig()
        if "fft_size" in engine_data:
            engine_config.fft_size = int(engine_data["fft_size"])
        for key in (
            "smoothing_time_constant",
            "min_decibels",
            "max_decibels",
            "level_gain",
            "level_smoothing",
        ):
            if key in engine_data:
                setattr(engine_config, key, float(engine_data[key]))

        # 4. Detection toggles and gate overrides
        detection_data = data.get("detection") or {}
        detection_config = DetectionConfig()
        for name, value in (detection_data.get("enabled") or {}).items():
            detection_config.enabled[SignatureKind.parse(name)] = bool(value)

        for name, rule_data in (detection_data.get("gates") or {}).items():
            kind = SignatureKind.parse(name)
            default = engine_config.gate_rules[kind]
            engine_config.gate_rules[kind] = GateRule(
                confidence_threshold=float(
                    rule_data.get("confidence_threshold", default.confidence_threshold)
                ),
                cooldown_ms=int(rule_data.get("cooldown_ms", default.cooldown_ms)),
            )

        return cls(
            system=system_config,
            audio=audio_config,
            engine=engine_config,
            detection=detection_config,
        )


def configure_logging(system: Optional[SystemConfig] = None) -> None:
    """Configure root logging from system settings."""
    system = system or SystemConfig()
    handlers: list = [logging.StreamHandler()]
    if system.log_file:
        handlers.append(logging.FileHandler(system.log_file))

    logging.basicConfig(
        level=getattr(logging, system.log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        handlers=handlers,
        force=True,
    )
