"""Sound Alert Engine - Real-time acoustic event detection.

Recognizes fire-alarm beeps, doorbell chimes and baby crying in a live
audio stream and emits confidence-scored, rate-limited detection events
plus a smoothed loudness level for visualizers.

Usage:
    from sound_alert_engine import Engine

    engine = Engine(on_detection=print, on_level=meter.update)
    engine.enabled.set("doorbell", False)
    engine.start()
"""

__version__ = "1.0.0"

# Core exports
from sound_alert_engine.models import (
    AudioFrame,
    Band,
    Candidate,
    DetectionEvent,
    EnabledMask,
    SignatureKind,
    Spectrum,
)
from sound_alert_engine.errors import (
    AnalysisInitFailed,
    CaptureError,
    CapturePermissionDenied,
    CaptureUnavailable,
    CaptureUnsupported,
    EngineError,
    FrameMalformed,
)
from sound_alert_engine.processing import FrameBuffer, LevelTracker, SpectralAnalyzer
from sound_alert_engine.classifiers import (
    BabyCryClassifier,
    DoorbellClassifier,
    FireAlarmClassifier,
    SignatureClassifier,
    classify_enabled,
)
from sound_alert_engine.gate import EventGate, GateRule
from sound_alert_engine.session import ListeningSession
from sound_alert_engine.listener import ArrayFrameSource, AudioConfig, AudioListener, FrameSource
from sound_alert_engine.config import EngineConfig, GlobalConfig, configure_logging
from sound_alert_engine.engine import CycleResult, Engine

__all__ = [
    # Version
    "__version__",
    # Core classes
    "Engine",
    "CycleResult",
    "ListeningSession",
    "SpectralAnalyzer",
    "LevelTracker",
    "FrameBuffer",
    "EventGate",
    "GateRule",
    # Classifiers
    "SignatureClassifier",
    "FireAlarmClassifier",
    "DoorbellClassifier",
    "BabyCryClassifier",
    "classify_enabled",
    # Frame sources
    "FrameSource",
    "AudioConfig",
    "AudioListener",
    "ArrayFrameSource",
    # Configuration
    "EngineConfig",
    "GlobalConfig",
    "configure_logging",
    # Models
    "AudioFrame",
    "Band",
    "Candidate",
    "DetectionEvent",
    "EnabledMask",
    "SignatureKind",
    "Spectrum",
    # Errors
    "EngineError",
    "CaptureError",
    "CaptureUnavailable",
    "CapturePermissionDenied",
    "CaptureUnsupported",
    "AnalysisInitFailed",
    "FrameMalformed",
]
