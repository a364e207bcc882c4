"""Main Engine class - orchestrates the detection pipeline."""

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, List, Mapping, Optional, Union

from sound_alert_engine.classifiers import SignatureClassifier, classify_enabled, default_classifiers
from sound_alert_engine.config import EngineConfig
from sound_alert_engine.errors import AnalysisInitFailed, CaptureError, EngineError, FrameMalformed
from sound_alert_engine.listener import AudioConfig, AudioListener, FrameSource
from sound_alert_engine.models import AudioFrame, DetectionEvent, EnabledMask, SignatureKind
from sound_alert_engine.processing.dsp import SpectralAnalyzer
from sound_alert_engine.session import ListeningSession

logger = logging.getLogger(__name__)


def monotonic_ms() -> int:
    """Millisecond clock unaffected by system time changes."""
    return int(time.monotonic() * 1000)


@dataclass
class CycleResult:
    """Outcome of one analysis cycle.

    Attributes:
        level: Smoothed level after the cycle
        events: Detections emitted this cycle (at most one per kind)
        skipped: True if the frame was malformed and nothing was analyzed
    """

    level: float
    events: List[DetectionEvent] = field(default_factory=list)
    skipped: bool = False


class Engine:
    """Acoustic Event Detection Engine.

    Orchestrates one cycle per frame:
    FrameSource → SpectralAnalyzer → LevelTracker → Classifiers → EventGate → Callbacks

    Example:
        >>> from sound_alert_engine import Engine
        >>>
        >>> engine = Engine(on_detection=lambda event: print(event.kind.label))
        >>> engine.enabled.set("doorbell", False)
        >>> engine.start()  # Blocking
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        audio_config: Optional[AudioConfig] = None,
        enabled: Optional[Union[EnabledMask, Mapping[str, bool]]] = None,
        on_detection: Optional[Callable[[DetectionEvent], None]] = None,
        on_level: Optional[Callable[[float], None]] = None,
        on_error: Optional[Callable[[EngineError], None]] = None,
        classifiers: Optional[Mapping[SignatureKind, SignatureClassifier]] = None,
        clock: Callable[[], int] = monotonic_ms,
    ):
        """Initialize the detection engine.

        Args:
            config: Analysis and gating settings (uses defaults if None)
            audio_config: Microphone settings used when start() builds its own source
            enabled: Initial per-signature enablement; all enabled if None
            on_detection: Called with every emitted DetectionEvent
            on_level: Called with the smoothed level after every cycle
            on_error: Called with session-level errors before they are raised
            classifiers: Override the classifier used for each kind
            clock: Millisecond clock for frames without their own timestamp
        """
        self.config = config or EngineConfig()
        self.audio_config = audio_config or AudioConfig()
        self.enabled = enabled if isinstance(enabled, EnabledMask) else EnabledMask(enabled)
        self.on_detection = on_detection
        self.on_level = on_level
        self.on_error = on_error
        self.classifiers = dict(classifiers) if classifiers else default_classifiers()
        self.clock = clock

        self.last_error: Optional[EngineError] = None

        # Serializes cycles against stop(); re-entrant so callbacks may stop the engine
        self._lock = threading.RLock()
        self._session: Optional[ListeningSession] = None
        self._source: Optional[FrameSource] = None
        self._running = False

        logger.info(
            f"Engine initialized: fft_size={self.config.fft_size}, {self.enabled!r}"
        )

    # -- Session control ---------------------------------------------------

    def begin_session(self) -> ListeningSession:
        """Start a fresh listening session for frames fed via process_frame().

        Raises:
            AnalysisInitFailed: If the spectral analyzer cannot be built
        """
        with self._lock:
            try:
                analyzer = SpectralAnalyzer(
                    fft_size=self.config.fft_size,
                    smoothing_time_constant=self.config.smoothing_time_constant,
                    min_decibels=self.config.min_decibels,
                    max_decibels=self.config.max_decibels,
                )
            except AnalysisInitFailed as e:
                self._session = None
                self._fail(e)
                raise

            self._session = ListeningSession.create(
                analyzer=analyzer,
                started_at_ms=self.clock(),
                gate_rules=self.config.gate_rules,
                level_gain=self.config.level_gain,
                level_smoothing=self.config.level_smoothing,
            )
            self.last_error = None
            logger.info("Listening session started")
            return self._session

    def end_session(self) -> Optional[ListeningSession]:
        """End the active session, returning it for inspection."""
        with self._lock:
            session, self._session = self._session, None

        if session is not None:
            logger.info(
                f"Listening session ended after {session.cycles} cycle(s), "
                f"{session.skipped_frames} skipped frame(s)"
            )
        return session

    def start(self, source: Optional[FrameSource] = None) -> None:
        """Acquire a frame source and run cycles until stop() is called (blocking).

        Args:
            source: Frame source to consume; a microphone AudioListener if None

        Raises:
            CaptureError: If the source could not be opened
            AnalysisInitFailed: If the spectral analyzer cannot be built
        """
        with self._lock:
            if self._running:
                raise RuntimeError("Engine is already running")
            self._running = True

        try:
            source = source or AudioListener(self.audio_config, frame_size=self.config.fft_size)
            try:
                source.open()
            except CaptureError as e:
                self._fail(e)
                raise

            try:
                self.begin_session()
            except AnalysisInitFailed:
                source.close()
                raise
        except BaseException:
            with self._lock:
                self._running = False
            raise

        with self._lock:
            if not self._running:
                # stop() was called while the source was opening
                self.end_session()
                source.close()
                logger.info("Engine stopped before the first cycle")
                return
            self._source = source

        try:
            for frame in source.frames():
                if self.process_frame(frame) is None:
                    break
        except KeyboardInterrupt:
            logger.info("Keyboard interrupt received")
        finally:
            self.stop()

    def start_async(self, source: Optional[FrameSource] = None) -> threading.Thread:
        """Start the engine in a background thread.

        Session-level errors are reported through ``on_error`` and ``last_error``.

        Returns:
            The background thread (already started)
        """

        def run():
            try:
                self.start(source)
            except EngineError as e:
                logger.debug(f"Background engine exited: {e}")

        thread = threading.Thread(target=run, daemon=True)
        thread.start()
        return thread

    def stop(self) -> None:
        """Stop cycling and release the frame source.

        Waits for any cycle in progress, so no cycle runs after this returns.
        """
        with self._lock:
            source, self._source = self._source, None
            self._running = False
            self.end_session()

        if source is not None:
            source.close()
            logger.info("Engine stopped")

    # -- Analysis ------------------------------------------------------------

    def run_cycle(
        self, session: ListeningSession, frame: AudioFrame, now_ms: Optional[int] = None
    ) -> CycleResult:
        """Run one analysis cycle against a session.

        Malformed frames are skipped without touching the level or the gate.

        Args:
            session: Session whose state the cycle reads and updates
            frame: Time-domain frame to analyze
            now_ms: Cycle time; defaults to the frame timestamp, then the clock

        Returns:
            CycleResult with the level and any emitted events
        """
        try:
            spectrum = session.analyzer.analyze(frame, session.smoothed_spectrum)
        except FrameMalformed as e:
            session.skipped_frames += 1
            logger.debug(f"Skipping malformed frame: {e}")
            return CycleResult(level=session.level, skipped=True)

        session.smoothed_spectrum = spectrum.smoothed
        level = session.level_tracker.update(frame.samples)
        session.cycles += 1

        if now_ms is None:
            now_ms = frame.timestamp_ms if frame.timestamp_ms is not None else self.clock()

        events: List[DetectionEvent] = []
        for candidate in classify_enabled(spectrum, self.enabled.snapshot(), self.classifiers):
            event = session.gate.submit(candidate, now_ms)
            if event is not None:
                events.append(event)

        return CycleResult(level=level, events=events)

    def process_frame(self, frame: AudioFrame) -> Optional[CycleResult]:
        """Process a single frame through the active session.

        This can be called directly if you're handling audio capture yourself
        (after begin_session()).

        Returns:
            The CycleResult, or None if no session is active
        """
        with self._lock:
            session = self._session
            if session is None:
                return None

            result = self.run_cycle(session, frame)
            if not result.skipped:
                self._publish(result)
            return result

    # -- Callbacks -----------------------------------------------------------

    def _publish(self, result: CycleResult) -> None:
        if self.on_level:
            try:
                self.on_level(result.level)
            except Exception as e:
                logger.error(f"Error in on_level callback: {e}")

        for event in result.events:
            if event.kind is SignatureKind.FIRE:
                logger.critical(f"ALERT: {event}")
            else:
                logger.warning(f"ALERT: {event}")

            if self.on_detection:
                try:
                    self.on_detection(event)
                except Exception as e:
                    logger.error(f"Error in on_detection callback: {e}")

    def _fail(self, error: EngineError) -> None:
        self.last_error = error
        logger.error(f"{type(error).__name__}: {error}")
        if self.on_error:
            try:
                self.on_error(error)
            except Exception as e:
                logger.error(f"Error in on_error callback: {e}")

    # -- State -----------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        """Check if the engine is starting or consuming a frame source."""
        return self._running

    @property
    def session(self) -> Optional[ListeningSession]:
        return self._session

    @property
    def level(self) -> float:
        """Smoothed level of the active session (0.0 when idle)."""
        session = self._session
        return session.level if session is not None else 0.0
