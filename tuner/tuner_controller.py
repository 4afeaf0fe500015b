"""Chromatic tuner: microphone capture, analysis loop and current reading."""
import logging
import threading
from enum import Enum
from typing import Callable, Optional

from audio.microphone import open_microphone
from tuner.note_mapping import NEUTRAL_READING, TunerReading, frequency_to_reading
from tuner.pitch_detector import PitchDetector

_LOGGER = logging.getLogger("profelofono.tuner")

MICROPHONE_ERROR = "Could not access the microphone. Please allow microphone access."


class TunerState(Enum):
    IDLE = "idle"
    LISTENING = "listening"


class TunerController:
    """Owns one capture session and a cancellable per-frame analysis loop.

    The loop runs on a daemon thread and waits on a threading.Event between
    ticks, so stop() cancels any pending continuation immediately. tick()
    is public so callers with their own scheduler (or tests) can drive it.
    """

    # Seconds stop() waits for an in-flight analysis tick
    join_timeout = 1.0

    def __init__(self, capture_factory: Optional[Callable[[], object]] = None,
                 detector: Optional[PitchDetector] = None,
                 refresh_rate: float = 60.0,
                 on_reading: Optional[Callable[[TunerReading], None]] = None,
                 sample_rate: int = 44100, frame_size: int = 2048,
                 device_index: Optional[int] = None):
        """
        Args:
            capture_factory: Returns an opened session exposing read_frame()
                and close(); raises when the microphone is unavailable.
                Defaults to the PyAudio microphone.
            detector: Pitch detector, defaults to PitchDetector().
            refresh_rate: Analysis ticks per second.
            on_reading: Called with every published reading, including the
                neutral reading on start() and stop(). It runs on the
                analysis thread and must not call start().
        """
        if capture_factory is None:
            def capture_factory():
                return open_microphone(sample_rate, frame_size, device_index)
        self.capture_factory = capture_factory
        self.detector = detector or PitchDetector()
        self.interval = 1.0 / max(1.0, refresh_rate)
        self.on_reading = on_reading

        self.state = TunerState.IDLE
        self.error: Optional[str] = None
        self._reading = NEUTRAL_READING
        self._session = None
        self._cancel: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        # Serialises reading updates so stop()'s neutral reading is always last
        self._publish_lock = threading.RLock()

    # ── Lifecycle ────────────────────────────────────────────────

    def start(self, run_loop: bool = True) -> bool:
        """Open the microphone and begin listening.

        Returns True when listening (including when already listening) and
        False when the microphone could not be opened; the reason is kept
        in `error` and the tuner stays idle.
        """
        with self._lock:
            if self.state == TunerState.LISTENING:
                return True
            try:
                session = self.capture_factory()
            except Exception as e:
                _LOGGER.warning("Microphone unavailable: %s", e, exc_info=True)
                self.error = MICROPHONE_ERROR
                return False

            self._session = session
            self.error = None
            self.state = TunerState.LISTENING
            self._set_reading(NEUTRAL_READING)

            if run_loop:
                cancel = threading.Event()
                self._cancel = cancel
                self._thread = threading.Thread(
                    target=self._run, args=(cancel, session), name="tuner-analysis", daemon=True
                )
                self._thread.start()
        _LOGGER.info("Tuner listening")
        return True

    def stop(self):
        """Release the capture session and reset the display. Safe when idle.

        With a running loop the loop thread owns its session and closes it
        on exit, so a read still in flight is never cut short.
        """
        with self._lock:
            if self.state == TunerState.IDLE:
                return
            self.state = TunerState.IDLE
            cancel, thread, session = self._cancel, self._thread, self._session
            self._cancel = self._thread = self._session = None

        if cancel is not None:
            cancel.set()
        if thread is not None:
            if thread is not threading.current_thread():
                thread.join(timeout=self.join_timeout)
                if thread.is_alive():
                    _LOGGER.debug("Analysis loop still reading; it will close its session")
        else:
            self._close_session(session)
        self._set_reading(NEUTRAL_READING)
        _LOGGER.info("Tuner stopped")

    def close(self):
        self.stop()

    @staticmethod
    def _close_session(session):
        if session is None:
            return
        try:
            session.close()
        except Exception as e:
            _LOGGER.warning("Error closing capture session: %s", e)

    # ── Analysis ─────────────────────────────────────────────────

    def tick(self) -> TunerReading:
        """Run one capture → detect → map cycle and return the new reading."""
        session = self._session
        if session is None or self.state != TunerState.LISTENING:
            return self.reading
        return self._tick(session)

    def _tick(self, session) -> TunerReading:
        frame = session.read_frame()
        frequency = self.detector.estimate(frame)
        reading = frequency_to_reading(frequency) if frequency is not None else NEUTRAL_READING
        with self._publish_lock:
            # A stop() or restart that raced this tick wins
            if self.state == TunerState.LISTENING and session is self._session:
                self._set_reading(reading)
        return reading

    def _run(self, cancel: threading.Event, session):
        try:
            while not cancel.is_set():
                try:
                    self._tick(session)
                except Exception:
                    _LOGGER.exception("Tuner analysis tick failed")
                cancel.wait(self.interval)
        finally:
            self._close_session(session)

    # ── Accessors ────────────────────────────────────────────────

    def _set_reading(self, reading: TunerReading):
        with self._publish_lock:
            self._reading = reading
            if self.on_reading:
                self.on_reading(reading)

    @property
    def reading(self) -> TunerReading:
        return self._reading

    @property
    def is_listening(self) -> bool:
        return self.state == TunerState.LISTENING

    @property
    def has_active_session(self) -> bool:
        return self._session is not None
