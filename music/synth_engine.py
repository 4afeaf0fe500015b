"""Synthesizer engine: instrument voices mixed onto one output bus."""
import logging
import math
import queue
from typing import Iterable, List, NamedTuple, Optional, Union

import numpy as np

from audio.errors import AudioDeviceError
from audio.output_device import RUNNING, OutputDevice
from music.humanize import Humanizer
from music.voice_graph import Timbre, VoiceGraph, build_voice

_LOGGER = logging.getLogger("profelofono.synth")

DEFAULT_NOTE_DURATION = 1.5
CHORD_NOTE_DURATION = 3.5  # chords ring longer than single notes


class StrumEvent(NamedTuple):
    index: int
    frequency: float
    offset: float


class SynthEngine:
    """Polyphonic instrument synth with a shared mixing bus.

    Every note is an independent VoiceGraph scheduled on the engine's
    sample clock. The UI thread only builds voices and hands them over
    through a queue; the audio callback drains the queue at the start of
    each block, mixes every due voice additively and drops the ones whose
    lifetime has ended. Voices never touch each other's state.

    When no output device can be opened the engine runs silent and every
    play call is a no-op.
    """

    def __init__(self, output=None, sample_rate: int = 44100, buffer_size: int = 256,
                 master_gain: float = 0.5, humanizer: Optional[Humanizer] = None,
                 device_index: Optional[int] = None, seed: Optional[int] = None,
                 open_device: bool = True):
        """
        Args:
            output: Device exposing open(render), resume(), close() and a
                `state`. Defaults to a PyAudio OutputDevice.
            master_gain: Bus gain applied before the soft clipper.
            humanizer: Strum timing source, defaults to 50 ms ± 10 ms.
            seed: Seeds the breath-noise generator.
            open_device: False skips device creation entirely (silent mode).
        """
        self.sample_rate = sample_rate
        self.buffer_size = buffer_size
        self.master_gain = master_gain
        self.humanizer = humanizer or Humanizer()
        self.voices: List[VoiceGraph] = []
        self.event_queue: queue.Queue = queue.Queue()
        self._sample_clock = 0
        self._rng = np.random.default_rng(seed)
        self.output = None
        self.running = False

        if output is None and open_device:
            output = OutputDevice(sample_rate, buffer_size, device_index)
        if output is not None:
            try:
                output.open(self.render)
                self.output = output
                self.running = True
            except AudioDeviceError as e:
                _LOGGER.warning("%s; instruments will be silent", e)

    # ── Clock & device ───────────────────────────────────────────

    @property
    def current_time(self) -> float:
        """Seconds of audio rendered so far."""
        return self._sample_clock / self.sample_rate

    def is_available(self) -> bool:
        return self.output is not None and self.running

    def _ensure_running(self) -> bool:
        """Resume a suspended device; False means drop the request."""
        if not self.is_available():
            return False
        if self.output.state == RUNNING:
            return True
        try:
            self.output.resume()
        except Exception as e:
            _LOGGER.debug("Output resume failed, dropping note: %s", e)
            return False
        return True

    # ── Playback ─────────────────────────────────────────────────

    def play_note(self, frequency: float, duration: float = DEFAULT_NOTE_DURATION,
                  timbre: Union[Timbre, str] = Timbre.METALLOPHONE,
                  delay: float = 0.0) -> Optional[VoiceGraph]:
        """Start one note now (or `delay` seconds from now).

        The voice stops by itself after `duration` plus the timbre tail.
        Invalid frequencies or durations are ignored. Returns the scheduled
        voice, or None when nothing was scheduled.
        """
        if not self._valid_note(frequency, duration):
            return None
        if not self._ensure_running():
            return None
        return self._schedule(float(frequency), float(duration), timbre,
                              self.current_time + max(0.0, delay))

    def play_chord(self, frequencies: Iterable[float],
                   timbre: Union[Timbre, str] = Timbre.GUITAR,
                   duration: float = CHORD_NOTE_DURATION) -> List[StrumEvent]:
        """Strum `frequencies` in order, one string every ~50 ms.

        Returns the scheduled strum events; invalid frequencies keep their
        slot in the strum but produce no event.
        """
        freqs = list(frequencies or [])
        if not freqs or not self._ensure_running():
            return []
        base = self.current_time
        events = []
        for index, (freq, offset) in enumerate(zip(freqs, self.humanizer.strum_offsets(len(freqs)))):
            if not self._valid_note(freq, duration):
                continue
            self._schedule(float(freq), float(duration), timbre, base + offset)
            events.append(StrumEvent(index, float(freq), offset))
        return events

    def all_notes_off(self):
        """Silence everything. Applied on the audio thread at the next block."""
        self.event_queue.put({'type': 'all_notes_off'})

    def _schedule(self, frequency: float, duration: float,
                  timbre: Union[Timbre, str], start_time: float) -> VoiceGraph:
        voice = build_voice(timbre, frequency, duration, self.sample_rate,
                            start_time=start_time, rng=self._rng)
        self.event_queue.put({'type': 'voice', 'voice': voice})
        return voice

    @staticmethod
    def _valid_note(frequency, duration) -> bool:
        try:
            f, d = float(frequency), float(duration)
        except (TypeError, ValueError):
            return False
        return math.isfinite(f) and f > 0 and math.isfinite(d) and d > 0

    # ── Audio thread ─────────────────────────────────────────────

    def _process_events(self):
        while True:
            try:
                e = self.event_queue.get_nowait()
            except queue.Empty:
                break
            if e['type'] == 'voice':
                self.voices.append(e['voice'])
            elif e['type'] == 'all_notes_off':
                # Events drain in order: voices queued after the panic survive
                self.voices.clear()

    def render(self, frame_count: int) -> np.ndarray:
        """Mix the next `frame_count` samples of the bus."""
        self._process_events()
        times = (self._sample_clock + np.arange(frame_count)) / self.sample_rate
        mixed = np.zeros(frame_count, dtype=np.float32)
        for voice in self.voices:
            mixed += voice.render(times)
        self._sample_clock += frame_count
        now = self.current_time
        self.voices = [v for v in self.voices if not v.is_finished(now)]
        return self._sanitize_signal(np.tanh(mixed * self.master_gain))

    def _sanitize_signal(self, samples: np.ndarray) -> np.ndarray:
        """Replace NaN/Inf with zeros so one bad voice cannot poison the device."""
        samples = np.where(np.isfinite(samples), samples, 0.0)
        return np.clip(samples, -1.0, 1.0).astype(np.float32)

    @property
    def active_voice_count(self) -> int:
        return len(self.voices)

    def close(self):
        self.running = False
        if self.output is not None:
            self.output.close()
