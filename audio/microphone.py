"""Microphone capture session backed by a fixed-size analysis buffer."""
import logging
from threading import Lock
from typing import Optional

import numpy as np

from audio.errors import MicrophoneUnavailableError
from tuner.pitch_detector import SampleFrame

try:
    import pyaudio
    AUDIO_AVAILABLE = True
except ImportError:
    AUDIO_AVAILABLE = False
    pyaudio = None

_LOGGER = logging.getLogger("profelofono.audio.microphone")


class AnalysisBuffer:
    """Keeps the most recent `size` samples of a mono stream."""

    def __init__(self, size: int = 2048):
        self.size = size
        self._data = np.zeros(size, dtype=np.float32)
        self._lock = Lock()

    def write(self, samples: np.ndarray):
        n = len(samples)
        if n == 0:
            return
        with self._lock:
            if n >= self.size:
                self._data[:] = samples[-self.size:]
            else:
                self._data[:-n] = self._data[n:]
                self._data[-n:] = samples

    def snapshot(self) -> np.ndarray:
        with self._lock:
            return self._data.copy()


class MicrophoneCapture:
    """Mono microphone stream wrapped in an analysis buffer.

    read_frame() returns the latest `frame_size` time-domain samples, the
    same pull model as a browser AnalyserNode.
    """

    def __init__(self, sample_rate: int = 44100, frame_size: int = 2048,
                 device_index: Optional[int] = None, chunk_size: int = 512):
        self.sample_rate = sample_rate
        self.frame_size = frame_size
        self.device_index = device_index
        self.chunk_size = chunk_size
        self.buffer = AnalysisBuffer(frame_size)
        self.audio = None
        self.stream = None

    def open(self):
        """Request the microphone and start capturing.

        Raises:
            MicrophoneUnavailableError: No PyAudio, no input device, or access denied.
        """
        if not AUDIO_AVAILABLE or pyaudio is None:
            raise MicrophoneUnavailableError("PyAudio is not installed")
        try:
            self.audio = pyaudio.PyAudio()
            index = self.device_index
            if index is None:
                index = self.audio.get_default_input_device_info()['index']
            self.stream = self.audio.open(
                format=pyaudio.paFloat32, channels=1, rate=self.sample_rate,
                input=True, input_device_index=index,
                frames_per_buffer=self.chunk_size,
                stream_callback=self._stream_callback, start=False
            )
            self.stream.start_stream()
        except Exception as e:
            # Never leave a half-opened session behind
            self.close()
            raise MicrophoneUnavailableError(f"Could not open microphone: {e}") from e
        return self

    def read_frame(self) -> SampleFrame:
        return SampleFrame(self.buffer.snapshot(), self.sample_rate)

    def close(self):
        if self.stream is not None:
            try:
                self.stream.stop_stream()
                self.stream.close()
            except Exception as e:
                _LOGGER.warning("Error closing microphone stream: %s", e)
            self.stream = None
        if self.audio is not None:
            self.audio.terminate()
            self.audio = None

    def _stream_callback(self, in_data, frame_count, time_info, status):
        try:
            self.buffer.write(np.frombuffer(in_data, dtype=np.float32))
        except Exception:
            _LOGGER.exception("Dropped microphone block")
        return (None, pyaudio.paContinue)


def open_microphone(sample_rate: int = 44100, frame_size: int = 2048,
                    device_index: Optional[int] = None) -> MicrophoneCapture:
    """Default capture factory used by the tuner."""
    return MicrophoneCapture(sample_rate, frame_size, device_index).open()
