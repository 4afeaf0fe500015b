"""PyAudio output device for the synthesizer bus."""
import logging
from typing import Callable, Optional

import numpy as np

from audio.errors import OutputDeviceError

# Check for PyAudio availability
try:
    import pyaudio
    AUDIO_AVAILABLE = True
except ImportError:
    AUDIO_AVAILABLE = False
    pyaudio = None

_LOGGER = logging.getLogger("profelofono.audio.output")

SUSPENDED = "suspended"
RUNNING = "running"
CLOSED = "closed"

RenderCallback = Callable[[int], np.ndarray]


class OutputDevice:
    """Mono float32 output stream that pulls blocks from a render callback.

    The stream is opened stopped, which is the device's "suspended" state.
    Nothing is heard until resume() starts it, mirroring platforms that
    refuse to start audio before a user gesture.
    """

    def __init__(self, sample_rate: int = 44100, buffer_size: int = 256,
                 device_index: Optional[int] = None):
        self.sample_rate = sample_rate
        self.buffer_size = buffer_size
        self.device_index = device_index
        self.state = CLOSED
        self.audio = None
        self.stream = None
        self._render: Optional[RenderCallback] = None

    def open(self, render: RenderCallback):
        """Create the stream in the suspended state.

        Raises:
            OutputDeviceError: PyAudio is missing or the device refused the stream.
        """
        if not AUDIO_AVAILABLE or pyaudio is None:
            raise OutputDeviceError("PyAudio is not installed")
        self._render = render
        try:
            self.audio = pyaudio.PyAudio()
            index = self.device_index
            if index is None:
                index = self.audio.get_default_output_device_info()['index']
            self.stream = self.audio.open(
                format=pyaudio.paFloat32, channels=1, rate=self.sample_rate,
                output=True, output_device_index=index,
                frames_per_buffer=self.buffer_size,
                stream_callback=self._stream_callback, start=False
            )
        except Exception as e:
            self._release()
            raise OutputDeviceError(f"Audio initialization failed: {e}") from e
        self.state = SUSPENDED

    def resume(self):
        """Start the stream if it is suspended."""
        if self.state == RUNNING:
            return
        if self.state == CLOSED or self.stream is None:
            raise OutputDeviceError("Output device is closed")
        try:
            self.stream.start_stream()
        except Exception as e:
            raise OutputDeviceError(f"Could not resume output device: {e}") from e
        self.state = RUNNING

    def close(self):
        if self.state == CLOSED:
            return
        self.state = CLOSED
        self._release()

    def _release(self):
        if self.stream is not None:
            try:
                self.stream.stop_stream()
                self.stream.close()
            except Exception as e:
                _LOGGER.warning("Error closing output stream: %s", e)
            self.stream = None
        if self.audio is not None:
            self.audio.terminate()
            self.audio = None

    def _stream_callback(self, in_data, frame_count, time_info, status):
        try:
            block = self._render(frame_count)
            out = np.asarray(block, dtype=np.float32)
            return (out.tobytes(), pyaudio.paContinue)
        except Exception:
            _LOGGER.exception("Render callback failed; emitting silence")
            return (np.zeros(frame_count, dtype=np.float32).tobytes(), pyaudio.paContinue)
