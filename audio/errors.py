"""Audio device error types."""


class AudioDeviceError(Exception):
    """Base error for audio device failures."""


class OutputDeviceError(AudioDeviceError):
    """Raised when the output device cannot be opened or resumed."""


class MicrophoneUnavailableError(AudioDeviceError):
    """Raised when microphone access is denied or no input device exists."""
