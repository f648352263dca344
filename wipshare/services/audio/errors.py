class WaveformError(Exception):
    """Base class for waveform extraction failures."""


class DecodeError(WaveformError):
    """The source file has no usable audio stream."""


class TranscodeError(WaveformError):
    """The decoder could not produce raw PCM for the source file."""
