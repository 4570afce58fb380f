# epicycles/errors.py
# Error taxonomy for the epicycle renderer.
# Every fatal condition aborts the run; main.py turns these into exit code 1.


class EpicycleError(Exception):
    """Base class for all renderer errors."""


class UnsupportedFormatError(EpicycleError, ValueError):
    """Input is not a 2-channel, 44.1 kHz integer PCM WAV file."""


class CorruptInputError(EpicycleError, ValueError):
    """Interleaved sample stream cannot be split into equal L/R channels."""


class ResourceUnavailableError(EpicycleError, OSError):
    """Drawing surface, font or export directory could not be opened."""


class HarmonicCountError(EpicycleError, ValueError):
    """Requested harmonic count does not fit the spectrum."""
