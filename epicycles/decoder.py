# epicycles/decoder.py
# Sample decoder: fixed-format stereo WAV → normalized mono signal.

import logging
import os
import struct
from dataclasses import dataclass
from typing import Tuple

import numpy as np
import soundfile as sf

from epicycles.errors import CorruptInputError, UnsupportedFormatError

logger = logging.getLogger("epicycles.decoder")

REQUIRED_CHANNELS: int = 2
REQUIRED_SAMPLE_RATE: int = 44100
SUPPORTED_CONTAINERS: set[str] = {"WAV", "WAVEX"}

# libsndfile subtype → bits per sample, integer PCM only
SUBTYPE_BITS: dict[str, int] = {
    "PCM_U8": 8,
    "PCM_S8": 8,
    "PCM_16": 16,
    "PCM_24": 24,
    "PCM_32": 32,
}

# soundfile left-justifies every integer subtype into int32
_CONTAINER_BITS: int = 32


@dataclass(frozen=True)
class MonoSignal:
    """Normalized mono samples plus the rate they were recorded at."""

    samples: np.ndarray
    sample_rate: int = REQUIRED_SAMPLE_RATE

    def __len__(self) -> int:
        return len(self.samples)

    @property
    def duration(self) -> float:
        """Signal length in seconds (N / sample_rate)."""
        return len(self.samples) / self.sample_rate

    @property
    def fundamental(self) -> float:
        """Frequency resolution of the transform in Hz."""
        return 1.0 / self.duration

    @property
    def peak(self) -> float:
        return float(np.max(self.samples)) if len(self.samples) else 0.0


def check_format(path: str) -> int:
    """
    Inspect the file header and return its bits per sample.

    Raises:
        UnsupportedFormatError: anything other than 2-channel 44.1 kHz integer PCM WAV.
    """
    try:
        info = sf.info(path)
    except RuntimeError as exc:
        raise UnsupportedFormatError(
            f"Could not read '{path}' as a waveform file: {exc}.\n"
            f"    → Provide an uncompressed PCM WAV file."
        ) from exc

    if info.format not in SUPPORTED_CONTAINERS:
        raise UnsupportedFormatError(
            f"Unsupported container: {info.format}.\n"
            f"    → Convert the file to WAV first."
        )
    if info.channels != REQUIRED_CHANNELS or info.samplerate != REQUIRED_SAMPLE_RATE:
        raise UnsupportedFormatError(
            f"Only 2-channel 44.1 kHz audio is supported. "
            f"Got: {info.channels} channel(s) at {info.samplerate} Hz.\n"
            f"    → Re-export the clip as stereo, 44100 Hz."
        )
    if info.subtype not in SUBTYPE_BITS:
        raise UnsupportedFormatError(
            f"Unsupported sample encoding: {info.subtype}.\n"
            f"    Supported: {', '.join(sorted(SUBTYPE_BITS))}\n"
            f"    → Re-export the clip as integer PCM (e.g. 16-bit)."
        )
    return SUBTYPE_BITS[info.subtype]


def data_chunk_bytes(path: str) -> int:
    """
    Walk the RIFF chunks and return how many bytes the data chunk holds.

    libsndfile rounds the data chunk down to whole frames, so a trailing
    half-frame is only visible here. A header that overstates the chunk
    is clipped to the bytes actually present in the file.
    """
    file_size: int = os.path.getsize(path)
    with open(path, "rb") as f:
        header: bytes = f.read(12)
        if len(header) < 12:
            raise CorruptInputError(f"'{path}' is too short to be a WAV file.")
        riff, _, wave = struct.unpack("<4sI4s", header)
        if riff != b"RIFF" or wave != b"WAVE":
            raise CorruptInputError(
                f"'{path}' has no RIFF/WAVE header.\n"
                f"    → Provide an uncompressed PCM WAV file."
            )

        while True:
            chunk_header: bytes = f.read(8)
            if len(chunk_header) < 8:
                raise CorruptInputError(
                    f"No data chunk in '{path}'.\n"
                    f"    → The file is truncated or corrupt; re-export it."
                )
            chunk_id, chunk_size = struct.unpack("<4sI", chunk_header)
            if chunk_id == b"data":
                return min(chunk_size, file_size - f.tell())
            # Chunks are word aligned
            f.seek(chunk_size + (chunk_size & 1), os.SEEK_CUR)


def split_channels(interleaved: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    De-interleave an L, R, L, R, ... sample stream.

    Raises:
        CorruptInputError: odd sample count (left/right lengths would differ).
    """
    if len(interleaved) % 2 != 0:
        raise CorruptInputError(
            f"Interleaved stream has an odd number of samples ({len(interleaved)}).\n"
            f"    → The file is truncated or corrupt; re-export it."
        )
    return interleaved[0::2], interleaved[1::2]


def normalize(raw: np.ndarray, bits_per_sample: int) -> np.ndarray:
    """Map signed integers of the given depth onto roughly [-1.0, 1.0]."""
    return raw.astype(np.float64) / float(2 ** (bits_per_sample - 1))


def to_mono(left: np.ndarray, right: np.ndarray) -> np.ndarray:
    return (left + right) / 2.0


def decode(path: str) -> MonoSignal:
    """
    Full decode: header check → read → de-interleave → normalize → average.

    Args:
        path: Stereo 44.1 kHz integer PCM WAV file.

    Returns:
        MonoSignal with one sample per stereo frame.
    """
    bits: int = check_format(path)

    sample_bytes: int = bits // 8
    data_bytes: int = data_chunk_bytes(path)
    if data_bytes % (REQUIRED_CHANNELS * sample_bytes) != 0:
        raise CorruptInputError(
            f"Data chunk of '{path}' holds {data_bytes} bytes, "
            f"not a whole number of {bits}-bit stereo frames "
            f"({data_bytes / sample_bytes:g} interleaved samples).\n"
            f"    → The file is truncated or corrupt; re-export it."
        )

    frames: np.ndarray
    sr: int
    try:
        frames, sr = sf.read(path, dtype="int32", always_2d=True)
    except RuntimeError as exc:
        raise CorruptInputError(
            f"Could not decode the samples in '{path}': {exc}.\n"
            f"    → The file is truncated or corrupt; re-export it."
        ) from exc
    if frames.size == 0:
        raise CorruptInputError(
            f"No audio samples in '{path}'.\n"
            f"    → Provide a clip with at least one frame of audio."
        )

    # Undo the left-justification to recover the stored integers
    raw: np.ndarray = np.right_shift(frames.reshape(-1), _CONTAINER_BITS - bits)
    left_raw, right_raw = split_channels(raw)

    mono: np.ndarray = to_mono(normalize(left_raw, bits), normalize(right_raw, bits))
    mono.setflags(write=False)

    signal = MonoSignal(samples=mono, sample_rate=sr)
    logger.info(
        "decoded %s: %d samples, %.3fs, %d-bit, peak %.4f",
        path, len(signal), signal.duration, bits, signal.peak,
    )
    return signal
