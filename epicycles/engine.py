# epicycles/engine.py
# Epicycle engine: spectrum + time → chain of rotating vectors.

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from epicycles.errors import HarmonicCountError
from epicycles.spectrum import Spectrum


@dataclass(frozen=True)
class EpicycleFrame:
    """
    One frame of geometry in mathematical (complex) space.

    chain[0] is the origin, chain[1..positive_count] the positive harmonics
    and the remainder the negative harmonics, continuing from wherever the
    positive chain ended.
    """

    chain: np.ndarray
    positive_count: int
    raw_vectors: Optional[np.ndarray] = None

    @property
    def endpoint(self) -> complex:
        """Reconstructed sample at this time, scaled."""
        return complex(self.chain[-1])


def check_harmonic_count(spectrum: Spectrum, harmonic_count: int) -> None:
    limit: int = spectrum.max_harmonics()
    if not 1 <= harmonic_count <= limit:
        raise HarmonicCountError(
            f"Harmonic count must be between 1 and {limit} for a "
            f"{spectrum.length}-sample spectrum. Got: {harmonic_count}.\n"
            f"    → Lower --harmonics or use a longer clip."
        )


def harmonic_vectors(
    spectrum: Spectrum,
    fundamental: float,
    simulated_time_s: float,
    harmonic_count: int,
    scale: float,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Instantaneous rotating vectors for +0..+(count-1) and -1..-(count-1).

    Each term is scale * X[k] / N * exp(j * 2π * k * fundamental * t).
    """
    n: int = spectrum.length
    k: np.ndarray = np.arange(harmonic_count, dtype=np.float64)

    phase: np.ndarray = 2.0 * np.pi * k * fundamental * simulated_time_s
    positive: np.ndarray = scale * spectrum.positive_bins(harmonic_count) / n * np.exp(1j * phase)
    # Same k = 1.. magnitudes, rotating the other way
    negative: np.ndarray = scale * spectrum.negative_bins(harmonic_count) / n * np.exp(-1j * phase[1:])
    return positive, negative


def positions(
    spectrum: Spectrum,
    fundamental: float,
    simulated_time_s: float,
    harmonic_count: int,
    scale: float,
    include_raw_vectors: bool = False,
) -> EpicycleFrame:
    """
    Build the epicycle chain for one moment in time.

    Args:
        spectrum:          Unnormalized DFT of the signal.
        fundamental:       Frequency resolution (1 / signal duration).
        simulated_time_s:  Playback position in seconds.
        harmonic_count:    Number of positive harmonics (DC included).
        scale:             Zoom factor applied to every vector.
        include_raw_vectors: Also return origin-anchored positive vectors.

    Raises:
        HarmonicCountError: count outside 1..spectrum.max_harmonics().
    """
    check_harmonic_count(spectrum, harmonic_count)

    positive, negative = harmonic_vectors(
        spectrum, fundamental, simulated_time_s, harmonic_count, scale
    )
    steps: np.ndarray = np.concatenate(([0j], positive, negative))
    chain: np.ndarray = np.cumsum(steps)

    return EpicycleFrame(
        chain=chain,
        positive_count=len(positive),
        raw_vectors=positive.copy() if include_raw_vectors else None,
    )


def to_canvas_point(z: complex, width: int, height: int) -> Tuple[int, int]:
    """
    Map a complex value to pixel coordinates.

    Width scales both axes so circles stay round; height only recentres y.
    """
    x: float = z.real / 2.0 * width + width / 2.0
    y: float = z.imag / 2.0 * width + height / 2.0
    return int(x), int(y)


def to_canvas_points(zs: np.ndarray, width: int, height: int) -> np.ndarray:
    """Vectorised to_canvas_point; returns an (n, 2) int array."""
    zs = np.asarray(zs, dtype=np.complex128)
    xs: np.ndarray = zs.real / 2.0 * width + width / 2.0
    ys: np.ndarray = zs.imag / 2.0 * width + height / 2.0
    # astype truncates toward zero, same as int()
    return np.column_stack([xs, ys]).astype(np.int64)
