# epicycles/spectrum.py
# Forward DFT of the mono signal plus named access to its mirrored bins.

import numpy as np


class Spectrum:
    """
    Complex DFT coefficients in numpy's standard order.

    Index 0 is the DC term, 1..N//2 the positive frequencies and
    N//2+1..N-1 the negative frequencies (bin -i lives at N - i).
    """

    def __init__(self, coefficients: np.ndarray) -> None:
        self.coefficients: np.ndarray = np.array(coefficients, dtype=np.complex128)
        self.coefficients.setflags(write=False)

    def __len__(self) -> int:
        return len(self.coefficients)

    @property
    def length(self) -> int:
        return len(self.coefficients)

    def positive_bin(self, i: int) -> complex:
        """Coefficient for frequency +i * fundamental."""
        if not 0 <= i <= self.length // 2:
            raise IndexError(f"positive bin {i} outside 0..{self.length // 2}")
        return complex(self.coefficients[i])

    def negative_bin(self, i: int) -> complex:
        """Coefficient for frequency -i * fundamental."""
        if not 1 <= i <= self.length // 2:
            raise IndexError(f"negative bin {i} outside 1..{self.length // 2}")
        return complex(self.coefficients[self.length - i])

    def positive_bins(self, count: int) -> np.ndarray:
        """Bins 0..count-1."""
        return self.coefficients[:count]

    def negative_bins(self, count: int) -> np.ndarray:
        """Bins -1..-(count-1), i.e. indices N-1 down to N-count+1."""
        if count <= 1:
            return self.coefficients[:0]
        return self.coefficients[self.length - 1:self.length - count:-1]

    def max_harmonics(self) -> int:
        """Largest harmonic count whose +i and -i bins never overlap."""
        return (self.length + 1) // 2


def transform(samples: np.ndarray) -> Spectrum:
    """
    Unnormalized forward DFT, no window, no padding.

    numpy's pocketfft backend is O(N log N) for any length, not just
    powers of two, so clip lengths are unconstrained.
    """
    signal: np.ndarray = np.asarray(samples, dtype=np.float64).astype(np.complex128)
    return Spectrum(np.fft.fft(signal))
