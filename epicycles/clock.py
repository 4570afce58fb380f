# epicycles/clock.py
# Animation clock: frame index → simulated playback time, termination, cancellation.

import math
import time
from typing import Callable, Iterator, Optional, Tuple


class CancellationToken:
    """
    Single-writer/single-reader stop flag.

    Written by a signal handler (or the window's close event) and read by
    the clock once per frame. A plain bool store is atomic under the GIL.
    """

    def __init__(self) -> None:
        self._cancelled: bool = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class AnimationClock:
    """
    Drives the render loop.

    Frame i shows the signal at i * frame_duration_ms / 1000 * speed_factor
    seconds. Iteration stops, without yielding, once that time exceeds the
    signal duration or the token is cancelled.
    """

    def __init__(
        self,
        duration: float,
        target_fps: float = 60.0,
        speed_factor: float = 0.02,
        token: Optional[CancellationToken] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.duration: float = duration
        self.speed_factor: float = speed_factor
        # Whole milliseconds per frame (60 fps → 16 ms)
        self.frame_duration_ms: int = int(1000.0 / target_fps)
        self.token: CancellationToken = token if token is not None else CancellationToken()
        self._sleep: Callable[[float], None] = sleep

    def simulated_time(self, frame_index: int) -> float:
        return frame_index * self.frame_duration_ms / 1000.0 * self.speed_factor

    def expected_frames(self) -> int:
        """Frames a full, uncancelled run produces (frame 0 included)."""
        return math.floor(self.duration / self.speed_factor * 1000.0 / self.frame_duration_ms) + 1

    def frames(self) -> Iterator[Tuple[int, float]]:
        """Yield (frame_index, simulated_time) in strictly increasing order."""
        frame_index: int = 0
        while not self.token.cancelled:
            simulated_time_s: float = self.simulated_time(frame_index)
            if simulated_time_s > self.duration:
                break
            yield frame_index, simulated_time_s
            frame_index += 1

    def wait(self) -> None:
        """Live-mode pacing between frames."""
        self._sleep(self.frame_duration_ms / 1000.0)
