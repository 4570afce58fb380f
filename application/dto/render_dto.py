# application/dto/render_dto.py
# Data Transfer Objects for render configuration, frames and results.

from dataclasses import dataclass
from typing import Optional

import numpy as np


@dataclass
class RenderSettingsDTO:
    """Every option the renderer recognises."""
    harmonics: int = 1000
    scale: float = 2.0
    speed: float = 0.02
    fps: float = 60.0
    width: int = 1280
    height: int = 720
    draw_waveform: bool = False
    raw_vectors: bool = False
    export_dir: Optional[str] = None   # None = live display only
    font_path: Optional[str] = None    # None = pygame's default font
    font_size: int = 128
    headless: bool = False

    @property
    def export_mode(self) -> bool:
        return self.export_dir is not None


@dataclass
class FrameDTO:
    """Everything a frame sink needs to draw one frame."""
    frame_index: int
    simulated_time: float
    chain: np.ndarray                          # complex, origin first
    positive_count: int                        # chain[1..positive_count] are +f
    highlight: complex
    time_label: str
    raw_vectors: Optional[np.ndarray] = None   # origin-anchored, not chained


@dataclass
class AnimationResultDTO:
    """Outcome of a render run."""
    frames_rendered: int = 0
    cancelled: bool = False
    export_dir: Optional[str] = None
    last_frame_path: Optional[str] = None
