# infrastructure/render/pygame_frame_sink.py
# Implementation of IFrameSink drawing with pygame and encoding stills with Pillow.

import io
import logging
from typing import Callable, Optional

import numpy as np
import pygame
from PIL import Image

from application.dto.render_dto import FrameDTO, RenderSettingsDTO
from application.ports.frame_sink_port import IFrameSink
from epicycles.decoder import MonoSignal
from epicycles.engine import to_canvas_point, to_canvas_points
from epicycles.errors import ResourceUnavailableError

logger = logging.getLogger("epicycles.render")

BACKGROUND = (0, 0, 0)
TEXT_COLOR = (255, 255, 255)
WAVEFORM_COLOR = (255, 255, 255)
CURSOR_COLOR = (255, 255, 0)
RAW_VECTOR_COLOR = (100, 100, 100)
POSITIVE_COLOR = (0, 200, 200)
NEGATIVE_COLOR = (200, 0, 200)
HIGHLIGHT_COLOR = (255, 255, 0)

STATUS_BAR_HEIGHT: int = 100
CURSOR_WIDTH: int = 3
HIGHLIGHT_SIZE: int = 8
LABEL_RECT = pygame.Rect(100, 100, 150, 50)
WINDOW_TITLE: str = "Animation"


class PygameFrameSink(IFrameSink):
    """
    Draws epicycle frames onto a pygame surface.

    Layout per frame: black background, time label, optional waveform
    status bar with a playback cursor, grey raw vectors, cyan positive
    chain, magenta negative chain, yellow highlight on the endpoint.
    """

    def __init__(
        self,
        settings: RenderSettingsDTO,
        signal: Optional[MonoSignal] = None,
        on_quit: Optional[Callable[[], None]] = None,
    ) -> None:
        self.width: int = settings.width
        self.height: int = settings.height
        self.headless: bool = settings.headless
        self.on_quit: Optional[Callable[[], None]] = on_quit
        self._duration: float = signal.duration if signal is not None else 0.0

        try:
            if self.headless:
                self.surface: pygame.Surface = pygame.Surface((self.width, self.height))
            else:
                pygame.display.init()
                self.surface = pygame.display.set_mode((self.width, self.height))
                pygame.display.set_caption(WINDOW_TITLE)
        except pygame.error as exc:
            raise ResourceUnavailableError(
                f"Could not open a {self.width}x{self.height} drawing surface: {exc}.\n"
                f"    → Use --export-dir with --headless on machines without a display."
            ) from exc

        try:
            self.font: pygame.font.Font = self._load_font(settings.font_path, settings.font_size)
        except ResourceUnavailableError:
            if not self.headless:
                pygame.display.quit()
            raise

        self._status_bar: Optional[pygame.Surface] = None
        if settings.draw_waveform and signal is not None:
            self._status_bar = self._render_status_bar(signal.samples)

        logger.debug(
            "opened %s surface %dx%d",
            "off-screen" if self.headless else "window", self.width, self.height,
        )

    # ── Setup ────────────────────────────────────────────────────

    @staticmethod
    def _load_font(font_path: Optional[str], font_size: int) -> pygame.font.Font:
        try:
            pygame.font.init()
            font = pygame.font.Font(font_path, font_size)
        except (pygame.error, OSError) as exc:
            raise ResourceUnavailableError(
                f"Could not load font '{font_path or 'default'}': {exc}.\n"
                f"    → Check the --font path, or omit it to use the built-in font."
            ) from exc
        font.set_bold(True)
        return font

    def _render_status_bar(self, samples: np.ndarray) -> pygame.Surface:
        """Waveform strip, drawn once and blitted every frame."""
        bar = pygame.Surface((self.width, STATUS_BAR_HEIGHT))
        bar.fill(BACKGROUND)

        n: int = len(samples)
        xs: np.ndarray = (np.arange(n) / n * self.width).astype(np.int64)
        ys: np.ndarray = (STATUS_BAR_HEIGHT / 2.0 + samples * STATUS_BAR_HEIGHT / 2.0).astype(np.int64)
        xs = np.clip(xs, 0, self.width - 1)
        ys = np.clip(ys, 0, STATUS_BAR_HEIGHT - 1)

        # Thousands of samples land on each pixel column
        for x, y in np.unique(np.column_stack([xs, ys]), axis=0):
            bar.set_at((int(x), int(y)), WAVEFORM_COLOR)
        return bar

    # ── IFrameSink ───────────────────────────────────────────────

    def present(self, frame: FrameDTO) -> None:
        if not self.headless:
            self._pump_events()

        self.surface.fill(BACKGROUND)
        self._draw_label(frame.time_label)
        if self._status_bar is not None:
            self._draw_status_bar(frame.simulated_time)

        origin = to_canvas_point(0j, self.width, self.height)
        if frame.raw_vectors is not None:
            for tx, ty in to_canvas_points(frame.raw_vectors, self.width, self.height):
                pygame.draw.line(self.surface, RAW_VECTOR_COLOR, origin, (int(tx), int(ty)))

        points = [(int(x), int(y)) for x, y in to_canvas_points(frame.chain, self.width, self.height)]
        positive = points[: frame.positive_count + 1]
        negative = points[frame.positive_count:]
        if len(positive) >= 2:
            pygame.draw.lines(self.surface, POSITIVE_COLOR, False, positive)
        if len(negative) >= 2:
            pygame.draw.lines(self.surface, NEGATIVE_COLOR, False, negative)

        hx, hy = to_canvas_point(frame.highlight, self.width, self.height)
        half: int = HIGHLIGHT_SIZE // 2
        self.surface.fill(
            HIGHLIGHT_COLOR, pygame.Rect(hx - half, hy - half, HIGHLIGHT_SIZE, HIGHLIGHT_SIZE)
        )

        if not self.headless:
            pygame.display.flip()

    def export_frame(self, frame_index: int) -> bytes:
        raw: bytes = pygame.image.tostring(self.surface, "RGB")
        img: Image.Image = Image.frombytes("RGB", (self.width, self.height), raw)
        buffer = io.BytesIO()
        img.save(buffer, "PNG")
        logger.debug("frame %06d encoded (%d bytes)", frame_index, buffer.tell())
        return buffer.getvalue()

    def close(self) -> None:
        if not self.headless:
            pygame.display.quit()
        pygame.font.quit()

    # ── Private ──────────────────────────────────────────────────

    def _pump_events(self) -> None:
        for event in pygame.event.get():
            if event.type == pygame.QUIT and self.on_quit is not None:
                logger.info("window closed, stopping")
                self.on_quit()

    def _draw_label(self, text: str) -> None:
        rendered: pygame.Surface = self.font.render(text, True, TEXT_COLOR)
        self.surface.blit(pygame.transform.smoothscale(rendered, LABEL_RECT.size), LABEL_RECT)

    def _draw_status_bar(self, simulated_time_s: float) -> None:
        top: int = self.height - STATUS_BAR_HEIGHT
        self.surface.blit(self._status_bar, (0, top))
        cursor_x: int = int(simulated_time_s / self._duration * self.width) if self._duration else 0
        self.surface.fill(CURSOR_COLOR, pygame.Rect(cursor_x, top, CURSOR_WIDTH, STATUS_BAR_HEIGHT))
