# application/ports/frame_sink_port.py
# Port interfaces for presenting and exporting frames.
# Domain layer — must not import infrastructure or adapter code.

from abc import ABC, abstractmethod

from application.dto.render_dto import FrameDTO


class IFrameSink(ABC):
    """Anything that can draw a frame and, on request, hand back its pixels."""

    @abstractmethod
    def present(self, frame: FrameDTO) -> None:
        """Draw *frame* and show it (or keep it off-screen when headless)."""
        ...

    @abstractmethod
    def export_frame(self, frame_index: int) -> bytes:
        """
        Encode the most recently presented frame.

        Args:
            frame_index: Index of the frame being exported.

        Returns:
            Encoded still image bytes (RGB raster).
        """
        ...

    def close(self) -> None:
        """Release the drawing surface."""
        return None


class IFrameWriter(ABC):
    """Destination for exported stills."""

    @abstractmethod
    def write(self, frame_index: int, image_bytes: bytes) -> str:
        """Persist one still and return where it went."""
        ...
