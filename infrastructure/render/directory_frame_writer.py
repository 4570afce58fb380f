# infrastructure/render/directory_frame_writer.py
# Implementation of IFrameWriter that drops numbered stills into a directory.

import logging
import os

from application.ports.frame_sink_port import IFrameWriter
from epicycles.errors import ResourceUnavailableError
from epicycles.utils import get_frame_path

logger = logging.getLogger("epicycles.render")


class DirectoryFrameWriter(IFrameWriter):
    """Write frame N to <export_dir>/NNNNNN.png, creating the directory on demand."""

    def __init__(self, export_dir: str) -> None:
        self.export_dir: str = export_dir
        try:
            os.makedirs(export_dir, exist_ok=True)
        except OSError as exc:
            raise ResourceUnavailableError(
                f"Could not create export directory '{export_dir}': {exc}.\n"
                f"    → Choose a writable path for --export-dir."
            ) from exc

    def write(self, frame_index: int, image_bytes: bytes) -> str:
        path: str = get_frame_path(self.export_dir, frame_index)
        try:
            with open(path, "wb") as f:
                f.write(image_bytes)
        except OSError as exc:
            raise ResourceUnavailableError(
                f"Could not write frame '{path}': {exc}.\n"
                f"    → Check free disk space and directory permissions."
            ) from exc
        logger.debug("wrote %s", path)
        return path
