# infrastructure/render/__init__.py
from .directory_frame_writer import DirectoryFrameWriter
from .pygame_frame_sink import PygameFrameSink

__all__ = [
    "DirectoryFrameWriter",
    "PygameFrameSink",
]
