"""Video-Quellen und Frame-Extraktion."""

from .frame_extractor import FrameExtractor
from .frame_source import FrameSource, OpenCVFrameSource

__all__ = ["FrameExtractor", "FrameSource", "OpenCVFrameSource"]
