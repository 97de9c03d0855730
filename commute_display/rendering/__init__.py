"""Rendering utilities for the commute display."""

from commute_display.rendering.composer import compose_frame
from commute_display.rendering.emulator import save_frame
from commute_display.rendering.frame_data import FrameData, StopRow, build_frame_data

__all__ = ["FrameData", "StopRow", "build_frame_data", "compose_frame", "save_frame"]
