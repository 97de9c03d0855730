"""Frame output helpers for running the display without a screen."""

from __future__ import annotations

from pathlib import Path

from PIL import Image


def save_frame(image: Image.Image, path: str = "emulator_output/frame.png") -> Path:
    """Save a frame to disk as a PNG image, replacing the previous one."""
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    staging_path = output_path.with_name(f".{output_path.name}.tmp")
    image.save(staging_path, format="PNG")
    staging_path.replace(output_path)
    return output_path


__all__ = ["save_frame"]
