"""Frame composer for the always-on commute display."""

from __future__ import annotations

from pathlib import Path

from PIL import Image, ImageDraw, ImageFont

from commute_display.rendering.frame_data import (
    DURATION,
    LAST_CALL,
    LIVE,
    SCHEDULED,
    UNKNOWN,
    FrameData,
    StopRow,
)

DISPLAY_WIDTH = 256
HEADER_HEIGHT = 16
ROW_HEIGHT = 16
MAX_ROWS = 6
DISPLAY_HEIGHT = HEADER_HEIGHT + ROW_HEIGHT * MAX_ROWS
MIN_WIDTH = 128

DOT_DIAMETER = 6
DOT_RADIUS = DOT_DIAMETER // 2
DOT_LEFT_MARGIN = 4
DOT_CENTER_OFFSET = DOT_LEFT_MARGIN + DOT_RADIUS

TEXT_LEFT_X = 14
TEXT_RIGHT_MARGIN = 4
TEXT_GAP = 6

HEADER_COLOR = (18, 18, 18)
ROW_LINE_COLOR = (15, 15, 15)

COLOR_TEXT = (255, 255, 255)
COLOR_DIM_TEXT = (72, 72, 72)
COLOR_CLOCK = (136, 136, 136)

COLOR_LIVE = (0, 200, 0)
COLOR_SCHEDULED = (200, 200, 200)
COLOR_LAST_CALL = (220, 180, 0)
COLOR_DURATION = (0, 120, 220)
COLOR_UNKNOWN = (72, 72, 72)

FONT_REGULAR = Path(__file__).resolve().parents[2] / "assets" / "fonts" / "TerminusTTF-4.49.3.ttf"


def _load_font(size: int) -> ImageFont.ImageFont | ImageFont.FreeTypeFont:
    if FONT_REGULAR.exists():
        return ImageFont.truetype(str(FONT_REGULAR), size)
    return ImageFont.load_default()


FONT_TEXT = _load_font(10)
FONT_CLOCK = _load_font(10)


def _dot_color(status: str) -> tuple[int, int, int]:
    if status == LIVE:
        return COLOR_LIVE
    if status == SCHEDULED:
        return COLOR_SCHEDULED
    if status == LAST_CALL:
        return COLOR_LAST_CALL
    if status == DURATION:
        return COLOR_DURATION
    return COLOR_UNKNOWN


def _fit(draw: ImageDraw.ImageDraw, text: str, font, max_width: int) -> str:
    if max_width <= 0:
        return ""
    if draw.textlength(text, font=font) <= max_width:
        return text
    while text and draw.textlength(text + "..", font=font) > max_width:
        text = text[:-1]
    return f"{text}.." if text else ""


def _draw_row(draw: ImageDraw.ImageDraw, index: int, row: StopRow, width: int) -> None:
    row_top = HEADER_HEIGHT + index * ROW_HEIGHT

    dot_top = row_top + (ROW_HEIGHT - DOT_DIAMETER) // 2
    dot_left = DOT_LEFT_MARGIN
    draw.ellipse(
        [dot_left, dot_top, dot_left + DOT_DIAMETER - 1, dot_top + DOT_DIAMETER - 1],
        fill=_dot_color(row.status),
    )

    value_text = row.primary_text
    if row.secondary_text:
        value_text = f"{value_text}  {row.secondary_text}"
    value_color = COLOR_DIM_TEXT if row.status == UNKNOWN else COLOR_TEXT
    value_width = int(draw.textlength(value_text, font=FONT_TEXT))
    value_x = width - TEXT_RIGHT_MARGIN - value_width

    bbox = draw.textbbox((0, 0), value_text or "0", font=FONT_TEXT)
    text_height = bbox[3] - bbox[1]
    text_y = row_top + (ROW_HEIGHT - text_height) // 2 - bbox[1]

    label = _fit(draw, row.label, FONT_TEXT, value_x - TEXT_GAP - TEXT_LEFT_X)
    draw.text((TEXT_LEFT_X, text_y), label, font=FONT_TEXT, fill=COLOR_TEXT)
    draw.text((value_x, text_y), value_text, font=FONT_TEXT, fill=value_color)


def compose_frame(data: FrameData, width: int = DISPLAY_WIDTH, height: int = DISPLAY_HEIGHT) -> Image.Image:
    """Compose an RGB frame: a clock header followed by one row per stop."""
    if width < MIN_WIDTH:
        raise ValueError(f"Width must be at least {MIN_WIDTH}, got {width}.")
    if height < HEADER_HEIGHT + ROW_HEIGHT:
        raise ValueError(f"Height must be at least {HEADER_HEIGHT + ROW_HEIGHT}, got {height}.")

    image = Image.new("RGB", (width, height), (0, 0, 0))
    draw = ImageDraw.Draw(image)

    draw.rectangle((0, 0, width - 1, HEADER_HEIGHT - 1), fill=HEADER_COLOR)
    clock_width = int(draw.textlength(data.clock_text, font=FONT_CLOCK))
    draw.text(
        (width - TEXT_RIGHT_MARGIN - clock_width, 3),
        data.clock_text,
        font=FONT_CLOCK,
        fill=COLOR_CLOCK,
    )

    capacity = (height - HEADER_HEIGHT) // ROW_HEIGHT
    for idx, row in enumerate(list(data.rows)[:capacity]):
        _draw_row(draw, idx, row, width)
        if idx > 0:
            y = HEADER_HEIGHT + idx * ROW_HEIGHT
            draw.line((TEXT_LEFT_X, y, width - 1, y), fill=ROW_LINE_COLOR)

    return image


__all__ = ["compose_frame"]
