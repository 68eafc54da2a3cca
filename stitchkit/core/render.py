from __future__ import annotations

import io
import logging

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from ..settings import CELL_PX, RULER_PX
from .types import PatternResult

logger = logging.getLogger(__name__)

BACKGROUND = (255, 255, 255)
MINOR_GRID = (190, 190, 190)
MAJOR_GRID = (40, 40, 40)
LABEL_COLOR = (0, 0, 0)
MAJOR_EVERY = 5

FONT_CANDIDATES = (
    "DejaVuSans.ttf",
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
)


def contrast_color(rgb) -> tuple[int, int, int]:
    r, g, b = (int(c) for c in rgb)
    brightness = (r * 299 + g * 587 + b * 114) / 1000
    return (0, 0, 0) if brightness > 128 else (255, 255, 255)


def load_font(size: int):
    for candidate in FONT_CANDIDATES:
        try:
            return ImageFont.truetype(candidate, size)
        except OSError:
            continue
    logger.debug("No TrueType font found, using Pillow default")
    return ImageFont.load_default(size=size)


def draw_centered(draw: ImageDraw.ImageDraw, cx: float, cy: float, text: str, fill, font) -> None:
    bbox = draw.textbbox((0, 0), text, font=font)
    tw = bbox[2] - bbox[0]
    th = bbox[3] - bbox[1]
    draw.text((cx - tw / 2 - bbox[0], cy - th / 2 - bbox[1]), text, fill=fill, font=font)


def render_pattern(
    pattern: PatternResult,
    *,
    with_symbols: bool = True,
    cell_px: int = CELL_PX,
    ruler_px: int = RULER_PX,
) -> Image.Image:
    """
    Draw the stitch grid.

    Layout: a ``ruler_px`` margin on the top and left carries axis labels every
    5 stitches; cells are ``cell_px`` squares filled with the assigned thread colour,
    optionally overlaid with the slot symbol. Empty (transparent) cells stay blank.
    """
    cols = pattern.grid.width
    rows = pattern.grid.height

    # cell colours, one row per palette slot plus a trailing background entry for empty cells
    slot_colors = np.array([t.rgb for t in pattern.threads] + [BACKGROUND], dtype=np.uint8)
    lookup = np.where(pattern.empty, len(pattern.threads), pattern.indices)
    cells = slot_colors[lookup]
    cells = np.repeat(np.repeat(cells, cell_px, axis=0), cell_px, axis=1)

    canvas = np.full((rows * cell_px + ruler_px, cols * cell_px + ruler_px, 3), 255, dtype=np.uint8)
    canvas[ruler_px:, ruler_px:] = cells

    img = Image.fromarray(canvas)
    draw = ImageDraw.Draw(img)

    if with_symbols:
        font = load_font(max(8, int(cell_px * 0.7)))
        text_colors = [contrast_color(t.rgb) for t in pattern.threads]
        for cell in pattern.iter_cells():
            cx = ruler_px + cell.x * cell_px + cell_px / 2
            cy = ruler_px + cell.y * cell_px + cell_px / 2
            draw_centered(draw, cx, cy, cell.symbol, text_colors[cell.index], font)

    label_font = load_font(10)
    right = ruler_px + cols * cell_px
    bottom = ruler_px + rows * cell_px

    # minor lines first so major lines sit on top
    for major in (False, True):
        for x in range(cols + 1):
            if (x % MAJOR_EVERY == 0) != major:
                continue
            xpos = ruler_px + x * cell_px
            draw.line(
                [(xpos, ruler_px), (xpos, bottom)],
                fill=MAJOR_GRID if major else MINOR_GRID,
                width=2 if major else 1,
            )
        for y in range(rows + 1):
            if (y % MAJOR_EVERY == 0) != major:
                continue
            ypos = ruler_px + y * cell_px
            draw.line(
                [(ruler_px, ypos), (right, ypos)],
                fill=MAJOR_GRID if major else MINOR_GRID,
                width=2 if major else 1,
            )

    for x in range(0, cols, MAJOR_EVERY):
        draw_centered(draw, ruler_px + x * cell_px, ruler_px / 2, str(x), LABEL_COLOR, label_font)
    for y in range(0, rows, MAJOR_EVERY):
        draw_centered(draw, ruler_px / 2, ruler_px + y * cell_px, str(y), LABEL_COLOR, label_font)

    return img


def render_png(pattern: PatternResult, *, with_symbols: bool = True) -> bytes:
    img = render_pattern(pattern, with_symbols=with_symbols)
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()
