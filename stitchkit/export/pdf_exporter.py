import io
import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

from PIL import Image, ImageDraw
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFError, TTFont
from reportlab.pdfgen import canvas

from ..core.legend import build_legend
from ..core.render import contrast_color, draw_centered, load_font, render_pattern
from ..core.types import PatternResult
from ..settings import CELL_PX, RULER_PX

logger = logging.getLogger(__name__)

PAGE_W_MM = 210
PAGE_H_MM = 297
MARGIN_MM = 10

STITCHES_PER_PAGE_X = 70
STITCHES_PER_PAGE_Y = 90
# a 6" hoop on 14 count fabric is 84 stitches; anything up to that fits on one page
SINGLE_PAGE_MAX = (84, 108)

SWATCH_PX = 48
KEY_ROW_MM = 9

FONT_CANDIDATES = [
    Path("assets/fonts/DejaVuSans.ttf"),
    Path("/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf"),
    Path("/usr/local/share/fonts/DejaVuSans.ttf"),
]
FONT_NAME = "DejaVuSans"


@dataclass(frozen=True)
class Tile:
    number: int
    row: int
    col: int
    box: Tuple[int, int, int, int]  # left, top, right, bottom in raster pixels


@dataclass(frozen=True)
class TilePlan:
    rows: int
    cols: int
    stitches_x: int
    stitches_y: int
    tiles: List[Tile]

    @property
    def multi_page(self) -> bool:
        return self.rows * self.cols > 1


def plan_tiles(
    grid_w: int,
    grid_h: int,
    *,
    cell_px: int = CELL_PX,
    ruler_px: int = RULER_PX,
    stitches_x: int = STITCHES_PER_PAGE_X,
    stitches_y: int = STITCHES_PER_PAGE_Y,
) -> TilePlan:
    """
    Split the rendered raster into printable tiles.

    The first column / row of tiles also carries the ruler margin so axis labels
    are printed once; edge tiles are clipped to the raster.
    """
    if grid_w <= SINGLE_PAGE_MAX[0] and grid_h <= SINGLE_PAGE_MAX[1]:
        stitches_x, stitches_y = grid_w, grid_h

    cols = math.ceil(grid_w / stitches_x)
    rows = math.ceil(grid_h / stitches_y)
    raster_w = ruler_px + grid_w * cell_px
    raster_h = ruler_px + grid_h * cell_px

    tiles: List[Tile] = []
    for r in range(rows):
        for c in range(cols):
            if c == 0:
                left, width = 0, ruler_px + stitches_x * cell_px
            else:
                left, width = ruler_px + c * stitches_x * cell_px, stitches_x * cell_px
            if r == 0:
                top, height = 0, ruler_px + stitches_y * cell_px
            else:
                top, height = ruler_px + r * stitches_y * cell_px, stitches_y * cell_px
            right = min(raster_w, left + width)
            bottom = min(raster_h, top + height)
            tiles.append(Tile(number=r * cols + c + 1, row=r, col=c, box=(left, top, right, bottom)))

    return TilePlan(rows=rows, cols=cols, stitches_x=stitches_x, stitches_y=stitches_y, tiles=tiles)


def _ensure_font() -> str:
    try:
        pdfmetrics.getFont(FONT_NAME)
        return FONT_NAME
    except KeyError:
        pass

    for candidate in FONT_CANDIDATES:
        if candidate.exists():
            try:
                pdfmetrics.registerFont(TTFont(FONT_NAME, str(candidate)))
                return FONT_NAME
            except (TTFError, OSError) as exc:
                logger.warning("Failed to register font %s: %s", candidate, exc)
                continue
    return "Helvetica"


def _bold(font_name: str) -> str:
    if font_name == "Helvetica":
        return "Helvetica-Bold"
    bold = f"{font_name}-Bold"
    return bold if bold in pdfmetrics.getRegisteredFontNames() else font_name


def _swatch_image(rgb, symbol: str) -> Image.Image:
    swatch = Image.new("RGB", (SWATCH_PX, SWATCH_PX), tuple(int(c) for c in rgb))
    draw = ImageDraw.Draw(swatch)
    draw.rectangle([0, 0, SWATCH_PX - 1, SWATCH_PX - 1], outline=(120, 120, 120))
    font = load_font(int(SWATCH_PX * 0.6))
    draw_centered(draw, SWATCH_PX / 2, SWATCH_PX / 2, symbol, contrast_color(rgb), font)
    return swatch


def _top(offset_mm: float) -> float:
    """reportlab y coordinate for a distance measured from the top edge."""
    return (PAGE_H_MM - offset_mm) * mm


def _draw_cover(c: canvas.Canvas, raster: Image.Image, title: str, subtitle: str, font: str) -> None:
    usable_w = (PAGE_W_MM - 2 * MARGIN_MM) * mm
    usable_h = (PAGE_H_MM - 40 - 2 * MARGIN_MM) * mm

    c.setFont(_bold(font), 22)
    c.drawCentredString(PAGE_W_MM / 2 * mm, _top(20), title)
    c.setFont(font, 12)
    c.drawCentredString(PAGE_W_MM / 2 * mm, _top(30), subtitle)

    scale = min(usable_w / raster.width, usable_h / raster.height)
    draw_w = raster.width * scale
    draw_h = raster.height * scale
    c.drawImage(ImageReader(raster), MARGIN_MM * mm, _top(40) - draw_h, width=draw_w, height=draw_h)


def _draw_tiles(c: canvas.Canvas, raster: Image.Image, plan: TilePlan, font: str) -> None:
    usable_w = (PAGE_W_MM - 2 * MARGIN_MM) * mm
    usable_h = (PAGE_H_MM - 2 * MARGIN_MM) * mm

    # one scale for every tile, sized so the largest tile fits
    max_tile_w = RULER_PX + plan.stitches_x * CELL_PX
    max_tile_h = RULER_PX + plan.stitches_y * CELL_PX
    scale = min(usable_w / max_tile_w, usable_h / max_tile_h)

    for tile in plan.tiles:
        c.showPage()
        crop = raster.crop(tile.box)
        print_w = crop.width * scale
        print_h = crop.height * scale

        c.setFont(font, 10)
        c.drawString(
            MARGIN_MM * mm,
            _top(MARGIN_MM - 2),
            f"Page {tile.number} (Row {tile.row + 1}, Col {tile.col + 1})",
        )
        c.drawImage(ImageReader(crop), MARGIN_MM * mm, _top(MARGIN_MM) - print_h, width=print_w, height=print_h)

        if print_w < usable_w or print_h < usable_h:
            # cut line so partial tiles can be trimmed and taped
            c.setStrokeGray(0.78)
            c.rect(MARGIN_MM * mm, _top(MARGIN_MM) - print_h, print_w, print_h)


def _draw_color_key(c: canvas.Canvas, legend: List[dict], font: str) -> None:
    c.showPage()
    c.setFont(_bold(font), 16)
    c.drawString(MARGIN_MM * mm, _top(MARGIN_MM + 5), "Color Key")

    y = MARGIN_MM + 15
    for entry in legend:
        if y + KEY_ROW_MM > PAGE_H_MM - MARGIN_MM:
            c.showPage()
            y = MARGIN_MM
        swatch = _swatch_image(entry["rgb"], entry["symbol"])
        size = (KEY_ROW_MM - 2) * mm
        c.drawImage(ImageReader(swatch), MARGIN_MM * mm, _top(y) - size, width=size, height=size)
        c.setFont(font, 11)
        line = f"{entry['brand']} {entry['code']}  {entry['name']}  ({entry['count']} stitches)"
        c.drawString(MARGIN_MM * mm + size + 4 * mm, _top(y) - size / 2 - 4, line)
        y += KEY_ROW_MM


def export_pdf(
    pattern: PatternResult,
    *,
    title: str = "Cross Stitch Pattern",
    hoop_diameter: Optional[float] = None,
    fabric_count: Optional[int] = None,
) -> bytes:
    """
    Printable A4 document: cover page with a full preview, tiled chart pages when the
    grid does not fit on one page, and a colour key.
    """
    raster = render_pattern(pattern, with_symbols=True)
    plan = plan_tiles(pattern.grid.width, pattern.grid.height)

    subtitle = f"Size: {pattern.grid.width} x {pattern.grid.height} stitches"
    if hoop_diameter is not None and fabric_count is not None:
        subtitle += f', {hoop_diameter:g}" hoop with {fabric_count} count fabric'

    buffer = io.BytesIO()
    c = canvas.Canvas(buffer, pagesize=A4)
    c.setTitle(title)

    font = _ensure_font()
    _draw_cover(c, raster, title, subtitle, font)
    if plan.multi_page:
        c.setFont(font, 12)
        c.drawCentredString(PAGE_W_MM / 2 * mm, 17 * mm, "Pattern continues on next pages...")
        _draw_tiles(c, raster, plan, font)

    _draw_color_key(c, build_legend(pattern), font)

    c.showPage()
    c.save()
    logger.info(
        "Exported PDF: %d chart tile(s), %d legend rows",
        len(plan.tiles) if plan.multi_page else 0,
        len(pattern.threads),
    )
    return buffer.getvalue()
