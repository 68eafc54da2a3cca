from __future__ import annotations

import logging

from ..color.catalog_matcher import ThreadMatcher
from ..errors import InvalidInput
from ..models.pattern import GridDimensions
from .quantizer import QuantizedImage
from .symbols import bind_symbols
from .types import PatternResult, PatternStats

logger = logging.getLogger(__name__)


def assemble(
    grid: GridDimensions,
    quantized: QuantizedImage,
    matcher: ThreadMatcher,
) -> PatternResult:
    """
    Bind the nearest catalog thread and a symbol to every palette slot.

    The quantized grid must already be at stitch resolution.
    """
    expected = (grid.height, grid.width)
    if tuple(quantized.indices.shape) != expected:
        raise InvalidInput(
            f"Indexed grid is {quantized.indices.shape[1]}x{quantized.indices.shape[0]}, "
            f"expected {grid.width}x{grid.height}"
        )
    if quantized.size < 1:
        raise InvalidInput("Palette is empty")

    threads = tuple(matcher.nearest(color) for color in quantized.colors())
    symbols, reused = bind_symbols(quantized.size)

    stats = PatternStats(
        total_stitches=grid.cells,
        stitched_cells=int((~quantized.empty).sum()),
        colors_used=quantized.size,
        symbols_reused=reused,
    )
    logger.info(
        "Assembled %dx%d pattern: %d colours, %d stitched cells",
        grid.width,
        grid.height,
        stats.colors_used,
        stats.stitched_cells,
    )
    return PatternResult(
        grid=grid,
        palette=quantized.palette,
        indices=quantized.indices,
        empty=quantized.empty,
        threads=threads,
        symbols=symbols,
        stats=stats,
    )
