import logging
from functools import lru_cache
from typing import List, Mapping, Optional, Sequence, Union

import numpy as np
from PIL import Image
from pydantic import ValidationError

from ..color.catalog_loader import load_catalog
from ..color.catalog_matcher import ThreadMatcher
from ..errors import InvalidInput
from ..models.pattern import GenerateParams, Thread
from ..settings import DEFAULT_BRAND, QUANTIZE_METHOD, SWAP_CANDIDATES
from .assembler import assemble
from .dimensions import downsample_to_grid, grid_dimensions
from .quantizer import QuantizeMethod, as_pixel_array, quantize
from .session import PatternSession

logger = logging.getLogger(__name__)


@lru_cache(maxsize=8)
def get_matcher(brand: str = DEFAULT_BRAND) -> ThreadMatcher:
    """Process-wide matcher over the cached catalog of ``brand``."""
    return ThreadMatcher(load_catalog(brand))


def _coerce_params(params: Union[GenerateParams, Mapping]) -> GenerateParams:
    if isinstance(params, GenerateParams):
        return params
    try:
        return GenerateParams.model_validate(dict(params))
    except ValidationError as exc:
        raise InvalidInput(f"Invalid generation parameters: {exc}") from exc


# =====================================================================
#  IMAGE → PATTERN
# =====================================================================


def generate(
    image: Union[np.ndarray, Image.Image],
    params: Union[GenerateParams, Mapping],
    *,
    method: Optional[QuantizeMethod] = None,
    catalog: Optional[Sequence[Thread]] = None,
) -> PatternSession:
    """
    Main pipeline:
      1) validate parameters and image buffer
      2) derive the stitch grid from hoop diameter x fabric count
      3) downsample the image to one pixel per stitch
      4) quantize to at most ``max_colors`` representative colours
      5) match each colour to its nearest catalog thread and bind symbols

    Returns a fresh edit session; nothing is shared with earlier sessions.
    Any failure aborts the whole request.
    """
    params = _coerce_params(params)
    pixels = as_pixel_array(image)
    img_h, img_w = pixels.shape[:2]

    grid = grid_dimensions(img_w, img_h, params.hoop_diameter, params.fabric_count)
    matcher = ThreadMatcher(catalog) if catalog is not None else get_matcher()

    small = downsample_to_grid(pixels, grid)
    quantized = quantize(small, params.max_colors, method=method or QUANTIZE_METHOD)
    pattern = assemble(grid, quantized, matcher)

    logger.info(
        "Generated %dx%d pattern from %dx%d image (%d colours requested, %d used)",
        grid.width,
        grid.height,
        img_w,
        img_h,
        params.max_colors,
        pattern.stats.colors_used,
    )
    return PatternSession(pattern, matcher)


# =====================================================================
#  EDIT LOOP
# =====================================================================


def reassign(session: PatternSession, index: int, thread: Union[Thread, str]) -> Thread:
    return session.reassign(index, thread)


def list_alternatives(
    session: PatternSession,
    index: int,
    count: int = SWAP_CANDIDATES,
) -> List[Thread]:
    return session.list_alternatives(index, count)
