from __future__ import annotations

import math

import numpy as np

from ..errors import InvalidInput
from ..models.pattern import GridDimensions


def grid_dimensions(
    image_width: int,
    image_height: int,
    hoop_diameter: float,
    fabric_count: int,
) -> GridDimensions:
    """
    Stitch grid for a hoop: the width spans the hoop diameter at the fabric count,
    the height follows the image aspect ratio (floored).
    """
    if image_width <= 0 or image_height <= 0:
        raise InvalidInput("Image buffer is empty")
    width = int(hoop_diameter * fabric_count)
    height = math.floor(width * image_height / image_width)
    if width < 1 or height < 1:
        raise InvalidInput(
            f"Grid would be {width}x{height} stitches; increase hoop size or fabric count"
        )
    return GridDimensions(width=width, height=height)


# a downsampled cell is stitched when at least half of its source area is opaque
OPAQUE_COVERAGE = 0.5


def _resize(image: np.ndarray, size, interpolation) -> np.ndarray:
    """
    Resize an RGB or RGBA buffer. RGBA colours are alpha-weighted so fully
    transparent pixels never bleed into neighbouring cells.
    """
    import cv2

    if image.ndim != 3 or image.shape[2] != 4:
        return cv2.resize(image, size, interpolation=interpolation)

    alpha = image[:, :, 3].astype(np.float32) / 255.0
    premultiplied = image[:, :, :3].astype(np.float32) * alpha[:, :, None]
    rgb = cv2.resize(premultiplied, size, interpolation=interpolation)
    coverage = cv2.resize(alpha, size, interpolation=interpolation)

    safe = np.where(coverage > 0, coverage, 1.0)[:, :, None]
    rgb = np.where(coverage[:, :, None] > 0, rgb / safe, 0.0)
    out = np.empty(rgb.shape[:2] + (4,), dtype=np.uint8)
    out[:, :, :3] = np.clip(np.rint(rgb), 0, 255).astype(np.uint8)
    out[:, :, 3] = np.clip(np.rint(coverage * 255.0), 0, 255).astype(np.uint8)
    return out


def downsample_to_grid(image: np.ndarray, grid: GridDimensions) -> np.ndarray:
    """
    Resize the decoded image so that one pixel becomes one stitch cell.
    Area averaging when shrinking; nearest neighbour when enlarging so no new colours appear.

    For RGBA input the result alpha is binary: cells with less than ``OPAQUE_COVERAGE``
    opaque area become fully transparent (empty), all others fully opaque.
    """
    import cv2

    h, w = image.shape[:2]
    if (w, h) == (grid.width, grid.height):
        small = image.copy()
    else:
        shrinking = grid.width <= w and grid.height <= h
        interpolation = cv2.INTER_AREA if shrinking else cv2.INTER_NEAREST
        small = _resize(image, (grid.width, grid.height), interpolation)

    if small.ndim == 3 and small.shape[2] == 4:
        coverage = small[:, :, 3].astype(np.float32) / 255.0
        small[:, :, 3] = np.where(coverage >= OPAQUE_COVERAGE, 255, 0)
    return small


def limit_image_side(image: np.ndarray, max_side: int) -> np.ndarray:
    """Pre-downsample very large uploads before the grid resize."""
    import cv2

    h, w = image.shape[:2]
    longest = max(h, w)
    if longest <= max_side:
        return image
    scale = max_side / float(longest)
    new_w = max(1, int(round(w * scale)))
    new_h = max(1, int(round(h * scale)))
    return _resize(image, (new_w, new_h), cv2.INTER_AREA)
