from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal, Union

import numpy as np
from PIL import Image
from sklearn.cluster import KMeans
from sklearn.neighbors import KDTree

from ..errors import InvalidInput
from ..settings import QUANTIZE_METHOD

logger = logging.getLogger(__name__)

QuantizeMethod = Literal["median_cut", "max_coverage", "kmeans"]
QUANTIZE_METHODS = ("median_cut", "max_coverage", "kmeans")

# Pillow palettes hold at most 256 entries
MAX_PALETTE_COLORS = 256

_PIL_METHODS = {
    "median_cut": Image.Quantize.MEDIANCUT,
    "max_coverage": Image.Quantize.MAXCOVERAGE,
}


@dataclass(frozen=True)
class QuantizedImage:
    """Palette of representative colours plus a per-pixel index into it."""

    palette: np.ndarray  # (N, 3) uint8
    indices: np.ndarray  # (H, W) int32, every value in [0, N)
    empty: np.ndarray  # (H, W) bool, True where the source pixel was fully transparent

    @property
    def size(self) -> int:
        return int(self.palette.shape[0])

    def colors(self) -> list[tuple[int, int, int]]:
        return [tuple(int(c) for c in row) for row in self.palette]


def as_pixel_array(image: Union[np.ndarray, Image.Image]) -> np.ndarray:
    """Normalise a decoded image to an ``(H, W, 3|4)`` uint8 array."""
    if isinstance(image, Image.Image):
        mode = "RGBA" if "A" in image.getbands() or image.mode == "P" else "RGB"
        image = np.array(image.convert(mode))

    arr = np.asarray(image)
    if arr.ndim == 2:
        arr = np.repeat(arr[:, :, None], 3, axis=2)
    if arr.ndim != 3 or arr.shape[2] not in (3, 4):
        raise InvalidInput(f"Expected an RGB or RGBA buffer, got shape {arr.shape}")
    if arr.shape[0] == 0 or arr.shape[1] == 0:
        raise InvalidInput("Image buffer is empty")

    if arr.dtype != np.uint8:
        if not np.issubdtype(arr.dtype, np.number):
            raise InvalidInput(f"Unsupported pixel dtype {arr.dtype}")
        if arr.min() < 0 or arr.max() > 255:
            raise InvalidInput("Pixel values must lie in 0..255")
        arr = arr.astype(np.uint8)
    return arr


def _representatives_pillow(samples: np.ndarray, max_colors: int, method: str) -> np.ndarray:
    strip = Image.fromarray(np.ascontiguousarray(samples.reshape(1, -1, 3)))
    reduced = strip.quantize(colors=max_colors, method=_PIL_METHODS[method])
    flat_palette = reduced.getpalette() or []
    used = sorted(index for _count, index in reduced.getcolors(maxcolors=MAX_PALETTE_COLORS))
    return np.array([flat_palette[i * 3 : i * 3 + 3] for i in used], dtype=np.uint8)


def _representatives_kmeans(samples: np.ndarray, max_colors: int) -> np.ndarray:
    unique, counts = np.unique(samples, axis=0, return_counts=True)
    if len(unique) <= max_colors:
        return unique.astype(np.uint8)
    kmeans = KMeans(n_clusters=max_colors, n_init=4, random_state=0)
    kmeans.fit(unique.astype(float), sample_weight=counts)
    return np.clip(np.rint(kmeans.cluster_centers_), 0, 255).astype(np.uint8)


def _dedupe(colors: np.ndarray) -> np.ndarray:
    _, first = np.unique(colors, axis=0, return_index=True)
    return colors[np.sort(first)]


def _nearest_indices(pixels: np.ndarray, palette: np.ndarray) -> np.ndarray:
    unique, inverse = np.unique(pixels, axis=0, return_inverse=True)
    kd = KDTree(palette.astype(float))
    _, ind = kd.query(unique.astype(float), k=1)
    return ind[:, 0][inverse.reshape(-1)].astype(np.int64)


def quantize(
    image: Union[np.ndarray, Image.Image],
    max_colors: int,
    method: QuantizeMethod = QUANTIZE_METHOD,  # type: ignore[assignment]
) -> QuantizedImage:
    """
    Reduce ``image`` to at most ``max_colors`` representative colours.

    Steps:
      1) drop fully transparent pixels from the sample set
      2) derive representatives (Pillow median cut / max coverage, or weighted k-means)
      3) map every pixel, transparent ones included, to its nearest representative
      4) drop unused slots and order the palette by pixel count (ties by RGB value)

    The result is deterministic for a fixed buffer, ``max_colors`` and ``method``.
    """
    arr = as_pixel_array(image)

    if isinstance(max_colors, bool) or not isinstance(max_colors, (int, np.integer)):
        raise InvalidInput(f"max_colors must be an integer, got {max_colors!r}")
    if max_colors < 1:
        raise InvalidInput(f"max_colors must be positive, got {max_colors}")
    if method not in QUANTIZE_METHODS:
        raise InvalidInput(f"Unknown quantize method {method!r}")

    effective = min(int(max_colors), MAX_PALETTE_COLORS)
    if effective < max_colors:
        logger.info("max_colors=%d capped to %d", max_colors, effective)

    h, w = arr.shape[:2]
    rgb = arr[:, :, :3].reshape(-1, 3)
    if arr.shape[2] == 4:
        opaque = arr[:, :, 3].reshape(-1) > 0
    else:
        opaque = np.ones(rgb.shape[0], dtype=bool)

    samples = rgb[opaque]
    if samples.shape[0] == 0:
        raise InvalidInput("Image has no opaque pixels")

    if method == "kmeans":
        representatives = _representatives_kmeans(samples, effective)
    else:
        representatives = _representatives_pillow(samples, effective, method)
    representatives = _dedupe(representatives)

    flat = _nearest_indices(rgb, representatives)

    counts = np.bincount(flat[opaque], minlength=len(representatives))
    order = sorted(
        (int(i) for i in np.flatnonzero(counts)),
        key=lambda i: (-int(counts[i]), tuple(int(c) for c in representatives[i])),
    )
    palette = representatives[order]

    remap = np.full(len(representatives), -1, dtype=np.int64)
    remap[order] = np.arange(len(order))
    flat = remap[flat]
    orphaned = flat < 0
    if orphaned.any():
        # only transparent pixels can point at a dropped slot
        flat[orphaned] = _nearest_indices(rgb[orphaned], palette)

    indices = flat.reshape(h, w).astype(np.int32)
    empty = (~opaque).reshape(h, w)
    for a in (palette, indices, empty):
        a.flags.writeable = False

    logger.debug(
        "Quantized %dx%d image to %d colours (%s, requested %d)",
        w,
        h,
        len(palette),
        method,
        max_colors,
    )
    return QuantizedImage(palette=palette, indices=indices, empty=empty)


__all__ = ["QuantizedImage", "QuantizeMethod", "QUANTIZE_METHODS", "as_pixel_array", "quantize"]
