"""sRGB -> CIE Lab (D65) conversion and perceptual distance."""

from __future__ import annotations

import math
from functools import lru_cache
from typing import Sequence, Tuple

import numpy as np

Lab = Tuple[float, float, float]

# D65 reference white, XYZ scaled to 0..100
REF_X = 95.047
REF_Y = 100.000
REF_Z = 108.883

_RGB_TO_XYZ = np.array(
    [
        [0.4124, 0.3576, 0.1805],
        [0.2126, 0.7152, 0.0722],
        [0.0193, 0.1192, 0.9505],
    ],
    dtype=float,
)


def _linearize(c: float) -> float:
    c = c / 255.0
    if c > 0.04045:
        return math.pow((c + 0.055) / 1.055, 2.4)
    return c / 12.92


def _f(t: float) -> float:
    if t > 0.008856:
        return math.pow(t, 1.0 / 3.0)
    return 7.787 * t + 16.0 / 116.0


@lru_cache(maxsize=65536)
def _rgb_to_lab_cached(r: int, g: int, b: int) -> Lab:
    r_ = _linearize(r) * 100.0
    g_ = _linearize(g) * 100.0
    b_ = _linearize(b) * 100.0

    x = r_ * 0.4124 + g_ * 0.3576 + b_ * 0.1805
    y = r_ * 0.2126 + g_ * 0.7152 + b_ * 0.0722
    z = r_ * 0.0193 + g_ * 0.1192 + b_ * 0.9505

    fx = _f(x / REF_X)
    fy = _f(y / REF_Y)
    fz = _f(z / REF_Z)

    return (116.0 * fy - 16.0, 500.0 * (fx - fy), 200.0 * (fy - fz))


def rgb_to_lab(rgb: Sequence[int]) -> Lab:
    """Convert an 8-bit sRGB triple to CIE Lab. Memoized per distinct colour."""
    r, g, b = (int(c) for c in rgb[:3])
    return _rgb_to_lab_cached(r, g, b)


def lab_distance(lab_a: Sequence[float], lab_b: Sequence[float]) -> float:
    dl = lab_a[0] - lab_b[0]
    da = lab_a[1] - lab_b[1]
    db = lab_a[2] - lab_b[2]
    return math.sqrt(dl * dl + da * da + db * db)


def color_distance(rgb_a: Sequence[int], rgb_b: Sequence[int]) -> float:
    return lab_distance(rgb_to_lab(rgb_a), rgb_to_lab(rgb_b))


def rgb_to_lab_array(rgb: np.ndarray) -> np.ndarray:
    """
    Vectorised conversion for an ``(N, 3)`` array of 8-bit colours.
    Used to build the catalog search index; single lookups go through ``rgb_to_lab``.
    """
    arr = np.asarray(rgb, dtype=float).reshape(-1, 3) / 255.0
    linear = np.where(arr > 0.04045, ((arr + 0.055) / 1.055) ** 2.4, arr / 12.92) * 100.0
    xyz = linear @ _RGB_TO_XYZ.T
    xyz = xyz / np.array([REF_X, REF_Y, REF_Z])
    f = np.where(xyz > 0.008856, np.cbrt(xyz), 7.787 * xyz + 16.0 / 116.0)
    lab = np.empty_like(f)
    lab[:, 0] = 116.0 * f[:, 1] - 16.0
    lab[:, 1] = 500.0 * (f[:, 0] - f[:, 1])
    lab[:, 2] = 200.0 * (f[:, 1] - f[:, 2])
    return lab


__all__ = ["Lab", "rgb_to_lab", "rgb_to_lab_array", "lab_distance", "color_distance"]
