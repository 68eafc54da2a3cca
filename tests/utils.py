from __future__ import annotations

import io

import numpy as np
from PIL import Image

RED = (255, 0, 0)
GREEN = (0, 255, 0)
BLUE = (0, 0, 255)
WHITE = (255, 255, 255)


def make_four_colour_image() -> np.ndarray:
    """2x2 image: red, green / blue, white."""
    return np.array([[RED, GREEN], [BLUE, WHITE]], dtype=np.uint8)


def make_solid_image(size: int = 10, color=(120, 60, 200)) -> np.ndarray:
    return np.full((size, size, 3), color, dtype=np.uint8)


def make_distinct_colour_image(side: int = 10) -> np.ndarray:
    """``side`` x ``side`` image where every pixel has its own colour."""
    n = side * side
    i = np.arange(n)
    pixels = np.stack([i * 255 // max(n - 1, 1), 255 - (i * 3) % 256, (i * 7) % 256], axis=1)
    return pixels.reshape(side, side, 3).astype(np.uint8)


def make_stripes_image(width: int = 40, height: int = 20, colors=(RED, BLUE, WHITE)) -> np.ndarray:
    canvas = np.zeros((height, width, 3), dtype=np.uint8)
    band = max(1, width // len(colors))
    for k, color in enumerate(colors):
        canvas[:, k * band : (k + 1) * band] = color
    canvas[:, len(colors) * band :] = colors[-1]
    return canvas


def with_alpha(image: np.ndarray, transparent_mask: np.ndarray) -> np.ndarray:
    alpha = np.where(transparent_mask, 0, 255).astype(np.uint8)
    return np.dstack([image, alpha])


def png_bytes(image: np.ndarray) -> bytes:
    buf = io.BytesIO()
    Image.fromarray(image).save(buf, format="PNG")
    return buf.getvalue()
