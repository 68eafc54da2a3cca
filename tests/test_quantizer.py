from __future__ import annotations

import numpy as np
import pytest
from PIL import Image

from stitchkit.core.quantizer import MAX_PALETTE_COLORS, QUANTIZE_METHODS, as_pixel_array, quantize
from stitchkit.errors import InvalidInput
from tests.utils import BLUE, GREEN, RED, WHITE, make_distinct_colour_image, make_four_colour_image, make_solid_image, make_stripes_image, with_alpha


def test_four_colours_ordered_by_count_then_rgb():
    q = quantize(make_four_colour_image(), 4)
    assert q.colors() == [BLUE, GREEN, RED, WHITE]
    assert sorted(q.indices.reshape(-1).tolist()) == [0, 1, 2, 3]
    assert q.colors()[q.indices[0, 0]] == RED
    assert not q.empty.any()


def test_palette_ordered_by_frequency():
    img = np.zeros((4, 4, 3), dtype=np.uint8)
    img[:] = RED
    img[0, :2] = BLUE
    q = quantize(img, 8)
    assert q.colors() == [RED, BLUE]


@pytest.mark.parametrize("method", QUANTIZE_METHODS)
@pytest.mark.parametrize("max_colors", [1, 3, 7])
def test_palette_never_exceeds_max_colors(method, max_colors):
    q = quantize(make_distinct_colour_image(12), max_colors, method=method)
    assert 1 <= q.size <= max_colors
    assert q.indices.min() >= 0
    assert q.indices.max() < q.size


@pytest.mark.parametrize("method", QUANTIZE_METHODS)
def test_quantize_is_idempotent(method):
    img = make_distinct_colour_image(9)
    first = quantize(img, 6, method=method)
    second = quantize(img, 6, method=method)
    assert np.array_equal(first.palette, second.palette)
    assert np.array_equal(first.indices, second.indices)


def test_solid_image_has_single_colour():
    q = quantize(make_solid_image(10), 5)
    assert q.size == 1
    assert (q.indices == 0).all()


def test_every_slot_is_used():
    q = quantize(make_stripes_image(), 10)
    counts = np.bincount(q.indices.reshape(-1), minlength=q.size)
    assert (counts > 0).all()


def test_transparent_pixels_are_marked_empty_and_ignored():
    img = make_stripes_image(30, 10, colors=(RED, BLUE, GREEN))
    mask = np.zeros(img.shape[:2], dtype=bool)
    mask[:, 20:] = True
    q = quantize(with_alpha(img, mask), 5)
    assert q.empty[:, 20:].all()
    assert not q.empty[:, :20].any()
    assert set(q.colors()) == {RED, BLUE}
    assert q.indices.max() < q.size


def test_fully_transparent_image_is_rejected():
    img = with_alpha(make_solid_image(4), np.ones((4, 4), dtype=bool))
    with pytest.raises(InvalidInput):
        quantize(img, 3)


def test_result_arrays_are_read_only():
    q = quantize(make_four_colour_image(), 4)
    with pytest.raises(ValueError):
        q.indices[0, 0] = 1


def test_max_colors_is_capped():
    q = quantize(make_distinct_colour_image(20), 1000)
    assert q.size <= MAX_PALETTE_COLORS


@pytest.mark.parametrize("bad", [0, -1, 2.5, True, "4"])
def test_invalid_max_colors(bad):
    with pytest.raises(InvalidInput):
        quantize(make_four_colour_image(), bad)


def test_unknown_method():
    with pytest.raises(InvalidInput):
        quantize(make_four_colour_image(), 4, method="octree")


def test_pixel_array_normalisation():
    grey = np.full((3, 5), 128, dtype=np.uint8)
    assert as_pixel_array(grey).shape == (3, 5, 3)
    pil = Image.new("RGBA", (4, 2), (10, 20, 30, 0))
    assert as_pixel_array(pil).shape == (2, 4, 4)
    with pytest.raises(InvalidInput):
        as_pixel_array(np.zeros((0, 4, 3), dtype=np.uint8))
    with pytest.raises(InvalidInput):
        as_pixel_array(np.zeros((4, 4, 2), dtype=np.uint8))
