from __future__ import annotations

import numpy as np
import pytest

from stitchkit.color.lab import color_distance
from stitchkit.core.assembler import assemble
from stitchkit.core.dimensions import downsample_to_grid, grid_dimensions, limit_image_side
from stitchkit.core.pipeline import generate, get_matcher, reassign
from stitchkit.core.quantizer import quantize
from stitchkit.core.symbols import SYMBOL_TABLE
from stitchkit.errors import CapacityExceeded, InvalidInput
from stitchkit.models.pattern import GenerateParams, GridDimensions
from tests.utils import RED, make_distinct_colour_image, make_four_colour_image, make_solid_image, make_stripes_image, with_alpha


def _params(hoop=1, count=2, max_colors=4):
    return {"hoop_diameter": hoop, "fabric_count": count, "max_colors": max_colors}


def test_grid_follows_hoop_and_aspect_ratio():
    grid = grid_dimensions(400, 300, 6, 14)
    assert (grid.width, grid.height) == (84, 63)
    grid = grid_dimensions(100, 301, 2.5, 10)
    assert (grid.width, grid.height) == (25, 75)


@pytest.mark.parametrize(
    "args",
    [(0, 10, 6, 14), (10, 0, 6, 14), (100, 1, 6, 14), (10, 10, 0.05, 14)],
)
def test_degenerate_grid_is_rejected(args):
    with pytest.raises(InvalidInput):
        grid_dimensions(*args)


def test_downsample_to_grid_shapes():
    img = make_stripes_image(60, 30)
    small = downsample_to_grid(img, GridDimensions(width=12, height=6))
    assert small.shape == (6, 12, 3)
    big = downsample_to_grid(make_four_colour_image(), GridDimensions(width=4, height=4))
    # enlarging never invents colours
    assert {tuple(p) for p in big.reshape(-1, 3)} == {tuple(p) for p in make_four_colour_image().reshape(-1, 3)}


def test_limit_image_side():
    img = np.zeros((50, 200, 3), dtype=np.uint8)
    assert limit_image_side(img, 100).shape == (25, 100, 3)
    assert limit_image_side(img, 500) is img


def test_scenario_four_distinct_colours():
    session = generate(make_four_colour_image(), _params())
    pattern = session.pattern
    assert len(pattern.palette) == 4
    assert sorted(pattern.indices.reshape(-1).tolist()) == [0, 1, 2, 3]

    catalog = get_matcher().catalog
    for original, thread in zip(pattern.original_colors, pattern.threads):
        best = min(color_distance(original, t.rgb) for t in catalog)
        assert color_distance(original, thread.rgb) == pytest.approx(best)


def test_scenario_solid_image():
    session = generate(make_solid_image(10), _params(hoop=1, count=10, max_colors=5))
    pattern = session.pattern
    assert len(pattern.palette) == 1
    assert pattern.stats.total_stitches == 100
    assert pattern.stats.stitched_cells == 100


def test_scenario_more_colours_than_symbols():
    img = make_distinct_colour_image(10)
    with pytest.warns(CapacityExceeded):
        session = generate(img, _params(hoop=1, count=10, max_colors=100), method="kmeans")
    pattern = session.pattern
    assert len(pattern.palette) == 100
    assert pattern.stats.symbols_reused
    assert pattern.symbols[: len(SYMBOL_TABLE)] == SYMBOL_TABLE
    assert pattern.symbols[len(SYMBOL_TABLE)] == SYMBOL_TABLE[0]
    # no pixel lost to the degradation
    assert len(list(pattern.iter_cells())) == 100
    assert int(pattern.counts().sum()) == 100


def test_scenario_reassign_touches_only_one_slot():
    session = generate(make_four_colour_image(), _params())
    before = session.pattern
    palette_before = before.palette.tobytes()
    indices_before = before.indices.tobytes()

    target = get_matcher().get("797")
    previous = reassign(session, 2, target)

    after = session.pattern
    assert previous == before.threads[2]
    assert after.threads[2] == target
    assert [t for i, t in enumerate(after.threads) if i != 2] == [t for i, t in enumerate(before.threads) if i != 2]
    assert after.palette.tobytes() == palette_before
    assert after.indices.tobytes() == indices_before
    # earlier snapshot is unaffected
    assert before.threads[2] == previous


def test_transparent_cells_stay_empty():
    img = make_stripes_image(20, 10)
    mask = np.zeros((10, 20), dtype=bool)
    mask[:5] = True
    session = generate(with_alpha(img, mask), _params(hoop=1, count=20, max_colors=4))
    pattern = session.pattern
    assert pattern.empty[:5].all()
    assert pattern.cell(0, 0) is None
    assert pattern.cell(0, 9) is not None
    assert pattern.stats.stitched_cells == 100


def test_transparent_background_does_not_tint_palette_when_resized():
    img = np.zeros((20, 20, 4), dtype=np.uint8)
    img[:, :10] = (255, 0, 0, 255)
    session = generate(img, _params(hoop=1, count=5, max_colors=8))
    pattern = session.pattern
    assert pattern.grid.width == 5
    assert pattern.original_colors == [RED]
    # column 2 straddles the edge: half opaque, so it is stitched
    assert not pattern.empty[:, :3].any()
    assert pattern.empty[:, 3:].all()


def test_downsample_marks_mostly_transparent_cells_empty():
    img = np.zeros((4, 8, 4), dtype=np.uint8)
    img[:, :4] = (0, 0, 255, 255)
    img[0, 4] = (0, 255, 0, 255)  # one opaque pixel out of sixteen
    small = downsample_to_grid(img, GridDimensions(width=2, height=1))
    assert tuple(small[0, 0]) == (0, 0, 255, 255)
    assert small[0, 1, 3] == 0


def test_limit_image_side_keeps_transparent_pixels_out_of_colours():
    img = np.zeros((30, 300, 4), dtype=np.uint8)
    img[:, :151] = (255, 0, 0, 255)
    small = limit_image_side(img, 100)
    assert small.shape == (10, 100, 4)
    visible = small[small[:, :, 3] > 0]
    assert {tuple(p[:3]) for p in visible} == {RED}


def test_fabric_count_parsed_from_text():
    session = generate(make_four_colour_image(), _params(count=" 2 "))
    assert session.pattern.grid.width == 2


@pytest.mark.parametrize(
    "params",
    [
        _params(count="fourteen"),
        _params(count=0),
        _params(hoop=-1),
        _params(max_colors=0),
        {"hoop_diameter": 6},
    ],
)
def test_invalid_parameters(params):
    with pytest.raises(InvalidInput):
        generate(make_four_colour_image(), params)


def test_empty_image_is_rejected():
    with pytest.raises(InvalidInput):
        generate(np.zeros((0, 0, 3), dtype=np.uint8), _params())


def test_params_model_accepted_directly():
    params = GenerateParams(hoop_diameter=1, fabric_count="2", max_colors=4)
    assert params.fabric_count == 2
    assert generate(make_four_colour_image(), params).pattern.grid.cells == 4


def test_assemble_rejects_mismatched_grid():
    q = quantize(make_four_colour_image(), 4)
    with pytest.raises(InvalidInput):
        assemble(GridDimensions(width=3, height=2), q, get_matcher())


def test_assembled_threads_are_nearest():
    q = quantize(np.array([[RED, RED]], dtype=np.uint8), 2)
    pattern = assemble(GridDimensions(width=2, height=1), q, get_matcher())
    assert pattern.threads[0] == get_matcher().nearest(RED)
    assert pattern.symbols == (SYMBOL_TABLE[0],)
