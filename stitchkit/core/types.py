"""Value objects shared by the assembler, edit session, renderer and exporters."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Iterator, NamedTuple, Optional, Sequence, Tuple

import numpy as np

from ..models.pattern import GridDimensions, Thread

RGB = Tuple[int, int, int]


class Cell(NamedTuple):
    x: int
    y: int
    index: int
    thread: Thread
    symbol: str


@dataclass(frozen=True)
class PatternStats:
    total_stitches: int
    stitched_cells: int
    colors_used: int
    symbols_reused: bool = False


@dataclass(frozen=True, eq=False)
class PatternResult:
    """
    Finished indexed pattern: the only artifact handed to renderers and exporters.

    ``palette`` keeps the original sampled colours; ``threads`` is the current thread
    assignment, one per palette slot.
    """

    grid: GridDimensions
    palette: np.ndarray
    indices: np.ndarray
    empty: np.ndarray
    threads: Tuple[Thread, ...]
    symbols: Tuple[str, ...]
    stats: PatternStats

    @property
    def original_colors(self) -> list[RGB]:
        return [tuple(int(c) for c in row) for row in self.palette]

    def cell(self, x: int, y: int) -> Optional[Cell]:
        if self.empty[y, x]:
            return None
        index = int(self.indices[y, x])
        return Cell(x, y, index, self.threads[index], self.symbols[index])

    def iter_cells(self) -> Iterator[Cell]:
        """Yield non-empty cells in row-major order."""
        for y, x in zip(*np.nonzero(~self.empty)):
            index = int(self.indices[y, x])
            yield Cell(int(x), int(y), index, self.threads[index], self.symbols[index])

    def counts(self) -> np.ndarray:
        """Stitched cells per palette slot."""
        return np.bincount(self.indices[~self.empty], minlength=len(self.threads))

    def with_threads(self, threads: Sequence[Thread]) -> "PatternResult":
        return dataclasses.replace(self, threads=tuple(threads))


__all__ = ["RGB", "Cell", "PatternStats", "PatternResult"]
