from __future__ import annotations

from typing import List, Sequence

import numpy as np
from sklearn.neighbors import KDTree

from ..errors import ConfigurationError
from ..models.pattern import Thread
from .lab import lab_distance, rgb_to_lab, rgb_to_lab_array

# slack added to the k-th neighbour radius so float noise never drops a tied thread
_RADIUS_EPS = 1e-6


def build_kd(catalog: Sequence[Thread]) -> KDTree:
    arr = rgb_to_lab_array(np.array([t.rgb for t in catalog], dtype=float))
    return KDTree(arr)


class ThreadMatcher:
    """Ranks catalog threads by CIE Lab distance to a target colour."""

    def __init__(self, catalog: Sequence[Thread]) -> None:
        if not catalog:
            raise ConfigurationError("Thread catalog is empty")
        self.catalog = tuple(catalog)
        self._labs = [rgb_to_lab(t.rgb) for t in self.catalog]
        self._by_code = {t.code: t for t in self.catalog}
        self._kd = build_kd(self.catalog)

    def __len__(self) -> int:
        return len(self.catalog)

    def get(self, code: str) -> Thread | None:
        return self._by_code.get(code)

    def find_top_matches(self, color: Sequence[int], count: int) -> List[Thread]:
        """
        Return up to ``count`` threads ordered by ascending distance to ``color``.
        Equal distances keep catalog order.
        """
        if count <= 0:
            return []
        k = min(int(count), len(self.catalog))
        target = rgb_to_lab(color)

        if k == len(self.catalog):
            candidates = range(len(self.catalog))
        else:
            dist, _ = self._kd.query([target], k=k)
            radius = float(dist[0][-1]) * (1 + 1e-9) + _RADIUS_EPS
            ind = self._kd.query_radius([target], r=radius)
            candidates = [int(i) for i in ind[0]]

        ranked = sorted(
            candidates,
            key=lambda i: (lab_distance(target, self._labs[i]), i),
        )
        return [self.catalog[i] for i in ranked[:k]]

    def nearest(self, color: Sequence[int]) -> Thread:
        return self.find_top_matches(color, 1)[0]


def find_top_matches(catalog: Sequence[Thread], color: Sequence[int], count: int) -> List[Thread]:
    return ThreadMatcher(catalog).find_top_matches(color, count)


__all__ = ["ThreadMatcher", "build_kd", "find_top_matches"]
