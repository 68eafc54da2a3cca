from __future__ import annotations

import logging
import numbers
from typing import List, Union

from ..color.catalog_matcher import ThreadMatcher
from ..errors import NotFound
from ..models.pattern import Thread
from ..settings import SWAP_CANDIDATES
from .legend import build_legend
from .types import PatternResult

logger = logging.getLogger(__name__)


class PatternSession:
    """
    Editable view over one generated pattern.

    Palette and indexed grid are fixed for the life of the session; only the thread
    assigned to a palette slot can change. A fresh ``generate`` call starts a new session.
    """

    def __init__(self, pattern: PatternResult, matcher: ThreadMatcher) -> None:
        self._base = pattern
        self._matcher = matcher
        self._threads: List[Thread] = list(pattern.threads)

    @property
    def pattern(self) -> PatternResult:
        """Immutable snapshot with the current thread assignment."""
        return self._base.with_threads(self._threads)

    def __len__(self) -> int:
        return len(self._threads)

    def _check_index(self, index: int) -> int:
        if isinstance(index, bool) or not isinstance(index, numbers.Integral):
            raise NotFound(f"Palette index must be an integer, got {index!r}")
        if not 0 <= index < len(self._threads):
            raise NotFound(f"Palette index {index} out of range (0..{len(self._threads) - 1})")
        return int(index)

    def _resolve_thread(self, thread: Union[Thread, str]) -> Thread:
        code = thread if isinstance(thread, str) else thread.code
        resolved = self._matcher.get(code)
        if resolved is None:
            raise NotFound(f"Thread {code!r} is not in the catalog")
        return resolved

    def original_color(self, index: int) -> tuple[int, int, int]:
        index = self._check_index(index)
        return tuple(int(c) for c in self._base.palette[index])

    def thread_for(self, index: int) -> Thread:
        return self._threads[self._check_index(index)]

    def is_current(self, index: int, thread: Thread) -> bool:
        return self.thread_for(index).code == thread.code

    def reassign(self, index: int, thread: Union[Thread, str]) -> Thread:
        """Swap the thread of one palette slot. Returns the thread that was replaced."""
        index = self._check_index(index)
        new_thread = self._resolve_thread(thread)
        previous = self._threads[index]
        self._threads[index] = new_thread
        logger.info(
            "Slot %d reassigned %s -> %s", index, previous.label, new_thread.label
        )
        return previous

    def list_alternatives(self, index: int, count: int = SWAP_CANDIDATES) -> List[Thread]:
        """
        Closest catalog threads to the slot's original sampled colour.
        Ranking ignores the current assignment so repeated swaps never drift.
        """
        return self._matcher.find_top_matches(self.original_color(index), count)

    def legend(self) -> List[dict]:
        return build_legend(self.pattern)
