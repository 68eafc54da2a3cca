from __future__ import annotations

import logging
import warnings
from typing import Tuple

from ..errors import CapacityExceeded

logger = logging.getLogger(__name__)

# fmt: off
SYMBOL_TABLE: Tuple[str, ...] = (
    # high contrast lines & shapes
    "✖", "●", "✚", "■", "★", "O",
    # directional shapes
    "▲", "▼", "◆", "➜",
    # letters
    "S", "Z", "H", "W", "M", "&", "#", "@",
    # card suits
    "♠", "♣", "♥", "♦", "✶", "❖",
    # numbers
    "1", "2", "3", "4", "5", "6", "7", "8", "9",
    # backups
    "A", "B", "D", "E", "F", "G", "K", "L", "P", "R",
)
# fmt: on


def symbol_for(index: int) -> str:
    """Symbol for a palette slot; wraps around once the table is exhausted."""
    return SYMBOL_TABLE[index % len(SYMBOL_TABLE)]


def bind_symbols(palette_size: int) -> Tuple[Tuple[str, ...], bool]:
    """
    Bind one symbol per palette slot by position.

    Returns the symbols and whether any had to be reused. Slots below the table length
    always get distinct glyphs; beyond it the table repeats from the start.
    """
    symbols = tuple(symbol_for(i) for i in range(palette_size))
    reused = palette_size > len(SYMBOL_TABLE)
    if reused:
        message = (
            f"Palette has {palette_size} colours but only {len(SYMBOL_TABLE)} symbols; "
            "reusing symbols cyclically"
        )
        logger.warning(message)
        warnings.warn(CapacityExceeded(message), stacklevel=3)
    return symbols, reused
