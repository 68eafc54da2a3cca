from __future__ import annotations

from typing import List

from .types import PatternResult


def rgb_to_hex(rgb) -> str:
    if not rgb:
        return "#FFFFFF"
    r, g, b = (int(v) for v in rgb)
    return f"#{r:02X}{g:02X}{b:02X}"


def build_legend(pattern: PatternResult) -> List[dict]:
    """Return one legend row per palette slot, enriched with counts, colour and symbol info."""

    counts = pattern.counts()
    total = int(counts.sum()) or 1
    originals = pattern.original_colors
    legend: List[dict] = []
    for index, (thread, symbol) in enumerate(zip(pattern.threads, pattern.symbols)):
        count = int(counts[index])
        legend.append(
            {
                "index": index,
                "symbol": symbol,
                "brand": thread.brand,
                "code": thread.code,
                "name": thread.name,
                "rgb": list(thread.rgb),
                "hex": rgb_to_hex(thread.rgb),
                "original_rgb": list(originals[index]),
                "count": count,
                "percent": round(count / total * 100, 2),
            }
        )
    return legend
