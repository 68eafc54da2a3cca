from ..core.render import render_png
from ..core.types import PatternResult


def export_png(pattern: PatternResult, *, with_symbols: bool = True) -> bytes:
    return render_png(pattern, with_symbols=with_symbols)
