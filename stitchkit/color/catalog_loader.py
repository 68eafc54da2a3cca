from __future__ import annotations

import csv
import logging
from functools import lru_cache
from pathlib import Path
from typing import Optional, Tuple

from ..errors import ConfigurationError
from ..models.pattern import Thread
from ..settings import CATALOG_DIR, CATALOG_PATH

logger = logging.getLogger(__name__)

# brand -> bundled CSV (code,name,r,g,b)
BUILTIN_CATALOGS = {
    "DMC": CATALOG_DIR / "dmc.csv",
}

REQUIRED_COLUMNS = ("code", "name", "r", "g", "b")


def _parse_channel(raw: str, line_no: int, path: Path) -> int:
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{path}:{line_no}: channel value {raw!r} is not an integer")
    if not 0 <= value <= 255:
        raise ConfigurationError(f"{path}:{line_no}: channel value {value} out of range 0..255")
    return value


def read_catalog_file(path: Path, brand: str) -> Tuple[Thread, ...]:
    if not path.exists():
        raise ConfigurationError(f"Thread catalog not found: {path}")

    with path.open(newline="", encoding="utf-8") as fh:
        reader = csv.DictReader(fh)
        missing = [c for c in REQUIRED_COLUMNS if c not in (reader.fieldnames or [])]
        if missing:
            raise ConfigurationError(f"{path}: missing columns {', '.join(missing)}")

        threads = []
        seen: set[str] = set()
        # header is line 1
        for line_no, row in enumerate(reader, start=2):
            code = (row.get("code") or "").strip()
            if not code:
                raise ConfigurationError(f"{path}:{line_no}: empty thread code")
            if code in seen:
                raise ConfigurationError(f"{path}:{line_no}: duplicate thread code {code!r}")
            seen.add(code)
            rgb = tuple(_parse_channel(row.get(c), line_no, path) for c in ("r", "g", "b"))
            threads.append(
                Thread(
                    brand=brand,
                    code=code,
                    name=(row.get("name") or "").strip() or code,
                    rgb=rgb,
                )
            )

    if not threads:
        raise ConfigurationError(f"Thread catalog {path} is empty")
    return tuple(threads)


@lru_cache(maxsize=8)
def load_catalog(brand: str = "DMC", path: Optional[str] = None) -> Tuple[Thread, ...]:
    """
    Load the thread catalog for ``brand`` once and cache it for the life of the process.

    ``path`` (or the STITCHKIT_CATALOG env override) points at a custom CSV; otherwise the
    bundled list for the brand is used.
    """
    source = path or CATALOG_PATH
    if source:
        catalog_path = Path(source)
    else:
        catalog_path = BUILTIN_CATALOGS.get(brand)
        if catalog_path is None:
            raise ConfigurationError(f"No thread catalog bundled for brand {brand!r}")

    threads = read_catalog_file(catalog_path, brand)
    logger.info("Loaded %d %s threads from %s", len(threads), brand, catalog_path)
    return threads
