from __future__ import annotations

import argparse
import json
import sys
import time
from pathlib import Path

import numpy as np
from PIL import Image

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from stitchkit.core.pipeline import generate  # noqa: E402
from stitchkit.core.quantizer import QUANTIZE_METHODS  # noqa: E402
from stitchkit.export import export_pdf, export_png  # noqa: E402
from stitchkit.settings import (  # noqa: E402
    DEFAULT_FABRIC_COUNT,
    DEFAULT_HOOP_DIAMETER,
    DEFAULT_MAX_COLORS,
    QUANTIZE_METHOD,
)


def run(image_path: Path, output_dir: Path, args: argparse.Namespace) -> dict:
    img = Image.open(image_path)
    img = img.convert("RGBA" if "A" in img.getbands() or img.mode == "P" else "RGB")
    start = time.perf_counter()
    session = generate(
        np.array(img),
        {
            "hoop_diameter": args.hoop,
            "fabric_count": args.fabric_count,
            "max_colors": args.max_colors,
        },
        method=args.method,
    )
    elapsed_ms = (time.perf_counter() - start) * 1000
    pattern = session.pattern

    output_dir.mkdir(parents=True, exist_ok=True)
    (output_dir / f"{image_path.stem}_color.png").write_bytes(export_png(pattern, with_symbols=False))
    (output_dir / f"{image_path.stem}_symbols.png").write_bytes(export_png(pattern))
    (output_dir / f"{image_path.stem}.pdf").write_bytes(
        export_pdf(pattern, hoop_diameter=args.hoop, fabric_count=int(args.fabric_count))
    )

    return {
        "image": image_path.name,
        "grid": {"width": pattern.grid.width, "height": pattern.grid.height},
        "colors_used": pattern.stats.colors_used,
        "symbols_reused": pattern.stats.symbols_reused,
        "legend": session.legend(),
        "time_ms": round(elapsed_ms, 2),
    }


def main() -> None:
    parser = argparse.ArgumentParser(description="Convert an image into a cross stitch chart")
    parser.add_argument("image", type=Path)
    parser.add_argument("--output", type=Path, default=Path("out"))
    parser.add_argument("--hoop", type=float, default=DEFAULT_HOOP_DIAMETER, help="Hoop diameter in inches")
    parser.add_argument("--fabric-count", default=str(DEFAULT_FABRIC_COUNT), help="Stitches per inch")
    parser.add_argument("--max-colors", type=int, default=DEFAULT_MAX_COLORS)
    parser.add_argument("--method", choices=QUANTIZE_METHODS, default=QUANTIZE_METHOD)
    args = parser.parse_args()

    summary = run(args.image, args.output, args)
    (args.output / f"{args.image.stem}.json").write_text(json.dumps(summary, indent=2), encoding="utf-8")
    print(json.dumps({k: v for k, v in summary.items() if k != "legend"}, indent=2))


if __name__ == "__main__":
    main()
