import os
from pathlib import Path

CATALOG_DIR = Path(__file__).resolve().parent / "color" / "data"
CATALOG_PATH = os.getenv("STITCHKIT_CATALOG")  # optional CSV override
DEFAULT_BRAND = os.getenv("STITCHKIT_BRAND", "DMC")

QUANTIZE_METHOD = os.getenv("STITCHKIT_QUANTIZE_METHOD", "median_cut")
DEFAULT_MAX_COLORS = int(os.getenv("STITCHKIT_MAX_COLORS", "20"))
DEFAULT_HOOP_DIAMETER = float(os.getenv("STITCHKIT_HOOP_DIAMETER", "6"))
DEFAULT_FABRIC_COUNT = int(os.getenv("STITCHKIT_FABRIC_COUNT", "14"))
SWAP_CANDIDATES = int(os.getenv("STITCHKIT_SWAP_CANDIDATES", "10"))

CELL_PX = int(os.getenv("STITCHKIT_CELL_PX", "15"))
RULER_PX = int(os.getenv("STITCHKIT_RULER_PX", "30"))
MAX_UPLOAD_SIDE = int(os.getenv("STITCHKIT_MAX_UPLOAD_SIDE", "2000"))

LOG_LEVEL = os.getenv("STITCHKIT_LOG_LEVEL", "INFO")
