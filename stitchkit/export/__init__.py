"""Export helpers for generated patterns."""

from .pdf_exporter import export_pdf, plan_tiles
from .png_exporter import export_png

__all__ = [
    "export_pdf",
    "export_png",
    "plan_tiles",
]
