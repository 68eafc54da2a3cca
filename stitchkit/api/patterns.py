import io
import logging
from typing import Literal, Optional

import httpx
import numpy as np
from fastapi import APIRouter, File, Form, HTTPException, Query, UploadFile
from fastapi.responses import Response
from PIL import Image, UnidentifiedImageError
from pydantic import ValidationError

from ..core.dimensions import limit_image_side
from ..core.pipeline import generate
from ..core.render import render_png
from ..core.store import SessionRecord, store as session_store
from ..errors import InvalidInput, NotFound, StitchkitError
from ..export.pdf_exporter import export_pdf
from ..models.pattern import GenerateParams
from ..models.api_schemas import (
    AlternativeOut,
    PatternSummary,
    ReassignRequest,
    ReassignResponse,
    ThreadOut,
)
from ..settings import (
    DEFAULT_FABRIC_COUNT,
    DEFAULT_HOOP_DIAMETER,
    DEFAULT_MAX_COLORS,
    MAX_UPLOAD_SIDE,
    SWAP_CANDIDATES,
)

logger = logging.getLogger(__name__)

router = APIRouter()

ALLOWED_TYPES = {"image/jpeg", "image/png"}
FETCH_TIMEOUT = 15.0


def _http_error(exc: StitchkitError) -> HTTPException:
    status = 404 if isinstance(exc, NotFound) else 400
    return HTTPException(status_code=status, detail=str(exc))


def _get_record(pattern_id: str) -> SessionRecord:
    record = session_store.get(pattern_id)
    if not record:
        raise HTTPException(status_code=404, detail="Pattern not found")
    return record


def _summary(record: SessionRecord) -> PatternSummary:
    pattern = record.session.pattern
    return PatternSummary(
        pattern_id=record.pattern_id,
        grid={"width": pattern.grid.width, "height": pattern.grid.height},
        stats={
            "total_stitches": pattern.stats.total_stitches,
            "stitched_cells": pattern.stats.stitched_cells,
            "colors_used": pattern.stats.colors_used,
            "symbols_reused": pattern.stats.symbols_reused,
        },
        legend=record.session.legend(),
        meta=record.meta,
    )


def _decode_image(content: bytes) -> np.ndarray:
    try:
        img = Image.open(io.BytesIO(content))
        img = img.convert("RGBA" if "A" in img.getbands() or img.mode == "P" else "RGB")
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as exc:
        raise HTTPException(status_code=400, detail="Invalid image") from exc
    return limit_image_side(np.array(img), MAX_UPLOAD_SIDE)


async def _fetch_image(url: str) -> bytes:
    try:
        async with httpx.AsyncClient(timeout=FETCH_TIMEOUT, follow_redirects=True) as client:
            response = await client.get(url)
            response.raise_for_status()
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        logger.warning("Image fetch failed for %s: %s", url, exc)
        raise HTTPException(status_code=400, detail=f"Could not fetch image: {exc}") from exc
    return response.content


# =====================================================================
#   PATTERN CREATE
# =====================================================================

@router.post("/patterns", response_model=PatternSummary)
async def create_pattern(
    file: Optional[UploadFile] = File(None),
    image_url: Optional[str] = Form(None),
    hoop_diameter: float = Form(DEFAULT_HOOP_DIAMETER),
    fabric_count: str = Form(str(DEFAULT_FABRIC_COUNT)),
    max_colors: int = Form(DEFAULT_MAX_COLORS),
):
    if file is not None:
        if file.content_type not in ALLOWED_TYPES:
            raise HTTPException(status_code=400, detail="Unsupported file type")
        content = await file.read()
        source = file.filename
    elif image_url:
        content = await _fetch_image(image_url)
        source = image_url
    else:
        raise HTTPException(status_code=400, detail="Provide an image file or image_url")

    pixels = _decode_image(content)
    try:
        params = GenerateParams(
            hoop_diameter=hoop_diameter,
            fabric_count=fabric_count,
            max_colors=max_colors,
        )
        session = generate(pixels, params)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=f"Invalid generation parameters: {exc}") from exc
    except InvalidInput as exc:
        raise _http_error(exc) from exc

    record = session_store.create(
        session,
        meta={
            "source": source,
            "hoop_diameter": params.hoop_diameter,
            "fabric_count": params.fabric_count,
        },
    )
    logger.info("Pattern %s created from %s", record.pattern_id, source)
    return _summary(record)


# =====================================================================
#   PATTERN GET
# =====================================================================

@router.get("/patterns/{pattern_id}", response_model=PatternSummary)
async def get_pattern(pattern_id: str):
    return _summary(_get_record(pattern_id))


@router.get("/patterns/{pattern_id}/legend")
async def get_legend(pattern_id: str):
    return _get_record(pattern_id).session.legend()


# =====================================================================
#   SLOT EDITING
# =====================================================================

@router.get("/patterns/{pattern_id}/slots/{index}/alternatives", response_model=list[AlternativeOut])
async def list_alternatives(
    pattern_id: str,
    index: int,
    count: int = Query(SWAP_CANDIDATES, ge=0, le=500),
):
    _get_record(pattern_id)

    def _candidates(session):
        threads = session.list_alternatives(index, count)
        return [
            AlternativeOut(**t.model_dump(), current=session.is_current(index, t))
            for t in threads
        ]

    try:
        return session_store.read(pattern_id, _candidates)
    except StitchkitError as exc:
        raise _http_error(exc) from exc


@router.put("/patterns/{pattern_id}/slots/{index}", response_model=ReassignResponse)
async def reassign_slot(pattern_id: str, index: int, payload: ReassignRequest):
    _get_record(pattern_id)

    def _reassign(session):
        previous = session.reassign(index, payload.code)
        return ReassignResponse(
            index=index,
            previous=ThreadOut(**previous.model_dump()),
            current=ThreadOut(**session.thread_for(index).model_dump()),
        )

    try:
        return session_store.update(pattern_id, _reassign)
    except StitchkitError as exc:
        raise _http_error(exc) from exc


# =====================================================================
#   PREVIEW / PDF
# =====================================================================

@router.get("/patterns/{pattern_id}/preview")
async def preview(pattern_id: str, mode: Literal["color", "symbols"] = "color"):
    pattern = _get_record(pattern_id).session.pattern
    png = render_png(pattern, with_symbols=(mode == "symbols"))
    return Response(content=png, media_type="image/png")


@router.get("/patterns/{pattern_id}/pdf")
async def download_pdf(pattern_id: str):
    record = _get_record(pattern_id)
    pdf = export_pdf(
        record.session.pattern,
        hoop_diameter=record.meta.get("hoop_diameter"),
        fabric_count=record.meta.get("fabric_count"),
    )
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="pattern-{pattern_id}.pdf"'},
    )
