from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Tuple


class GridOut(BaseModel):
    width: int
    height: int


class StatsOut(BaseModel):
    total_stitches: int
    stitched_cells: int
    colors_used: int
    symbols_reused: bool = False


class LegendEntry(BaseModel):
    index: int
    symbol: str
    brand: str
    code: str
    name: str
    rgb: List[int]
    hex: str
    original_rgb: List[int]
    count: int
    percent: float


class PatternSummary(BaseModel):
    pattern_id: str
    grid: GridOut
    stats: StatsOut
    legend: List[LegendEntry] = Field(default_factory=list)
    meta: dict = Field(default_factory=dict)


class ThreadOut(BaseModel):
    brand: str
    code: str
    name: str
    rgb: Tuple[int, int, int]


class AlternativeOut(ThreadOut):
    current: bool = False


class ReassignRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    code: str = Field(..., min_length=1)


class ReassignResponse(BaseModel):
    index: int
    previous: ThreadOut
    current: ThreadOut
