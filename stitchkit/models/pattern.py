from typing import Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Thread(BaseModel):
    model_config = ConfigDict(frozen=True)

    brand: str = "DMC"
    code: str
    name: str
    rgb: Tuple[int, int, int]

    @property
    def label(self) -> str:
        return f"{self.brand} {self.code}"


class GridDimensions(BaseModel):
    model_config = ConfigDict(frozen=True)

    width: int = Field(..., ge=1)
    height: int = Field(..., ge=1)

    @property
    def cells(self) -> int:
        return self.width * self.height


class GenerateParams(BaseModel):
    """Numeric parameters of a single generation request."""

    hoop_diameter: float = Field(..., gt=0)
    fabric_count: int = Field(..., gt=0)
    max_colors: int = Field(..., ge=1)

    @field_validator("fabric_count", mode="before")
    @classmethod
    def _parse_fabric_count(cls, value: Union[int, str]) -> int:
        # custom counts arrive as free text from forms / CLI
        if isinstance(value, str):
            value = value.strip()
            if not value.isdigit():
                raise ValueError(f"fabric count must be a whole number, got {value!r}")
            return int(value)
        return value
