from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .config import ALPHA_THRESHOLD, BORDER_PX, CANVAS_SIZE, MAX_DIMENSION


class ProcessingOptions(BaseModel):
    """
    Fully specified pipeline options.

    Every field has an explicit default, so ProcessingOptions(border_px=20)
    yields a complete config with the remaining defaults filled in.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    alpha_threshold: int = Field(default=ALPHA_THRESHOLD, ge=0, le=255)
    max_dimension: int = Field(default=MAX_DIMENSION, ge=1)
    canvas_size: int = Field(default=CANVAS_SIZE, ge=1)
    border_px: int = Field(default=BORDER_PX, ge=0)

    @model_validator(mode="after")
    def _subject_fits_canvas(self) -> "ProcessingOptions":
        if self.max_dimension > self.canvas_size:
            raise ValueError(
                f"max_dimension ({self.max_dimension}) must not exceed canvas_size ({self.canvas_size})"
            )
        return self


class PostProcessResult(BaseModel):
    image: bytes
    original_size: int
    processed_size: int
    compression_ratio: float
    advanced_processing: bool
    processing_steps: List[str] = Field(default_factory=list)

    def metadata(self) -> dict:
        """JSON-friendly summary (everything except the image payload)."""
        return self.model_dump(exclude={"image"})
