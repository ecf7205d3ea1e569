"""
Pydantic models for the Text Unit Extraction API
Page text-layer inputs and the translation-ready units produced from them
"""

from pydantic import BaseModel, Field
from typing import List, Optional, Literal
from enum import Enum

class UnitStatus(str, Enum):
    """Translation lifecycle of a text unit"""
    IDLE = "idle"
    LOADING = "loading"
    DONE = "done"
    ERROR = "error"

# Page text-layer inputs
class TextContentItem(BaseModel):
    """Glyph run as reported by the page text layer"""
    text: str
    transform: List[float] = Field(..., min_length=6, max_length=6, description="Text rendering matrix [a, b, c, d, e, f]")
    width: float = Field(0.0, ge=0, description="Advance width in unscaled page units")

class Viewport(BaseModel):
    """Page viewport at a given scale"""
    transform: List[float] = Field(..., min_length=6, max_length=6)
    width: float
    height: float
    scale: float = 1.0

# Output models
class Rect(BaseModel):
    """Bounding box of one line's share of a text unit, in unscaled page units"""
    page: int = Field(..., ge=1)
    x: float
    y: float
    w: float
    h: float

class TextUnit(BaseModel):
    """Sentence or paragraph with its source text, rects and translation state"""
    id: str = Field(..., description="Stable identifier {docId}:p{pageNumber}:{hash}")
    page: int = Field(..., ge=1)
    source: str
    translation: Optional[str] = None
    status: UnitStatus = UnitStatus.IDLE
    rects: List[Rect] = Field(default_factory=list)

class PageUnits(BaseModel):
    """Extraction result of a single page"""
    page: int = Field(..., ge=1)
    units: List[TextUnit] = Field(default_factory=list)
    watermarks: List[str] = Field(default_factory=list)

class StreamErrorRecord(BaseModel):
    """Last line of an NDJSON stream that stopped early"""
    error: str = Field(..., description="Machine-readable failure kind")
    page: Optional[int] = Field(None, ge=1, description="1-based page being read when extraction stopped")
    detail: Optional[str] = None

# Configuration models
class TextUnitExtractionOptions(BaseModel):
    """User-facing subset of the layout configuration"""
    granularity: Literal["sentence", "paragraph"] = Field("sentence", description="Emit one unit per sentence or per paragraph")
    sentence_scope: Literal["paragraph", "column"] = Field("paragraph", description="Split sentences within each paragraph or across a whole column")
    filter_watermarks: bool = Field(True, description="Remove stamp words and diagonal text before layout")
    watermark_rotation_filter: bool = Field(True, description="Treat text rotated between 10 and 170 degrees as a watermark")
