from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class FileRecord(BaseModel):
    """An uploaded file, already normalized to UTF-8 and validated as text."""

    model_config = ConfigDict(frozen=True)

    id: str
    filename: str
    content: str
    uploaded_at: datetime
    size: int = Field(ge=0)


class MergeItem(BaseModel):
    filename: str
    content: str


class UploadResponse(BaseModel):
    message: str
    file_ids: List[str] = Field(default_factory=list)


class MergeRequest(BaseModel):
    file_ids: List[str] = Field(default_factory=list)
    output_filename: str = ""
    file_renames: Dict[str, str] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    error: str
    details: Optional[str] = None


class HealthResponse(BaseModel):
    ok: bool = True
