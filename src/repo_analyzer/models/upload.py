"""Upload data models."""

from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, ConfigDict


@dataclass
class UploadRequest:
    """One file upload, as extracted from the inbound request."""

    file_bytes: bytes
    filename: Optional[str] = None
    content_type: Optional[str] = None
    bucket: Optional[str] = None
    region: Optional[str] = None
    key: Optional[str] = None


class UploadResult(BaseModel):
    """Response model for a completed upload."""

    model_config = ConfigDict(frozen=True)

    url: str
    bucket: str
    key: str
    region: str
