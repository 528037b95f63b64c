"""Pydantic schemas for media uploads."""

from typing import Optional

from pydantic import BaseModel


class UploadResponse(BaseModel):
    url: str
    path: str
    filename: str


class DeleteFileRequest(BaseModel):
    path: Optional[str] = None
    bucket: Optional[str] = None
