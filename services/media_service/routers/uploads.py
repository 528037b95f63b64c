"""File uploads to Supabase Storage."""

import time
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from libs.common.errors import BadRequestError, success_response
from libs.common.logging import get_logger
from libs.common.storage import StorageService
from services.media_service.schemas import DeleteFileRequest, UploadResponse

logger = get_logger(__name__)

router = APIRouter(prefix="/api/upload", tags=["uploads"])


def get_storage(request: Request) -> StorageService:
    return request.app.state.storage


def build_object_path(filename: str, folder: Optional[str] = None) -> str:
    """``[folder/]<epoch-ms>-<filename>``"""
    name = f"{int(time.time() * 1000)}-{filename}"
    return f"{folder}/{name}" if folder else name


@router.post("", response_model=UploadResponse)
async def upload_file(
    file: Optional[UploadFile] = File(None),
    bucket: Optional[str] = Form(None),
    folder: Optional[str] = Form(None),
    storage: StorageService = Depends(get_storage),
):
    if file is None or not file.filename:
        raise BadRequestError("No file provided")

    data = await file.read()
    object_path = build_object_path(file.filename, folder)
    url, path = await storage.upload(
        object_path, data, content_type=file.content_type, bucket=bucket or None
    )
    return success_response(UploadResponse(url=url, path=path, filename=object_path))


@router.post("/delete")
async def delete_file(
    payload: DeleteFileRequest,
    storage: StorageService = Depends(get_storage),
):
    if not payload.path:
        raise BadRequestError("Path is required")

    await storage.remove(payload.path, bucket=payload.bucket or None)
    return success_response({"message": "File deleted successfully"})
