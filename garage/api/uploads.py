"""File upload API. Returns an opaque location that entities store."""

from __future__ import annotations

from pathlib import PurePosixPath

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import Response

from garage.dependencies import require_auth, require_permission
from garage.services import file_store
from garage.services.auth import AuthContext

router = APIRouter(prefix="/api/uploads", tags=["uploads"])

_MEDIA_TYPES = {ext: mime for mime, ext in file_store.EXTENSIONS.items()}


@router.post("", status_code=201)
async def upload_file(
    file: UploadFile = File(...),
    category: str = Form(...),
    auth: AuthContext = Depends(require_permission("uploads.create")),
):
    data = await file.read()
    location = await file_store.save_upload(data, file.content_type or "", category)
    return {"location": location}


@router.get("/{location:path}")
async def download_file(
    location: str,
    auth: AuthContext = Depends(require_auth),
):
    data = await file_store.read_upload(location)
    name = PurePosixPath(location)
    ext = PurePosixPath(name.stem).suffix if name.suffix == ".enc" else name.suffix
    return Response(content=data, media_type=_MEDIA_TYPES.get(ext, "application/octet-stream"))
