from typing import Any

from fastapi import APIRouter, Body, Depends

from shotdeck.schemas.upload import PresignOut, ViewUrlOut
from shotdeck.services import uploads
from shotdeck.services.storage import S3Storage, get_storage

router = APIRouter(prefix="/uploads", tags=["uploads"])


@router.post("/presign", response_model=PresignOut)
def presign_upload(payload: Any = Body(default=None), storage: S3Storage = Depends(get_storage)):
    return uploads.presign_upload(payload, storage)


@router.get("/view-url", response_model=ViewUrlOut)
def view_url(key: str | None = None, storage: S3Storage = Depends(get_storage)):
    return uploads.resolve_view_url(key, storage)
