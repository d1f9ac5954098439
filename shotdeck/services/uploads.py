import uuid
from typing import Any

from shotdeck.errors import ValidationError
from shotdeck.schemas.upload import PRESIGN_SHAPE, PresignIn, PresignOut, ViewUrlOut, check_storage_key
from shotdeck.services.catalog import parse_body
from shotdeck.services.storage import S3Storage

KEY_PREFIXES = {"cover": "covers", "annotation": "annotations"}
IMAGE_EXTENSIONS = {
    "image/png": "png",
    "image/webp": "webp",
    "image/gif": "gif",
    "image/avif": "avif",
    "image/jpeg": "jpg",
}


def extension_for(content_type: str) -> str:
    media_type = content_type.split(";", 1)[0].strip().lower()
    return IMAGE_EXTENSIONS.get(media_type, "jpg")


def build_key(upload_type: str, movie_id: str, content_type: str) -> str:
    return f"{KEY_PREFIXES[upload_type]}/{movie_id}/{uuid.uuid4()}.{extension_for(content_type)}"


def presign_upload(payload: Any, storage: S3Storage) -> PresignOut:
    """
    First leg of the upload hand-off. The caller PUTs the bytes to `upload_url`
    with the same Content-Type, then reports `key` on a movie or annotation.
    Keys that are never reported are left in the bucket.
    """
    data: PresignIn = parse_body(PresignIn, payload, PRESIGN_SHAPE)
    key = build_key(data.type, data.movie_id, data.content_type)
    upload_url = storage.presign_put(key, data.content_type)
    return PresignOut(upload_url=upload_url, key=key, public_url=storage.public_url(key))


def resolve_view_url(key: str | None, storage: S3Storage) -> ViewUrlOut:
    if not isinstance(key, str):
        raise ValidationError("Missing or invalid key")
    try:
        check_storage_key(key)
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc
    return ViewUrlOut(url=storage.presign_get(key))
