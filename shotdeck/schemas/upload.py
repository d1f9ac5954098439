import re
from typing import Annotated, Literal

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, StrictStr, field_validator

PRESIGN_SHAPE = '{ movieId:string, type:"cover"|"annotation", contentType:"image/*" }'
KEY_PREFIXES = ("covers/", "annotations/")

_KEY_CHARS_RE = re.compile(r"[A-Za-z0-9._\-/]+")


def check_storage_key(key: str) -> str:
    """Reject keys the gateway would refuse to sign, or that point outside the image prefixes."""
    if len(key) < 3:
        raise ValueError("Missing or invalid key")
    if not key.startswith(KEY_PREFIXES):
        raise ValueError("Invalid key prefix")
    if ".." in key or not _KEY_CHARS_RE.fullmatch(key):
        raise ValueError("Invalid key")
    return key


StorageKey = Annotated[StrictStr, AfterValidator(check_storage_key)]


class PresignIn(BaseModel):
    movie_id: StrictStr = Field(alias="movieId", pattern=r"^[A-Za-z0-9_-]+$")
    type: Literal["cover", "annotation"]
    content_type: StrictStr = Field(alias="contentType")

    @field_validator("content_type")
    @classmethod
    def _image_only(cls, value: str) -> str:
        if not value.startswith("image/"):
            raise ValueError("contentType must be an image/* media type")
        return value


class PresignOut(BaseModel):
    upload_url: str = Field(alias="uploadUrl")
    key: str
    public_url: str | None = Field(default=None, alias="publicUrl")

    model_config = ConfigDict(populate_by_name=True)


class ViewUrlOut(BaseModel):
    url: str
