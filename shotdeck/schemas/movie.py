import re
from datetime import datetime
from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, StrictInt, StrictStr, field_validator

from shotdeck.schemas.upload import StorageKey

MOVIE_SHAPE = (
    "{ title:string, director:string, year:number, runtime_minutes:number, "
    "(optional) cover_image_key:string|null, (optional) links:string[]|string }"
)


def normalize_links(value: Any) -> list[str]:
    """Accept a list of strings or a newline-separated string; drop blank entries."""
    if value is None:
        return []
    if isinstance(value, str):
        value = re.split(r"\r?\n", value)
    elif isinstance(value, list):
        if not all(isinstance(item, str) for item in value):
            raise ValueError("links must contain only strings")
    else:
        raise ValueError("links must be an array of strings or a newline-separated string")
    return [item.strip() for item in value if item.strip()]


def _non_blank(value: str) -> str:
    stripped = value.strip()
    if not stripped:
        raise ValueError("must be a non-empty string")
    return stripped


NonBlankStr = Annotated[StrictStr, AfterValidator(_non_blank)]


class MovieIn(BaseModel):
    title: NonBlankStr
    director: NonBlankStr
    year: StrictInt = Field(ge=1888)
    runtime_minutes: StrictInt = Field(gt=0)
    cover_image_key: StorageKey | None = None
    links: list[str] = Field(default_factory=list)

    @field_validator("links", mode="before")
    @classmethod
    def _normalize_links(cls, value: Any) -> list[str]:
        return normalize_links(value)


class MovieOut(BaseModel):
    id: str
    title: str
    director: str
    year: int
    runtime_minutes: int
    cover_image_key: str | None = None
    cover_image_url: str | None = None
    links: list[str] = []
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
