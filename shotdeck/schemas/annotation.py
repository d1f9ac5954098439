from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr

from shotdeck.schemas.movie import NonBlankStr
from shotdeck.schemas.upload import StorageKey

ANNOTATION_SHAPE = (
    "{ time_seconds:number, title:string, (optional) body:string, (optional) image_key:string }"
)
ANNOTATION_UPDATE_SHAPE = "{ title:string, body:string, (optional) image_key:string|null }"


class AnnotationIn(BaseModel):
    time_seconds: StrictInt = Field(ge=0)
    title: NonBlankStr
    body: StrictStr | None = None
    image_key: StorageKey | None = None


class AnnotationUpdate(BaseModel):
    # Unlike creation, body is required here.
    title: NonBlankStr
    body: StrictStr
    image_key: StorageKey | None = None


class AnnotationOut(BaseModel):
    id: str
    movie_id: str
    time_seconds: int
    title: str
    body: str | None = None
    image_key: str | None = None
    image_url: str | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
