import logging
from typing import Any

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from shotdeck.errors import NotFoundError, ValidationError
from shotdeck.models.annotation import Annotation
from shotdeck.models.movie import Movie
from shotdeck.schemas.annotation import (
    ANNOTATION_SHAPE,
    ANNOTATION_UPDATE_SHAPE,
    AnnotationIn,
    AnnotationOut,
    AnnotationUpdate,
)
from shotdeck.schemas.movie import MOVIE_SHAPE, MovieIn, MovieOut
from shotdeck.services.storage import S3Storage

logger = logging.getLogger(__name__)


def parse_body(model: type[BaseModel], payload: Any, shape: str):
    """Validate a raw JSON body against `model`; raise ValidationError naming the expected shape."""
    if not isinstance(payload, dict):
        raise ValidationError(f"Invalid body. Expected {shape}")
    try:
        return model.model_validate(payload)
    except PydanticValidationError as exc:
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first["loc"]) or "body"
        raise ValidationError(
            f"Invalid body. Expected {shape} ({location}: {first['msg']})"
        ) from exc


def _view_url(storage: S3Storage, key: str | None) -> str | None:
    # Signed on every read; URLs expire so they are never stored.
    if not key:
        return None
    return storage.presign_get(key)


def movie_out(movie: Movie, storage: S3Storage) -> MovieOut:
    out = MovieOut.model_validate(movie)
    out.cover_image_url = _view_url(storage, movie.cover_image_key)
    return out


def annotation_out(annotation: Annotation, storage: S3Storage) -> AnnotationOut:
    out = AnnotationOut.model_validate(annotation)
    out.image_url = _view_url(storage, annotation.image_key)
    return out


def create_movie(db: Session, payload: Any) -> Movie:
    data: MovieIn = parse_body(MovieIn, payload, MOVIE_SHAPE)
    movie = Movie(
        title=data.title,
        director=data.director,
        year=data.year,
        runtime_minutes=data.runtime_minutes,
        cover_image_key=data.cover_image_key,
        links=data.links,
    )
    db.add(movie)
    db.commit()
    db.refresh(movie)
    logger.debug("Created movie %s", movie.id)
    return movie


def list_movies(db: Session) -> list[Movie]:
    return db.query(Movie).order_by(Movie.created_at.desc()).all()


def get_movie(db: Session, movie_id: str) -> Movie:
    movie = db.get(Movie, movie_id)
    if not movie:
        raise NotFoundError("Movie")
    return movie


def update_movie(db: Session, movie_id: str, payload: Any) -> Movie:
    """
    Full-record update that keeps `cover_image_key` and `links` when the
    payload leaves them out entirely. An explicit null clears the cover.

    The read and the write are not guarded against a concurrent update of
    the same movie; the later commit wins.
    """
    data: MovieIn = parse_body(MovieIn, payload, MOVIE_SHAPE)
    movie = get_movie(db, movie_id)

    movie.title = data.title
    movie.director = data.director
    movie.year = data.year
    movie.runtime_minutes = data.runtime_minutes
    if "cover_image_key" in data.model_fields_set:
        movie.cover_image_key = data.cover_image_key
    if "links" in data.model_fields_set:
        movie.links = data.links

    db.commit()
    db.refresh(movie)
    return movie


def create_annotation(db: Session, movie_id: str, payload: Any) -> Annotation:
    data: AnnotationIn = parse_body(AnnotationIn, payload, ANNOTATION_SHAPE)
    # Checked up front so a missing movie is a 404, not a foreign key failure.
    get_movie(db, movie_id)

    annotation = Annotation(
        movie_id=movie_id,
        time_seconds=data.time_seconds,
        title=data.title,
        body=data.body,
        image_key=data.image_key,
    )
    db.add(annotation)
    db.commit()
    db.refresh(annotation)
    return annotation


def list_annotations(db: Session, movie_id: str) -> list[Annotation]:
    # Unknown movies yield an empty list rather than a 404.
    return (
        db.query(Annotation)
        .filter(Annotation.movie_id == movie_id)
        .order_by(Annotation.time_seconds.asc(), Annotation.created_at.asc())
        .all()
    )


def _scoped_annotation(db: Session, movie_id: str, annotation_id: str) -> Annotation:
    annotation = (
        db.query(Annotation)
        .filter(Annotation.id == annotation_id, Annotation.movie_id == movie_id)
        .first()
    )
    if not annotation:
        raise NotFoundError("Annotation")
    return annotation


def update_annotation(db: Session, movie_id: str, annotation_id: str, payload: Any) -> Annotation:
    data: AnnotationUpdate = parse_body(AnnotationUpdate, payload, ANNOTATION_UPDATE_SHAPE)
    annotation = _scoped_annotation(db, movie_id, annotation_id)

    annotation.title = data.title
    annotation.body = data.body
    if "image_key" in data.model_fields_set:
        annotation.image_key = data.image_key

    db.commit()
    db.refresh(annotation)
    return annotation


def delete_annotation(db: Session, movie_id: str, annotation_id: str) -> None:
    annotation = _scoped_annotation(db, movie_id, annotation_id)
    db.delete(annotation)
    db.commit()
