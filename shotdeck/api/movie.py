from typing import Any

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from shotdeck.db import get_db
from shotdeck.schemas.movie import MovieOut
from shotdeck.services import catalog
from shotdeck.services.storage import S3Storage, get_storage

router = APIRouter(prefix="/movies", tags=["movies"])


@router.post("", status_code=201, response_model=MovieOut)
def create_movie(
    payload: Any = Body(default=None),
    db: Session = Depends(get_db),
    storage: S3Storage = Depends(get_storage),
):
    movie = catalog.create_movie(db, payload)
    return catalog.movie_out(movie, storage)


@router.get("", response_model=list[MovieOut])
def list_movies(db: Session = Depends(get_db), storage: S3Storage = Depends(get_storage)):
    return [catalog.movie_out(movie, storage) for movie in catalog.list_movies(db)]


@router.get("/{movie_id}", response_model=MovieOut)
def get_movie(
    movie_id: str,
    db: Session = Depends(get_db),
    storage: S3Storage = Depends(get_storage),
):
    return catalog.movie_out(catalog.get_movie(db, movie_id), storage)


@router.put("/{movie_id}", response_model=MovieOut)
def update_movie(
    movie_id: str,
    payload: Any = Body(default=None),
    db: Session = Depends(get_db),
    storage: S3Storage = Depends(get_storage),
):
    movie = catalog.update_movie(db, movie_id, payload)
    return catalog.movie_out(movie, storage)
