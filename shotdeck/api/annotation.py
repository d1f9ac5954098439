from typing import Any

from fastapi import APIRouter, Body, Depends, Response
from sqlalchemy.orm import Session

from shotdeck.db import get_db
from shotdeck.schemas.annotation import AnnotationOut
from shotdeck.services import catalog
from shotdeck.services.storage import S3Storage, get_storage

router = APIRouter(prefix="/movies", tags=["annotations"])


@router.post("/{movie_id}/annotations", status_code=201, response_model=AnnotationOut)
def create_annotation(
    movie_id: str,
    payload: Any = Body(default=None),
    db: Session = Depends(get_db),
    storage: S3Storage = Depends(get_storage),
):
    annotation = catalog.create_annotation(db, movie_id, payload)
    return catalog.annotation_out(annotation, storage)


@router.get("/{movie_id}/annotations", response_model=list[AnnotationOut])
def list_annotations(
    movie_id: str,
    db: Session = Depends(get_db),
    storage: S3Storage = Depends(get_storage),
):
    return [
        catalog.annotation_out(annotation, storage)
        for annotation in catalog.list_annotations(db, movie_id)
    ]


@router.put("/{movie_id}/annotations/{annotation_id}", response_model=AnnotationOut)
def update_annotation(
    movie_id: str,
    annotation_id: str,
    payload: Any = Body(default=None),
    db: Session = Depends(get_db),
    storage: S3Storage = Depends(get_storage),
):
    annotation = catalog.update_annotation(db, movie_id, annotation_id, payload)
    return catalog.annotation_out(annotation, storage)


@router.delete("/{movie_id}/annotations/{annotation_id}", status_code=204)
def delete_annotation(movie_id: str, annotation_id: str, db: Session = Depends(get_db)):
    catalog.delete_annotation(db, movie_id, annotation_id)
    return Response(status_code=204)
