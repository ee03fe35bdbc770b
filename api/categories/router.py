"""
Category API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from core import errors
from core.store import EntityStore, get_store
from queries import service as queries

from . import schemas, service

router = APIRouter()


@router.get("/categories", response_model=list[schemas.CategoryResponse])
async def list_categories(store: EntityStore = Depends(get_store)) -> list[dict]:
    return await queries.list_categories(store)


@router.get("/categories/{slug}", response_model=schemas.CategoryDetailResponse)
async def get_category(slug: str, store: EntityStore = Depends(get_store)) -> dict:
    return await queries.get_category_by_slug(store, slug)


@router.post(
    "/category",
    status_code=status.HTTP_201_CREATED,
    response_model=schemas.CategoryResponse,
)
async def create_category(
    request: schemas.CategoryCreateRequest,
    store: EntityStore = Depends(get_store),
) -> dict:
    return await service.create_category(
        store,
        title=request.title,
        slug=request.slug,
        description=request.description,
    )


@router.patch("/category/{slug}", response_model=schemas.CategoryResponse)
async def update_category(
    slug: str,
    request: schemas.CategoryUpdateRequest,
    store: EntityStore = Depends(get_store),
) -> dict:
    patch = service.CategoryPatch(
        title=request.title,
        slug=request.slug,
        description=request.description,
    )
    try:
        return await service.update_category_by_slug(store, slug, patch)
    except errors.ConflictError as exc:
        # A colliding rename is reported as a bad request on this route.
        raise errors.ValidationError(exc.message, field=exc.field, constraint=exc.constraint) from exc


@router.delete("/category/{slug}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(slug: str, store: EntityStore = Depends(get_store)) -> Response:
    await service.delete_category_by_slug(store, slug)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
