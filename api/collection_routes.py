import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from api.deps import get_catalog
from core.auth import require_user
from core.limiter import limiter
from logic.collections import CollectionCatalog
from models.types import CollectionCreate, CollectionUpdate, User

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/collections", tags=["Collections"])
@limiter.limit("60/minute")
async def list_collections(request: Request, current_user: User = Depends(require_user), catalog: CollectionCatalog = Depends(get_catalog)):
    return {"ok": True, "data": catalog.list(current_user.id)}


@router.post("/collections", tags=["Collections"])
@limiter.limit("20/minute")
async def create_collection(
    request: Request,
    payload: CollectionCreate,
    current_user: User = Depends(require_user),
    catalog: CollectionCatalog = Depends(get_catalog),
):
    return {"ok": True, "data": catalog.create(current_user.id, payload.name, payload.is_public)}


@router.put("/collections", tags=["Collections"])
@limiter.limit("30/minute")
async def update_collection(
    request: Request,
    payload: CollectionUpdate,
    current_user: User = Depends(require_user),
    catalog: CollectionCatalog = Depends(get_catalog),
):
    catalog.update(current_user.id, payload.id, name=payload.name, is_public=payload.is_public)
    return {"ok": True, "data": {"updated": True}}


@router.delete("/collections", tags=["Collections"])
@limiter.limit("30/minute")
async def delete_collection(
    request: Request,
    collection_id: Optional[int] = Query(None, alias="id"),
    current_user: User = Depends(require_user),
    catalog: CollectionCatalog = Depends(get_catalog),
):
    catalog.delete(current_user.id, collection_id)
    return {"ok": True, "data": {"deleted": True}}
