from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from fridgewatch.config import Settings
from fridgewatch.core.expiration import partition
from fridgewatch.core.models import Buckets, InventorySummary
from fridgewatch.core.summary import describe, summarize
from fridgewatch.services.exceptions import RepoError
from fridgewatch.services.repo.json_repo import JSONInventoryRepo
from fridgewatch.services.scheduler import local_now

router = APIRouter(tags=["expiration"])

# ---- Dependencies ------------------------------------------------------------

def get_settings() -> Settings:
    return Settings()

def get_inventory_repo(settings: Settings = Depends(get_settings)) -> JSONInventoryRepo:
    return JSONInventoryRepo(settings)

def _load_items(repo: JSONInventoryRepo):
    try:
        return repo.load().items
    except RepoError as e:
        raise HTTPException(status_code=500, detail=str(e))

# ---- Routes ------------------------------------------------------------------

@router.get("/api/v1/expiration/buckets", response_model=Buckets)
def get_buckets(
    settings: Settings = Depends(get_settings),
    repo: JSONInventoryRepo = Depends(get_inventory_repo),
):
    return partition(_load_items(repo), local_now(settings), settings.expiring_soon_days)


@router.get("/api/v1/expiration/summary", response_model=InventorySummary)
def get_summary(
    settings: Settings = Depends(get_settings),
    repo: JSONInventoryRepo = Depends(get_inventory_repo),
):
    return summarize(_load_items(repo), local_now(settings), settings.expiring_soon_days)


@router.get("/api/v1/expiration/items/{item_id}")
def get_item_status(
    item_id: str,
    settings: Settings = Depends(get_settings),
    repo: JSONInventoryRepo = Depends(get_inventory_repo),
):
    item = next((it for it in _load_items(repo) if it.id == item_id), None)
    if item is None:
        raise HTTPException(status_code=404, detail=f"Item {item_id} not found")
    return {"id": item_id, **describe(item, local_now(settings), settings.expiring_soon_days)}
