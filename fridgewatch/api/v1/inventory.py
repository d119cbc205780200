from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from fridgewatch.config import Settings
from fridgewatch.core.models import Inventory, InventoryEvent, InventoryFilter, InventoryItem, SortOption
from fridgewatch.core.summary import categories, filter_and_sort, snooze, use_one
from fridgewatch.services.exceptions import NotifierError, RepoError
from fridgewatch.services.repo.json_repo import JSONInventoryRepo, JSONEventRepo, with_id
from fridgewatch.services.scheduler import ExpirationNotificationScheduler, build_scheduler, local_now

router = APIRouter(tags=["inventory"])
log = logging.getLogger(__name__)

# ---- DI helpers --------------------------------------------------------------

def get_settings() -> Settings:
    return Settings()

def get_repos(settings: Settings = Depends(get_settings)):
    return JSONInventoryRepo(settings), JSONEventRepo(settings)

def get_scheduler(settings: Settings = Depends(get_settings)) -> ExpirationNotificationScheduler:
    return build_scheduler(settings)

def _audit(event_repo: JSONEventRepo, event: InventoryEvent) -> None:
    # best-effort; a failed audit never fails the request
    try:
        event_repo.append(event)
    except RepoError as e:
        log.warning("Could not record %s event: %s", event.type, e)

def _get_or_404(repo: JSONInventoryRepo, item_id: str) -> InventoryItem:
    item = repo.get(item_id)
    if item is None:
        raise HTTPException(status_code=404, detail=f"Item {item_id} not found")
    return item

# ---- Routes ------------------------------------------------------------------

@router.get("/api/inventory", response_model=Inventory)
def get_inventory(
    category: Optional[str] = None,
    item_filter: InventoryFilter = Query(InventoryFilter.ALL, alias="filter"),
    sort: Optional[SortOption] = None,
    settings: Settings = Depends(get_settings),
    repos = Depends(get_repos),
):
    """Stored order unless a category, filter or sort is asked for."""
    inventory_repo, _event_repo = repos
    try:
        inventory = inventory_repo.load()
    except RepoError as e:
        raise HTTPException(status_code=500, detail=str(e))
    if category is None and item_filter is InventoryFilter.ALL and sort is None:
        return inventory
    items = filter_and_sort(
        inventory.items,
        local_now(settings),
        category=category,
        item_filter=item_filter,
        sort=sort or SortOption.EXPIRATION_SOON,
        soon_days=settings.expiring_soon_days,
    )
    return Inventory(items=items)


@router.get("/api/inventory/categories", response_model=List[str])
def get_categories(repos = Depends(get_repos)):
    inventory_repo, _event_repo = repos
    try:
        return categories(inventory_repo.load().items)
    except RepoError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.put("/api/inventory", response_model=Inventory, status_code=status.HTTP_200_OK)
def replace_inventory(
    inventory: Inventory,
    repos = Depends(get_repos),
    scheduler: ExpirationNotificationScheduler = Depends(get_scheduler),
):
    inventory_repo, event_repo = repos
    # every stored item carries an id before the sync
    inventory = Inventory(items=[with_id(it) for it in inventory.items])
    try:
        inventory_repo.save(inventory)
    except RepoError as e:
        raise HTTPException(status_code=500, detail=str(e))
    _audit(event_repo, InventoryEvent(type="update", payload={"mode": "replace", "count": len(inventory.items)}))
    try:
        scheduler.sync(inventory.items)
    except NotifierError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return inventory


@router.post("/api/inventory/items", response_model=InventoryItem, status_code=status.HTTP_200_OK)
def upsert_item(
    item: InventoryItem,
    repos = Depends(get_repos),
    scheduler: ExpirationNotificationScheduler = Depends(get_scheduler),
):
    inventory_repo, event_repo = repos
    try:
        saved = inventory_repo.upsert(item)
    except RepoError as e:
        raise HTTPException(status_code=500, detail=str(e))
    _audit(event_repo, InventoryEvent(type="update", payload={"mode": "upsert", "id": saved.id}))
    try:
        scheduler.reschedule(saved)
    except NotifierError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return saved


@router.delete("/api/inventory/items/{item_id}")
def delete_item(
    item_id: str,
    repos = Depends(get_repos),
    scheduler: ExpirationNotificationScheduler = Depends(get_scheduler),
):
    inventory_repo, event_repo = repos
    try:
        scheduler.cancel(item_id)
    except NotifierError as e:
        raise HTTPException(status_code=502, detail=str(e))
    try:
        removed = inventory_repo.delete(item_id)
    except RepoError as e:
        raise HTTPException(status_code=500, detail=str(e))
    if not removed:
        raise HTTPException(status_code=404, detail=f"Item {item_id} not found")
    _audit(event_repo, InventoryEvent(type="delete", payload={"id": item_id}))
    return {"ok": True}


@router.post("/api/inventory/items/{item_id}/snooze", response_model=InventoryItem)
def snooze_item(
    item_id: str,
    repos = Depends(get_repos),
    scheduler: ExpirationNotificationScheduler = Depends(get_scheduler),
):
    inventory_repo, event_repo = repos
    try:
        item = snooze(_get_or_404(inventory_repo, item_id))
        inventory_repo.upsert(item)
    except RepoError as e:
        raise HTTPException(status_code=500, detail=str(e))
    _audit(event_repo, InventoryEvent(type="update", payload={"mode": "snooze", "id": item_id}))
    try:
        scheduler.reschedule(item)
    except NotifierError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return item


@router.post("/api/inventory/items/{item_id}/use", response_model=InventoryItem)
def use_item(item_id: str, repos = Depends(get_repos)):
    inventory_repo, event_repo = repos
    try:
        item = use_one(_get_or_404(inventory_repo, item_id))
        inventory_repo.upsert(item)
    except RepoError as e:
        raise HTTPException(status_code=500, detail=str(e))
    _audit(event_repo, InventoryEvent(type="update", payload={"mode": "use", "id": item_id, "quantity": item.quantity}))
    return item
