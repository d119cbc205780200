from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException

from fridgewatch.config import Settings
from fridgewatch.core.models import AuthorizationUpdate, NotificationRequest, SyncReport
from fridgewatch.services.exceptions import NotifierError, RepoError
from fridgewatch.services.notifier import JSONNotificationCenter
from fridgewatch.services.repo.json_repo import JSONInventoryRepo
from fridgewatch.services.scheduler import ExpirationNotificationScheduler, build_scheduler

router = APIRouter(tags=["notifications"])

# ---- Dependencies ------------------------------------------------------------

def get_settings() -> Settings:
    return Settings()

def get_center(settings: Settings = Depends(get_settings)) -> JSONNotificationCenter:
    return JSONNotificationCenter(settings)

def get_scheduler(settings: Settings = Depends(get_settings)) -> ExpirationNotificationScheduler:
    return build_scheduler(settings)

# ---- Routes ------------------------------------------------------------------

@router.post("/api/v1/notifications/sync", response_model=SyncReport)
def sync_notifications(
    settings: Settings = Depends(get_settings),
    scheduler: ExpirationNotificationScheduler = Depends(get_scheduler),
):
    try:
        items = JSONInventoryRepo(settings).load().items
    except RepoError as e:
        raise HTTPException(status_code=500, detail=str(e))
    try:
        return scheduler.sync(items)
    except NotifierError as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.get("/api/v1/notifications/pending", response_model=List[NotificationRequest])
def list_pending(center: JSONNotificationCenter = Depends(get_center)):
    try:
        return sorted(center.pending(), key=lambda r: r.trigger_at)
    except NotifierError as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.get("/api/v1/notifications/authorization", response_model=AuthorizationUpdate)
def get_authorization(center: JSONNotificationCenter = Depends(get_center)):
    try:
        return AuthorizationUpdate(status=center.authorization_status())
    except NotifierError as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.post("/api/v1/notifications/authorization", response_model=AuthorizationUpdate)
def request_authorization(scheduler: ExpirationNotificationScheduler = Depends(get_scheduler)):
    try:
        scheduler.ensure_authorized()
        return AuthorizationUpdate(status=scheduler.center.authorization_status())
    except NotifierError as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.put("/api/v1/notifications/authorization", response_model=AuthorizationUpdate)
def set_authorization(update: AuthorizationUpdate, center: JSONNotificationCenter = Depends(get_center)):
    # Stands in for the user answering the device permission prompt.
    try:
        center.set_authorization(update.status)
        return AuthorizationUpdate(status=center.authorization_status())
    except NotifierError as e:
        raise HTTPException(status_code=502, detail=str(e))
