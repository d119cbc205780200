from __future__ import annotations

import logging
import time
from datetime import datetime, timedelta
from typing import Callable, Iterable, Optional
from zoneinfo import ZoneInfo

from fridgewatch.config import Settings
from fridgewatch.core.expiration import build_request, notification_id, qualifies, reconcile
from fridgewatch.core.models import (
    AuthorizationStatus,
    InventoryEvent,
    InventoryItem,
    NotificationRequest,
    ReconcileResult,
    SyncReport,
)
from fridgewatch.services.exceptions import NotifierError, RepoError
from fridgewatch.services.metrics import MetricsLogger
from fridgewatch.services.notifier import JSONNotificationCenter, NotificationCenter
from fridgewatch.services.repo.base import EventRepo
from fridgewatch.services.repo.json_repo import JSONEventRepo

log = logging.getLogger(__name__)


def local_now(settings: Settings) -> datetime:
    """Aware 'now' in the configured zone, or in the system zone when none is set."""
    if settings.timezone:
        return datetime.now(ZoneInfo(settings.timezone))
    return datetime.now().astimezone()


class ExpirationNotificationScheduler:
    """
    Applies expiration reminders to an injected NotificationCenter.

    The diff itself comes from core.expiration.reconcile; this class only
    checks permission, talks to the center and records what happened.
    Failures on individual requests are logged and reported, never raised,
    so one bad request does not block the rest of a sync.
    """

    def __init__(
        self,
        center: NotificationCenter,
        settings: Optional[Settings] = None,
        events: Optional[EventRepo] = None,
        metrics: Optional[MetricsLogger] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.center = center
        self.settings = settings or Settings()
        self.events = events
        self.metrics = metrics
        self._clock = clock or (lambda: local_now(self.settings))

    # ---- helpers ------------------------------------------------------------

    def now(self) -> datetime:
        return self._clock()

    def _policy(self) -> dict:
        return {
            "soon_days": self.settings.expiring_soon_days,
            "hour": self.settings.notification_hour,
            "delay": timedelta(seconds=self.settings.immediate_delay_seconds),
        }

    def plan(self, items: Iterable[InventoryItem], now: Optional[datetime] = None) -> ReconcileResult:
        """Reconcile against what the center has pending without applying anything."""
        return reconcile(items, self.center.pending_ids(), now or self.now(), **self._policy())

    # ---- authorization ------------------------------------------------------

    def ensure_authorized(self) -> bool:
        status = self.center.authorization_status()
        if status is AuthorizationStatus.AUTHORIZED:
            return True
        if status is AuthorizationStatus.DENIED:
            return False
        try:
            granted = self.center.request_authorization()
        except NotifierError as e:
            log.error("Notification authorization failed: %s", e)
            return False
        log.info("Notification authorization %s", "granted" if granted else "declined")
        return granted

    # ---- single items -------------------------------------------------------

    def schedule(self, item: InventoryItem, now: Optional[datetime] = None) -> Optional[NotificationRequest]:
        """Schedule the item's reminder, or cancel it when the item no longer qualifies."""
        if not item.id:
            return None
        now = now or self.now()
        policy = self._policy()
        if not qualifies(item, now, policy["soon_days"]):
            self.cancel(item.id)
            return None
        if self.center.authorization_status() is not AuthorizationStatus.AUTHORIZED:
            log.info("Notifications not authorized; not scheduling %s", item.name)
            return None
        req = build_request(item, now, hour=policy["hour"], delay=policy["delay"])
        self.center.add(req)
        log.info("Scheduled notification for %s at %s", item.name, req.trigger_at.isoformat())
        return req

    def cancel(self, item_id: str) -> None:
        self.center.remove([notification_id(item_id)])

    def reschedule(self, item: InventoryItem, now: Optional[datetime] = None) -> Optional[NotificationRequest]:
        if not item.id:
            return None
        self.cancel(item.id)
        return self.schedule(item, now)

    # ---- full sync ----------------------------------------------------------

    def sync(self, items: Iterable[InventoryItem], now: Optional[datetime] = None) -> SyncReport:
        """
        Bring pending notifications in line with `items`. The latest sync wins.
        Stale notifications are cancelled even without permission; only new
        ones need it.
        """
        items = list(items)
        t0 = time.perf_counter()
        now = now or self.now()
        result = self.plan(items, now)
        report = SyncReport(authorization=AuthorizationStatus.AUTHORIZED)

        if result.to_cancel:
            try:
                self.center.remove(result.to_cancel)
                report.cancelled = list(result.to_cancel)
            except NotifierError as e:
                log.error("Unable to cancel %d notifications: %s", len(result.to_cancel), e)
                report.failed.extend(result.to_cancel)

        if not self.ensure_authorized():
            report.authorization = self.center.authorization_status()
            report.skipped = True
            log.info("Not scheduling notifications: authorization is %s", report.authorization.value)
            self._record(report, len(items), (time.perf_counter() - t0) * 1000.0)
            return report

        names = {it.id: it.name for it in items if it.id}
        for req in result.to_schedule:
            try:
                self.center.add(req)
            except NotifierError as e:
                log.error("Unable to schedule notification for %s: %s", names.get(req.item_id, req.item_id), e)
                report.failed.append(req.id)
                continue
            log.info("Scheduled notification for %s at %s", names.get(req.item_id, req.item_id), req.trigger_at.isoformat())
            report.scheduled.append(req.id)

        dt_ms = (time.perf_counter() - t0) * 1000.0
        self._record(report, len(items), dt_ms)
        return report

    def _record(self, report: SyncReport, item_count: int, dt_ms: float) -> None:
        # best-effort audit + latency
        if self.events is not None:
            try:
                self.events.append(InventoryEvent(type="sync", payload={
                    "items": item_count,
                    "scheduled": report.scheduled,
                    "cancelled": report.cancelled,
                    "failed": report.failed,
                }))
            except RepoError as e:
                log.warning("Could not record sync event: %s", e)
        if self.metrics is not None:
            self.metrics.log_latency(
                name="notification_sync",
                duration_ms=dt_ms,
                extra={"items": item_count, "scheduled": len(report.scheduled), "cancelled": len(report.cancelled)},
            )


def build_scheduler(settings: Settings) -> ExpirationNotificationScheduler:
    """Scheduler wired to the JSON-backed stores named in settings."""
    return ExpirationNotificationScheduler(
        JSONNotificationCenter(settings),
        settings=settings,
        events=JSONEventRepo(settings),
        metrics=MetricsLogger(settings),
    )
