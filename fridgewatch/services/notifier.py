from __future__ import annotations

import json
import os
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Dict, Iterable, Iterator, List

from fridgewatch.config import Settings
from fridgewatch.core.models import AuthorizationStatus, NotificationRequest
from fridgewatch.services.exceptions import NotifierError, RepoError
from fridgewatch.services.repo.json_repo import _atomic_write, _locked


class NotificationCenter(ABC):
    """
    What the reminder scheduler needs from a local-notification service.
    Adding a request whose id is already pending replaces it.
    """

    @abstractmethod
    def authorization_status(self) -> AuthorizationStatus: ...

    @abstractmethod
    def request_authorization(self) -> bool:
        """Ask for permission if it was never decided; True when authorized afterwards."""

    @abstractmethod
    def pending(self) -> List[NotificationRequest]: ...

    def pending_ids(self) -> List[str]:
        return [r.id for r in self.pending()]

    @abstractmethod
    def add(self, request: NotificationRequest) -> None: ...

    @abstractmethod
    def remove(self, ids: Iterable[str]) -> None: ...


class InMemoryNotificationCenter(NotificationCenter):
    def __init__(
        self,
        status: AuthorizationStatus = AuthorizationStatus.AUTHORIZED,
        grant_on_request: bool = True,
    ):
        self.status = status
        self.grant_on_request = grant_on_request
        self._pending: Dict[str, NotificationRequest] = {}

    def authorization_status(self) -> AuthorizationStatus:
        return self.status

    def request_authorization(self) -> bool:
        if self.status is AuthorizationStatus.NOT_DETERMINED:
            self.status = AuthorizationStatus.AUTHORIZED if self.grant_on_request else AuthorizationStatus.DENIED
        return self.status is AuthorizationStatus.AUTHORIZED

    def pending(self) -> List[NotificationRequest]:
        return list(self._pending.values())

    def add(self, request: NotificationRequest) -> None:
        self._pending[request.id] = request

    def remove(self, ids: Iterable[str]) -> None:
        for i in ids:
            self._pending.pop(i, None)


class JSONNotificationCenter(NotificationCenter):
    """
    File-backed stand-in for the device notification center.

    Layout: {"authorization": str, "grant_on_request": bool, "pending": [request, ...]}
    Read-modify-write cycles hold a sidecar lock file; the document itself is
    replaced atomically.
    """

    def __init__(self, settings: Settings, grant_on_request: bool = True):
        self.path = settings.notifications_file
        self._lock_path = self.path + ".lock"
        self._grant_on_request = grant_on_request

    # ---- storage ------------------------------------------------------------

    def _read(self) -> dict:
        if not os.path.exists(self.path):
            return {
                "authorization": AuthorizationStatus.NOT_DETERMINED.value,
                "grant_on_request": self._grant_on_request,
                "pending": [],
            }
        try:
            with open(self.path, "rb") as f:
                return json.loads(f.read().decode("utf-8") or "{}")
        except (OSError, ValueError) as e:
            raise NotifierError(f"Failed to read notifications from {self.path}: {e}") from e

    def _write(self, state: dict) -> None:
        payload = json.dumps(state, ensure_ascii=False, separators=(",", ":"), default=str).encode("utf-8")
        try:
            _atomic_write(self.path, payload)
        except RepoError as e:
            raise NotifierError(str(e)) from e

    @contextmanager
    def _transaction(self) -> Iterator[dict]:
        try:
            with _locked(self._lock_path):
                state = self._read()
                yield state
                self._write(state)
        except RepoError as e:
            raise NotifierError(str(e)) from e

    # ---- NotificationCenter -------------------------------------------------

    def authorization_status(self) -> AuthorizationStatus:
        raw = self._read().get("authorization", AuthorizationStatus.NOT_DETERMINED.value)
        try:
            return AuthorizationStatus(raw)
        except ValueError as e:
            raise NotifierError(f"Unknown authorization status {raw!r} in {self.path}") from e

    def set_authorization(self, status: AuthorizationStatus) -> None:
        with self._transaction() as state:
            state["authorization"] = status.value

    def request_authorization(self) -> bool:
        with self._transaction() as state:
            current = state.get("authorization", AuthorizationStatus.NOT_DETERMINED.value)
            if current == AuthorizationStatus.NOT_DETERMINED.value:
                granted = bool(state.get("grant_on_request", self._grant_on_request))
                current = (AuthorizationStatus.AUTHORIZED if granted else AuthorizationStatus.DENIED).value
                state["authorization"] = current
        return current == AuthorizationStatus.AUTHORIZED.value

    def pending(self) -> List[NotificationRequest]:
        try:
            return [NotificationRequest(**r) for r in self._read().get("pending", [])]
        except (TypeError, ValueError) as e:
            raise NotifierError(f"Malformed pending notification in {self.path}: {e}") from e

    def add(self, request: NotificationRequest) -> None:
        row = json.loads(request.model_dump_json())
        with self._transaction() as state:
            rows = [r for r in state.get("pending", []) if r.get("id") != request.id]
            rows.append(row)
            state["pending"] = rows

    def remove(self, ids: Iterable[str]) -> None:
        drop = set(ids)
        if not drop:
            return
        with self._transaction() as state:
            state["pending"] = [r for r in state.get("pending", []) if r.get("id") not in drop]
