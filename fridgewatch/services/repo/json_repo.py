from __future__ import annotations

import io
import json
import os
import tempfile
import uuid
from contextlib import contextmanager
from typing import Iterator, Optional

from fridgewatch.core.models import Inventory, InventoryItem, InventoryEvent
from fridgewatch.services.exceptions import RepoError
from fridgewatch.services.repo.base import EventRepo, InventoryRepo
from fridgewatch.config import Settings

# Cross-platform file lock (fcntl for *nix; msvcrt for Windows)
@contextmanager
def _locked(path: str) -> Iterator[io.FileIO]:
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    f = open(path, "a+b")  # create if missing
    locker = None
    try:
        try:
            import fcntl  # type: ignore
            fcntl.flock(f.fileno(), fcntl.LOCK_EX)
            locker = ("fcntl", None)
        except ImportError:
            try:
                import msvcrt  # type: ignore
                msvcrt.locking(f.fileno(), msvcrt.LK_LOCK, 1)
                locker = ("msvcrt", 1)
            except (ImportError, OSError) as e:
                raise RepoError(f"Could not lock file {path}: {e}") from e
        except OSError as e:
            raise RepoError(f"Could not lock file {path}: {e}") from e
        yield f
    finally:
        try:
            if locker and locker[0] == "fcntl":
                import fcntl  # type: ignore
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)
            elif locker:
                import msvcrt  # type: ignore
                msvcrt.locking(f.fileno(), msvcrt.LK_UNLCK, locker[1])
        except OSError:
            pass  # closing the handle releases the lock anyway
        f.close()


def _atomic_write(path: str, data: bytes) -> None:
    d = os.path.dirname(path) or "."
    os.makedirs(d, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=".tmp-", dir=d)
    try:
        with os.fdopen(fd, "wb") as w:
            w.write(data)
            w.flush()
            os.fsync(w.fileno())
        os.replace(tmp, path)
    except OSError as e:
        try:
            os.remove(tmp)
        except OSError:
            pass
        raise RepoError(f"Atomic write failed for {path}: {e}") from e


def _read_json(path: str, default: str = "{}") -> dict:
    with _locked(path) as f:
        f.seek(0)
        raw = f.read() or default.encode("utf-8")
    return json.loads(raw.decode("utf-8"))


def with_id(item: InventoryItem) -> InventoryItem:
    """Give an unsaved item a fresh id; items that have one pass through."""
    if item.id:
        return item
    return item.model_copy(update={"id": uuid.uuid4().hex})


class JSONInventoryRepo(InventoryRepo):
    """Inventory stored as a single JSON document: {"items": [...]}."""

    def __init__(self, settings: Settings):
        self.path = settings.inventory_file

    def load(self) -> Inventory:
        try:
            if not os.path.exists(self.path):
                return Inventory(items=[])
            obj = _read_json(self.path)
            items = [InventoryItem(**it) for it in obj.get("items", [])]
            return Inventory(items=items)
        except RepoError:
            raise
        except Exception as e:
            raise RepoError(f"Failed to load inventory from {self.path}: {e}") from e

    def save(self, inventory: Inventory) -> None:
        try:
            payload = inventory.model_dump_json().encode("utf-8")
        except (TypeError, ValueError) as e:
            raise RepoError(f"Failed to save inventory to {self.path}: {e}") from e
        _atomic_write(self.path, payload)

    # ---- item-level helpers -------------------------------------------------

    def get(self, item_id: str) -> Optional[InventoryItem]:
        return next((it for it in self.load().items if it.id == item_id), None)

    def upsert(self, item: InventoryItem) -> InventoryItem:
        """Insert or replace by id. Items without an id get a fresh one."""
        item = with_id(item)
        inventory = self.load()
        items = [it for it in inventory.items if it.id != item.id]
        replaced = len(items) != len(inventory.items)
        if replaced:
            # keep the original position
            idx = next(i for i, it in enumerate(inventory.items) if it.id == item.id)
            items.insert(idx, item)
        else:
            items.append(item)
        self.save(Inventory(items=items))
        return item

    def delete(self, item_id: str) -> bool:
        inventory = self.load()
        items = [it for it in inventory.items if it.id != item_id]
        if len(items) == len(inventory.items):
            return False
        self.save(Inventory(items=items))
        return True


class JSONEventRepo(EventRepo):
    def __init__(self, settings: Settings):
        self.path = settings.events_file

    def append(self, event: InventoryEvent) -> None:
        try:
            line = (json.dumps(event.model_dump(), ensure_ascii=False, separators=(",", ":"), default=str) + "\n").encode("utf-8")
            with _locked(self.path) as f:
                f.seek(0, os.SEEK_END)
                f.write(line)
                f.flush()
                os.fsync(f.fileno())
        except RepoError:
            raise
        except Exception as e:
            raise RepoError(f"Failed to append event to {self.path}: {e}") from e
