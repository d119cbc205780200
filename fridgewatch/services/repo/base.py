from __future__ import annotations
from abc import ABC, abstractmethod
from fridgewatch.core.models import Inventory, InventoryEvent

class InventoryRepo(ABC):
    @abstractmethod
    def load(self) -> Inventory: ...
    @abstractmethod
    def save(self, inventory: Inventory) -> None: ...

class EventRepo(ABC):
    @abstractmethod
    def append(self, event: InventoryEvent) -> None: ...
