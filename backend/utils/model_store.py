"""
Model store for simulated models.

The HTTP layer depends on the ModelStore interface only; the in-memory
implementation is a plain dict with no persistence, expiry or locking.
"""

import time
from abc import ABC, abstractmethod
from typing import Dict, Optional

from schemas.model_schema import SimulatedModel


class ModelStore(ABC):
    """Keyed store for SimulatedModel entries."""

    @abstractmethod
    def put(self, model_id: str, model: SimulatedModel) -> None:
        pass

    @abstractmethod
    def get(self, model_id: str) -> Optional[SimulatedModel]:
        pass

    @abstractmethod
    def evict(self, model_id: str) -> bool:
        """Remove an entry. Returns True if something was removed."""
        pass

    @abstractmethod
    def __len__(self) -> int:
        pass

    def __contains__(self, model_id: object) -> bool:
        return isinstance(model_id, str) and self.get(model_id) is not None


class InMemoryModelStore(ModelStore):
    """Process-lifetime dict store. Grows without bound."""

    def __init__(self):
        self._models: Dict[str, SimulatedModel] = {}

    def put(self, model_id: str, model: SimulatedModel) -> None:
        self._models[model_id] = model

    def get(self, model_id: str) -> Optional[SimulatedModel]:
        return self._models.get(model_id)

    def evict(self, model_id: str) -> bool:
        return self._models.pop(model_id, None) is not None

    def __len__(self) -> int:
        return len(self._models)


def new_model_id(store: ModelStore, now_ms: Optional[int] = None) -> str:
    """
    Generate model_<epoch ms>, bumping the millisecond until unused in store.
    """
    stamp = int(now_ms if now_ms is not None else time.time() * 1000)
    model_id = f"model_{stamp}"
    while model_id in store:
        stamp += 1
        model_id = f"model_{stamp}"
    return model_id
