"""
Persisted state containers.

Each store owns one collection, persists it synchronously after every
successful mutation under a namespaced, versioned key, and rehydrates from
that key on start (running the migration hook for older versions and
seeding fixed mock data when the collection comes back empty).
"""
import json
from typing import Any, Dict, Iterable, List, Optional

import structlog
from pydantic import BaseModel

from ..storage.provider import StateStorage


logger = structlog.get_logger(__name__)


def reorder_by_ids(items: List[Any], ordered_ids: Iterable[str]) -> List[Any]:
    """Listed ids first, in the given order; everything else keeps its relative order."""
    by_id = {item.id: item for item in items}
    ordered: List[Any] = []
    seen = set()
    for item_id in ordered_ids:
        item = by_id.get(item_id)
        if item is not None and item_id not in seen:
            ordered.append(item)
            seen.add(item_id)
    ordered.extend(item for item in items if item.id not in seen)
    return ordered


def dump_models(items: Iterable[BaseModel]) -> List[Dict[str, Any]]:
    return [item.model_dump(mode="json") for item in items]


class PersistedStore:
    name: str = ""
    version: int = 1

    def __init__(self, storage: StateStorage, seed_on_empty: bool = True):
        self.storage = storage
        self.seed_on_empty = seed_on_empty
        self.is_hydrated = False

    # -- subclass hooks -------------------------------------------------

    def dump_state(self) -> Dict[str, Any]:
        raise NotImplementedError

    def load_state(self, state: Dict[str, Any]) -> None:
        raise NotImplementedError

    def is_empty(self) -> bool:
        return False

    def seed(self) -> None:
        pass

    def migrate(self, state: Dict[str, Any], version: int) -> Dict[str, Any]:
        return state

    # -- persistence ------------------------------------------------------

    def hydrate(self) -> "PersistedStore":
        raw = self.storage.get_item(self.name)
        changed = False
        if raw:
            try:
                envelope = json.loads(raw)
                state = envelope.get("state") or {}
                version = int(envelope.get("version", 0))
                if version < self.version:
                    logger.info("state_migrating", store=self.name, from_version=version, to_version=self.version)
                    state = self.migrate(state, version)
                    changed = True
                self.load_state(state)
            except (ValueError, TypeError, AttributeError) as e:
                logger.error("state_corrupt", store=self.name, error=str(e))
                self.load_state({})
        else:
            self.load_state({})

        if self.seed_on_empty and self.is_empty():
            logger.info("state_seeding", store=self.name)
            self.seed()
            changed = True

        self.is_hydrated = True
        if changed:
            self.persist()
        logger.debug("state_hydrated", store=self.name)
        return self

    def persist(self) -> None:
        envelope = {"state": self.dump_state(), "version": self.version}
        self.storage.set_item(self.name, json.dumps(envelope, ensure_ascii=False, default=str))

    def clear_persisted(self) -> None:
        self.storage.remove_item(self.name)


def find_index(items: List[Any], item_id: str) -> Optional[int]:
    for i, item in enumerate(items):
        if item.id == item_id:
            return i
    return None
