"""
Entity stores.

The buffet never loads data itself: callers hand it entities directly or
inject an EntityStore.  Two implementations ship here:

    InMemoryEntityStore  entities (or raw records) held in a dict
    JsonEntityStore      a JSON file shaped {"agency": [...], "oem": [...]}

Raw records are converted with Entity.from_dict, which splits identity and
attribute keys from field values.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable, Protocol

from buffet.models import Entity

logger = logging.getLogger(__name__)


class EntityStore(Protocol):
    """Anything that can list the entities of one type."""

    def get_entities(self, entity_type: str) -> list[Entity]:
        ...


def _to_entities(records: Iterable[Any], entity_type: str) -> list[Entity]:
    entities: list[Entity] = []
    for record in records:
        if isinstance(record, Entity):
            entities.append(record)
        elif isinstance(record, dict):
            entities.append(Entity.from_dict(record, entity_type))
        else:
            logger.warning("Ignoring %s record of type %s", entity_type, type(record).__name__)
    return entities


class InMemoryEntityStore:
    """Entity store backed by a ``{entity_type: [records]}`` mapping."""

    def __init__(self, data: dict[str, Iterable[Any]] | None = None) -> None:
        self._entities: dict[str, list[Entity]] = {
            etype: _to_entities(records, etype) for etype, records in (data or {}).items()
        }

    def add(self, entity: Entity) -> None:
        self._entities.setdefault(entity.entity_type, []).append(entity)

    def get_entities(self, entity_type: str) -> list[Entity]:
        return list(self._entities.get(entity_type, []))

    def entity_types(self) -> list[str]:
        return sorted(self._entities)


class JsonEntityStore(InMemoryEntityStore):
    """Entity store loaded once from a JSON file.

    Args:
        path: File holding an object keyed by entity type, each value a list
            of entity records.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        ValueError: If the file is not a JSON object of record lists.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"{self.path}: expected an object keyed by entity type")
        for etype, records in data.items():
            if not isinstance(records, list):
                raise ValueError(f"{self.path}: {etype!r} must map to a list of records")
        super().__init__(data)
        logger.info("Loaded %s from %s",
                    ", ".join(f"{len(v)} {k}" for k, v in self._entities.items()) or "no entities",
                    self.path)
