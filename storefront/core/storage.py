"""Durable cart storage backends"""

import json
import logging
import os
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class CartStorage(Protocol):
    """Persistence boundary for a session's cart"""

    def load(self, key: str) -> list[dict[str, Any]]:
        ...

    def save(self, key: str, items: list[dict[str, Any]]) -> None:
        ...


class MemoryCartStorage:
    """In-memory storage, lost when the process exits"""

    def __init__(self):
        self.data: dict[str, list[dict[str, Any]]] = {}

    def load(self, key: str) -> list[dict[str, Any]]:
        return [dict(item) for item in self.data.get(key, [])]

    def save(self, key: str, items: list[dict[str, Any]]) -> None:
        self.data[key] = [dict(item) for item in items]


class JsonFileCartStorage:
    """
    File-backed storage.

    One JSON document per browser session, mapping storage keys to the
    serialized line items. Concurrent writers race with last-write-wins.
    """

    def __init__(self, directory: str, session_id: str):
        self.path = os.path.join(directory, f"{session_id}.json")

    def _read_document(self) -> dict[str, Any]:
        if not os.path.exists(self.path):
            return {}

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                document = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Unreadable cart document {self.path}: {e}")
            return {}

        if not isinstance(document, dict):
            logger.warning(f"Ignoring malformed cart document {self.path}")
            return {}
        return document

    def load(self, key: str) -> list[dict[str, Any]]:
        items = self._read_document().get(key, [])
        if not isinstance(items, list):
            return []
        return [item for item in items if isinstance(item, dict)]

    def save(self, key: str, items: list[dict[str, Any]]) -> None:
        document = self._read_document()
        document[key] = items

        tmp_path = f"{self.path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(document, f)
        os.replace(tmp_path, self.path)
