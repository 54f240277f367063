"""
In-process store client.

Keeps documents in a dict per collection. Used for dry runs of the CLI and
as a stand-in backend in tests.
"""

from __future__ import annotations

import copy
from typing import Any, Dict, List, Mapping, Optional

from .errors import StoreWriteError


class InMemoryStore:
    def __init__(self, collection: str = "default"):
        self.collection = collection
        self._docs: Dict[str, Dict[str, Any]] = {}
        self.writes: List[str] = []  # keys in write order
        self.closed = False

    def upsert_document(self, key: str, document: Mapping[str, Any]) -> None:
        if self.closed:
            raise StoreWriteError("store client is closed")
        self._docs[key] = copy.deepcopy(dict(document))
        self.writes.append(key)

    def get_document(self, key: str) -> Optional[Dict[str, Any]]:
        doc = self._docs.get(key)
        return copy.deepcopy(doc) if doc is not None else None

    def health(self) -> bool:
        return not self.closed

    def __len__(self) -> int:
        return len(self._docs)

    def close(self) -> None:
        self.closed = True
