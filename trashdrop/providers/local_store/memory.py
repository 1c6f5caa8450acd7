import copy
from typing import Any, Dict, Optional

from trashdrop.providers.local_store.base import LocalStore


class InMemoryLocalStore(LocalStore):
    """Process-local store. Values are deep-copied in and out like a real store would serialize them."""

    def __init__(self):
        self._collections: Dict[str, Dict[str, Any]] = {}

    def get_all(self, collection: str) -> Dict[str, Any]:
        entries = self._collections.get(collection, {})
        return {key: copy.deepcopy(entries[key]) for key in sorted(entries)}

    def get(self, collection: str, key: str) -> Optional[Any]:
        value = self._collections.get(collection, {}).get(key)
        return copy.deepcopy(value)

    def put(self, collection: str, key: str, value: Any) -> None:
        self._collections.setdefault(collection, {})[key] = copy.deepcopy(value)

    def delete(self, collection: str, key: str) -> None:
        self._collections.get(collection, {}).pop(key, None)

    def clear(self, collection: str) -> None:
        self._collections.pop(collection, None)
