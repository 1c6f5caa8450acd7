from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


class LocalStore(ABC):
    """
    Client-side key-value persistence (IndexedDB on the web client).

    Values are JSON-compatible dicts grouped into named collections.
    `get_all` returns entries ordered by key.
    """

    @abstractmethod
    def get_all(self, collection: str) -> Dict[str, Any]:
        ...

    @abstractmethod
    def get(self, collection: str, key: str) -> Optional[Any]:
        ...

    @abstractmethod
    def put(self, collection: str, key: str, value: Any) -> None:
        ...

    @abstractmethod
    def delete(self, collection: str, key: str) -> None:
        ...

    @abstractmethod
    def clear(self, collection: str) -> None:
        ...

    def close(self) -> None:
        """Release underlying resources, if any."""
