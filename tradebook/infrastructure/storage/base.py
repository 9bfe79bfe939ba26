from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

class RecordStore(ABC):
    """
    Abstract key-value store for named record collections.
    Implementations hold no logic of their own: a collection is a list of
    JSON-serializable dicts, read and written as a whole.
    """

    @abstractmethod
    def load(self, name: str) -> Optional[List[Dict[str, Any]]]:
        """
        Reads a collection.

        Args:
            name: The collection name (e.g., 'trades').

        Returns:
            The stored records, or None when the collection is missing or unreadable.
        """
        pass

    @abstractmethod
    def save(self, name: str, records: List[Dict[str, Any]]) -> None:
        """
        Replaces a collection. Last write wins.
        """
        pass
