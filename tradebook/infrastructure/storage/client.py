import copy
import json
import os
import tempfile
from typing import Any, Dict, List, Optional
from tradebook.config.logging import logger
from tradebook.core.exceptions import StorageError
from .base import RecordStore

class JsonFileStore(RecordStore):
    """
    以 JSON 檔案保存集合，每個集合一個檔案 (<data_dir>/<name>.json)。
    """

    def __init__(self, data_dir: str):
        self.data_dir = data_dir

    def _path(self, name: str) -> str:
        return os.path.join(self.data_dir, f"{name}.json")

    def load(self, name: str) -> Optional[List[Dict[str, Any]]]:
        path = self._path(name)
        if not os.path.exists(path):
            return None

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Collection '{name}' at {path} is unreadable: {e}")
            return None

        if not isinstance(data, list):
            logger.warning(f"Collection '{name}' is not a JSON array, ignoring it.")
            return None
        return data

    def save(self, name: str, records: List[Dict[str, Any]]) -> None:
        path = self._path(name)
        try:
            os.makedirs(self.data_dir, exist_ok=True)
            # 先寫暫存檔再 rename，避免寫到一半留下損毀的檔案
            fd, tmp_path = tempfile.mkstemp(dir=self.data_dir, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(records, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, path)
        except OSError as e:
            logger.error(f"Failed to write collection '{name}': {e}")
            raise StorageError(f"Cannot save {name} to {path}: {e}")

class InMemoryStore(RecordStore):
    """In-process store, used by tests and dry runs."""

    def __init__(self, initial: Optional[Dict[str, List[Dict[str, Any]]]] = None):
        self._collections: Dict[str, List[Dict[str, Any]]] = copy.deepcopy(initial or {})

    def load(self, name: str) -> Optional[List[Dict[str, Any]]]:
        if name not in self._collections:
            return None
        return copy.deepcopy(self._collections[name])

    def save(self, name: str, records: List[Dict[str, Any]]) -> None:
        self._collections[name] = copy.deepcopy(records)
