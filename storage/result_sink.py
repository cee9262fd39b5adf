"""
Result sinks
Insert-only stores for accepted verdict rows
"""
from abc import ABC, abstractmethod
from copy import deepcopy
from threading import Lock
from typing import Any, Dict, List, Optional
import logging

from utils.exceptions import ConfigurationError, StorageError


logger = logging.getLogger(__name__)


class BaseResultSink(ABC):
    """Insert-only row store"""

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        """
        Insert one row

        Raises:
            StorageError: the row was not written
        """
        pass


class InMemoryResultSink(BaseResultSink):
    """Thread-safe in-process sink (tests, dry runs)."""

    def __init__(self) -> None:
        self._tables: Dict[str, List[Dict[str, Any]]] = {}
        self._lock = Lock()

    @property
    def name(self) -> str:
        return "memory"

    def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock:
            stored = deepcopy(dict(row))
            self._tables.setdefault(table, []).append(stored)
            return deepcopy(stored)

    def rows(self, table: Optional[str] = None) -> List[Dict[str, Any]]:
        with self._lock:
            if table is not None:
                return deepcopy(self._tables.get(table, []))
            return [deepcopy(row) for rows in self._tables.values() for row in rows]

    def count(self, table: Optional[str] = None) -> int:
        return len(self.rows(table))


class SupabaseResultSink(BaseResultSink):
    """Supabase table insert via the service-role client."""

    def __init__(self, url: Optional[str] = None, key: Optional[str] = None, *, client: Any = None) -> None:
        self._client = client
        self.url = str(url or "").strip()
        self.key = str(key or "").strip()
        if self._client is None and (not self.url or not self.key):
            raise ConfigurationError("supabase sink needs SUPABASE_URL and SUPABASE_SERVICE_KEY")

    @property
    def name(self) -> str:
        return "supabase"

    def _get_client(self):
        if self._client is None:
            from supabase import create_client

            self._client = create_client(self.url, self.key)
        return self._client

    def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = self._get_client().table(table).insert(row).execute()
        except Exception as exc:
            raise StorageError(f"supabase insert into {table} failed", {"error": str(exc)}) from exc

        data = getattr(response, "data", None) or []
        return dict(data[0]) if data else dict(row)


def get_default_sink() -> BaseResultSink:
    """Supabase sink from settings."""
    from config import get_supabase_settings

    settings = get_supabase_settings()
    return SupabaseResultSink(url=settings.url, key=settings.service_key)
