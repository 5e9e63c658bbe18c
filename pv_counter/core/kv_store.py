import base64
import binascii
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .exceptions import InvalidCursor


class KeyInfo(BaseModel):
    name: str


class ListResult(BaseModel):
    keys: List[KeyInfo] = Field(default_factory=list)
    cursor: Optional[str] = None
    complete: bool = True


def encode_cursor(last_key: str) -> str:
    """Opaque continuation token pointing just past ``last_key``"""
    return base64.urlsafe_b64encode(last_key.encode("utf-8")).decode("ascii")


def decode_cursor(cursor: str) -> str:
    try:
        return base64.b64decode(cursor, altchars=b"-_", validate=True).decode("utf-8")
    except (binascii.Error, UnicodeError, ValueError) as e:
        raise InvalidCursor(cursor) from e


class KVStore(ABC):
    """
    Schemaless string key-value store

    Offers no atomic increment and no transactions. Every method makes a
    single attempt and raises StoreError on failure.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None if the key is absent"""

    @abstractmethod
    async def put(self, key: str, value: str) -> None:
        """Create or overwrite a value"""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Delete a key. No-op if it does not exist"""

    @abstractmethod
    async def list(
        self,
        limit: int,
        cursor: Optional[str] = None,
        prefix: Optional[str] = None,
    ) -> ListResult:
        """
        Return one page of keys in lexicographic order

        Args:
            limit: Maximum number of keys in the page
            cursor: Token from a previous page, passed back unmodified
            prefix: Only keys starting with this prefix

        Returns:
            ListResult with the page, the next cursor and a completion flag
        """

    async def get_status(self) -> Dict[str, Any]:
        return {"backend": type(self).__name__}

    async def close(self) -> None:
        pass


class InMemoryKVStore(KVStore):
    """Dict-backed store for development and tests. Data is lost on exit."""

    def __init__(self, data: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(data or {})

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def put(self, key: str, value: str) -> None:
        self._data[key] = value

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    async def list(
        self,
        limit: int,
        cursor: Optional[str] = None,
        prefix: Optional[str] = None,
    ) -> ListResult:
        after = decode_cursor(cursor) if cursor else None
        names = sorted(
            name for name in self._data
            if (not prefix or name.startswith(prefix)) and (after is None or name > after)
        )

        page = names[:limit]
        complete = len(names) <= limit
        return ListResult(
            keys=[KeyInfo(name=name) for name in page],
            cursor=None if complete or not page else encode_cursor(page[-1]),
            complete=complete,
        )

    async def get_status(self) -> Dict[str, Any]:
        return {"backend": "memory", "keys": len(self._data)}
