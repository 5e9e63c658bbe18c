from typing import List, Optional
import asyncio
import json
import logging
from ..core.config import settings
from ..core.exceptions import MissingInput
from ..core.key_codec import KeyCodec, default_codec
from ..core.kv_store import KVStore
from ..schemas.counter import Entry, ListEntriesResponse, ListOptions

logger = logging.getLogger(__name__)

# Largest limit a caller may ask for before it falls back to the default
MAX_REQUESTED_LIMIT = 256


def to_store_value(value) -> str:
    """
    String form of an admin-supplied value

    JSON literals keep their JSON spelling (null, true, false), and
    whole-number floats drop the fraction, so 5.0 is stored as "5".
    """
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


class KeyBrowserService:
    def __init__(
        self,
        store: KVStore,
        codec: KeyCodec = default_codec,
        default_limit: Optional[int] = None,
        max_keys_only: Optional[int] = None,
        max_with_values: Optional[int] = None,
    ):
        """
        Paginated administrative view over every stored key

        Args:
            store: Key-value store to browse
            codec: Codec used to show page keys as paths
            default_limit: Page size when none or an invalid one is requested
            max_keys_only: Page size ceiling when only keys are listed
            max_with_values: Page size ceiling when values are fetched too
        """
        self.store = store
        self.codec = codec
        self.default_limit = default_limit or settings.LIST_DEFAULT_LIMIT
        self.max_keys_only = max_keys_only or settings.LIST_MAX_KEYS_ONLY
        self.max_with_values = max_with_values or settings.LIST_MAX_WITH_VALUES

    def clamp_limit(self, limit: Optional[int], only_keys: bool) -> int:
        """
        Effective page size

        Out-of-range or missing limits become the default, and the result
        is capped lower when every key's value has to be fetched.
        """
        if not limit or limit < 1 or limit > MAX_REQUESTED_LIMIT:
            limit = self.default_limit
        ceiling = self.max_keys_only if only_keys else self.max_with_values
        return min(limit, ceiling)

    def display_path(self, key: str) -> str:
        try:
            return self.codec.decode(key)
        except Exception as e:
            logger.warning(f"Could not decode key {key!r}: {str(e)}")
            return key

    async def _fetch_entry(self, key: str) -> Entry:
        try:
            value = await self.store.get(key)
        except Exception as e:
            logger.error(f"Failed to fetch value for {key!r}: {str(e)}")
            value = None
        return Entry(key=key, value=value, path=self.display_path(key))

    async def list_entries(self, options: ListOptions) -> ListEntriesResponse:
        """
        One page of stored keys, optionally with values and display paths

        Keys-only mode makes no per-key store call. Otherwise values are
        fetched concurrently; a failed fetch yields a null value instead of
        failing the page.

        Args:
            options: Limit, cursor, prefix and keys-only flag

        Returns:
            Entries in store order, the next cursor and a completion flag

        Raises:
            StoreError: If the listing itself fails
            InvalidCursor: If the cursor was not issued by the store
        """
        limit = self.clamp_limit(options.limit, options.only_keys)
        cursor = options.cursor if options.cursor and options.cursor != "null" else None
        prefix = options.prefix or None

        page = await self.store.list(limit=limit, cursor=cursor, prefix=prefix)
        names: List[str] = [k.name for k in page.keys]

        if options.only_keys:
            entries = [Entry(key=name) for name in names]
        else:
            entries = list(await asyncio.gather(*(self._fetch_entry(name) for name in names)))

        return ListEntriesResponse(data=entries, cursor=page.cursor, complete=page.complete)

    async def update_entry(self, key: str, value) -> None:
        """Overwrite a stored value. Raises MissingInput for an empty key"""
        if not key:
            raise MissingInput("key")
        await self.store.put(key, to_store_value(value))
        logger.info(f"Entry {key} updated")

    async def delete_entry(self, key: str) -> None:
        """Delete a stored key. Raises MissingInput for an empty key"""
        if not key:
            raise MissingInput("key")
        await self.store.delete(key)
        logger.info(f"Entry {key} deleted")
