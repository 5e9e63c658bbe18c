from typing import Any, Awaitable, List, Optional, Tuple
import asyncio
import logging
import re
from ..core.config import settings
from ..core.key_codec import KeyCodec, default_codec
from ..core.kv_store import KVStore
from ..schemas.counter import VisitTotals

logger = logging.getLogger(__name__)

_DECIMAL = re.compile(r"[0-9]+")


def parse_count(value: Optional[str]) -> int:
    """
    Parse a stored counter value

    Absent, non-numeric and negative values all count as 0.

    Args:
        value: Raw string from the store, or None

    Returns:
        Non-negative integer
    """
    if value is None:
        return 0
    digits = str(value).strip()
    if not _DECIMAL.fullmatch(digits):
        return 0
    return int(digits)


async def _join(*calls: Awaitable[Any]) -> List[Any]:
    """Run store calls concurrently, wait for all of them, then raise the first failure"""
    results = await asyncio.gather(*calls, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return results


class VisitCounterService:
    def __init__(self, store: KVStore, codec: KeyCodec = default_codec, site_key: Optional[str] = None):
        """
        Read-increment-write page view counters

        The store has no compare-and-swap, so two visits to the same page
        that overlap between read and write both write old+1 and one
        increment is lost. Counts are approximate under concurrency.

        Args:
            store: Key-value store holding the counters
            codec: Codec deriving the per-page key from the path
            site_key: Key of the site-wide counter
        """
        self.store = store
        self.codec = codec
        self.site_key = site_key or settings.SITE_KEY

    def page_key(self, path: str) -> str:
        return self.codec.encode(path)

    async def _read(self, page_key: str) -> Tuple[int, int]:
        site_raw, page_raw = await _join(
            self.store.get(self.site_key),
            self.store.get(page_key),
        )
        return parse_count(site_raw), parse_count(page_raw)

    async def record_visit(self, path: str) -> VisitTotals:
        """
        Record one page view

        Reads both counters, adds one to each and writes both back. Returns
        only after both writes are acknowledged.

        Args:
            path: Visited URL path; empty counts as the root page

        Returns:
            The new site and page totals

        Raises:
            StoreError: If any read or write fails
        """
        page_key = self.page_key(path)
        try:
            site_total, page_total = await self._read(page_key)
            site_total += 1
            page_total += 1

            await _join(
                self.store.put(self.site_key, str(site_total)),
                self.store.put(page_key, str(page_total)),
            )
        except Exception as e:
            logger.error(f"Failed to record visit for {path!r}: {str(e)}")
            raise

        logger.info(f"Visit recorded for {page_key}: page={page_total} site={site_total}")
        return VisitTotals(site_total=site_total, page_total=page_total)

    async def get_counts(self, path: str) -> VisitTotals:
        """Current site and page totals, without recording a visit"""
        site_total, page_total = await self._read(self.page_key(path))
        return VisitTotals(site_total=site_total, page_total=page_total)

    async def get_status(self) -> dict:
        """Get current service status"""
        return {
            "site_key": self.site_key,
            "hyphen_policy": self.codec.hyphen_policy.value,
        }
