"""ZIP code cache service for HomeMinder.

Stores resolved historical weather and climate data in Firestore, one
document per normalized 5-digit ZIP code, with a fixed 90 day TTL.

Caching is an optimization only: every store failure degrades to a cache
miss (reads) or is logged and dropped (writes).
"""

import inspect
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

import structlog
from firebase_admin import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from config.errors import CacheError, ErrorCode
from config.settings import settings
from models.weather import ClimateData, HistoricalWeatherData, ZipCacheEntry, ZipCacheStats

logger = structlog.get_logger()

_NON_ALPHANUMERIC = re.compile(r"[^0-9A-Za-z]")


def normalize_zip_code(raw: Optional[str]) -> str:
    """Normalize a raw ZIP code to its 5 character cache key.

    "33101", " 33101 " and "33101-1234" all map to "33101".
    """
    if not raw:
        return ""
    return _NON_ALPHANUMERIC.sub("", str(raw).strip())[:5]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ZipCodeCache:
    """Firestore-backed ZIP code cache.

    Concurrent misses for the same ZIP may both compute and both write;
    documents are keyed by ZIP so the last writer wins.
    """

    def __init__(
        self,
        db=None,
        collection: Optional[str] = None,
        ttl_days: Optional[int] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        """Initialize ZipCodeCache.

        Args:
            db: Optional Firestore client. If not provided, uses default.
            collection: Collection name (default from settings).
            ttl_days: Entry lifetime in days (default from settings).
            clock: Callable returning the current UTC time (for tests).
        """
        self._db = db
        self.collection = collection or settings.zip_cache_collection
        self.ttl = timedelta(days=ttl_days or settings.zip_cache_ttl_days)
        self._clock = clock or _utcnow

    @property
    def db(self):
        """Get Firestore client (lazy initialization)."""
        if self._db is None:
            self._db = firestore.client()
        return self._db

    async def _maybe_await(self, result: Any) -> Any:
        """Await result if it is awaitable (supports AsyncMock in unit tests)."""
        if inspect.isawaitable(result):
            return await result
        return result

    def _doc_ref(self, zip_code: str):
        return self.db.collection(self.collection).document(zip_code)

    async def _read(self, zip_code: str) -> Optional[Dict[str, Any]]:
        try:
            doc = await self._maybe_await(self._doc_ref(zip_code).get())
        except Exception as e:
            raise CacheError(
                code=ErrorCode.CACHE_READ_FAILED,
                message=f"Failed to read cache entry: {str(e)}",
                zip_code=zip_code
            ) from e
        if not doc.exists:
            return None
        return doc.to_dict()

    async def _delete(self, zip_code: str) -> None:
        try:
            await self._maybe_await(self._doc_ref(zip_code).delete())
        except Exception as e:
            raise CacheError(
                code=ErrorCode.CACHE_WRITE_FAILED,
                message=f"Failed to delete cache entry: {str(e)}",
                zip_code=zip_code
            ) from e

    async def get(self, zip_code: str) -> Optional[ZipCacheEntry]:
        """Fetch the cached entry for a ZIP code.

        An expired entry is deleted and reported as a miss.

        Returns:
            ZipCacheEntry, or None on miss, expiry, or store failure.
        """
        key = normalize_zip_code(zip_code)
        if not key:
            return None

        try:
            data = await self._read(key)
            if data is None:
                logger.debug("zip_cache_miss", zip_code=key)
                return None

            entry = ZipCacheEntry.model_validate(data)
            if entry.is_expired(self._clock()):
                await self._delete(key)
                logger.info("zip_cache_expired", zip_code=key, expires_at=str(entry.expires_at))
                return None

            logger.info("zip_cache_hit", zip_code=key, source=entry.source)
            return entry

        except CacheError as e:
            logger.warning("zip_cache_get_failed", zip_code=key, code=e.code, error=e.message)
            return None
        except Exception as e:
            logger.warning("zip_cache_get_failed", zip_code=key, error=str(e))
            return None

    async def set(
        self,
        zip_code: str,
        city: str,
        state: str,
        weather_data: Optional[HistoricalWeatherData],
        climate_data: Optional[ClimateData] = None,
        source: str = "visual-crossing"
    ) -> None:
        """Upsert the cache entry for a ZIP code.

        Omitted weather or climate data leaves the stored value untouched.
        Failures are logged and swallowed.
        """
        key = normalize_zip_code(zip_code)
        if not key:
            logger.warning("zip_cache_set_skipped", reason="empty_zip_code", raw_zip_code=zip_code)
            return

        now = self._clock()
        payload = {
            "zipCode": key,
            "city": (city or "").strip(),
            "state": (state or "").strip().upper(),
            "source": source,
            "expiresAt": now + self.ttl,
            "updatedAt": now,
        }
        if weather_data is not None:
            payload["weatherData"] = weather_data.model_dump(by_alias=True)
        if climate_data is not None:
            payload["climateData"] = climate_data.model_dump(by_alias=True)

        try:
            doc_ref = self._doc_ref(key)
            existing = await self._maybe_await(doc_ref.get())
            if not existing.exists:
                payload["createdAt"] = now
            await self._maybe_await(doc_ref.set(payload, merge=True))
            logger.info("zip_cache_set", zip_code=key, source=source, ttl_days=self.ttl.days)
        except Exception as e:
            logger.error("zip_cache_set_failed", zip_code=key, error=str(e))

    async def invalidate(self, zip_code: str) -> bool:
        """Delete the entry for a ZIP code.

        Returns:
            True if a delete was issued successfully.
        """
        key = normalize_zip_code(zip_code)
        if not key:
            return False
        try:
            await self._delete(key)
            logger.info("zip_cache_invalidated", zip_code=key)
            return True
        except CacheError as e:
            logger.error("zip_cache_invalidate_failed", zip_code=key, error=e.message)
            return False

    async def has_valid_entry(self, zip_code: str) -> bool:
        return await self.get(zip_code) is not None

    async def sweep_expired(self) -> int:
        """Delete every entry whose expiresAt is in the past.

        Returns:
            Number of entries removed (0 on failure).
        """
        now = self._clock()
        try:
            query = self.db.collection(self.collection).where(
                filter=FieldFilter("expiresAt", "<", now)
            )
            docs = await self._maybe_await(query.get())
            removed = 0
            for doc in docs:
                await self._maybe_await(doc.reference.delete())
                removed += 1
            logger.info("zip_cache_swept", removed=removed)
            return removed
        except Exception as e:
            logger.error("zip_cache_sweep_failed", error=str(e))
            return 0

    async def get_stats(self) -> ZipCacheStats:
        """Count total, expired, and valid entries (zeros on failure)."""
        now = self._clock()
        try:
            docs = await self._maybe_await(self.db.collection(self.collection).get())
            total = 0
            expired = 0
            for doc in docs:
                total += 1
                data = doc.to_dict() or {}
                expires_at = data.get("expiresAt")
                if isinstance(expires_at, datetime):
                    if expires_at.tzinfo is None:
                        expires_at = expires_at.replace(tzinfo=timezone.utc)
                    if expires_at < now:
                        expired += 1
            return ZipCacheStats(
                total_entries=total,
                expired_entries=expired,
                valid_entries=total - expired
            )
        except Exception as e:
            logger.error("zip_cache_stats_failed", error=str(e))
            return ZipCacheStats()
