"""
Device capability resolution with a concurrency-safe, expiring cache
"""

import asyncio
import logging
import threading
import time
from datetime import datetime, timezone
from typing import Callable, Optional, Protocol

from config import settings
from models import (
    AudioCodec,
    CapabilityLookup,
    CapabilityOrigin,
    DeviceCapabilityProfile,
    HardwareAcceleration,
    VideoCodec,
)
from utils import sanitize_device_id

logger = logging.getLogger(__name__)


def default_capability_profile(
    device_id: str,
    max_bitrate: Optional[int] = None,
    max_width: Optional[int] = None,
    max_height: Optional[int] = None,
) -> DeviceCapabilityProfile:
    """Best-effort capability profile for a device that has not been probed."""
    return DeviceCapabilityProfile(
        device_id=device_id,
        supports_hevc=True,
        supports_av1=False,
        supports_hdr=True,
        max_bitrate=max_bitrate or settings.default_max_bitrate,
        max_width=max_width or settings.default_max_width,
        max_height=max_height or settings.default_max_height,
        preferred_video_codec=VideoCodec.H264,
        preferred_audio_codec=AudioCodec.AAC,
        hardware_acceleration=HardwareAcceleration.AUTO,
        last_analyzed=datetime.now(timezone.utc),
    )


class CapabilitySource(Protocol):
    """Produces a capability profile for a device on a cache miss."""

    async def probe(self, device_id: str) -> DeviceCapabilityProfile:
        ...


class DefaultCapabilitySource:
    """Capability source that returns the configured defaults without probing."""

    async def probe(self, device_id: str) -> DeviceCapabilityProfile:
        return default_capability_profile(device_id)


class DeviceCapabilityResolver:
    """Resolves device ids to capability profiles, caching probe results.

    The cache is guarded by a single lock that is only held for dictionary
    access, never across a probe, so a slow device cannot stall lookups for
    other devices. Concurrent misses for the same device may probe more than
    once; the first stored result wins and later writers adopt it.

    Probe failures and timeouts fall back to the default profile and are not
    cached, so the next lookup probes again.
    """

    def __init__(
        self,
        source: Optional[CapabilitySource] = None,
        probe_timeout: Optional[float] = None,
        cache_ttl: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._source = source or DefaultCapabilitySource()
        self._probe_timeout = probe_timeout or settings.capability_probe_timeout
        self._cache_ttl = settings.capability_cache_ttl if cache_ttl is None else cache_ttl
        self._clock = clock
        self._cache: dict[str, tuple[DeviceCapabilityProfile, float]] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    async def resolve(self, device_id: str) -> DeviceCapabilityProfile:
        """Return the capability profile for a device. Never raises."""
        lookup = await self.lookup(device_id)
        return lookup.profile

    async def lookup(self, device_id: str) -> CapabilityLookup:
        """Resolve a device and report whether the result was cached, probed or defaulted."""
        cached = self._get_cached(device_id)
        if cached is not None:
            logger.debug(f"Capability cache hit for device {sanitize_device_id(device_id)}")
            return CapabilityLookup(cached, CapabilityOrigin.CACHED)

        logger.info(f"Analyzing capabilities for device {sanitize_device_id(device_id)}")
        try:
            profile = await asyncio.wait_for(
                self._source.probe(device_id),
                timeout=self._probe_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"Capability probe for device {sanitize_device_id(device_id)} "
                f"timed out after {self._probe_timeout}s, using defaults"
            )
            return CapabilityLookup(default_capability_profile(device_id), CapabilityOrigin.DEFAULTED)
        except Exception as e:
            logger.warning(
                f"Capability probe for device {sanitize_device_id(device_id)} failed: {e}, using defaults"
            )
            return CapabilityLookup(default_capability_profile(device_id), CapabilityOrigin.DEFAULTED)

        if not isinstance(profile, DeviceCapabilityProfile):
            logger.warning(
                f"Capability source returned {type(profile).__name__} for device "
                f"{sanitize_device_id(device_id)}, using defaults"
            )
            return CapabilityLookup(default_capability_profile(device_id), CapabilityOrigin.DEFAULTED)

        if profile.device_id != device_id:
            profile = profile.model_copy(update={"device_id": device_id})

        stored, won = self._store(device_id, profile)
        origin = CapabilityOrigin.PROBED if won else CapabilityOrigin.CACHED
        return CapabilityLookup(stored, origin)

    def invalidate(self, device_id: Optional[str] = None) -> int:
        """Drop one cached device, or every cached device when no id is given.

        Returns:
            Number of entries removed
        """
        with self._lock:
            if device_id is None:
                removed = len(self._cache)
                self._cache.clear()
            else:
                removed = 1 if self._cache.pop(device_id, None) is not None else 0

        if removed:
            logger.info(f"Invalidated {removed} cached capability profile(s)")
        return removed

    def cached_device_ids(self) -> list[str]:
        with self._lock:
            return [key for key, (_, stored_at) in self._cache.items() if not self._expired(stored_at)]

    def _expired(self, stored_at: float) -> bool:
        if self._cache_ttl <= 0:
            return False
        return self._clock() - stored_at >= self._cache_ttl

    def _get_cached(self, device_id: str) -> Optional[DeviceCapabilityProfile]:
        with self._lock:
            entry = self._cache.get(device_id)
            if entry is None:
                return None
            profile, stored_at = entry
            if self._expired(stored_at):
                del self._cache[device_id]
                return None
            return profile

    def _store(
        self, device_id: str, profile: DeviceCapabilityProfile
    ) -> tuple[DeviceCapabilityProfile, bool]:
        with self._lock:
            entry = self._cache.get(device_id)
            if entry is not None and not self._expired(entry[1]):
                return entry[0], False
            self._cache[device_id] = (profile, self._clock())
            return profile, True
