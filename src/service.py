"""
Transcoding service - ties profiling, capability resolution, decisions and presets together
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any, Optional, Union

from capabilities import DeviceCapabilityResolver
from engine import DecisionEngine
from models import (
    DeviceCapabilityProfile,
    ItemMetadata,
    TranscodingPreset,
    TranscodingProfile,
    TranscodingRequest,
)
from presets import PresetStore
from profiler import SourceMediaProfiler

logger = logging.getLogger(__name__)


class TranscodingService:
    """Entry point for callers that start transcoding sessions or administer presets."""

    def __init__(
        self,
        resolver: Optional[DeviceCapabilityResolver] = None,
        presets: Optional[PresetStore] = None,
        profiler: Optional[SourceMediaProfiler] = None,
        engine: Optional[DecisionEngine] = None,
    ):
        # Both caches define __len__, so an empty one is falsy
        self.resolver = DeviceCapabilityResolver() if resolver is None else resolver
        self.presets = PresetStore() if presets is None else presets
        self.profiler = profiler or SourceMediaProfiler()
        self.engine = engine or DecisionEngine()

    async def get_optimal_profile(
        self,
        item: Union[ItemMetadata, Mapping[str, Any], None],
        device_formats: Optional[Iterable[str]],
        request: TranscodingRequest,
    ) -> TranscodingProfile:
        """Profile the item, resolve the requesting device and decide."""
        name = item.name if isinstance(item, ItemMetadata) else (item or {}).get("name")
        logger.info(f"Determining optimal transcoding profile for {name or 'unnamed item'}")

        source = self.profiler.analyze(item)
        device = await self.resolver.resolve(request.device_id)
        return self.engine.decide(source, device, device_formats, request)

    async def resolve_device_capabilities(self, device_id: str) -> DeviceCapabilityProfile:
        return await self.resolver.resolve(device_id)

    def list_presets(self) -> list[TranscodingPreset]:
        return self.presets.list()

    def get_preset(self, preset_id: str) -> Optional[TranscodingPreset]:
        return self.presets.get(preset_id)

    def upsert_preset(self, preset: TranscodingPreset) -> bool:
        return self.presets.upsert(preset)
