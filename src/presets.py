"""
Transcoding preset store
"""

import logging
import threading
from typing import Iterable, Optional

from models import AudioCodec, TranscodingPreset, VideoCodec

logger = logging.getLogger(__name__)


def default_presets() -> list[TranscodingPreset]:
    """Built-in presets every store starts with. Each call issues fresh ids."""
    return [
        TranscodingPreset(
            name="High Quality",
            description="Best quality for high-end devices",
            video_bitrate=20_000_000,
            audio_bitrate=320_000,
            video_codec=VideoCodec.H264,
            audio_codec=AudioCodec.AAC,
            profile="high",
            level="4.1",
        ),
        TranscodingPreset(
            name="Balanced",
            description="Good quality with reasonable file size",
            video_bitrate=8_000_000,
            audio_bitrate=192_000,
            video_codec=VideoCodec.H264,
            audio_codec=AudioCodec.AAC,
            profile="main",
            level="4.0",
        ),
        TranscodingPreset(
            name="Mobile Optimized",
            description="Optimized for mobile devices and cellular data",
            video_bitrate=2_000_000,
            audio_bitrate=128_000,
            video_codec=VideoCodec.H264,
            audio_codec=AudioCodec.AAC,
            profile="baseline",
            level="3.1",
        ),
        TranscodingPreset(
            name="HEVC Efficient",
            description="High efficiency with HEVC codec",
            video_bitrate=5_000_000,
            audio_bitrate=192_000,
            video_codec=VideoCodec.HEVC,
            audio_codec=AudioCodec.AAC,
            profile="main",
            level="4.0",
        ),
    ]


class PresetStore:
    """Ordered, lock-guarded collection of presets keyed by id."""

    def __init__(self, presets: Optional[Iterable[TranscodingPreset]] = None):
        self._presets: list[TranscodingPreset] = list(
            default_presets() if presets is None else presets
        )
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._presets)

    def list(self) -> list[TranscodingPreset]:
        """Snapshot of all presets in insertion order."""
        with self._lock:
            return list(self._presets)

    def get(self, preset_id: str) -> Optional[TranscodingPreset]:
        with self._lock:
            for preset in self._presets:
                if preset.id == preset_id:
                    return preset
        return None

    def upsert(self, preset: TranscodingPreset) -> bool:
        """
        Insert or replace a preset.

        An existing preset with the same id is removed and the new value is
        appended, so a replaced preset moves to the end of the list.

        Returns:
            Always True
        """
        with self._lock:
            replaced = False
            for index, existing in enumerate(self._presets):
                if existing.id == preset.id:
                    del self._presets[index]
                    replaced = True
                    break
            self._presets.append(preset)

        action = "Replaced" if replaced else "Added"
        logger.info(f"{action} transcoding preset {preset.id}: {preset.name}")
        return True
