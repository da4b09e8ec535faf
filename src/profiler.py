"""
Source media profiler - normalizes item metadata into a SourceMediaProfile
"""

import logging
import math
from collections.abc import Mapping
from typing import Any, Optional, Union

from constants import (
    DEFAULT_SOURCE_AUDIO_CODEC,
    DEFAULT_SOURCE_BITRATE,
    DEFAULT_SOURCE_FRAME_RATE,
    DEFAULT_SOURCE_HEIGHT,
    DEFAULT_SOURCE_VIDEO_CODEC,
    DEFAULT_SOURCE_WIDTH,
)
from models import AudioCodec, ItemMetadata, SourceMediaProfile, VideoCodec
from utils import normalize_audio_codec, normalize_video_codec

logger = logging.getLogger(__name__)


def _positive(value, default):
    if value is None or not math.isfinite(value) or value <= 0:
        return default
    return value


class SourceMediaProfiler:
    """Builds the canonical source profile for an item. Never fails."""

    def analyze(
        self, item: Union[ItemMetadata, Mapping[str, Any], None]
    ) -> SourceMediaProfile:
        """
        Normalize raw item metadata.

        Missing, empty, non-positive or non-finite fields fall back to h264/aac,
        1920x1080, 10 Mbps, 24 fps, no HDR, no subtitles.

        Args:
            item: ItemMetadata, a plain mapping of the same fields, or None

        Returns:
            Immutable SourceMediaProfile
        """
        metadata = self._coerce(item)

        video_codec = (
            normalize_video_codec(metadata.video_codec)
            or VideoCodec(DEFAULT_SOURCE_VIDEO_CODEC)
        )
        audio_codec = (
            normalize_audio_codec(metadata.audio_codec)
            or AudioCodec(DEFAULT_SOURCE_AUDIO_CODEC)
        )

        return SourceMediaProfile(
            video_codec=video_codec,
            audio_codec=audio_codec,
            width=_positive(metadata.width, DEFAULT_SOURCE_WIDTH),
            height=_positive(metadata.height, DEFAULT_SOURCE_HEIGHT),
            bitrate=_positive(metadata.bitrate, DEFAULT_SOURCE_BITRATE),
            frame_rate=float(_positive(metadata.frame_rate, DEFAULT_SOURCE_FRAME_RATE)),
            has_hdr=bool(metadata.has_hdr),
            has_subtitles=bool(metadata.has_subtitles),
        )

    @staticmethod
    def _coerce(item: Union[ItemMetadata, Mapping[str, Any], None]) -> ItemMetadata:
        if isinstance(item, ItemMetadata):
            return item
        if not item:
            return ItemMetadata()

        # Drop fields that do not validate instead of rejecting the item
        fields: dict[str, Optional[Any]] = {}
        for key in ItemMetadata.model_fields:
            if key not in item:
                continue
            try:
                ItemMetadata.model_validate({key: item[key]})
            except ValueError:
                logger.debug(f"Ignoring invalid item metadata field {key}={item[key]!r}")
                continue
            fields[key] = item[key]
        return ItemMetadata.model_validate(fields)
