"""
Utility functions for codec, container and device id normalization
"""

import logging
import re
from collections.abc import Iterable, Mapping
from typing import Any, Optional

from constants import AUDIO_CODEC_ALIASES, MAX_DEVICE_ID_LENGTH, VIDEO_CODEC_ALIASES
from models import AudioCodec, VideoCodec

logger = logging.getLogger(__name__)


def _alias_key(value: str) -> str:
    return value.strip().lower()


def normalize_video_codec(value: Optional[str]) -> Optional[VideoCodec]:
    """
    Map a free-form video codec name onto a known codec.

    Args:
        value: Codec string as reported by item metadata (e.g. "AVC", "x265")

    Returns:
        Matching VideoCodec, or None if the name is empty or unknown
    """
    if not value:
        return None
    canonical = VIDEO_CODEC_ALIASES.get(_alias_key(value))
    if canonical is None:
        logger.debug(f"Unknown video codec: {value!r}")
        return None
    return VideoCodec(canonical)


def normalize_audio_codec(value: Optional[str]) -> Optional[AudioCodec]:
    """
    Map a free-form audio codec name onto a known codec.

    Args:
        value: Codec string as reported by item metadata (e.g. "DCA", "E-AC-3")

    Returns:
        Matching AudioCodec, or None if the name is empty or unknown
    """
    if not value:
        return None
    canonical = AUDIO_CODEC_ALIASES.get(_alias_key(value))
    if canonical is None:
        logger.debug(f"Unknown audio codec: {value!r}")
        return None
    return AudioCodec(canonical)


def normalize_container_names(containers: Optional[Iterable[str]]) -> frozenset[str]:
    """
    Normalize device-declared container names.

    Entries may themselves be comma-separated ("mp4,m4v"). Blank entries are
    dropped and names are lower-cased.
    """
    if not containers:
        return frozenset()
    if isinstance(containers, str):
        containers = [containers]

    names = set()
    for entry in containers:
        for name in str(entry).split(","):
            name = name.strip().lower()
            if name:
                names.add(name)
    return frozenset(names)


def containers_from_device_profile(device_profile: Mapping[str, Any]) -> frozenset[str]:
    """
    Collect transcoding containers from a Jellyfin/Emby-style device profile.

    Args:
        device_profile: Mapping with a "TranscodingProfiles" list whose
            entries carry a (possibly comma-separated) "Container"

    Returns:
        Set of lower-cased container names
    """
    profiles = device_profile.get("TranscodingProfiles") or []
    return normalize_container_names(
        p.get("Container", "") for p in profiles if isinstance(p, Mapping)
    )


def sanitize_device_id(device_id: str) -> str:
    """
    Make a client-supplied device id safe for log output.

    Args:
        device_id: Raw device identifier

    Returns:
        Identifier with control characters removed, truncated
    """
    cleaned = re.sub(r"[\x00-\x1f\x7f]", "", device_id or "")
    if len(cleaned) > MAX_DEVICE_ID_LENGTH:
        cleaned = cleaned[:MAX_DEVICE_ID_LENGTH] + "..."
    return cleaned or "<empty>"
