"""
Decision engine - selects container, codecs, bitrates and resolution limits
"""

import logging
from collections.abc import Iterable
from typing import Optional

from constants import (
    AUDIO_BITRATE_DIVISOR,
    BITRATE_TIERS,
    FORCED_DOWNMIX_SOURCES,
    HEVC_EFFICIENCY_PERCENT,
    HEVC_MIN_WIDTH,
    MAX_AUDIO_BITRATE,
    OUTPUT_AUDIO_CHANNELS,
    STREAMING_PROTOCOL,
    TOP_TIER_BITRATE,
)
from models import (
    AudioCodec,
    Container,
    DeviceCapabilityProfile,
    DlnaProfileType,
    EncodingContext,
    SourceMediaProfile,
    TranscodeSeekInfo,
    TranscodingProfile,
    TranscodingRequest,
    VideoCodec,
)
from utils import normalize_container_names, sanitize_device_id

logger = logging.getLogger(__name__)


def select_container(
    device: DeviceCapabilityProfile, device_formats: frozenset[str]
) -> Container:
    """mp4 if the device declares it, else the device preference, else mkv."""
    if Container.MP4.value in device_formats:
        return Container.MP4
    if device.preferred_container is not None:
        return device.preferred_container
    return Container.MKV


def select_video_codec(
    source: SourceMediaProfile, device: DeviceCapabilityProfile
) -> VideoCodec:
    """Fixed priority: hevc for 4K sources, then av1 when preferred, then h264."""
    if device.supports_hevc and source.width >= HEVC_MIN_WIDTH:
        return VideoCodec.HEVC
    if device.supports_av1 and device.preferred_video_codec == VideoCodec.AV1:
        return VideoCodec.AV1
    return VideoCodec.H264


def select_audio_codec(
    source: SourceMediaProfile, device: DeviceCapabilityProfile
) -> AudioCodec:
    # Lossless/high-bitrate tracks are always downmixed to AC3
    if source.audio_codec.value in FORCED_DOWNMIX_SOURCES:
        return AudioCodec.AC3
    return device.preferred_audio_codec or AudioCodec.AAC


def base_video_bitrate(pixel_count: int) -> int:
    """Tiered bitrate for a frame size, before codec discount or clamping."""
    for max_pixels, bitrate in BITRATE_TIERS:
        if pixel_count <= max_pixels:
            return bitrate
    return TOP_TIER_BITRATE


def target_video_bitrate(
    source: SourceMediaProfile,
    device: DeviceCapabilityProfile,
    request: TranscodingRequest,
    video_codec: VideoCodec,
) -> int:
    """
    Compute the video bitrate for a decision.

    The tiered base is discounted for hevc (truncating), then clamped to the
    request limit when one is set, then to the device limit.
    """
    bitrate = base_video_bitrate(source.pixel_count)
    if video_codec == VideoCodec.HEVC:
        bitrate = bitrate * HEVC_EFFICIENCY_PERCENT // 100

    if request.max_bitrate > 0:
        bitrate = min(bitrate, request.max_bitrate)

    return min(bitrate, device.max_bitrate)


def target_audio_bitrate(device: DeviceCapabilityProfile) -> int:
    return min(MAX_AUDIO_BITRATE, device.max_bitrate // AUDIO_BITRATE_DIVISOR)


def resolution_ceiling(
    source: SourceMediaProfile, device: DeviceCapabilityProfile
) -> tuple[Optional[int], Optional[int]]:
    """Device limits when the source exceeds them in either dimension, else (None, None)."""
    if source.width > device.max_width or source.height > device.max_height:
        return device.max_width, device.max_height
    return None, None


class DecisionEngine:
    """Deterministic transcoding decisions. Holds no state between calls."""

    def decide(
        self,
        source: SourceMediaProfile,
        device: DeviceCapabilityProfile,
        device_formats: Optional[Iterable[str]],
        request: TranscodingRequest,
    ) -> TranscodingProfile:
        """
        Build the transcoding profile for one playback request.

        Args:
            source: Normalized source media profile
            device: Resolved device capability profile
            device_formats: Container names the device declares support for
            request: Per-request constraints

        Returns:
            A new TranscodingProfile
        """
        formats = normalize_container_names(device_formats)

        container = select_container(device, formats)
        video_codec = select_video_codec(source, device)
        audio_codec = select_audio_codec(source, device)
        video_bitrate = target_video_bitrate(source, device, request, video_codec)
        max_width, max_height = resolution_ceiling(source, device)

        logger.debug(
            f"Decision for device {sanitize_device_id(device.device_id)}: {container.value} "
            f"{video_codec.value}@{video_bitrate} / {audio_codec.value}"
        )

        return TranscodingProfile(
            container=container,
            video_codec=video_codec,
            audio_codec=audio_codec,
            video_bitrate=video_bitrate,
            audio_bitrate=target_audio_bitrate(device),
            audio_channels=OUTPUT_AUDIO_CHANNELS,
            max_width=max_width,
            max_height=max_height,
            max_framerate=source.frame_rate,
            type=DlnaProfileType.VIDEO,
            context=EncodingContext.STREAMING,
            protocol=STREAMING_PROTOCOL,
            transcode_seek_info=TranscodeSeekInfo.AUTO,
            copy_timestamps=False,
            enable_subtitles_in_manifest=True,
        )
