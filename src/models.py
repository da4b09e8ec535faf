"""
Data models for the transcoding decision engine
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from constants import (
    DEFAULT_DEVICE_MAX_BITRATE,
    DEFAULT_DEVICE_MAX_HEIGHT,
    DEFAULT_DEVICE_MAX_WIDTH,
)


class VideoCodec(str, Enum):
    """Video codecs the engine knows how to reason about."""
    H264 = "h264"
    HEVC = "hevc"
    AV1 = "av1"
    VP9 = "vp9"
    MPEG2 = "mpeg2video"
    VC1 = "vc1"


class AudioCodec(str, Enum):
    """Audio codecs the engine knows how to reason about."""
    AAC = "aac"
    AC3 = "ac3"
    EAC3 = "eac3"
    DTS = "dts"
    TRUEHD = "truehd"
    MP3 = "mp3"
    FLAC = "flac"
    OPUS = "opus"
    PCM = "pcm"


class Container(str, Enum):
    """Output containers."""
    MP4 = "mp4"
    MKV = "mkv"
    TS = "ts"
    WEBM = "webm"


class HardwareAcceleration(str, Enum):
    """Hardware acceleration families a device may prefer."""
    NONE = "none"
    AUTO = "auto"
    VAAPI = "vaapi"
    QSV = "qsv"
    NVENC = "nvenc"
    AMF = "amf"
    VIDEOTOOLBOX = "videotoolbox"


class DlnaProfileType(str, Enum):
    VIDEO = "Video"
    AUDIO = "Audio"
    PHOTO = "Photo"


class EncodingContext(str, Enum):
    STREAMING = "Streaming"
    STATIC = "Static"


class TranscodeSeekInfo(str, Enum):
    AUTO = "Auto"
    BYTES = "Bytes"


class CapabilityOrigin(str, Enum):
    """Where a resolved capability profile came from."""
    CACHED = "cached"
    PROBED = "probed"
    DEFAULTED = "defaulted"


class ItemMetadata(BaseModel):
    """Raw, already-extracted metadata for a media item. Every field is optional."""
    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = None
    video_codec: Optional[str] = None
    audio_codec: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    bitrate: Optional[int] = None
    frame_rate: Optional[float] = None
    has_hdr: Optional[bool] = None
    has_subtitles: Optional[bool] = None


class SourceMediaProfile(BaseModel):
    """Normalized encoding characteristics of a source item."""
    model_config = ConfigDict(frozen=True)

    video_codec: VideoCodec
    audio_codec: AudioCodec
    width: int
    height: int
    bitrate: int
    frame_rate: float
    has_hdr: bool = False
    has_subtitles: bool = False

    @property
    def pixel_count(self) -> int:
        return self.width * self.height


class DeviceCapabilityProfile(BaseModel):
    """What a playback device can decode and display."""
    model_config = ConfigDict(frozen=True)

    device_id: str
    supports_hevc: bool = True
    supports_av1: bool = False
    supports_hdr: bool = True
    max_bitrate: int = Field(DEFAULT_DEVICE_MAX_BITRATE, gt=0)
    max_width: int = Field(DEFAULT_DEVICE_MAX_WIDTH, gt=0)
    max_height: int = Field(DEFAULT_DEVICE_MAX_HEIGHT, gt=0)
    preferred_video_codec: VideoCodec = VideoCodec.H264
    preferred_audio_codec: Optional[AudioCodec] = AudioCodec.AAC
    preferred_container: Optional[Container] = None
    hardware_acceleration: HardwareAcceleration = HardwareAcceleration.AUTO
    last_analyzed: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class CapabilityLookup(NamedTuple):
    """A resolved capability profile tagged with its origin."""
    profile: DeviceCapabilityProfile
    origin: CapabilityOrigin


class TranscodingRequest(BaseModel):
    """Per-call constraints supplied by the client starting playback."""
    device_id: str = ""
    max_bitrate: int = 0
    preferred_codec: str = ""
    enable_hardware_acceleration: bool = False


class TranscodingPreset(BaseModel):
    """A named bundle of encoding parameters."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), min_length=1, max_length=64)
    name: str = Field(..., max_length=100)
    description: str = Field("", max_length=500)
    video_bitrate: int = Field(..., ge=0)
    audio_bitrate: int = Field(..., ge=0)
    video_codec: VideoCodec = VideoCodec.H264
    audio_codec: AudioCodec = AudioCodec.AAC
    profile: str = Field("", max_length=20)
    level: str = Field("", max_length=10)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate name field."""
        if not v or not v.strip():
            raise ValueError("Preset name cannot be empty")
        return v.strip()


class TranscodingProfile(BaseModel):
    """The transcoding decision for one playback request."""
    model_config = ConfigDict(frozen=True)

    container: Container
    video_codec: VideoCodec
    audio_codec: AudioCodec
    video_bitrate: int
    audio_bitrate: int
    audio_channels: int
    max_width: Optional[int] = None
    max_height: Optional[int] = None
    max_framerate: float
    type: DlnaProfileType = DlnaProfileType.VIDEO
    context: EncodingContext = EncodingContext.STREAMING
    protocol: str = "http"
    transcode_seek_info: TranscodeSeekInfo = TranscodeSeekInfo.AUTO
    copy_timestamps: bool = False
    enable_subtitles_in_manifest: bool = True
    estimate_content_length: bool = False
    enable_mpegts_m2ts_mode: bool = False


class DecisionPayload(BaseModel):
    """Body of a decision request over HTTP."""
    item: ItemMetadata = Field(default_factory=ItemMetadata)
    device_formats: list[str] = Field(default_factory=list)
    device_profile: Optional[dict[str, Any]] = None
    request: TranscodingRequest = Field(default_factory=TranscodingRequest)
