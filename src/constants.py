"""
Constants for the transcoding decision engine
"""

# Source metadata defaults (applied when an item leaves a field empty)
DEFAULT_SOURCE_VIDEO_CODEC = "h264"
DEFAULT_SOURCE_AUDIO_CODEC = "aac"
DEFAULT_SOURCE_WIDTH = 1920
DEFAULT_SOURCE_HEIGHT = 1080
DEFAULT_SOURCE_BITRATE = 10_000_000
DEFAULT_SOURCE_FRAME_RATE = 24.0

# Device capability defaults (best-effort profile for unprobed devices)
DEFAULT_DEVICE_MAX_BITRATE = 20_000_000  # 20 Mbps
DEFAULT_DEVICE_MAX_WIDTH = 3840
DEFAULT_DEVICE_MAX_HEIGHT = 2160
DEFAULT_DEVICE_VIDEO_CODEC = "h264"
DEFAULT_DEVICE_AUDIO_CODEC = "aac"

# Capability cache
CAPABILITY_PROBE_TIMEOUT = 5.0  # seconds allowed for a single device probe
CAPABILITY_CACHE_TTL = 86400  # seconds, 0 disables expiry
MAX_DEVICE_ID_LENGTH = 128

# Bitrate tiers keyed by pixel count (width * height), checked in order
BITRATE_TIERS = [
    (921_600, 2_000_000),  # 720p
    (2_073_600, 5_000_000),  # 1080p
    (3_840_000, 10_000_000),  # 1440p
]
TOP_TIER_BITRATE = 20_000_000  # 4K+

HEVC_MIN_WIDTH = 3840
HEVC_EFFICIENCY_PERCENT = 70

# Audio
MAX_AUDIO_BITRATE = 320_000
AUDIO_BITRATE_DIVISOR = 20  # audio gets at most 5% of the device budget
OUTPUT_AUDIO_CHANNELS = 2
FORCED_DOWNMIX_SOURCES = ["dts", "truehd"]

STREAMING_PROTOCOL = "http"

# Free-form codec names seen in item metadata, mapped to canonical values
VIDEO_CODEC_ALIASES = {
    "h264": "h264",
    "h.264": "h264",
    "avc": "h264",
    "avc1": "h264",
    "x264": "h264",
    "hevc": "hevc",
    "h265": "hevc",
    "h.265": "hevc",
    "x265": "hevc",
    "hvc1": "hevc",
    "hev1": "hevc",
    "av1": "av1",
    "av01": "av1",
    "vp9": "vp9",
    "vp09": "vp9",
    "mpeg2video": "mpeg2video",
    "mpeg2": "mpeg2video",
    "vc1": "vc1",
    "vc-1": "vc1",
    "wvc1": "vc1",
}

AUDIO_CODEC_ALIASES = {
    "aac": "aac",
    "mp4a": "aac",
    "ac3": "ac3",
    "ac-3": "ac3",
    "eac3": "eac3",
    "e-ac-3": "eac3",
    "ec-3": "eac3",
    "dts": "dts",
    "dca": "dts",
    "dts-hd": "dts",
    "truehd": "truehd",
    "mlp": "truehd",
    "mp3": "mp3",
    "flac": "flac",
    "opus": "opus",
    "pcm": "pcm",
    "pcm_s16le": "pcm",
    "pcm_s24le": "pcm",
}

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
