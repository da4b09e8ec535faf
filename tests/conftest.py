"""
Shared fixtures for transcoding decision engine tests.
"""

import os

import pytest

# Set test environment variables before importing app modules
os.environ.setdefault("REQUIRE_API_AUTH", "false")
os.environ.setdefault("ENHANCED_TRANSCODING_ENABLED", "true")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("LOG_PATH", "/tmp/test_transcoding_logs")


@pytest.fixture
def source_1080p():
    """1080p h264/aac source profile."""
    from models import AudioCodec, SourceMediaProfile, VideoCodec

    return SourceMediaProfile(
        video_codec=VideoCodec.H264,
        audio_codec=AudioCodec.AAC,
        width=1920,
        height=1080,
        bitrate=10_000_000,
        frame_rate=24.0,
    )


@pytest.fixture
def source_4k():
    """2160p h264/aac source profile."""
    from models import AudioCodec, SourceMediaProfile, VideoCodec

    return SourceMediaProfile(
        video_codec=VideoCodec.H264,
        audio_codec=AudioCodec.AAC,
        width=3840,
        height=2160,
        bitrate=40_000_000,
        frame_rate=23.976,
    )


@pytest.fixture
def make_device():
    """Factory for device capability profiles with overridable fields."""
    from models import DeviceCapabilityProfile

    def _make(**overrides):
        fields = {"device_id": "living-room-tv"}
        fields.update(overrides)
        return DeviceCapabilityProfile(**fields)

    return _make


@pytest.fixture
def fake_clock():
    """Manually advanced monotonic clock."""

    class FakeClock:
        def __init__(self):
            self.now = 1000.0

        def __call__(self):
            return self.now

        def advance(self, seconds):
            self.now += seconds

    return FakeClock()
