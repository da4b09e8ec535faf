"""
Tests for main.py - FastAPI endpoint integration tests.
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from capabilities import DeviceCapabilityResolver
from presets import PresetStore
from service import TranscodingService


# ─── App fixture with an in-memory service ──────────────────────────────────


@pytest.fixture
def transcoding_service():
    """Fresh service with default presets and an empty capability cache."""
    return TranscodingService(
        resolver=DeviceCapabilityResolver(cache_ttl=0),
        presets=PresetStore(),
    )


@pytest_asyncio.fixture
async def client(transcoding_service, monkeypatch):
    """Async test client with the feature enabled and auth disabled."""
    import main as main_module

    monkeypatch.setattr(main_module.settings, "enhanced_transcoding_enabled", True)
    main_module.service = transcoding_service

    transport = ASGITransport(app=main_module.app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    main_module.service = None


@pytest.fixture
def feature_disabled(monkeypatch):
    import main as main_module

    monkeypatch.setattr(main_module.settings, "enhanced_transcoding_enabled", False)


@pytest.fixture
def auth_required(monkeypatch):
    """Require API keys: 'adminkey' is admin, 'readkey' is read-only."""
    import auth as auth_module

    monkeypatch.setattr(auth_module.auth, "require_auth", True)
    monkeypatch.setattr(auth_module.auth, "keys", {"adminkey": "admin", "readkey": "readonly"})


NEW_PRESET = {
    "id": "new",
    "name": "Archive",
    "description": "High bitrate archival copy",
    "video_bitrate": 30_000_000,
    "audio_bitrate": 320_000,
    "video_codec": "hevc",
    "audio_codec": "ac3",
    "profile": "main10",
    "level": "5.1",
}


# ─── Health Check ────────────────────────────────────────────────────────────


class TestHealthEndpoint:
    """Tests for GET /health."""

    @pytest.mark.asyncio
    async def test_health_check(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["service_ready"] is True
        assert data["presets"] == 4
        assert data["cached_devices"] == 0


# ─── Presets ─────────────────────────────────────────────────────────────────


class TestPresetEndpoints:
    """Tests for GET/POST /transcoding/presets."""

    @pytest.mark.asyncio
    async def test_list_presets(self, client):
        response = await client.get("/transcoding/presets")
        assert response.status_code == 200
        names = [p["name"] for p in response.json()]
        assert names == ["High Quality", "Balanced", "Mobile Optimized", "HEVC Efficient"]

    @pytest.mark.asyncio
    async def test_upsert_new_preset(self, client):
        response = await client.post("/transcoding/presets", json=NEW_PRESET)
        assert response.status_code == 200
        assert response.json() == {"success": True}

        presets = (await client.get("/transcoding/presets")).json()
        assert len(presets) == 5
        assert presets[-1]["id"] == "new"
        assert presets[-1]["video_codec"] == "hevc"

    @pytest.mark.asyncio
    async def test_upsert_existing_preset(self, client):
        presets = (await client.get("/transcoding/presets")).json()
        first = dict(presets[0], video_bitrate=18_000_000)

        response = await client.post("/transcoding/presets", json=first)
        assert response.status_code == 200

        presets = (await client.get("/transcoding/presets")).json()
        assert len(presets) == 4
        assert presets[-1]["id"] == first["id"]
        assert presets[-1]["video_bitrate"] == 18_000_000

    @pytest.mark.asyncio
    async def test_upsert_surround_ac3_preset(self, client):
        surround = dict(NEW_PRESET, id="surround", audio_bitrate=640_000)
        response = await client.post("/transcoding/presets", json=surround)
        assert response.status_code == 200

        fetched = (await client.get("/transcoding/presets/surround")).json()
        assert fetched["audio_codec"] == "ac3"
        assert fetched["audio_bitrate"] == 640_000

    @pytest.mark.asyncio
    async def test_get_preset_by_id(self, client):
        first = (await client.get("/transcoding/presets")).json()[0]
        response = await client.get(f"/transcoding/presets/{first['id']}")
        assert response.status_code == 200
        assert response.json() == first

    @pytest.mark.asyncio
    async def test_get_missing_preset(self, client):
        response = await client.get("/transcoding/presets/missing")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_get_preset_disabled(self, client, feature_disabled):
        response = await client.get("/transcoding/presets/missing")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_upsert_invalid_preset(self, client):
        response = await client.post("/transcoding/presets", json={"name": "", "video_bitrate": -1})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_list_disabled_returns_empty(self, client, feature_disabled):
        response = await client.get("/transcoding/presets")
        assert response.status_code == 200
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_upsert_disabled_rejected(self, client, feature_disabled, transcoding_service):
        response = await client.post("/transcoding/presets", json=NEW_PRESET)
        assert response.status_code == 400
        assert response.json()["detail"]["success"] is False
        assert len(transcoding_service.list_presets()) == 4


# ─── Device capabilities ─────────────────────────────────────────────────────


class TestCapabilityEndpoints:
    """Tests for /transcoding/device/{device_id}/capabilities."""

    @pytest.mark.asyncio
    async def test_get_capabilities(self, client):
        response = await client.get("/transcoding/device/tv-1/capabilities")
        assert response.status_code == 200
        data = response.json()
        assert data["device_id"] == "tv-1"
        assert data["supports_hevc"] is True
        assert data["supports_av1"] is False
        assert data["max_bitrate"] == 20_000_000
        assert data["hardware_acceleration"] == "auto"

    @pytest.mark.asyncio
    async def test_capabilities_cached(self, client):
        first = (await client.get("/transcoding/device/tv-1/capabilities")).json()
        second = (await client.get("/transcoding/device/tv-1/capabilities")).json()
        assert first == second
        assert (await client.get("/health")).json()["cached_devices"] == 1

    @pytest.mark.asyncio
    async def test_invalidate(self, client):
        await client.get("/transcoding/device/tv-1/capabilities")
        response = await client.delete("/transcoding/device/tv-1/capabilities")
        assert response.status_code == 200
        assert response.json() == {"device_id": "tv-1", "removed": 1}
        assert (await client.get("/health")).json()["cached_devices"] == 0

    @pytest.mark.asyncio
    async def test_disabled_not_found(self, client, feature_disabled):
        response = await client.get("/transcoding/device/tv-1/capabilities")
        assert response.status_code == 404


# ─── Decisions ───────────────────────────────────────────────────────────────


class TestDecideEndpoint:
    """Tests for POST /transcoding/decide."""

    @pytest.mark.asyncio
    async def test_decide_4k(self, client):
        payload = {
            "item": {"name": "Movie", "video_codec": "h264", "audio_codec": "aac", "width": 3840, "height": 2160},
            "device_formats": ["mp4"],
            "request": {"device_id": "tv-1"},
        }
        response = await client.post("/transcoding/decide", json=payload)
        assert response.status_code == 200
        data = response.json()
        assert data["container"] == "mp4"
        assert data["video_codec"] == "hevc"
        assert data["video_bitrate"] == 14_000_000
        assert data["audio_bitrate"] == 320_000
        assert data["audio_channels"] == 2
        assert data["type"] == "Video"
        assert data["context"] == "Streaming"
        assert data["protocol"] == "http"
        assert data["max_width"] is None

    @pytest.mark.asyncio
    async def test_decide_empty_payload(self, client):
        """An empty body decides with every default."""
        response = await client.post("/transcoding/decide", json={})
        assert response.status_code == 200
        data = response.json()
        assert data["container"] == "mkv"
        assert data["video_codec"] == "h264"
        assert data["video_bitrate"] == 5_000_000
        assert data["max_framerate"] == 24.0

    @pytest.mark.asyncio
    async def test_decide_request_cap(self, client):
        payload = {"request": {"device_id": "phone", "max_bitrate": 1_000_000}}
        response = await client.post("/transcoding/decide", json=payload)
        assert response.json()["video_bitrate"] == 1_000_000

    @pytest.mark.asyncio
    async def test_decide_with_device_profile(self, client):
        """Containers declared by a client device profile count as supported."""
        payload = {
            "device_profile": {
                "Name": "Browser",
                "TranscodingProfiles": [
                    {"Container": "ts", "Type": "Video"},
                    {"Container": "mp4", "Type": "Video"},
                ],
            },
            "request": {"device_id": "browser"},
        }
        response = await client.post("/transcoding/decide", json=payload)
        assert response.status_code == 200
        assert response.json()["container"] == "mp4"

    @pytest.mark.asyncio
    async def test_decide_device_profile_without_mp4(self, client):
        payload = {"device_profile": {"TranscodingProfiles": [{"Container": "ts"}]}}
        response = await client.post("/transcoding/decide", json=payload)
        assert response.json()["container"] == "mkv"

    @pytest.mark.asyncio
    async def test_decide_non_finite_frame_rate(self, client):
        payload = {"item": {"frame_rate": "nan"}, "request": {"device_id": "tv-1"}}
        response = await client.post("/transcoding/decide", json=payload)
        assert response.status_code == 200
        assert response.json()["max_framerate"] == 24.0

    @pytest.mark.asyncio
    async def test_decide_disabled(self, client, feature_disabled):
        response = await client.post("/transcoding/decide", json={})
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_service_not_ready(self, client):
        import main as main_module

        main_module.service = None
        response = await client.post("/transcoding/decide", json={})
        assert response.status_code == 503


# ─── Authentication ──────────────────────────────────────────────────────────


class TestEndpointAuth:
    """Tests for API key enforcement on endpoints."""

    @pytest.mark.asyncio
    async def test_missing_key(self, client, auth_required):
        response = await client.get("/transcoding/presets")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_readonly_can_list(self, client, auth_required):
        response = await client.get("/transcoding/presets", headers={"X-API-Key": "readkey"})
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_readonly_cannot_upsert(self, client, auth_required):
        response = await client.post(
            "/transcoding/presets", json=NEW_PRESET, headers={"X-API-Key": "readkey"}
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_admin_can_upsert(self, client, auth_required):
        response = await client.post(
            "/transcoding/presets", json=NEW_PRESET, headers={"X-API-Key": "adminkey"}
        )
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_health_needs_no_key(self, client, auth_required):
        response = await client.get("/health")
        assert response.status_code == 200
