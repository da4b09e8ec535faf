"""
Transcoding decision service - HTTP surface for presets, device capabilities and decisions
"""

import logging
from logging.handlers import RotatingFileHandler
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Depends, HTTPException

from auth import get_current_user, require_admin
from capabilities import DeviceCapabilityResolver
from config import settings
from models import (
    DecisionPayload,
    DeviceCapabilityProfile,
    TranscodingPreset,
    TranscodingProfile,
)
from presets import PresetStore
from service import TranscodingService
from utils import containers_from_device_profile


def _configure_logging():
    log_level = getattr(logging, settings.log_level)
    fmt = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    root = logging.getLogger()
    root.setLevel(log_level)

    console = logging.StreamHandler()
    console.setFormatter(fmt)
    root.addHandler(console)

    log_dir = Path(settings.log_path)
    log_dir.mkdir(parents=True, exist_ok=True)
    fh = RotatingFileHandler(
        log_dir / "transcoding.log", maxBytes=10_485_760, backupCount=5
    )
    fh.setFormatter(fmt)
    root.addHandler(fh)


_configure_logging()
logger = logging.getLogger(__name__)

service: TranscodingService | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the service and its caches for the lifetime of the app."""
    global service

    service = TranscodingService(
        resolver=DeviceCapabilityResolver(
            probe_timeout=settings.capability_probe_timeout,
            cache_ttl=settings.capability_cache_ttl,
        ),
        presets=PresetStore(),
    )
    logger.info(
        f"Transcoding service started "
        f"(enhanced transcoding {'enabled' if settings.enhanced_transcoding_enabled else 'disabled'})"
    )

    yield

    service = None
    logger.info("Transcoding service stopped")


app = FastAPI(
    title="Transcoding Decision Service",
    description="Selects container, codecs and bitrates for a device and source item",
    version="1.0.0",
    lifespan=lifespan,
)


def _get_service() -> TranscodingService:
    if service is None:
        raise HTTPException(status_code=503, detail="Transcoding service not ready")
    return service


@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "enhanced_transcoding_enabled": settings.enhanced_transcoding_enabled,
        "service_ready": service is not None,
        "cached_devices": len(service.resolver) if service else 0,
        "presets": len(service.presets) if service else 0,
        "require_api_auth": settings.require_api_auth,
    }


@app.get("/transcoding/presets", response_model=list[TranscodingPreset])
async def get_presets(_role: str = Depends(get_current_user)):
    """List presets in insertion order. Empty while the feature is disabled."""
    if not settings.enhanced_transcoding_enabled:
        return []
    return _get_service().list_presets()


@app.get("/transcoding/presets/{preset_id}", response_model=TranscodingPreset)
async def get_preset(
    preset_id: str,
    _role: str = Depends(get_current_user),
):
    if not settings.enhanced_transcoding_enabled:
        raise HTTPException(status_code=404, detail="Not found")
    preset = _get_service().get_preset(preset_id)
    if preset is None:
        raise HTTPException(status_code=404, detail=f"Preset {preset_id} not found")
    return preset


@app.post("/transcoding/presets")
async def upsert_preset(
    preset: TranscodingPreset,
    _role: str = Depends(require_admin),
):
    """Insert or replace a preset (admin only)."""
    if not settings.enhanced_transcoding_enabled:
        raise HTTPException(
            status_code=400,
            detail={"success": False, "message": "Enhanced transcoding is disabled"},
        )
    success = _get_service().upsert_preset(preset)
    return {"success": success}


@app.get(
    "/transcoding/device/{device_id}/capabilities",
    response_model=DeviceCapabilityProfile,
)
async def get_device_capabilities(
    device_id: str,
    _role: str = Depends(get_current_user),
):
    if not settings.enhanced_transcoding_enabled:
        raise HTTPException(status_code=404, detail="Not found")
    return await _get_service().resolve_device_capabilities(device_id)


@app.delete("/transcoding/device/{device_id}/capabilities")
async def invalidate_device_capabilities(
    device_id: str,
    _role: str = Depends(require_admin),
):
    """Drop a cached capability profile so the next lookup probes again (admin only)."""
    if not settings.enhanced_transcoding_enabled:
        raise HTTPException(status_code=404, detail="Not found")
    removed = _get_service().resolver.invalidate(device_id)
    return {"device_id": device_id, "removed": removed}


@app.post("/transcoding/decide", response_model=TranscodingProfile)
async def decide(
    payload: DecisionPayload,
    _role: str = Depends(get_current_user),
):
    """Return the transcoding decision for an item, device and request."""
    if not settings.enhanced_transcoding_enabled:
        raise HTTPException(status_code=404, detail="Not found")
    device_formats = list(payload.device_formats)
    if payload.device_profile:
        device_formats.extend(sorted(containers_from_device_profile(payload.device_profile)))
    return await _get_service().get_optimal_profile(
        payload.item,
        device_formats,
        payload.request,
    )
