from fastapi import APIRouter, UploadFile, File, Form, HTTPException, Query
import os, shutil, asyncio, uuid
from typing import Optional
from sqlalchemy import func, select, update
from starlette.status import HTTP_201_CREATED
from wipshare.core.config import settings
from wipshare.core.logging import logger
from wipshare.db.session import SESSION
from wipshare.db.models.track import Track
from wipshare.db.models.track_version import TrackVersion
from wipshare.schemas.track import (
    TrackOut,
    TrackUploadOut,
    TrackVersionList,
    TrackVersionMessageOut,
    TrackVersionOut,
    TrackVersionSummaryOut,
    WaveformPayload,
)
from wipshare.services.audio.waveform import simplify_waveform
from wipshare.services.tracks import (
    is_supported_audio,
    next_version_number,
    pin_version,
    waveform_for_upload,
)

router = APIRouter()

def _tracks_dir() -> str:
    dest_dir = os.path.join(settings.STORAGE_DIR, "tracks")
    os.makedirs(dest_dir, exist_ok=True)
    return dest_dir

async def _store_upload(file: UploadFile, stem: str) -> str:
    ext = os.path.splitext(file.filename or "")[1].lower()
    dest_path = os.path.join(_tracks_dir(), f"{stem}-{uuid.uuid4().hex}{ext}")
    def _save():
        with open(dest_path, "wb") as f:
            shutil.copyfileobj(file.file, f)
    await asyncio.to_thread(_save)
    return dest_path

def _discard(path: str) -> None:
    try:
        os.remove(path)
    except OSError:
        logger.warning("could not remove stored upload %s", path)

def _require_audio(file: UploadFile) -> None:
    if not is_supported_audio(file.filename):
        raise HTTPException(400, "Unsupported file type")

# ------- endpoints -------
@router.post("/upload", status_code=HTTP_201_CREATED, response_model=TrackUploadOut)
async def upload_track(
    file: UploadFile = File(...),
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
):
    _require_audio(file)
    original_name = file.filename
    stored_path = await _store_upload(file, "track")

    # waveform failures are non-critical: the track is stored without one
    waveform_data, duration = await asyncio.to_thread(waveform_for_upload, stored_path)

    try:
        async with SESSION() as db:
            track = Track(
                title=(title or "").strip() or os.path.splitext(original_name)[0],
                description=(description or "").strip() or None,
                filename=original_name,
                file_path=stored_path,
                version="001",
                duration=duration,
                waveform_data=waveform_data,
            )
            db.add(track)
            await db.commit()
            await db.refresh(track)
    except Exception:
        _discard(stored_path)
        raise

    logger.info("track uploaded id=%s waveform=%s", track.id, waveform_data is not None)
    return {"message": "Track uploaded successfully", "track": TrackOut.model_validate(track)}

@router.post("/{track_id}/versions", status_code=HTTP_201_CREATED, response_model=TrackVersionMessageOut)
async def upload_track_version(
    track_id: int,
    file: UploadFile = File(...),
    description: Optional[str] = Form(None),
    make_default: bool = Form(False),
):
    _require_audio(file)
    async with SESSION() as db:
        track = await db.get(Track, track_id)
        if not track:
            raise HTTPException(404, "Track not found")

        latest = await db.scalar(
            select(func.max(TrackVersion.version_number)).where(TrackVersion.track_id == track_id)
        )
        number = next_version_number(latest)

        stored_path = await _store_upload(file, f"track-{track_id}-v{number}")
        waveform_data, duration = await asyncio.to_thread(waveform_for_upload, stored_path)

        try:
            if make_default:
                await db.execute(
                    update(TrackVersion)
                    .where(TrackVersion.track_id == track_id)
                    .values(is_pinned=False)
                )
            version = TrackVersion(
                track_id=track_id,
                version_number=number,
                title=track.title,
                description=(description or "").strip() or None,
                filename=file.filename,
                file_path=stored_path,
                duration=duration,
                waveform_data=waveform_data,
                is_pinned=False,
            )
            db.add(version)
            if make_default:
                pin_version(track, version)
            await db.commit()
            await db.refresh(version)
        except Exception:
            _discard(stored_path)
            raise

    logger.info("track %s version %s uploaded pinned=%s", track_id, number, version.is_pinned)
    return {"message": "Track version uploaded successfully", "version": TrackVersionOut.model_validate(version)}

@router.get("/{track_id}/versions", response_model=TrackVersionList)
async def list_track_versions(track_id: int):
    async with SESSION() as db:
        track = await db.get(Track, track_id)
        if not track:
            raise HTTPException(404, "Track not found")
        rows = await db.scalars(
            select(TrackVersion)
            .where(TrackVersion.track_id == track_id)
            .order_by(TrackVersion.version_number.asc())
        )
        versions = [TrackVersionSummaryOut.model_validate(v) for v in rows]
    return {"versions": versions}

@router.put("/{track_id}/versions/{version_id}/pin", response_model=TrackVersionMessageOut)
async def pin_track_version(track_id: int, version_id: int):
    async with SESSION() as db:
        track = await db.get(Track, track_id)
        if not track:
            raise HTTPException(404, "Track not found")
        version = await db.get(TrackVersion, version_id)
        if not version or version.track_id != track_id:
            raise HTTPException(404, "Version not found")

        await db.execute(
            update(TrackVersion)
            .where(TrackVersion.track_id == track_id)
            .values(is_pinned=False)
        )
        pin_version(track, version)
        await db.commit()
        await db.refresh(version)

    logger.info("track %s pinned version %s", track_id, version.version_number)
    return {"message": "Version pinned successfully", "version": TrackVersionOut.model_validate(version)}

@router.get("/{track_id}/waveform", response_model=WaveformPayload)
async def get_track_waveform(track_id: int, points: Optional[int] = Query(None, ge=1)):
    async with SESSION() as db:
        track = await db.get(Track, track_id)
        if not track:
            raise HTTPException(404, "Track not found")
        data = track.waveform_data
    if not data:
        raise HTTPException(404, "Waveform not ready")

    payload = WaveformPayload.model_validate(data)
    if points is not None:
        payload.simplified = simplify_waveform(payload.full, points)
    return payload
