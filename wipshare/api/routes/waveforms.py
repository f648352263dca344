from fastapi import APIRouter, HTTPException
from redis.exceptions import RedisError
from wipshare.core.logging import logger
from wipshare.schemas.waveform import RegenerateOut, SimplifyIn, SimplifyOut
from wipshare.services.audio.waveform import simplify_waveform
from wipshare.services.tasks.queue import enqueue_regeneration
import asyncio

router = APIRouter()

@router.post("/simplify", response_model=SimplifyOut)
def simplify(body: SimplifyIn):
    return {"peaks": simplify_waveform(body.peaks, body.targetLength)}

@router.post("/regenerate", response_model=RegenerateOut)
async def start_regeneration():
    try:
        job_id = await asyncio.to_thread(enqueue_regeneration)
    except RedisError:
        logger.exception("could not enqueue waveform regeneration")
        raise HTTPException(503, "Job queue unavailable")
    return {"job_id": job_id, "status": "queued"}
