from __future__ import annotations

import time
from functools import lru_cache
from typing import Callable, Dict, Optional

from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session, sessionmaker

from wipshare.core.logging import logger
from wipshare.db.config import DatabaseSettings
from wipshare.db.models.track import Track
from wipshare.services.audio.decoder import AudioDecoder, get_decoder
from wipshare.services.audio.waveform import generate_waveform

REGENERATE_SAMPLES_PER_SECOND = 10
REGENERATE_SIMPLIFIED_LENGTH = 100

ProgressCallback = Callable[[int, int], None]


@lru_cache(maxsize=1)
def _session_factory() -> sessionmaker:
    # blocking engine for RQ workers (pymysql)
    url = DatabaseSettings().sync_url
    engine = create_engine(url, pool_pre_ping=True, pool_recycle=28000)
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


def regenerate_missing_waveforms(
    db: Session,
    decoder: Optional[AudioDecoder] = None,
    samples_per_second: int = REGENERATE_SAMPLES_PER_SECOND,
    simplified_length: int = REGENERATE_SIMPLIFIED_LENGTH,
    on_progress: Optional[ProgressCallback] = None,
) -> Dict[str, int]:
    """
    Fill in waveform data for every track stored without one.

    A failing track is logged and skipped; the rest still get processed.
    `on_progress(done, total)` is called after each track.
    """
    decoder = decoder or get_decoder()
    tracks = db.scalars(select(Track).where(Track.waveform_data.is_(None))).all()
    total = len(tracks)
    counts = {"total": total, "updated": 0, "skipped": 0, "failed": 0}
    logger.info(f"[jobs] regenerate: {total} tracks without waveform data")

    for done, track in enumerate(tracks, start=1):
        s = time.time()
        track_id = track.id
        if not track.file_path:
            logger.info(f"[jobs] track={track_id} skipped - no file path")
            counts["skipped"] += 1
        else:
            try:
                waveform = generate_waveform(track.file_path, samples_per_second, decoder=decoder)
                track.waveform_data = waveform.to_payload(simplified_length)
                track.duration = waveform.duration
                db.commit()
                counts["updated"] += 1
                logger.info(
                    f"[jobs] track={track_id} waveform ok peaks={len(waveform.peaks)} "
                    f"dt={time.time()-s:.2f}s"
                )
            except Exception as e:
                # one bad track must not stop the rest of the run
                db.rollback()
                counts["failed"] += 1
                logger.exception(f"[jobs] track={track_id} waveform FAILED: {e}")
        if on_progress is not None:
            on_progress(done, total)

    return counts


def _report_to_current_job(done: int, total: int) -> None:
    from rq import get_current_job

    job = get_current_job()
    if job is None:
        return
    job.meta["progress"] = {"done": done, "total": total}
    job.save_meta()


def regenerate_waveforms_job() -> Dict[str, int]:
    """RQ entry point for waveform regeneration."""
    db = _session_factory()()
    t0 = time.time()
    try:
        logger.info("[jobs] regenerate_waveforms START")
        counts = regenerate_missing_waveforms(db, on_progress=_report_to_current_job)
        logger.info(f"[jobs] regenerate_waveforms DONE {counts} total={time.time()-t0:.2f}s")
        return counts
    except Exception as e:
        logger.exception(f"[jobs] regenerate_waveforms FAILED: {e}")
        raise
    finally:
        db.close()
