"""RQ worker for wipshare waveform jobs.

    python worker.py                       # serve the waveform queue
    python worker.py --regenerate --burst  # backfill missing waveforms, then exit
"""
from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import List, Optional

from redis import Redis
from rq import Queue, Worker
from rq.job import Job
from rq.logutils import setup_loghandlers

from wipshare.core.config import settings
from wipshare.services.tasks.queue import enqueue_regeneration


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="wipshare waveform worker")
    p.add_argument(
        "--queues",
        default=settings.RQ_QUEUE,
        help="Comma-separated queue names (default: settings.RQ_QUEUE)",
    )
    p.add_argument(
        "--log-level",
        default=settings.LOG_LEVEL.upper(),
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
    )
    p.add_argument(
        "--burst",
        action="store_true",
        help="Exit once the queues are empty",
    )
    p.add_argument(
        "--regenerate",
        action="store_true",
        help="Enqueue a backfill of tracks stored without waveform data before working",
    )
    return p.parse_args(argv)


def queue_names(raw: str) -> List[str]:
    return [q.strip() for q in str(raw).split(",") if q.strip()]


def report_job(job_id: str, redis_conn: Redis) -> None:
    job = Job.fetch(job_id, connection=redis_conn)
    status = job.get_status()
    if job.is_finished:
        logging.info("Regeneration finished: %s", job.return_value())
    else:
        logging.info("Regeneration job %s is %s (progress=%s)", job_id, status, job.meta.get("progress"))


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    setup_loghandlers(level=args.log_level)
    logging.getLogger().setLevel(args.log_level)

    qnames = queue_names(args.queues)
    if not qnames:
        logging.error("No queues specified")
        return 1

    redis_conn = Redis.from_url(settings.REDIS_URL)
    regen_job_id = None
    if args.regenerate:
        regen_job_id = enqueue_regeneration()
        logging.info("Enqueued waveform regeneration job %s on %s", regen_job_id, settings.RQ_QUEUE)

    # SIGINT/SIGTERM: Worker.work() finishes the current job, then stops
    worker = Worker(
        [Queue(name, connection=redis_conn) for name in qnames],
        connection=redis_conn,
        name=os.environ.get("WORKER_NAME"),
    )
    logging.info("Worker started. queues=%s burst=%s", qnames, args.burst)
    worker.work(burst=args.burst)

    if regen_job_id and args.burst:
        report_job(regen_job_id, redis_conn)
    return 0


if __name__ == "__main__":
    sys.exit(main())
