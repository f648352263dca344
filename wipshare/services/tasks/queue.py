from rq import Queue
from redis import Redis
from wipshare.core.config import settings

_redis = Redis.from_url(settings.REDIS_URL)
queue = Queue(settings.RQ_QUEUE, connection=_redis)

# Import inside function to avoid worker import cycles

def enqueue_regeneration() -> str:
    from wipshare.services.tasks.jobs import regenerate_waveforms_job
    job = queue.enqueue(
        regenerate_waveforms_job,
        job_timeout=60 * 60,
        result_ttl=24 * 60 * 60,
        failure_ttl=24 * 60 * 60,
        description="regenerate missing waveforms",
    )
    return job.get_id()
