import worker


class RecordingWorker:
    instances = []

    def __init__(self, queues, connection=None, name=None):
        self.queues = queues
        self.name = name
        self.burst = None
        RecordingWorker.instances.append(self)

    def work(self, burst=False, **kwargs):
        self.burst = burst


def _patch(monkeypatch, enqueued, reported):
    RecordingWorker.instances = []
    monkeypatch.setattr(worker, "Worker", RecordingWorker)
    monkeypatch.setattr(worker, "enqueue_regeneration", lambda: enqueued.append("job-9") or "job-9")
    monkeypatch.setattr(worker, "report_job", lambda job_id, conn: reported.append(job_id))


def test_queue_names():
    assert worker.queue_names("waveforms, default,,") == ["waveforms", "default"]


def test_parse_args_defaults():
    args = worker.parse_args([])
    assert args.queues == worker.settings.RQ_QUEUE
    assert not args.burst and not args.regenerate


def test_regenerate_burst_enqueues_and_reports(monkeypatch):
    enqueued, reported = [], []
    _patch(monkeypatch, enqueued, reported)

    assert worker.main(["--regenerate", "--burst", "--queues", "waveforms"]) == 0
    assert enqueued == ["job-9"]
    assert reported == ["job-9"]
    w = RecordingWorker.instances[0]
    assert w.burst is True
    assert [q.name for q in w.queues] == ["waveforms"]


def test_plain_worker_does_not_enqueue(monkeypatch):
    enqueued, reported = [], []
    _patch(monkeypatch, enqueued, reported)

    assert worker.main(["--queues", "waveforms,default"]) == 0
    assert enqueued == [] and reported == []
    assert RecordingWorker.instances[0].burst is False


def test_empty_queue_list_fails(monkeypatch):
    enqueued, reported = [], []
    _patch(monkeypatch, enqueued, reported)
    assert worker.main(["--queues", " , "]) == 1
    assert RecordingWorker.instances == []
