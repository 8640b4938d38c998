"""
Concurrent batch classification.

Messages are independent, so a batch fans out over a bounded thread pool
(the cap protects provider rate limits). A job can be cancelled: queued
messages are dropped, in-flight calls finish in the background, and only
completed messages appear in the results.
"""

import logging
import threading
import time
import uuid
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence

from .merger import fallback_result
from .models import ClassificationResult, NormalizedMessage

logger = logging.getLogger(__name__)

ClassifyFn = Callable[[NormalizedMessage], ClassificationResult]

# How often a running batch checks its cancel flag
POLL_INTERVAL = 0.1


@dataclass
class BatchJob:
    """Progress and results of one batch."""
    job_id: str
    message_ids: List[str]
    status: str = "pending"
    started_at: float = 0.0
    completed_at: float = 0.0
    results: Dict[str, ClassificationResult] = field(default_factory=dict)
    cancel_event: threading.Event = field(default_factory=threading.Event)

    @property
    def total(self) -> int:
        return len(self.message_ids)

    @property
    def progress(self) -> int:
        return len(self.results)

    def ordered_results(self) -> List[ClassificationResult]:
        """Completed results in input order."""
        return [self.results[i] for i in self.message_ids if i in self.results]


class BatchProcessor:
    """
    Bounded concurrent classifier.

    Usage:
        processor = BatchProcessor({"max_workers": 8})
        job = processor.run(messages, orchestrator.classify)
        results = job.results
    """

    DEFAULT_MAX_WORKERS = 8

    def __init__(self, config: Optional[Dict] = None):
        """
        Args:
            config: Configuration with:
                - max_workers: Concurrent classifications (default: 8)
        """
        config = config or {}
        self.max_workers = config.get("max_workers", self.DEFAULT_MAX_WORKERS)
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")

        self._jobs: Dict[str, BatchJob] = {}
        self._lock = threading.Lock()

    def create_job(self, messages: Sequence[NormalizedMessage]) -> BatchJob:
        job = BatchJob(job_id=str(uuid.uuid4())[:8], message_ids=[m.id for m in messages])
        with self._lock:
            self._jobs[job.job_id] = job
        logger.info(f"Created batch job {job.job_id} with {job.total} messages")
        return job

    def cancel(self, job_id: str) -> bool:
        """Request cancellation. False if the job is unknown or finished."""
        with self._lock:
            job = self._jobs.get(job_id)
        if not job or job.status in ("completed", "cancelled"):
            return False
        job.cancel_event.set()
        logger.info(f"Cancellation requested for batch job {job_id}")
        return True

    def discard(self, job_id: str) -> bool:
        """Forget a finished job. False if it is unknown or still running."""
        with self._lock:
            job = self._jobs.get(job_id)
            if not job or job.status not in ("completed", "cancelled"):
                return False
            del self._jobs[job_id]
        return True

    @property
    def job_count(self) -> int:
        with self._lock:
            return len(self._jobs)

    def get_status(self, job_id: str) -> Optional[Dict]:
        with self._lock:
            job = self._jobs.get(job_id)
        if not job:
            return None

        elapsed = 0.0
        if job.started_at:
            elapsed = (job.completed_at or time.time()) - job.started_at

        return {
            "job_id": job.job_id,
            "status": job.status,
            "progress": job.progress,
            "total": job.total,
            "elapsed_seconds": round(elapsed, 1),
        }

    def run(
        self,
        messages: Sequence[NormalizedMessage],
        classify_fn: ClassifyFn,
        job: Optional[BatchJob] = None,
    ) -> BatchJob:
        """
        Classify every message, at most `max_workers` at a time.

        Blocks until all messages are done or the job is cancelled.
        """
        job = job or self.create_job(messages)
        job.status = "running"
        job.started_at = time.time()

        executor = ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix=f"triage-{job.job_id}"
        )
        pending = {}
        try:
            pending = {
                executor.submit(self._classify_one, classify_fn, m): m for m in messages
            }
            while pending:
                if job.cancel_event.is_set():
                    break
                done, _ = wait(pending, timeout=POLL_INTERVAL, return_when=FIRST_COMPLETED)
                for future in done:
                    message = pending.pop(future)
                    job.results[message.id] = future.result()
        finally:
            # Abandoned in-flight calls finish in the background
            executor.shutdown(wait=not pending, cancel_futures=bool(pending))

        job.status = "cancelled" if pending else "completed"
        job.completed_at = time.time()
        logger.info(
            f"Batch job {job.job_id} {job.status}: {job.progress}/{job.total} classified "
            f"in {job.completed_at - job.started_at:.1f}s"
        )
        return job

    @staticmethod
    def _classify_one(
        classify_fn: ClassifyFn, message: NormalizedMessage
    ) -> ClassificationResult:
        try:
            return classify_fn(message)
        except Exception as e:
            # One bad message must not sink the batch
            logger.error(f"Classification crashed for {message.id}: {e}", exc_info=True)
            return fallback_result()
