"""
Background Jobs

Run detached coroutines on the event loop and track them from
submission to completion. The runner holds a strong reference to every
running task and hands back a Job the caller can inspect or await.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


class JobStatus(Enum):
    """Job status states."""
    PENDING = "pending"       # Submitted, not started
    RUNNING = "running"       # Coroutine is executing
    COMPLETED = "completed"   # Finished without error
    FAILED = "failed"         # Raised an exception
    CANCELLED = "cancelled"   # Cancelled before finishing


TERMINAL_STATUSES = (JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.CANCELLED)


@dataclass
class Job:
    """Handle for one background job."""
    job_id: str
    name: str
    status: JobStatus
    created_at: datetime
    updated_at: datetime

    # Timing
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    duration_seconds: Optional[float] = None

    # Errors
    error_message: Optional[str] = None

    # Metadata
    metadata: Dict[str, Any] = field(default_factory=dict)

    _task: Optional["asyncio.Task"] = field(default=None, repr=False, compare=False)

    @property
    def is_done(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "job_id": self.job_id,
            "name": self.name,
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_seconds": self.duration_seconds,
            "error_message": self.error_message,
            "metadata": self.metadata,
        }

    def update_status(self, status: JobStatus, error_message: Optional[str] = None):
        """Update job status and timing."""
        now = datetime.utcnow()
        self.status = status
        self.updated_at = now

        if status == JobStatus.RUNNING and not self.started_at:
            self.started_at = now

        if error_message:
            self.error_message = error_message

        if status in TERMINAL_STATUSES:
            self.completed_at = now
            if self.started_at:
                self.duration_seconds = (now - self.started_at).total_seconds()


class BackgroundJobRunner:
    """
    Runs coroutines as detached asyncio tasks.

    Usage:
        runner = BackgroundJobRunner()
        job = runner.submit("competitor_analysis", pipeline.run, comparison_id)
        ...
        await runner.wait(job.job_id)
    """

    def __init__(self, max_history: int = 500):
        """
        Initialize job runner.

        Args:
            max_history: Finished jobs kept for inspection before the oldest are dropped
        """
        self.max_history = max_history
        self._jobs: Dict[str, Job] = {}

    def submit(
        self,
        name: str,
        func: Callable[..., Awaitable[Any]],
        *args: Any,
        job_id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        **kwargs: Any,
    ) -> Job:
        """
        Start func(*args, **kwargs) in the background.

        Must be called from a running event loop.

        Args:
            name: Job name for logs
            func: Coroutine function to run
            job_id: Optional explicit id (defaults to a new UUID)
            metadata: Extra data stored on the Job

        Returns:
            Job handle (status PENDING until the task first runs)
        """
        loop = asyncio.get_running_loop()
        now = datetime.utcnow()
        job = Job(
            job_id=job_id or str(uuid.uuid4()),
            name=name,
            status=JobStatus.PENDING,
            created_at=now,
            updated_at=now,
            metadata=metadata or {},
        )
        job._task = loop.create_task(self._execute(job, func, *args, **kwargs))
        self._jobs[job.job_id] = job
        self._trim_history()

        logger.info(f"Submitted job {job.name} ({job.job_id})")
        return job

    async def _execute(self, job: Job, func: Callable[..., Awaitable[Any]], *args, **kwargs) -> Any:
        job.update_status(JobStatus.RUNNING)
        try:
            result = await func(*args, **kwargs)
        except asyncio.CancelledError:
            job.update_status(JobStatus.CANCELLED)
            logger.warning(f"Job {job.name} ({job.job_id}) cancelled")
            raise
        except Exception as e:
            job.update_status(JobStatus.FAILED, error_message=str(e))
            logger.error(f"Job {job.name} ({job.job_id}) failed: {e}")
            return None

        job.update_status(JobStatus.COMPLETED)
        logger.info(
            f"Job {job.name} ({job.job_id}) completed in {job.duration_seconds or 0:.2f}s"
        )
        return result

    def get_job(self, job_id: str) -> Optional[Job]:
        return self._jobs.get(job_id)

    def list_jobs(self, status: Optional[JobStatus] = None) -> List[Job]:
        jobs = list(self._jobs.values())
        if status is not None:
            jobs = [j for j in jobs if j.status == status]
        return sorted(jobs, key=lambda j: j.created_at, reverse=True)

    def active_count(self) -> int:
        return sum(1 for j in self._jobs.values() if not j.is_done)

    async def wait(self, job_id: str, timeout: Optional[float] = None) -> Job:
        """
        Wait for a job to finish.

        Raises:
            KeyError: Unknown job id
            asyncio.TimeoutError: Job did not finish within timeout
        """
        job = self._jobs[job_id]
        if job._task is not None and not job._task.done():
            await asyncio.wait_for(asyncio.shield(job._task), timeout=timeout)
        return job

    async def shutdown(self, timeout: float = 10.0):
        """Wait for running jobs, cancelling whatever is left after timeout."""
        pending = [j._task for j in self._jobs.values() if j._task and not j._task.done()]
        if not pending:
            return
        logger.info(f"Waiting for {len(pending)} background jobs")
        done, still_running = await asyncio.wait(pending, timeout=timeout)
        for task in still_running:
            task.cancel()

    def _trim_history(self):
        finished = [j for j in self._jobs.values() if j.is_done]
        overflow = len(finished) - self.max_history
        if overflow <= 0:
            return
        for job in sorted(finished, key=lambda j: j.created_at)[:overflow]:
            del self._jobs[job.job_id]
