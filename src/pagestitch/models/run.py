"""Domain models for a batch run and its per-URL capture jobs."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, PrivateAttr


class JobStatus(str, Enum):
    """Capture job lifecycle states."""

    PENDING = "pending"
    CAPTURED = "captured"
    CONVERTED = "converted"
    FAILED = "failed"

    @property
    def is_final(self) -> bool:
        return self in (JobStatus.CONVERTED, JobStatus.FAILED)


class CaptureJob(BaseModel):
    """The per-URL unit of work.

    ``ordinal`` is the zero-based position of ``url`` in the input list.
    The job is owned by the orchestrator while it runs and is frozen once it
    is recorded on a :class:`BatchRun`.
    """

    model_config = {"validate_assignment": True}

    url: str
    ordinal: int = Field(ge=0)
    snapshot_path: Path
    document_path: Path
    status: JobStatus = JobStatus.PENDING
    error: str = ""
    duration_seconds: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.status is JobStatus.CONVERTED


class BatchRun(BaseModel):
    """One execution over an ordered URL list.

    Jobs are appended in ordinal order by the orchestrator only.
    ``merged_path`` is set only once at least one job has converted.
    """

    run_id: str
    timestamp: str
    output_dir: Path
    screenshots_dir: Path
    documents_dir: Path
    urls: list[str] = Field(default_factory=list)
    jobs: list[CaptureJob] = Field(default_factory=list)
    merged_path: Path | None = None
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: datetime | None = None

    _finalized: bool = PrivateAttr(default=False)

    def record(self, job: CaptureJob) -> None:
        """Append a finalized job; ordinals must arrive in input order."""
        if self._finalized:
            raise RuntimeError(f"Batch run {self.run_id} is already finalized")
        if not job.status.is_final:
            raise ValueError(f"Job {job.ordinal} is not finalized (status={job.status.value})")
        if job.ordinal != len(self.jobs):
            raise ValueError(f"Job ordinal {job.ordinal} recorded out of order (expected {len(self.jobs)})")
        self.jobs.append(job.model_copy(deep=True))

    def finalize(self) -> None:
        self._finalized = True
        self.completed_at = datetime.now(timezone.utc)

    @property
    def finalized(self) -> bool:
        return self._finalized

    @property
    def total(self) -> int:
        return len(self.urls)

    @property
    def succeeded(self) -> int:
        return sum(1 for j in self.jobs if j.succeeded)

    @property
    def failed(self) -> int:
        return sum(1 for j in self.jobs if j.status is JobStatus.FAILED)

    @property
    def documents(self) -> list[Path]:
        """Per-job PDFs of successful jobs, in input order."""
        return [j.document_path for j in self.jobs if j.succeeded]

    def summary(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "output_dir": str(self.output_dir),
            "merged_path": str(self.merged_path) if self.merged_path else None,
            "jobs": [
                {
                    "url": j.url,
                    "ordinal": j.ordinal,
                    "status": j.status.value,
                    "document": str(j.document_path) if j.succeeded else None,
                    "error": j.error or None,
                    "duration_s": round(j.duration_seconds, 1),
                }
                for j in self.jobs
            ],
        }
