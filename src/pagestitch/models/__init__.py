"""Domain models for batch runs and capture jobs."""

from pagestitch.models.run import BatchRun, CaptureJob, JobStatus

__all__ = ["BatchRun", "CaptureJob", "JobStatus"]
