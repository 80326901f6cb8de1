"""Job enums shared by the API models, job store and worker."""

from enum import Enum


class JobStatus(str, Enum):
    """Generation job lifecycle. Exactly one terminal state per job."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.CANCELLED})


class JobType(str, Enum):
    """Which shots a job generates."""

    CORE_SET = "core-set"  # Every priority-1 template
    CUSTOM_SET = "custom-set"  # Requested shot ids, or the first shot_count templates
    SINGLE_IMAGE = "single-image"  # Exactly one template
