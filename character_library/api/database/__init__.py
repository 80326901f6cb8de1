"""Database module for job and character persistence."""

from .db import Base, create_pool, init_db
from .models import CharacterRecord, GeneratedImageRecord, GenerationJobRecord
from .repository import (
    CharacterRepository,
    JobRepository,
    PostgresCharacterRepository,
    PostgresJobStore,
)

__all__ = [
    # Connection management
    "Base",
    "create_pool",
    "init_db",
    # Models
    "CharacterRecord",
    "GeneratedImageRecord",
    "GenerationJobRecord",
    # Repositories
    "CharacterRepository",
    "JobRepository",
    "PostgresCharacterRepository",
    "PostgresJobStore",
]
