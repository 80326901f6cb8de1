"""In-memory subject lookup and image pool."""

import asyncio
from typing import Iterable, Optional

from ...core.errors import NotFound
from ...core.types import GeneratedImage, Subject


class InMemoryCharacterRepository:
    """
    SubjectProvider and ImagePool kept in process memory.

    Used when DATABASE_URL is unset, by the CLI, and in tests.
    """

    def __init__(self, subjects: Optional[Iterable[Subject]] = None):
        self._subjects: dict[str, Subject] = {}
        self._images: dict[str, list[GeneratedImage]] = {}
        self._lock = asyncio.Lock()
        for subject in subjects or ():
            self._subjects[subject.subject_id] = subject

    async def add_subject(self, subject: Subject) -> None:
        async with self._lock:
            self._subjects[subject.subject_id] = subject

    async def get_subject(self, subject_id: str) -> Subject:
        async with self._lock:
            subject = self._subjects.get(subject_id)
        if subject is None:
            raise NotFound("Subject", subject_id)
        return subject

    async def add_image(self, subject_id: str, image: GeneratedImage) -> None:
        async with self._lock:
            if subject_id not in self._subjects:
                raise NotFound("Subject", subject_id)
            self._images.setdefault(subject_id, []).append(image)

    async def list_images(self, subject_id: str) -> list[GeneratedImage]:
        async with self._lock:
            if subject_id not in self._subjects:
                raise NotFound("Subject", subject_id)
            return list(self._images.get(subject_id, []))
