"""
Filesystem asset store.

Image bytes are written under a root directory and referred to by their
relative path. Writes go through a temp file and rename so a crash never
leaves a half-written image behind.
"""

import asyncio
import shutil
import tempfile
import uuid
from pathlib import Path
from typing import Optional, Union

from ..errors import NotFound


class FileAssetStore:
    """Store image bytes on disk; asset refs are paths relative to root."""

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)

    async def store(self, data: bytes, name: Optional[str] = None) -> str:
        return await asyncio.to_thread(self._write, data, name)

    async def fetch(self, asset_ref: str) -> bytes:
        return await asyncio.to_thread(self._read, asset_ref)

    def path_for(self, asset_ref: str) -> Path:
        """Resolve an asset ref, refusing anything outside the root."""
        path = (self.root / asset_ref).resolve()
        if self.root.resolve() not in path.parents:
            raise NotFound("Asset", asset_ref)
        return path

    def _write(self, data: bytes, name: Optional[str]) -> str:
        self.root.mkdir(parents=True, exist_ok=True)
        file_name = name or f"{uuid.uuid4().hex}.png"
        final_path = self.root / file_name
        final_path.parent.mkdir(parents=True, exist_ok=True)

        with tempfile.NamedTemporaryFile(dir=final_path.parent, suffix=".tmp", delete=False) as tmp:
            tmp.write(data)
            tmp.flush()
            temp_path = Path(tmp.name)

        shutil.move(str(temp_path), str(final_path))
        return file_name

    def _read(self, asset_ref: str) -> bytes:
        path = self.path_for(asset_ref)
        if not path.is_file():
            raise NotFound("Asset", asset_ref)
        return path.read_bytes()
