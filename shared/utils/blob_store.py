import asyncio
import logging
import os
import uuid
from pathlib import Path
from typing import Protocol

from shared.core.exceptions import NotFoundError

logger = logging.getLogger(__name__)


class BlobStore(Protocol):
    async def save(self, filename: str, content: bytes) -> str: ...

    async def download(self, file_ref: str) -> bytes: ...


class LocalBlobStore:
    """Stores uploaded files on disk under a root directory, keyed by a generated reference."""

    def __init__(self, root_dir: str):
        self.root_dir = Path(root_dir)

    def _path_for(self, file_ref: str) -> Path:
        # refs are generated here; anything with a path separator is foreign
        if os.sep in file_ref or (os.altsep and os.altsep in file_ref):
            raise NotFoundError(f"Invalid file reference: {file_ref}")
        return self.root_dir / file_ref

    async def save(self, filename: str, content: bytes) -> str:
        suffix = Path(filename or "").suffix.lower()
        file_ref = f"{uuid.uuid4().hex}{suffix}"

        def _write():
            self.root_dir.mkdir(parents=True, exist_ok=True)
            self._path_for(file_ref).write_bytes(content)

        await asyncio.to_thread(_write)
        logger.info("Stored blob %s (%d bytes)", file_ref, len(content))
        return file_ref

    async def download(self, file_ref: str) -> bytes:
        path = self._path_for(file_ref)
        if not path.exists():
            raise NotFoundError(f"File not found: {file_ref}")
        return await asyncio.to_thread(path.read_bytes)
