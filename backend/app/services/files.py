from __future__ import annotations

import logging
from pathlib import Path
from uuid import uuid4

import aiofiles
import aiofiles.os

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


class UploadTooLarge(Exception):
    """Raised while streaming once the byte limit is crossed."""


class FileStore:
    """Resume files on local disk, addressed by server-generated names."""

    def __init__(self, root: Path, *, max_bytes: int) -> None:
        self._root = Path(root)
        self._max_bytes = max_bytes

    @property
    def max_bytes(self) -> int:
        return self._max_bytes

    def ensure_root(self) -> None:
        self._root.mkdir(parents=True, exist_ok=True)

    def path_for(self, file_name: str) -> Path:
        # stored names are generated here, never taken from the client
        if Path(file_name).name != file_name:
            raise ValueError(f"invalid stored file name: {file_name!r}")
        return self._root / file_name

    async def save(self, upload, *, suffix: str = ".pdf") -> tuple[str, int]:
        """Stream an upload to disk and return ``(stored_name, size)``."""

        self.ensure_root()
        file_name = f"{uuid4().hex}{suffix}"
        target = self.path_for(file_name)
        written = 0
        try:
            async with aiofiles.open(target, "wb") as handle:
                while chunk := await upload.read(CHUNK_SIZE):
                    written += len(chunk)
                    if written > self._max_bytes:
                        raise UploadTooLarge(file_name)
                    await handle.write(chunk)
        except BaseException:
            await self.delete(file_name)
            raise
        return file_name, written

    async def exists(self, file_name: str) -> bool:
        return await aiofiles.os.path.exists(self.path_for(file_name))

    async def delete(self, file_name: str) -> bool:
        target = self.path_for(file_name)
        try:
            await aiofiles.os.remove(target)
        except FileNotFoundError:
            return False
        logger.info("Removed stored file", extra={"extra_fields": {"file_name": file_name}})
        return True


__all__ = ["FileStore", "UploadTooLarge"]
