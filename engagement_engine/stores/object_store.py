"""
Binary object storage for uploaded assignment files.

Architecture:
- ObjectStore: abstract interface (put / get / delete by locator)
- LocalObjectStore: filesystem implementation rooted at UPLOADS_DIR

Locators are opaque strings to callers. The local store uses relative
POSIX paths such as ``<participant>/<event>_<epoch>.pdf``.
"""
import logging
import os
import uuid
from abc import ABC, abstractmethod

from fastapi.concurrency import run_in_threadpool

from engagement_engine.config import UPLOADS_DIR
from engagement_engine.errors import NotFound

logger = logging.getLogger(__name__)


class ObjectStore(ABC):
    """Storage interface. Implementations may block; callers await them."""

    @abstractmethod
    async def put(self, path_hint: str, data: bytes) -> str:
        """Store ``data`` and return a locator that ``get`` accepts."""

    @abstractmethod
    async def get(self, locator: str) -> bytes:
        """Return the stored bytes or raise NotFound."""

    @abstractmethod
    async def delete(self, locator: str) -> None:
        """Remove the object if present."""


class LocalObjectStore(ObjectStore):

    def __init__(self, base_dir: str = UPLOADS_DIR):
        self.base_dir = os.path.abspath(base_dir)

    def _fs_path(self, locator: str) -> str:
        """
        Converts a locator -> absolute filesystem path.
        Example:
        3f2c.../9a1b..._1700000000.pdf
        -> /srv/engine/uploads/3f2c.../9a1b..._1700000000.pdf
        """
        path = os.path.abspath(os.path.join(self.base_dir, locator))
        if os.path.commonpath([path, self.base_dir]) != self.base_dir:
            raise NotFound("File not found")
        return path

    def _write(self, path_hint: str, data: bytes) -> str:
        locator = path_hint.replace("\\", "/").lstrip("/")
        path = self._fs_path(locator)
        if os.path.exists(path):
            root, ext = os.path.splitext(locator)
            locator = f"{root}_{uuid.uuid4().hex[:8]}{ext}"
            path = self._fs_path(locator)

        os.makedirs(os.path.dirname(path), exist_ok=True)  # ensure folder exists
        with open(path, "wb") as f:
            f.write(data)
        return locator

    def _read(self, locator: str) -> bytes:
        path = self._fs_path(locator)
        if not os.path.isfile(path):
            raise NotFound("File not found")
        with open(path, "rb") as f:
            return f.read()

    def _remove(self, locator: str) -> None:
        path = self._fs_path(locator)
        if os.path.exists(path):
            os.remove(path)

    async def put(self, path_hint: str, data: bytes) -> str:
        locator = await run_in_threadpool(self._write, path_hint, data)
        logger.info("Stored %d bytes at %s", len(data), locator)
        return locator

    async def get(self, locator: str) -> bytes:
        return await run_in_threadpool(self._read, locator)

    async def delete(self, locator: str) -> None:
        await run_in_threadpool(self._remove, locator)


local_object_store = LocalObjectStore()


# ---------------------------
# Dependency for FastAPI
# ---------------------------
def get_object_store() -> ObjectStore:
    return local_object_store
