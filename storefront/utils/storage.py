# storefront/utils/storage.py
import logging
import os
from pathlib import Path
from typing import Protocol
from urllib.parse import urljoin

from storefront.config import settings
from storefront.errors import StorageFailure

logger = logging.getLogger(__name__)


class FileStorage(Protocol):
    def put(self, key: str, data: bytes) -> str: ...

    def delete(self, key: str) -> bool: ...

    def exists(self, key: str) -> bool: ...

    def public_url(self, key: str) -> str: ...


# Stores files on the local disk under a root directory served by StaticFiles
class LocalFileStorage:
    def __init__(self, root, url_prefix: str = "/storage", base_url: str = ""):
        self.root = Path(root)
        self.url_prefix = "/" + url_prefix.strip("/")
        self.base_url = base_url

    def _path(self, key: str) -> Path:
        path = (self.root / key).resolve()
        # Keys are generated by us, but never allow one to escape the root
        if self.root.resolve() not in path.parents:
            raise StorageFailure(f"Invalid storage key: {key}")
        return path

    def put(self, key: str, data: bytes) -> str:
        path = self._path(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "wb") as buffer:
                buffer.write(data)
        except OSError as e:
            logger.error("Failed to write %s: %s", key, e)
            raise StorageFailure("Could not store the uploaded file.") from e
        logger.info("Stored %s (%d bytes)", key, len(data))
        return key

    def delete(self, key: str) -> bool:
        path = self._path(key)
        try:
            os.remove(path)
        except FileNotFoundError:
            logger.debug("Nothing to delete at %s", key)
            return False
        except OSError as e:
            logger.error("Failed to delete %s: %s", key, e)
            raise StorageFailure("Could not delete the stored file.") from e
        logger.info("Deleted %s", key)
        return True

    def exists(self, key: str) -> bool:
        return self._path(key).is_file()

    def public_url(self, key: str) -> str:
        path = f"{self.url_prefix}/{key.lstrip('/')}"
        if not self.base_url:
            return path
        return urljoin(self.base_url.rstrip("/") + "/", path.lstrip("/"))


_default_storage = None


# FastAPI dependency; tests override it with a storage rooted in a tmp dir
def get_storage() -> FileStorage:
    global _default_storage
    if _default_storage is None:
        _default_storage = LocalFileStorage(
            settings.STORAGE_DIR,
            url_prefix=settings.STORAGE_URL_PREFIX,
            base_url=settings.PUBLIC_BASE_URL,
        )
    return _default_storage
