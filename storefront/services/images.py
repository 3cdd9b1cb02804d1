# storefront/services/images.py
import logging
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional
from urllib.parse import urlparse

from fastapi import Depends, UploadFile
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.config import settings
from storefront.errors import Conflict, StorageFailure, ValidationFailed
from storefront.models.product import ImageRef, Product
from storefront.utils.storage import FileStorage, get_storage

logger = logging.getLogger(__name__)

# Accepted encodings and the file extensions that may carry them
ALLOWED_IMAGE_TYPES = {
    "image/jpeg": {"jpg", "jpeg"},
    "image/png": {"png"},
    "image/gif": {"gif"},
    "image/webp": {"webp"},
}

PRODUCT_IMAGE_DIR = "products"


@dataclass(frozen=True)
class IncomingImage:
    """A validated image change: either uploaded bytes or an external URL."""

    data: Optional[bytes] = None
    extension: Optional[str] = None
    url: Optional[str] = None


def _extension(filename: str) -> str:
    if "." not in filename:
        return ""
    return filename.rsplit(".", 1)[-1].lower()


class ImageAssetManager:
    """Owns the lifecycle of product images.

    Uploaded files are written before the row that references them is
    committed and removed again if that commit fails. Files that a committed
    row no longer references are deleted afterwards. External URLs are never
    touched.
    """

    def __init__(self, storage: FileStorage, max_bytes: int = settings.MAX_IMAGE_BYTES):
        self.storage = storage
        self.max_bytes = max_bytes

    # ---- boundary validation ----

    def read_upload(self, upload: UploadFile) -> IncomingImage:
        content_type = (upload.content_type or "").lower()
        ext = _extension(upload.filename or "")
        allowed_exts = ALLOWED_IMAGE_TYPES.get(content_type)
        if not allowed_exts or ext not in allowed_exts:
            raise ValidationFailed.field(
                "image", "The image must be a file of type: jpeg, png, jpg, gif, webp."
            )

        try:
            data = upload.file.read(self.max_bytes + 1)
        finally:
            upload.file.close()

        if not data:
            raise ValidationFailed.field("image", "The image failed to upload.")
        if len(data) > self.max_bytes:
            raise ValidationFailed.field(
                "image", f"The image may not be greater than {self.max_bytes // 1024} kilobytes."
            )
        return IncomingImage(data=data, extension=ext)

    def read_external(self, url: str) -> IncomingImage:
        url = url.strip()
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValidationFailed.field("image_url", "The image url must be an absolute http or https URL.")
        return IncomingImage(url=url)

    def incoming(self, upload: Optional[UploadFile], image_url: Optional[str]) -> Optional[IncomingImage]:
        """Validate the image part of a create/update request; None means "no change"."""
        has_file = upload is not None and bool(upload.filename)
        has_url = bool(image_url and image_url.strip())
        if has_file and has_url:
            raise ValidationFailed(
                {
                    "image": ["Provide either an image file or an image url, not both."],
                    "image_url": ["Provide either an image file or an image url, not both."],
                }
            )
        if has_file:
            return self.read_upload(upload)
        if has_url:
            return self.read_external(image_url)
        return None

    # ---- read path ----

    def url_for(self, ref: ImageRef) -> Optional[str]:
        if ref.is_empty:
            return None
        if ref.is_external:
            return ref.path
        return self.storage.public_url(ref.path)

    # ---- write path ----

    def _new_key(self, extension: str) -> str:
        return f"{PRODUCT_IMAGE_DIR}/{uuid.uuid4().hex}.{extension}"

    @contextmanager
    def stage(self, image: IncomingImage) -> Iterator[ImageRef]:
        """Yield the reference for ``image``; a stored file is removed if the block fails."""
        if image.url is not None:
            yield ImageRef.external(image.url)
            return

        key = self.storage.put(self._new_key(image.extension), image.data)
        try:
            yield ImageRef.local(key)
        except Exception:
            logger.warning("Discarding %s after failed write", key)
            self.release(ImageRef.local(key))
            raise

    def release(self, ref: ImageRef) -> bool:
        """Delete the file behind a local reference. Missing files are not an error."""
        if not ref.is_local:
            return False
        try:
            return self.storage.delete(ref.path)
        except StorageFailure:
            # The rows are already consistent at this point, only disk space leaks
            logger.exception("Could not remove %s, file left orphaned", ref.path)
            return False

    def _commit(self, db: Session) -> None:
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            logger.warning("Product write rejected by the database: %s", e.orig)
            raise Conflict("The product could not be saved because it conflicts with existing data.") from e
        except Exception:
            db.rollback()
            raise

    def save(self, db: Session, product: Product, image: Optional[IncomingImage] = None) -> Product:
        """Commit ``product`` together with an optional image change."""
        previous = product.image
        if image is None:
            self._commit(db)
        else:
            try:
                with self.stage(image) as ref:
                    product.image = ref
                    self._commit(db)
            except StorageFailure:
                # The file never landed, so the pending row must not either
                db.rollback()
                raise
            if previous != ref:
                self.release(previous)
        db.refresh(product)
        return product

    def delete(self, db: Session, product: Product) -> None:
        ref = product.image
        db.delete(product)
        self._commit(db)
        self.release(ref)


def get_image_manager(storage: FileStorage = Depends(get_storage)) -> ImageAssetManager:
    return ImageAssetManager(storage)
