"""
Object storage backends for chat images, group photos and profile pictures.

Every uploaded image ends up as a StoredObject: the URL clients render and
the public_id needed to delete it again. Records keep both (e.g.
Chat.group_photo and Chat.group_photo_public_id).

Backends:
    FileSystemObjectStorage: Django's default_storage (local development, tests)
    S3ObjectStorage: AWS S3 via boto3 (production)

The backend is chosen with the OBJECT_STORAGE_BACKEND setting.

Usage:
    from media.storage import get_object_storage, staged_upload

    with staged_upload(request_file) as file:
        stored = get_object_storage().upload(file, folder="chat")
    message.image, message.image_public_id = stored.url, stored.public_id

Note:
    Failures are raised as core.exceptions.ExternalServiceError with
    error_code OBJECT_STORAGE_ERROR; the API exception handler turns
    them into a generic 500.
"""

from __future__ import annotations

import logging
import os
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeVar

from botocore.exceptions import BotoCoreError, ClientError
from django.conf import settings
from django.core.files.storage import default_storage
from django.db import transaction
from django.utils.module_loading import import_string

from core.exceptions import ExternalServiceError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from django.core.files import File

logger = logging.getLogger(__name__)

OBJECT_STORAGE_ERROR = "OBJECT_STORAGE_ERROR"

T = TypeVar("T")


@dataclass(frozen=True)
class StoredObject:
    """An uploaded object: where clients fetch it and how to delete it."""

    url: str
    public_id: str


def exceeds_image_limit(file: File, limit: int | None = None) -> bool:
    """
    Check an uploaded file against the image size limit.

    Args:
        file: Uploaded file (Django UploadedFile or File)
        limit: Size limit in bytes; defaults to settings.CHAT_MAX_IMAGE_BYTES

    Returns:
        True if the file is larger than the limit
    """
    limit = settings.CHAT_MAX_IMAGE_BYTES if limit is None else limit
    return file.size > limit


@contextmanager
def staged_upload(file: File | None) -> Iterator[File | None]:
    """
    Close an uploaded file on every exit path.

    Closing a TemporaryUploadedFile removes its temp file, so the staged
    copy of a request upload is released whether the operation succeeds,
    is rejected by validation, or raises.
    """
    try:
        yield file
    finally:
        if file is not None:
            try:
                file.close()
            except OSError as e:
                logger.warning(f"Failed to release staged upload {file.name}: {e}")


def _object_key(folder: str, filename: str) -> str:
    """Random, collision-free key that keeps the original extension."""
    _, ext = os.path.splitext(filename or "")
    return f"{folder}/{uuid.uuid4().hex}{ext.lower()}"


class ObjectStorage:
    """
    Interface for image object storage.

    Subclasses implement upload() and delete(). Both raise
    ExternalServiceError when the backend fails.
    """

    def upload(self, file: File, folder: str) -> StoredObject:
        raise NotImplementedError

    def delete(self, public_id: str) -> None:
        raise NotImplementedError

    def discard(self, public_id: str) -> None:
        """
        Delete an object as part of undoing a failed operation.

        The caller is already failing, so a delete failure here is logged
        instead of replacing the original error.
        """
        try:
            self.delete(public_id)
        except ExternalServiceError as e:
            logger.error(f"Could not discard orphaned object {public_id}: {e!r}")


class FileSystemObjectStorage(ObjectStorage):
    """
    Object storage on Django's default_storage.

    The public_id is the storage name, so delete() can find the file again.
    """

    def __init__(self, storage=None):
        self.storage = storage or default_storage

    def upload(self, file: File, folder: str) -> StoredObject:
        key = _object_key(folder, file.name)
        try:
            name = self.storage.save(key, file)
        except OSError as e:
            raise ExternalServiceError(
                "Object storage upload failed",
                error_code=OBJECT_STORAGE_ERROR,
                details={"key": key, "original_error": str(e)},
            ) from e

        logger.debug(f"Stored {file.name} as {name}")
        return StoredObject(url=self.storage.url(name), public_id=name)

    def delete(self, public_id: str) -> None:
        try:
            self.storage.delete(public_id)
        except OSError as e:
            raise ExternalServiceError(
                "Object storage delete failed",
                error_code=OBJECT_STORAGE_ERROR,
                details={"public_id": public_id, "original_error": str(e)},
            ) from e

        logger.debug(f"Deleted stored object {public_id}")


class S3ObjectStorage(ObjectStorage):
    """
    Object storage on AWS S3.

    Objects are uploaded with upload_fileobj (multipart for large bodies)
    and served from AWS_S3_CUSTOM_DOMAIN when set, else from the bucket's
    virtual-hosted URL. Credentials come from the usual boto3 chain
    (environment, instance profile, ~/.aws).
    """

    def __init__(
        self,
        bucket_name: str | None = None,
        region_name: str | None = None,
        custom_domain: str | None = None,
    ) -> None:
        self.bucket_name = bucket_name or settings.AWS_STORAGE_BUCKET_NAME
        self.region_name = region_name or settings.AWS_S3_REGION_NAME
        self.custom_domain = custom_domain or settings.AWS_S3_CUSTOM_DOMAIN
        self._s3_client = None

    @property
    def s3_client(self):
        """Get or create S3 client."""
        if self._s3_client is None:
            import boto3

            self._s3_client = boto3.client("s3", region_name=self.region_name)
        return self._s3_client

    def _url_for(self, key: str) -> str:
        if self.custom_domain:
            return f"https://{self.custom_domain}/{key}"
        return f"https://{self.bucket_name}.s3.{self.region_name}.amazonaws.com/{key}"

    def upload(self, file: File, folder: str) -> StoredObject:
        key = _object_key(folder, file.name)
        extra_args = {}
        content_type = getattr(file, "content_type", None)
        if content_type:
            extra_args["ContentType"] = content_type

        try:
            file.seek(0)
            self.s3_client.upload_fileobj(
                file, self.bucket_name, key, ExtraArgs=extra_args or None
            )
        except (BotoCoreError, ClientError) as e:
            raise ExternalServiceError(
                "Object storage upload failed",
                error_code=OBJECT_STORAGE_ERROR,
                details={"bucket": self.bucket_name, "key": key, "original_error": str(e)},
            ) from e

        logger.debug(f"Uploaded {file.name} to s3://{self.bucket_name}/{key}")
        return StoredObject(url=self._url_for(key), public_id=key)

    def delete(self, public_id: str) -> None:
        try:
            self.s3_client.delete_object(Bucket=self.bucket_name, Key=public_id)
        except (BotoCoreError, ClientError) as e:
            raise ExternalServiceError(
                "Object storage delete failed",
                error_code=OBJECT_STORAGE_ERROR,
                details={
                    "bucket": self.bucket_name,
                    "public_id": public_id,
                    "original_error": str(e),
                },
            ) from e

        logger.debug(f"Deleted s3://{self.bucket_name}/{public_id}")


def get_object_storage() -> ObjectStorage:
    """
    Get the configured object storage backend.

    Returns:
        Instance of the class named by settings.OBJECT_STORAGE_BACKEND
    """
    backend_class = import_string(settings.OBJECT_STORAGE_BACKEND)
    return backend_class()


def replace_object(
    storage: ObjectStorage,
    stored: StoredObject,
    old_public_id: str,
    persist: Callable[[StoredObject], T],
) -> T:
    """
    Point a record at a newly uploaded object and delete the one it replaced.

    persist() runs first and the old object is deleted last, both inside
    one savepoint:
        - persist() fails: the record still points at the old object,
          which was never touched.
        - The delete fails: the savepoint rolls the record back to the old
          object, which still exists, and ExternalServiceError propagates.

    The new object belongs to the caller, who uploaded it before taking any
    row lock and discards it when this (or anything else) fails.

    Args:
        storage: Backend holding both objects
        stored: The already uploaded replacement
        old_public_id: Handle of the image being replaced ("" for placeholder)
        persist: Callable taking the new StoredObject and saving the record

    Returns:
        Whatever persist() returns
    """
    with transaction.atomic():
        result = persist(stored)
        if old_public_id:
            storage.delete(old_public_id)

    logger.debug(
        f"Replaced stored object {old_public_id or '(placeholder)'} "
        f"with {stored.public_id}"
    )
    return result
