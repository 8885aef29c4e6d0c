"""
Upload storage backends

Files land either on local disk (served by the /uploads static mount) or in a
Cloudflare R2 bucket (referenced by public URL). Callers only ever hold the
returned URL; delete() takes that same URL back.
"""

import logging
import uuid
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from fastapi import UploadFile

from ..config import (
    MAX_UPLOAD_BYTES,
    R2_ACCESS_KEY_ID,
    R2_ACCOUNT_ID,
    R2_BUCKET_NAME,
    R2_PUBLIC_URL,
    R2_SECRET_ACCESS_KEY,
    UPLOAD_BACKEND,
    UPLOADS_DIR,
    UPLOADS_URL_PREFIX,
)
from ..errors import ValidationError

logger = logging.getLogger(__name__)

# MIME type -> stored extension. The extension never comes from the client filename.
ALLOWED_UPLOAD_TYPES = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
    "application/pdf": "pdf",
    "application/msword": "doc",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
    "text/plain": "txt",
}

DANGEROUS_FILENAME_CHARS = ["..", "/", "\\", "<", ">", ":", '"', "|", "?", "*"]


def has_upload(upload: Optional[UploadFile]) -> bool:
    """Browsers send an empty part with no filename when the file input is left blank"""
    return upload is not None and bool(upload.filename)


def validate_upload(upload: UploadFile, contents: bytes) -> str:
    """Check type, size and filename; return the extension to store under"""
    content_type = (upload.content_type or "").lower()
    ext = ALLOWED_UPLOAD_TYPES.get(content_type)
    if not ext:
        raise ValidationError("Invalid file type. Allowed: JPEG, PNG, GIF, WebP, PDF, DOC, DOCX and TXT.")

    if upload.filename:
        for char in DANGEROUS_FILENAME_CHARS:
            if char in upload.filename:
                logger.warning(f"❌ Dangerous character '{char}' detected in filename: '{upload.filename}'")
                raise ValidationError("Invalid filename")
        if len(upload.filename) > 255:
            raise ValidationError("Filename too long - maximum 255 characters")

    if len(contents) > MAX_UPLOAD_BYTES:
        limit_mb = MAX_UPLOAD_BYTES / (1024 * 1024)
        raise ValidationError(
            f"File size exceeds {limit_mb:.0f}MB limit. Your file is {len(contents) / (1024 * 1024):.2f}MB."
        )

    return ext


class FileStorage(ABC):
    """Interface shared by the storage backends"""

    async def save(self, upload: UploadFile, folder: str) -> str:
        contents = await upload.read()
        ext = validate_upload(upload, contents)
        key = f"{folder}/{uuid.uuid4()}.{ext}"
        url = self._write(key, contents, upload.content_type)
        logger.info(f"📤 Stored upload {key} ({len(contents)} bytes)")
        return url

    async def save_optional(self, upload: Optional[UploadFile], folder: str) -> Optional[str]:
        if not has_upload(upload):
            return None
        return await self.save(upload, folder)

    @abstractmethod
    def delete(self, url: Optional[str]) -> bool:
        """Best-effort removal. Failures are logged, never raised."""

    @abstractmethod
    def _write(self, key: str, contents: bytes, content_type: Optional[str]) -> str:
        """Persist contents under key and return the public URL"""


class LocalFileStorage(FileStorage):
    def __init__(self, root_dir: str = UPLOADS_DIR, url_prefix: str = UPLOADS_URL_PREFIX):
        self.root = Path(root_dir).resolve()
        self.url_prefix = url_prefix.rstrip("/")

    def path_for(self, url: str) -> Optional[Path]:
        """Map a stored URL back to a path inside the uploads root"""
        if not url or not url.startswith(self.url_prefix + "/"):
            return None
        candidate = (self.root / url[len(self.url_prefix) + 1 :]).resolve()
        if self.root not in candidate.parents:
            return None
        return candidate

    def _write(self, key: str, contents: bytes, content_type: Optional[str]) -> str:
        target = self.root / key
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(contents)
        return f"{self.url_prefix}/{key}"

    def delete(self, url: Optional[str]) -> bool:
        if not url:
            return False
        path = self.path_for(url)
        if path is None:
            logger.warning(f"⚠️ Refusing to delete file outside uploads dir: {url}")
            return False
        try:
            path.unlink()
            logger.info(f"🗑️ Deleted upload {url}")
            return True
        except FileNotFoundError:
            logger.warning(f"⚠️ Upload already gone: {url}")
            return False
        except OSError as e:
            logger.warning(f"⚠️ Failed to delete upload {url}: {e}")
            return False


def get_r2_client():
    """Create and return an R2 client."""
    return boto3.client(
        "s3",
        endpoint_url=f"https://{R2_ACCOUNT_ID}.r2.cloudflarestorage.com",
        aws_access_key_id=R2_ACCESS_KEY_ID,
        aws_secret_access_key=R2_SECRET_ACCESS_KEY,
        config=Config(signature_version="s3v4"),
    )


class R2FileStorage(FileStorage):
    def __init__(self, bucket: str = R2_BUCKET_NAME, public_url: str = R2_PUBLIC_URL, client=None):
        self.bucket = bucket
        self.public_url = public_url.rstrip("/")
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = get_r2_client()
        return self._client

    def key_for(self, url: str) -> Optional[str]:
        if not url or not url.startswith(self.public_url + "/"):
            return None
        return url[len(self.public_url) + 1 :]

    def _write(self, key: str, contents: bytes, content_type: Optional[str]) -> str:
        try:
            self.client.put_object(Bucket=self.bucket, Key=key, Body=contents, ContentType=content_type)
        except (BotoCoreError, ClientError) as e:
            logger.error(f"❌ Upload to R2 failed for {key}: {e}")
            raise
        return f"{self.public_url}/{key}"

    def delete(self, url: Optional[str]) -> bool:
        key = self.key_for(url) if url else None
        if not key:
            return False
        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
            logger.info(f"🗑️ Deleted R2 object {key}")
            return True
        except (BotoCoreError, ClientError) as e:
            logger.warning(f"⚠️ Failed to delete R2 object {key}: {e}")
            return False


_storage: Optional[FileStorage] = None


def get_file_storage() -> FileStorage:
    """Dependency returning the configured storage backend"""
    global _storage
    if _storage is None:
        if UPLOAD_BACKEND == "r2":
            logger.info(f"☁️ Using R2 upload storage (bucket: {R2_BUCKET_NAME})")
            _storage = R2FileStorage()
        else:
            logger.info(f"💾 Using local upload storage at {UPLOADS_DIR}")
            _storage = LocalFileStorage()
    return _storage
