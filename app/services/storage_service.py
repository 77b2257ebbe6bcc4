"""
Storage Service
Attachment upload relay with two interchangeable storage backends

The relay validates an incoming file, derives a collision-resistant
object key under an owner prefix, writes it through whichever backend
the deployment configured and returns the public URL.

Backends:
- S3StorageBackend: any S3-compatible endpoint via boto3 (path-style)
- SupabaseStorageBackend: Supabase Storage via the service role client
"""

import os
import time
import uuid
from dataclasses import dataclass, asdict
from typing import Any, Callable, Dict, Iterable, Optional

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from app.core.config import Settings
from app.core.logging import logger
from app.utils.text_processing import sanitize_filename_base, sanitize_extension

MAX_UPLOAD_BYTES = 2 * 1024 * 1024
IMAGE_CONTENT_TYPES = frozenset({
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
    "image/svg+xml",
})
CACHE_MAX_AGE = 3600


class UploadError(Exception):
    """
    Upload rejected or failed.

    `code` is the machine-readable reason sent to clients; `extra`
    carries additional payload fields (e.g. size/max).
    """

    code = "UPLOAD_FAILED"
    status_code = 500
    message = "Upload failed"

    def __init__(self, message: Optional[str] = None, **extra: Any):
        super().__init__(message or self.message)
        self.extra = extra

    def to_payload(self) -> Dict[str, Any]:
        return {"error": self.code, **self.extra}


class NoFileError(UploadError):
    code = "NO_FILE"
    status_code = 400
    message = "No file uploaded"


class FileTooLargeError(UploadError):
    code = "FILE_TOO_LARGE"
    status_code = 413
    message = "File too large"

    def __init__(self, size: int, max_bytes: int):
        mib = max_bytes / (1024 * 1024)
        super().__init__(f"File too large. Maximum size is {mib:g}MB.", size=size, max=max_bytes)
        self.size = size
        self.max_bytes = max_bytes


class UnsupportedTypeError(UploadError):
    code = "UNSUPPORTED_TYPE"
    status_code = 415
    message = "File type not allowed. Only JPEG, PNG, GIF, WebP, and SVG are allowed."


class StorageWriteError(UploadError):
    """The storage backend refused or failed the write"""
    code = "UPLOAD_FAILED"
    status_code = 500


class S3UploadError(StorageWriteError):
    code = "S3_UPLOAD_FAILED"


class ServerMisconfiguredError(UploadError):
    code = "SERVER_MISCONFIGURED"
    status_code = 500
    message = "No storage backend configured"


class StorageBackend:
    """Writes one object to a bucket."""

    name = "base"

    def put_object(self, bucket: str, key: str, body: bytes, content_type: Optional[str] = None) -> None:
        raise NotImplementedError


class S3StorageBackend(StorageBackend):
    """S3-compatible object store reached through boto3"""

    name = "s3"

    def __init__(self, client):
        self.client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "S3StorageBackend":
        client = boto3.client(
            "s3",
            endpoint_url=settings.S3_ENDPOINT,
            region_name=settings.S3_REGION,
            aws_access_key_id=settings.S3_ACCESS_KEY_ID,
            aws_secret_access_key=settings.S3_SECRET_ACCESS_KEY,
            config=BotoConfig(s3={"addressing_style": "path"}),
        )
        return cls(client)

    def put_object(self, bucket: str, key: str, body: bytes, content_type: Optional[str] = None) -> None:
        params = {
            "Bucket": bucket,
            "Key": key,
            "Body": body,
            "CacheControl": f"public, max-age={CACHE_MAX_AGE}",
        }
        if content_type:
            params["ContentType"] = content_type

        try:
            response = self.client.put_object(**params)
        except (BotoCoreError, ClientError) as e:
            raise S3UploadError(f"S3 upload failed: {e}") from e

        logger.debug(
            "[STORAGE] S3 upload OK",
            extra={"bucket": bucket, "object_key": key, "etag": response.get("ETag")},
        )


class SupabaseStorageBackend(StorageBackend):
    """Supabase Storage through the service role client"""

    name = "supabase"

    def __init__(self, admin_client):
        self.admin_client = admin_client

    def put_object(self, bucket: str, key: str, body: bytes, content_type: Optional[str] = None) -> None:
        file_options = {"cache-control": str(CACHE_MAX_AGE), "upsert": "false"}
        if content_type:
            file_options["content-type"] = content_type

        try:
            self.admin_client.storage.from_(bucket).upload(key, body, file_options)
        except Exception as e:
            raise StorageWriteError(f"Supabase upload failed: {e}") from e


def build_storage_backend(settings: Settings, admin_client=None) -> Optional[StorageBackend]:
    """
    Pick the storage backend from the configured credentials.

    S3 wins when endpoint, key id and secret are all present; otherwise
    Supabase Storage is used when a service role client exists.

    Args:
        settings: Application settings
        admin_client: Supabase service role client, if any

    Returns:
        Backend, or None when nothing is configured
    """
    if settings.s3_configured:
        logger.info(
            "[STORAGE] Using S3-compatible backend",
            extra={
                "endpoint": settings.S3_ENDPOINT,
                "region": settings.S3_REGION,
                "access_key_id": _mask(settings.S3_ACCESS_KEY_ID),
            },
        )
        return S3StorageBackend.from_settings(settings)

    if admin_client is not None:
        logger.info("[STORAGE] Using Supabase Storage backend")
        return SupabaseStorageBackend(admin_client)

    logger.warning("[STORAGE] No storage backend configured; uploads will fail")
    return None


def _mask(value: Optional[str], keep: int = 4) -> Optional[str]:
    return f"{value[:keep]}...({len(value)})" if value else None


@dataclass
class UploadResult:
    """Stored object location"""
    url: Optional[str]
    name: str
    stored_name: str
    path: str
    bucket: str
    req_id: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class AttachmentUploadRelay:
    """
    Forwards a single file to the storage backend.

    One relay per bucket/policy: change log attachments accept any type,
    inline images only the image allowlist.
    """

    def __init__(
        self,
        backend: Optional[StorageBackend],
        bucket: str,
        public_base_url: Optional[str],
        max_bytes: int = MAX_UPLOAD_BYTES,
        allowed_types: Optional[Iterable[str]] = None,
        default_prefix: str = "misc",
        fallback_stem: str = "file",
        clock: Callable[[], float] = time.time,
        debug: bool = False,
    ):
        self.backend = backend
        self.bucket = bucket
        self.public_base_url = public_base_url.rstrip("/") if public_base_url else None
        self.max_bytes = max_bytes
        self.allowed_types = frozenset(allowed_types) if allowed_types else None
        self.default_prefix = default_prefix
        self.fallback_stem = fallback_stem
        self.clock = clock
        self.debug = debug

    def build_object_name(self, filename: Optional[str]) -> str:
        """
        Derive the stored filename: normalized stem, millisecond
        timestamp, original extension.

        Args:
            filename: Original client filename

        Returns:
            Stored filename (no prefix)
        """
        original = os.path.basename(filename or "")
        stem, ext = os.path.splitext(original)
        base = sanitize_filename_base(stem, fallback=self.fallback_stem)
        millis = int(self.clock() * 1000)
        return f"{base}-{millis}{sanitize_extension(ext)}"

    def public_url(self, object_path: str) -> Optional[str]:
        if not self.public_base_url:
            return None
        return f"{self.public_base_url}/storage/v1/object/public/{self.bucket}/{object_path}"

    def validate(self, size: int, content_type: Optional[str]) -> None:
        """
        Check a file before any storage call.

        Raises:
            NoFileError, UnsupportedTypeError, FileTooLargeError
        """
        if size <= 0:
            raise NoFileError()
        if self.allowed_types is not None and content_type not in self.allowed_types:
            raise UnsupportedTypeError()
        if size > self.max_bytes:
            raise FileTooLargeError(size=size, max_bytes=self.max_bytes)

    def upload(
        self,
        data: Optional[bytes],
        filename: Optional[str],
        content_type: Optional[str] = None,
        prefix: Optional[str] = None,
    ) -> UploadResult:
        """
        Validate and store one file.

        Args:
            data: File bytes
            filename: Original filename, returned unchanged as `name`
            content_type: MIME type reported by the client
            prefix: Owner namespace (document id or folder)

        Returns:
            UploadResult with url, name, stored_name, path, bucket, req_id

        Raises:
            UploadError subclasses, one per failure kind
        """
        req_id = uuid.uuid4().hex[:12]
        size = len(data) if data else 0

        try:
            self.validate(size, content_type)
        except UploadError as e:
            logger.info(
                f"[STORAGE] Upload rejected: {e.code}",
                extra={"req_id": req_id, "size": size, "content_type": content_type},
            )
            e.extra.setdefault("req_id", req_id)
            raise

        if self.backend is None:
            raise ServerMisconfiguredError(req_id=req_id)

        stored_name = self.build_object_name(filename)
        object_path = f"{prefix or self.default_prefix}/{stored_name}"

        if self.debug:
            logger.debug(
                "[STORAGE] Incoming file",
                extra={
                    "req_id": req_id,
                    "original_name": filename,
                    "size": size,
                    "content_type": content_type,
                    "bucket": self.bucket,
                    "object_path": object_path,
                    "backend": self.backend.name,
                    "public_base": _mask(self.public_base_url, keep=10),
                },
            )

        try:
            self.backend.put_object(self.bucket, object_path, data, content_type)
        except UploadError as e:
            logger.warning(
                f"[STORAGE] {self.backend.name} upload failed: {e}",
                extra={"req_id": req_id, "bucket": self.bucket, "object_path": object_path},
            )
            e.extra.setdefault("req_id", req_id)
            raise

        result = UploadResult(
            url=self.public_url(object_path),
            name=filename or "attachment",
            stored_name=stored_name,
            path=object_path,
            bucket=self.bucket,
            req_id=req_id,
        )
        logger.info(
            "[STORAGE] Upload stored",
            extra={"req_id": req_id, "bucket": self.bucket, "object_path": object_path, "size": size},
        )
        return result


def create_upload_relays(settings: Settings, backend: Optional[StorageBackend]) -> Dict[str, AttachmentUploadRelay]:
    """
    Build the change log and inline image relays sharing one backend.

    Args:
        settings: Application settings
        backend: Backend from `build_storage_backend`

    Returns:
        {"changelog": relay, "images": relay}
    """
    common = {
        "backend": backend,
        "public_base_url": settings.public_storage_base,
        "max_bytes": settings.MAX_UPLOAD_BYTES,
        "debug": settings.DEBUG_UPLOAD,
    }
    return {
        "changelog": AttachmentUploadRelay(
            bucket=settings.CHANGELOG_BUCKET,
            default_prefix="misc",
            fallback_stem="file",
            **common,
        ),
        "images": AttachmentUploadRelay(
            bucket=settings.UPLOADS_BUCKET,
            allowed_types=IMAGE_CONTENT_TYPES,
            default_prefix="images",
            fallback_stem="img",
            **common,
        ),
    }
