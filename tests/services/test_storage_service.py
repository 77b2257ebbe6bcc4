"""
Tests for the attachment upload relay and storage backends
"""

import pytest
from unittest.mock import Mock, patch
from botocore.exceptions import ClientError

from app.core.config import Settings
from app.services.storage_service import (
    AttachmentUploadRelay,
    IMAGE_CONTENT_TYPES,
    S3StorageBackend,
    SupabaseStorageBackend,
    build_storage_backend,
    create_upload_relays,
    FileTooLargeError,
    NoFileError,
    S3UploadError,
    ServerMisconfiguredError,
    StorageWriteError,
    UnsupportedTypeError,
)

FIXED_NOW = 1700000000.5


@pytest.fixture
def backend():
    mock = Mock()
    mock.name = "s3"
    return mock


@pytest.fixture
def relay(backend):
    return AttachmentUploadRelay(
        backend=backend,
        bucket="changelog",
        public_base_url="https://project.supabase.co/",
        clock=lambda: FIXED_NOW,
    )


def _settings(**overrides):
    values = {"SUPABASE_URL": "https://project.supabase.co", "SUPABASE_KEY": "anon"}
    values.update(overrides)
    return Settings(**values)


class TestValidation:
    """Tests for rejection before any storage call."""

    def test_three_mib_rejected_without_storage_call(self, relay, backend):
        with pytest.raises(FileTooLargeError) as exc_info:
            relay.upload(b"x" * (3 * 1024 * 1024), "big.pdf", prefix="doc-1")

        error = exc_info.value
        assert error.status_code == 413
        payload = error.to_payload()
        assert payload["error"] == "FILE_TOO_LARGE"
        assert payload["size"] == 3145728
        assert payload["max"] == 2097152
        assert "req_id" in payload
        backend.put_object.assert_not_called()

    def test_exactly_max_is_accepted(self, relay, backend):
        relay.upload(b"x" * 2097152, "ok.bin", prefix="doc-1")
        backend.put_object.assert_called_once()

    def test_missing_file(self, relay, backend):
        with pytest.raises(NoFileError) as exc_info:
            relay.upload(None, None)
        assert exc_info.value.status_code == 400
        assert exc_info.value.to_payload()["error"] == "NO_FILE"
        backend.put_object.assert_not_called()

    def test_image_relay_rejects_other_types(self, backend):
        relay = AttachmentUploadRelay(backend, "uploads", None, allowed_types=IMAGE_CONTENT_TYPES)

        with pytest.raises(UnsupportedTypeError) as exc_info:
            relay.upload(b"%PDF", "doc.pdf", content_type="application/pdf")

        assert exc_info.value.status_code == 415
        backend.put_object.assert_not_called()

    def test_no_backend_is_misconfigured(self):
        relay = AttachmentUploadRelay(None, "changelog", None)

        with pytest.raises(ServerMisconfiguredError) as exc_info:
            relay.upload(b"data", "a.txt")
        assert exc_info.value.to_payload()["error"] == "SERVER_MISCONFIGURED"


class TestObjectKeys:
    """Tests for key derivation and the returned location."""

    def test_upload_result(self, relay, backend):
        result = relay.upload(b"data", "Release Notes (v2).PDF", content_type="application/pdf", prefix="doc-1")

        assert result.stored_name == "release-notes-v2-1700000000500.PDF"
        assert result.path == "doc-1/release-notes-v2-1700000000500.PDF"
        assert result.name == "Release Notes (v2).PDF"
        assert result.bucket == "changelog"
        assert result.url == (
            "https://project.supabase.co/storage/v1/object/public/changelog/"
            "doc-1/release-notes-v2-1700000000500.PDF"
        )
        backend.put_object.assert_called_once_with("changelog", result.path, b"data", "application/pdf")

    def test_path_components_are_dropped(self, relay):
        assert relay.build_object_name("../../etc/passwd") == "passwd-1700000000500"

    def test_fallback_stem_and_default_prefix(self, backend):
        relay = AttachmentUploadRelay(
            backend, "uploads", None,
            default_prefix="images", fallback_stem="img", clock=lambda: FIXED_NOW,
        )

        result = relay.upload(b"data", "###.png", content_type="image/png")

        assert result.path == "images/img-1700000000500.png"
        assert result.url is None


class TestBackends:
    """Tests for the S3 and Supabase Storage backends."""

    def test_s3_put_object(self):
        client = Mock()
        client.put_object.return_value = {"ETag": '"abc"'}

        S3StorageBackend(client).put_object("changelog", "doc-1/a.txt", b"data", "text/plain")

        kwargs = client.put_object.call_args.kwargs
        assert kwargs["Bucket"] == "changelog"
        assert kwargs["Key"] == "doc-1/a.txt"
        assert kwargs["ContentType"] == "text/plain"
        assert kwargs["CacheControl"] == "public, max-age=3600"

    def test_s3_failure_maps_to_code(self, relay):
        client = Mock()
        client.put_object.side_effect = ClientError(
            {"Error": {"Code": "AccessDenied", "Message": "denied"}}, "PutObject"
        )
        relay.backend = S3StorageBackend(client)

        with pytest.raises(S3UploadError) as exc_info:
            relay.upload(b"data", "a.txt", prefix="doc-1")

        assert exc_info.value.status_code == 500
        assert exc_info.value.to_payload()["error"] == "S3_UPLOAD_FAILED"

    def test_supabase_failure_maps_to_code(self):
        admin = Mock()
        admin.storage.from_.return_value.upload.side_effect = Exception("bucket not found")

        with pytest.raises(StorageWriteError) as exc_info:
            SupabaseStorageBackend(admin).put_object("changelog", "k", b"d", "text/plain")

        assert exc_info.value.code == "UPLOAD_FAILED"
        admin.storage.from_.assert_called_once_with("changelog")

    def test_backend_selection(self):
        s3_settings = _settings(
            S3_ENDPOINT="https://s3.example.com",
            S3_ACCESS_KEY_ID="AKIA123456",
            S3_SECRET_ACCESS_KEY="secret",
        )
        with patch("app.services.storage_service.boto3.client") as mock_client:
            backend = build_storage_backend(s3_settings, admin_client=Mock())

        assert isinstance(backend, S3StorageBackend)
        config = mock_client.call_args.kwargs["config"]
        assert config.s3 == {"addressing_style": "path"}

        assert isinstance(build_storage_backend(_settings(), admin_client=Mock()), SupabaseStorageBackend)
        assert build_storage_backend(_settings(), admin_client=None) is None

    def test_create_upload_relays(self, backend):
        relays = create_upload_relays(_settings(MAX_UPLOAD_BYTES=1024), backend)

        assert relays["changelog"].bucket == "changelog"
        assert relays["changelog"].allowed_types is None
        assert relays["images"].bucket == "uploads"
        assert relays["images"].allowed_types == IMAGE_CONTENT_TYPES
        assert relays["images"].max_bytes == 1024
