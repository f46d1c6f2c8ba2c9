from datetime import datetime, timezone

from core.storage import (
    DOCUMENTS_BUCKET,
    FINAL_FILES_BUCKET,
    PAYMENT_RECEIPTS_BUCKET,
    correction_upload_path,
    detect_bucket,
    object_path_from_public_url,
    secure_url,
)


class TestStoragePaths:
    """Tests for object storage path helpers."""

    def test_detect_bucket(self):
        assert detect_bucket("https://x.supabase.co/storage/v1/object/public/arquivosfinaislush/a.pdf") == FINAL_FILES_BUCKET
        assert detect_bucket("payment-receipts/r.png") == PAYMENT_RECEIPTS_BUCKET
        assert detect_bucket("user/a.pdf") == DOCUMENTS_BUCKET

    def test_object_path_from_public_url(self):
        url = "https://x.supabase.co/storage/v1/object/public/documents/user/a.pdf?download=1"

        assert object_path_from_public_url(url) == ("documents", "user/a.pdf")
        assert object_path_from_public_url("https://example.com/a.pdf") is None
        assert object_path_from_public_url(None) is None

    def test_correction_upload_path(self):
        at = datetime.fromtimestamp(1700000000, tz=timezone.utc)

        assert correction_upload_path("u1", "d1", "fixed.pdf", at) == "u1/d1_1700000000000_fixed.pdf"

    def test_secure_url(self):
        class StubClient:
            def create_signed_url(self, bucket, path, expires_in):
                return f"signed:{bucket}:{path}:{expires_in}"

        url = "https://x.supabase.co/storage/v1/object/public/documents/user/a.pdf"

        assert secure_url(StubClient(), url, expires_in=60) == "signed:documents:user/a.pdf:60"
        assert secure_url(StubClient(), "https://example.com/a.pdf") == "https://example.com/a.pdf"
