from datetime import datetime
from typing import Optional

from .config import settings

DOCUMENTS_BUCKET = "documents"
FINAL_FILES_BUCKET = "arquivosfinaislush"
PAYMENT_RECEIPTS_BUCKET = "payment-receipts"
LOGOS_BUCKET = "logos"

PUBLIC_OBJECT_MARKER = "/storage/v1/object/public/"


def detect_bucket(path_or_url: str) -> str:
    if FINAL_FILES_BUCKET in path_or_url:
        return FINAL_FILES_BUCKET
    if PAYMENT_RECEIPTS_BUCKET in path_or_url:
        return PAYMENT_RECEIPTS_BUCKET
    return DOCUMENTS_BUCKET


def object_path_from_public_url(url: Optional[str]) -> Optional[tuple[str, str]]:
    """Split a public object URL into ``(bucket, path)``."""
    if not url or PUBLIC_OBJECT_MARKER not in url:
        return None
    remainder = url.split(PUBLIC_OBJECT_MARKER, 1)[1].split("?", 1)[0]
    bucket, _, path = remainder.partition("/")
    if not bucket or not path:
        return None
    return bucket, path


def correction_upload_path(user_id: object, document_id: object, filename: str, at: datetime) -> str:
    epoch_ms = int(at.timestamp() * 1000)
    return f"{user_id}/{document_id}_{epoch_ms}_{filename}"


def secure_url(client, file_url: Optional[str], expires_in: Optional[int] = None) -> Optional[str]:
    """
    Swap a public object URL for a time-limited signed URL.

    Values that are not public object URLs are returned unchanged.
    """
    location = object_path_from_public_url(file_url)
    if not location:
        return file_url
    bucket, path = location
    if expires_in is None:
        expires_in = settings.signed_url_ttl_seconds
    return client.create_signed_url(bucket, path, expires_in)
