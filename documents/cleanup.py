"""
Abandoned draft cleanup

Drafts are documents uploaded but never paid for. A draft becomes a cleanup
candidate once it is older than 30 minutes and younger than 7 days, and only
when no payment or live checkout session points at it. Nothing is deleted
until an admin approves the candidate list.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional
from uuid import UUID

from core.action_log import ActionLogger, ActionType, PerformerType, utc_now
from core.baas import PlatformClient, PlatformError
from core.storage import object_path_from_public_url

from .models import (
    DocumentStatus,
    Document,
    CleanupCandidate,
    CleanupReport,
    CleanupError,
    CleanupResult,
)
from .service import DocumentService, DocumentNotFoundError

logger = logging.getLogger(__name__)

MIN_DRAFT_AGE = timedelta(minutes=30)
MAX_DRAFT_AGE = timedelta(days=7)
STALE_SESSION_AGE = timedelta(hours=1)

LIVE_SESSION_STATUSES = {"pending", "completed"}
DEAD_SESSION_STATUSES = {"expired", "failed"}


def is_cleanup_window(document: Document, now: datetime) -> bool:
    age = now - document.created_at
    return document.status == DocumentStatus.DRAFT and MIN_DRAFT_AGE < age < MAX_DRAFT_AGE


def classify_draft(document: Document, sessions: list, payments: list, now: datetime) -> tuple[bool, str]:
    """
    Decide whether a draft can be removed.

    Returns (should_cleanup, reason). Sessions are checkout session records
    with `status` and `updated_at`; the most recently updated one decides.
    """
    if payments:
        return False, "Has a confirmed payment"

    if not sessions:
        return True, "No checkout session"

    session = max(sessions, key=lambda s: s.updated_at)
    status = session.status.value if hasattr(session.status, "value") else session.status

    if status in DEAD_SESSION_STATUSES:
        return True, f"Checkout session {status}"
    if status in LIVE_SESSION_STATUSES:
        return False, f"Checkout session {status}"
    if now - session.updated_at > STALE_SESSION_AGE:
        return True, "Checkout session older than 1 hour"
    return False, "Checkout session updated less than 1 hour ago"


class DraftCleanupService:
    def __init__(
        self,
        documents: DocumentService,
        payments,
        action_logger: Optional[ActionLogger] = None,
        platform: Optional[PlatformClient] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.documents = documents
        self.payments = payments
        self.action_logger = action_logger or documents.action_logger
        self.platform = platform
        self.clock = clock or utc_now

    def list_candidates(self, now: Optional[datetime] = None) -> CleanupReport:
        now = now or self.clock()
        drafts = [
            Document(**d) for d in self.documents.storage.documents.values()
            if d["status"] == DocumentStatus.DRAFT
        ]
        drafts = [d for d in drafts if is_cleanup_window(d, now)]
        drafts.sort(key=lambda d: d.created_at)

        to_cleanup, to_keep = [], []
        for document in drafts:
            sessions = self.payments.sessions_for_document(document.id)
            payments = self.payments.payments_for_document(document.id)
            should_cleanup, reason = classify_draft(document, sessions, payments, now)
            candidate = CleanupCandidate(
                document_id=document.id,
                filename=document.filename,
                user_id=document.user_id,
                file_url=document.file_url,
                created_at=document.created_at,
                reason=reason,
                session_ids=[s.id for s in sessions],
                payment_ids=[p.id for p in payments],
            )
            (to_cleanup if should_cleanup else to_keep).append(candidate)

        logger.info(f"Draft cleanup scan: {len(to_cleanup)} to clean up, {len(to_keep)} to keep")
        return CleanupReport(
            to_cleanup=to_cleanup,
            to_keep=to_keep,
            total_to_cleanup=len(to_cleanup),
            total_to_keep=len(to_keep),
            generated_at=now,
        )

    def approve_cleanup(self, document_ids: list[UUID], performed_by: Optional[UUID] = None) -> CleanupResult:
        deleted = 0
        sessions_deleted = 0
        storage_deleted = 0
        errors: list[CleanupError] = []

        for document_id in document_ids:
            try:
                document = self.documents.get_document(document_id)
            except DocumentNotFoundError as e:
                errors.append(CleanupError(document_id=document_id, error=str(e)))
                continue

            if document.status != DocumentStatus.DRAFT:
                errors.append(CleanupError(
                    document_id=document_id,
                    error=f"Document is {document.status.value}, only drafts can be cleaned up",
                ))
                continue

            if document.file_url and self.platform:
                try:
                    storage_deleted += self._remove_file(document.file_url)
                except PlatformError as e:
                    logger.warning(f"Could not remove stored file for {document_id}: {e}")
                    errors.append(CleanupError(document_id=document_id, error=f"Storage: {e}"))

            sessions_deleted += self.payments.remove_sessions_for_document(document_id)
            del self.documents.storage.documents[document_id]
            deleted += 1

        if deleted:
            self.action_logger.log(
                ActionType.DRAFT_CLEANUP_APPROVED,
                f"Draft cleanup approved: {deleted} document(s) removed",
                entity_type="document",
                metadata={
                    "document_ids": [str(d) for d in document_ids],
                    "deleted_count": deleted,
                    "sessions_deleted_count": sessions_deleted,
                    "storage_deleted_count": storage_deleted,
                },
                performed_by=performed_by,
                performer_type=PerformerType.ADMIN if performed_by else PerformerType.SYSTEM,
            )

        return CleanupResult(
            deleted_count=deleted,
            sessions_deleted_count=sessions_deleted,
            storage_deleted_count=storage_deleted,
            errors=errors,
        )

    def _remove_file(self, file_url: str) -> int:
        location = object_path_from_public_url(file_url)
        if not location:
            logger.warning(f"Not a storage object URL, skipping: {file_url}")
            return 0
        bucket, path = location
        removed = self.platform.remove_objects(bucket, [path])
        return len(removed) if isinstance(removed, list) else 1
