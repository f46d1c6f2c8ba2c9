"""
Unit Tests for abandoned draft cleanup

Tests cover:
1. Draft classification rules
2. Candidate listing window (30 minutes to 7 days)
3. Approval: documents, sessions and stored files removed
"""

import httpx
import pytest
from datetime import timedelta
from types import SimpleNamespace
from uuid import UUID, uuid4

from core.action_log import ActionType
from core.baas import PlatformClient
from documents.cleanup import DraftCleanupService, classify_draft
from documents.models import DocumentStatus, UploadDocumentRequest
from documents.service import DocumentService
from payments.service import PaymentService


USER_ID = UUID("550e8400-e29b-41d4-a716-446655440000")
FILE_URL = "https://project.supabase.co/storage/v1/object/public/documents/user/draft.pdf"


def session(status, updated_at):
    return SimpleNamespace(id="cs_test", status=status, updated_at=updated_at)


@pytest.fixture
def documents(clock):
    return DocumentService(clock=clock)


@pytest.fixture
def payments(documents, clock):
    return PaymentService(documents, clock=clock)


@pytest.fixture
def cleanup(documents, payments, clock):
    return DraftCleanupService(documents, payments, clock=clock)


def upload(documents, filename="draft.pdf", file_url=FILE_URL):
    return documents.upload_document(
        USER_ID, UploadDocumentRequest(filename=filename, file_url=file_url, pages=1)
    )


class TestClassifyDraft:
    """Tests for the keep / clean up decision."""

    def test_payment_keeps_draft(self, documents, clock):
        document = upload(documents)

        should_cleanup, reason = classify_draft(document, [], [object()], clock())

        assert should_cleanup is False
        assert reason == "Has a confirmed payment"

    def test_no_session_is_cleaned(self, documents, clock):
        assert classify_draft(upload(documents), [], [], clock())[0] is True

    @pytest.mark.parametrize("status", ["expired", "failed"])
    def test_dead_session_is_cleaned(self, documents, clock, status):
        should_cleanup, reason = classify_draft(upload(documents), [session(status, clock())], [], clock())

        assert should_cleanup is True
        assert status in reason

    @pytest.mark.parametrize("status", ["pending", "completed"])
    def test_live_session_keeps_draft(self, documents, clock, status):
        old = clock() - timedelta(days=2)

        assert classify_draft(upload(documents), [session(status, old)], [], clock())[0] is False

    def test_other_status_depends_on_age(self, documents, clock):
        document = upload(documents)
        stale = session("cancelled", clock() - timedelta(hours=2))
        fresh = session("cancelled", clock() - timedelta(minutes=10))

        assert classify_draft(document, [stale], [], clock())[0] is True
        assert classify_draft(document, [fresh], [], clock())[0] is False

    def test_latest_session_decides(self, documents, clock):
        sessions = [
            session("expired", clock() - timedelta(hours=3)),
            session("pending", clock() - timedelta(minutes=5)),
        ]

        assert classify_draft(upload(documents), sessions, [], clock())[0] is False


class TestListCandidates:
    """Tests for the cleanup scan."""

    def test_recent_drafts_are_ignored(self, documents, cleanup, clock):
        upload(documents)
        clock.advance(minutes=10)

        report = cleanup.list_candidates()

        assert report.total_to_cleanup == 0
        assert report.total_to_keep == 0

    def test_old_drafts_are_ignored(self, documents, cleanup, clock):
        upload(documents)
        clock.advance(days=8)

        assert cleanup.list_candidates().total_to_cleanup == 0

    def test_abandoned_draft_listed(self, documents, cleanup, clock):
        document = upload(documents)
        clock.advance(hours=2)

        report = cleanup.list_candidates()

        assert [c.document_id for c in report.to_cleanup] == [document.id]
        assert report.to_cleanup[0].reason == "No checkout session"

    def test_draft_with_pending_checkout_kept(self, documents, payments, cleanup, clock):
        document = upload(documents)
        checkout = payments.create_checkout_session(document.id)
        clock.advance(hours=2)

        report = cleanup.list_candidates()

        assert [c.document_id for c in report.to_keep] == [document.id]
        assert report.to_keep[0].session_ids == [checkout.id]

    def test_draft_with_expired_checkout_listed(self, documents, payments, cleanup, clock):
        document = upload(documents)
        checkout = payments.create_checkout_session(document.id)
        payments.expire_session(checkout.id)
        clock.advance(hours=2)

        report = cleanup.list_candidates()

        assert report.to_cleanup[0].reason == "Checkout session expired"

    def test_paid_documents_are_not_drafts(self, documents, payments, cleanup, clock):
        document = upload(documents)
        checkout = payments.create_checkout_session(document.id)
        payments.complete_checkout(checkout.id, "pi_123")
        clock.advance(hours=2)

        report = cleanup.list_candidates()

        assert report.total_to_cleanup == 0
        assert report.total_to_keep == 0


class TestApproveCleanup:
    """Tests for approving the cleanup."""

    def test_approve_removes_draft_and_sessions(self, documents, payments, cleanup):
        document = upload(documents)
        checkout = payments.create_checkout_session(document.id)
        payments.fail_session(checkout.id)

        result = cleanup.approve_cleanup([document.id])

        assert result.deleted_count == 1
        assert result.sessions_deleted_count == 1
        assert result.storage_deleted_count == 0
        assert result.errors == []
        assert payments.sessions_for_document(document.id) == []
        assert document.id not in documents.storage.documents

    def test_non_drafts_are_refused(self, documents, cleanup):
        document = upload(documents)
        documents.mark_payment_received(document.id)

        result = cleanup.approve_cleanup([document.id])

        assert result.deleted_count == 0
        assert "only drafts" in result.errors[0].error
        assert documents.get_document(document.id).status == DocumentStatus.PENDING

    def test_unknown_document_reported(self, cleanup):
        missing = uuid4()

        result = cleanup.approve_cleanup([missing])

        assert result.errors[0].document_id == missing

    def test_approval_is_logged(self, documents, cleanup):
        document = upload(documents)
        cleanup.approve_cleanup([document.id])

        entries = documents.action_logger.list(action_type=ActionType.DRAFT_CLEANUP_APPROVED)

        assert entries[0].metadata["deleted_count"] == 1

    def test_stored_file_removed_through_platform(self, documents, payments, clock):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append((request.method, request.url.path, request.content))
            return httpx.Response(200, json=[{"name": "user/draft.pdf"}])

        platform = PlatformClient("https://project.supabase.co", "key", transport=httpx.MockTransport(handler))
        cleanup = DraftCleanupService(documents, payments, platform=platform, clock=clock)
        document = upload(documents)

        result = cleanup.approve_cleanup([document.id])

        assert result.storage_deleted_count == 1
        assert calls[0][0] == "DELETE"
        assert calls[0][1] == "/storage/v1/object/documents"
        assert b"user/draft.pdf" in calls[0][2]

    def test_storage_failure_is_reported(self, documents, payments, clock):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, json={"message": "storage down"})

        platform = PlatformClient("https://project.supabase.co", "key", transport=httpx.MockTransport(handler))
        cleanup = DraftCleanupService(documents, payments, platform=platform, clock=clock)
        document = upload(documents)

        result = cleanup.approve_cleanup([document.id])

        assert result.deleted_count == 1
        assert result.errors[0].error == "Storage: storage down"
