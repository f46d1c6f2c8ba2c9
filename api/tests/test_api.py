"""
HTTP tests for the composed application.

Each test gets fresh services through ``app.dependency_overrides``.
"""

import pytest
from uuid import uuid4
from fastapi.testclient import TestClient

from api.index import app
from core.action_log import ActionLogger
from core import services
from affiliates.service import AffiliateService
from documents.cleanup import DraftCleanupService
from documents.service import DocumentService
from payments.service import PaymentService

AFFILIATE_USER_ID = "550e8400-e29b-41d4-a716-446655440000"
CLIENT_ID = "660e8400-e29b-41d4-a716-446655440001"
ADMIN_ID = "990e8400-e29b-41d4-a716-446655440009"


@pytest.fixture
def stack(clock):
    action_logger = ActionLogger(clock=clock)
    affiliates = AffiliateService(action_logger=action_logger, clock=clock)
    documents = DocumentService(action_logger=action_logger, clock=clock)
    payments = PaymentService(documents, affiliates=affiliates, action_logger=action_logger, clock=clock)
    cleanup = DraftCleanupService(documents, payments, action_logger=action_logger, clock=clock)

    app.dependency_overrides[services.get_action_logger] = lambda: action_logger
    app.dependency_overrides[services.get_affiliate_service] = lambda: affiliates
    app.dependency_overrides[services.get_document_service] = lambda: documents
    app.dependency_overrides[services.get_payment_service] = lambda: payments
    app.dependency_overrides[services.get_cleanup_service] = lambda: cleanup
    app.dependency_overrides[services.get_platform_client] = lambda: None
    yield {"affiliates": affiliates, "documents": documents, "payments": payments}
    app.dependency_overrides.clear()


@pytest.fixture
def client(stack):
    return TestClient(app)


def register_affiliate_with_client(client):
    affiliate = client.post("/affiliates/register", json={
        "user_id": AFFILIATE_USER_ID, "name": "Ana Souza", "email": "ana@example.com",
    }).json()
    response = client.post("/affiliates/referrals", json={
        "referral_code": affiliate["referral_code"],
        "client_id": CLIENT_ID,
        "name": "Client One",
        "email": "client@example.com",
    })
    assert response.status_code == 201
    return affiliate


def paid_document(client, pages=4):
    document = client.post(f"/documents/users/{CLIENT_ID}", json={"filename": "deed.pdf", "pages": pages}).json()
    session = client.post(f"/payments/checkout/{document['id']}").json()
    payment = client.post(f"/payments/sessions/{session['id']}/complete", json={"payment_intent": "pi_1"}).json()
    return document, session, payment


class TestSystem:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestDocumentRoutes:
    """Tests for customer and authenticator routes."""

    def test_upload_and_fetch(self, client):
        response = client.post(f"/documents/users/{CLIENT_ID}", json={
            "filename": "statement.pdf", "pages": 2, "is_bank_statement": True,
        })

        assert response.status_code == 201
        document = response.json()
        assert document["status"] == "draft"
        assert float(document["total_cost"]) == 50.0
        assert client.get(f"/documents/{document['id']}").json()["id"] == document["id"]

    def test_upload_validation(self, client):
        response = client.post(f"/documents/users/{CLIENT_ID}", json={"filename": "x.pdf", "pages": 0})

        assert response.status_code == 422

    def test_unknown_document(self, client):
        assert client.get(f"/documents/{uuid4()}").status_code == 404

    def test_list_by_status(self, client):
        client.post(f"/documents/users/{CLIENT_ID}", json={"filename": "a.pdf", "pages": 1})
        paid_document(client)

        drafts = client.get(f"/documents/users/{CLIENT_ID}", params={"status": "draft"}).json()

        assert drafts["total_count"] == 1
        assert drafts["items"][0]["filename"] == "a.pdf"

    def test_review_flow(self, client):
        document, _, _ = paid_document(client)
        client.post(f"/documents/{document['id']}/send-for-authentication", json={
            "translated_file_url": "https://files.example.com/t.pdf",
        })

        queue = client.get("/authenticator/queue").json()
        approved = client.post(f"/authenticator/documents/{document['id']}/approve", json={
            "id": str(uuid4()), "email": "reviewer@example.com", "name": "Rita",
        })

        assert queue["total_count"] == 1
        assert approved.status_code == 200
        assert approved.json()["document"]["status"] == "completed"
        assert client.get("/authenticator/stats").json() == {"pending": 0, "approved": 1}

    def test_approving_draft_is_bad_request(self, client):
        document = client.post(f"/documents/users/{CLIENT_ID}", json={"filename": "a.pdf", "pages": 1}).json()

        response = client.post(f"/authenticator/documents/{document['id']}/approve", json={
            "id": str(uuid4()), "email": "reviewer@example.com",
        })

        assert response.status_code == 400

    def test_download_url_without_storage(self, client):
        document = client.post(f"/documents/users/{CLIENT_ID}", json={
            "filename": "a.pdf", "pages": 1,
            "file_url": "https://x.supabase.co/storage/v1/object/public/documents/u/a.pdf",
        }).json()

        assert client.get(f"/documents/{document['id']}/download-url").status_code == 503


class TestPaymentRoutes:
    """Tests for checkout and admin cancellation."""

    def test_checkout_and_cancel(self, client):
        register_affiliate_with_client(client)
        document, session, payment = paid_document(client)

        assert float(session["gross_amount"]) == 83.56
        assert payment["status"] == "completed"

        cancelled = client.post(f"/admin/payments/{payment['id']}/cancel", json={
            "reason": "Duplicate order", "admin_user_id": ADMIN_ID,
        })
        again = client.post(f"/admin/payments/{payment['id']}/cancel", json={
            "reason": "Duplicate order", "admin_user_id": ADMIN_ID,
        })

        assert cancelled.json()["status"] == "refunded"
        assert again.status_code == 400

    def test_complete_twice_conflicts(self, client):
        _, session, _ = paid_document(client)

        response = client.post(f"/payments/sessions/{session['id']}/complete", json={})

        assert response.status_code == 409

    def test_summary(self, client):
        paid_document(client, pages=1)

        summary = client.get("/admin/payments/summary").json()

        assert summary["completed_count"] == 1
        assert float(summary["net_total"]) == 20.0


class TestAffiliateRoutes:
    """Tests for affiliate dashboard and admin routes."""

    def test_stats_after_payment(self, client):
        register_affiliate_with_client(client)
        paid_document(client, pages=4)

        stats = client.get(f"/affiliates/{AFFILIATE_USER_ID}/stats").json()

        assert stats["total_pages"] == 4
        assert float(stats["pending_balance"]) == 2.0
        assert stats["can_request_withdrawal"] is False
        assert stats["countdown"]["state"] == "pending"

    def test_unknown_affiliate(self, client):
        assert client.get(f"/affiliates/{uuid4()}/stats").status_code == 404

    def test_withdrawal_after_window(self, client, clock):
        register_affiliate_with_client(client)
        paid_document(client, pages=40)
        clock.advance(days=31)

        eligibility = client.get(f"/affiliates/{AFFILIATE_USER_ID}/withdrawal-eligibility").json()
        too_much = client.post(f"/affiliates/{AFFILIATE_USER_ID}/withdrawals", json={
            "amount": 25, "payment_method": "zelle", "payment_details": {"email": "ana@example.com"},
        })
        created = client.post(f"/affiliates/{AFFILIATE_USER_ID}/withdrawals", json={
            "amount": 20, "payment_method": "zelle", "payment_details": {"email": "ana@example.com"},
        })

        assert eligibility["can_request_withdrawal"] is True
        assert eligibility["countdown_text"] == "Available now"
        assert too_much.status_code == 409
        assert too_much.json()["detail"] == "Insufficient balance. Maximum: $20.00"
        assert created.status_code == 201

        pending = client.get("/admin/affiliates/withdrawals/pending", params={"search": "ana"}).json()
        processed = client.post(f"/admin/affiliates/withdrawals/{pending[0]['id']}/process", json={
            "action": "complete", "processed_by": ADMIN_ID,
        })

        assert processed.json()["withdrawal"]["status"] == "completed"
        assert client.get("/admin/affiliates/withdrawals/pending").json() == []

    def test_admin_affiliate_filters(self, client):
        register_affiliate_with_client(client)

        assert len(client.get("/admin/affiliates", params={"search": "ana"}).json()) == 1
        assert client.get("/admin/affiliates", params={"search": "nobody"}).json() == []
        assert client.get("/admin/affiliates", params={"level": "3"}).status_code == 400

    def test_commission_history(self, client):
        register_affiliate_with_client(client)
        paid_document(client, pages=2)

        history = client.get(f"/affiliates/{AFFILIATE_USER_ID}/commissions").json()

        assert len(history["commissions"]) == 1
        assert float(history["totals"]["confirmed"]) == 1.0


class TestAdminRoutes:
    """Tests for draft cleanup and action logs."""

    def test_draft_cleanup(self, client, clock):
        document = client.post(f"/documents/users/{CLIENT_ID}", json={"filename": "a.pdf", "pages": 1}).json()
        clock.advance(hours=1)

        report = client.get("/admin/drafts/cleanup").json()
        result = client.post("/admin/drafts/cleanup", json={"document_ids": [document["id"]]}).json()

        assert report["total_to_cleanup"] == 1
        assert result["deleted_count"] == 1
        assert client.get(f"/documents/{document['id']}").status_code == 404

    def test_action_logs(self, client):
        document = client.post(f"/documents/users/{CLIENT_ID}", json={"filename": "a.pdf", "pages": 1}).json()

        logs = client.get("/admin/action-logs", params={"entity_id": document["id"]}).json()

        assert logs[0]["action_type"] == "DOCUMENT_UPLOADED"
