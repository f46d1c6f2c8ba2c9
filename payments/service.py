import logging
import secrets
from datetime import datetime
from typing import Callable, Optional
from uuid import UUID, uuid4

from core.action_log import ActionLogger, ActionType, PerformerType, utc_now
from affiliates.service import AffiliateService
from documents.models import DocumentStatus
from documents.service import DocumentService

from .fees import card_amount_with_fees
from .models import (
    SessionStatus,
    PaymentStatus,
    CheckoutSession,
    Payment,
    CancelPaymentRequest,
    CancellationResult,
    PaymentSummary,
)
from .summary import summarize

logger = logging.getLogger(__name__)


class PaymentServiceError(Exception):
    pass


class SessionNotFoundError(PaymentServiceError):
    pass


class PaymentNotFoundError(PaymentServiceError):
    pass


class InvalidStateTransitionError(PaymentServiceError):
    pass


class InMemoryStorage:
    def __init__(self):
        self.sessions: dict[str, dict] = {}
        self.payments: dict[UUID, dict] = {}


class PaymentService:
    def __init__(
        self,
        documents: DocumentService,
        affiliates: Optional[AffiliateService] = None,
        storage: Optional[InMemoryStorage] = None,
        action_logger: Optional[ActionLogger] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.documents = documents
        self.affiliates = affiliates
        self.storage = storage or InMemoryStorage()
        self.action_logger = action_logger or documents.action_logger
        self.clock = clock or utc_now

    # Checkout

    def create_checkout_session(self, document_id: UUID) -> CheckoutSession:
        document = self.documents.get_document(document_id)
        if document.status != DocumentStatus.DRAFT:
            raise InvalidStateTransitionError(
                f"Cannot check out document in {document.status.value} state"
            )

        now = self.clock()
        gross = card_amount_with_fees(document.total_cost)
        session_id = f"cs_{secrets.token_hex(12)}"
        data = {
            "id": session_id,
            "document_id": document.id,
            "user_id": document.user_id,
            "net_amount": document.total_cost,
            "gross_amount": gross,
            "fee_amount": gross - document.total_cost,
            "status": SessionStatus.PENDING,
            "payment_intent": None,
            "created_at": now,
            "updated_at": now,
        }
        self.storage.sessions[session_id] = data

        self.action_logger.log(
            ActionType.CHECKOUT_CREATED,
            f"Checkout session created for {document.filename}",
            entity_type="payment",
            entity_id=session_id,
            metadata={"document_id": str(document.id), "gross_amount": str(gross)},
            affected_user_id=document.user_id,
            performed_by=document.user_id,
            performer_type=PerformerType.USER,
        )
        return CheckoutSession(**data)

    def get_session(self, session_id: str) -> CheckoutSession:
        return CheckoutSession(**self._session_data(session_id))

    def complete_checkout(self, session_id: str, payment_intent: Optional[str] = None) -> Payment:
        session = self._session_data(session_id)
        if session["status"] != SessionStatus.PENDING:
            raise InvalidStateTransitionError(
                f"Cannot complete checkout session in {session['status'].value} state"
            )

        document = self.documents.mark_payment_received(session["document_id"])

        now = self.clock()
        session["status"] = SessionStatus.COMPLETED
        session["payment_intent"] = payment_intent
        session["updated_at"] = now

        payment_id = uuid4()
        data = {
            "id": payment_id,
            "document_id": document.id,
            "user_id": document.user_id,
            "session_id": session_id,
            "amount": session["gross_amount"],
            "net_amount": session["net_amount"],
            "fee_amount": session["fee_amount"],
            "status": PaymentStatus.COMPLETED,
            "created_at": now,
            "updated_at": now,
            "cancellation_reason": None,
            "cancelled_by": None,
        }
        self.storage.payments[payment_id] = data

        self.action_logger.log(
            ActionType.PAYMENT_COMPLETED,
            f"Payment completed for {document.filename}",
            entity_type="payment",
            entity_id=payment_id,
            metadata={"document_id": str(document.id), "session_id": session_id, "amount": str(data["amount"])},
            affected_user_id=document.user_id,
        )

        if self.affiliates:
            self.affiliates.record_commission(document.user_id, document.id, document.pages)

        return Payment(**data)

    def expire_session(self, session_id: str) -> CheckoutSession:
        return self._close_session(session_id, SessionStatus.EXPIRED)

    def fail_session(self, session_id: str) -> CheckoutSession:
        return self._close_session(session_id, SessionStatus.FAILED)

    # Payments

    def get_payment(self, payment_id: UUID) -> Payment:
        return Payment(**self._payment_data(payment_id))

    def list_payments(self, user_id: Optional[UUID] = None) -> list[Payment]:
        payments = [Payment(**p) for p in self.storage.payments.values()]
        if user_id:
            payments = [p for p in payments if p.user_id == user_id]
        return sorted(payments, key=lambda p: p.created_at, reverse=True)

    def cancel_payment(self, payment_id: UUID, request: CancelPaymentRequest) -> CancellationResult:
        data = self._payment_data(payment_id)
        if not Payment(**data).can_cancel():
            raise InvalidStateTransitionError("Payment is already cancelled or refunded")

        session = self.storage.sessions.get(data["session_id"]) if data["session_id"] else None
        refunded = bool(session and session["payment_intent"])
        new_status = PaymentStatus.REFUNDED if refunded else PaymentStatus.CANCELLED

        now = self.clock()
        data["status"] = new_status
        data["cancellation_reason"] = request.reason
        data["cancelled_by"] = request.admin_user_id
        data["updated_at"] = now
        if session:
            session["status"] = SessionStatus(new_status.value)
            session["updated_at"] = now

        if self.affiliates:
            self.affiliates.reverse_commissions_for_document(
                data["document_id"], f"Payment {new_status.value}: {request.reason}"
            )

        self.action_logger.log(
            ActionType.PAYMENT_REFUNDED if refunded else ActionType.PAYMENT_CANCELLED,
            f"Payment {new_status.value} by admin: {request.reason}",
            entity_type="payment",
            entity_id=payment_id,
            metadata={
                "document_id": str(data["document_id"]),
                "amount": str(data["amount"]),
                "reason": request.reason,
            },
            affected_user_id=data["user_id"],
            performed_by=request.admin_user_id,
            performer_type=PerformerType.ADMIN,
        )

        return CancellationResult(
            payment=Payment(**data),
            status=new_status,
            message=f"Payment {new_status.value} successfully",
        )

    def summarize_payments(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> PaymentSummary:
        rows = [
            p for p in self.storage.payments.values()
            if (start is None or p["created_at"] >= start) and (end is None or p["created_at"] < end)
        ]
        return summarize(rows)

    # Lookups used by draft cleanup

    def sessions_for_document(self, document_id: UUID) -> list[CheckoutSession]:
        return [CheckoutSession(**s) for s in self.storage.sessions.values() if s["document_id"] == document_id]

    def payments_for_document(self, document_id: UUID) -> list[Payment]:
        return [Payment(**p) for p in self.storage.payments.values() if p["document_id"] == document_id]

    def remove_sessions_for_document(self, document_id: UUID) -> int:
        session_ids = [sid for sid, s in self.storage.sessions.items() if s["document_id"] == document_id]
        for session_id in session_ids:
            del self.storage.sessions[session_id]
        return len(session_ids)

    # Internals

    def _session_data(self, session_id: str) -> dict:
        data = self.storage.sessions.get(session_id)
        if not data:
            raise SessionNotFoundError(f"Checkout session {session_id} not found")
        return data

    def _payment_data(self, payment_id: UUID) -> dict:
        data = self.storage.payments.get(payment_id)
        if not data:
            raise PaymentNotFoundError(f"Payment {payment_id} not found")
        return data

    def _close_session(self, session_id: str, status: SessionStatus) -> CheckoutSession:
        data = self._session_data(session_id)
        if data["status"] != SessionStatus.PENDING:
            raise InvalidStateTransitionError(
                f"Cannot mark checkout session {data['status'].value} as {status.value}"
            )
        data["status"] = status
        data["updated_at"] = self.clock()
        logger.info(f"Checkout session {session_id} {status.value}")
        return CheckoutSession(**data)
