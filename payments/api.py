from datetime import datetime
from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, HTTPException, status

from core.services import get_payment_service
from documents.service import DocumentNotFoundError
from documents.service import InvalidStateTransitionError as DocumentStateError

from .models import (
    CompleteCheckoutRequest, CancelPaymentRequest,
    CheckoutSession, Payment, CancellationResult, PaymentSummary,
)
from .service import (
    PaymentService, SessionNotFoundError, PaymentNotFoundError, InvalidStateTransitionError,
)

router = APIRouter(prefix="/payments", tags=["Payments"])
admin_router = APIRouter(prefix="/admin/payments", tags=["Admin"])


@router.post("/checkout/{document_id}", response_model=CheckoutSession, status_code=status.HTTP_201_CREATED)
def create_checkout_session(
    document_id: UUID,
    service: PaymentService = Depends(get_payment_service),
) -> CheckoutSession:
    try:
        return service.create_checkout_session(document_id)
    except DocumentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidStateTransitionError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("/sessions/{session_id}/complete", response_model=Payment)
def complete_checkout(
    session_id: str,
    request: CompleteCheckoutRequest,
    service: PaymentService = Depends(get_payment_service),
) -> Payment:
    try:
        return service.complete_checkout(session_id, request.payment_intent)
    except SessionNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except (InvalidStateTransitionError, DocumentStateError) as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.post("/sessions/{session_id}/expire", response_model=CheckoutSession)
def expire_session(session_id: str, service: PaymentService = Depends(get_payment_service)) -> CheckoutSession:
    try:
        return service.expire_session(session_id)
    except SessionNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidStateTransitionError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("/sessions/{session_id}/fail", response_model=CheckoutSession)
def fail_session(session_id: str, service: PaymentService = Depends(get_payment_service)) -> CheckoutSession:
    try:
        return service.fail_session(session_id)
    except SessionNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidStateTransitionError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/users/{user_id}", response_model=list[Payment])
def list_user_payments(user_id: UUID, service: PaymentService = Depends(get_payment_service)):
    return service.list_payments(user_id)


@admin_router.post("/{payment_id}/cancel", response_model=CancellationResult)
def cancel_payment(
    payment_id: UUID,
    request: CancelPaymentRequest,
    service: PaymentService = Depends(get_payment_service),
) -> CancellationResult:
    try:
        return service.cancel_payment(payment_id, request)
    except PaymentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidStateTransitionError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@admin_router.get("/summary", response_model=PaymentSummary)
def summarize_payments(
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    service: PaymentService = Depends(get_payment_service),
) -> PaymentSummary:
    return service.summarize_payments(start, end)
