from uuid import UUID
from fastapi import APIRouter, Depends, HTTPException, status

from core.services import get_affiliate_service
from filters import BalanceBucket, SignupWindow, affiliate_filter, withdrawal_filter, apply_filter

from .models import (
    RegisterAffiliateRequest, RegisterClientRequest, ReverseCommissionRequest,
    CreateWithdrawalRequest, ProcessWithdrawalRequest,
    Affiliate, ReferredClient, Commission, WithdrawalRequest, AffiliateStats,
    ClientSummary, AdminAffiliateRow, WithdrawalResponse, CommissionHistoryResponse,
    WithdrawalEligibility,
)
from .service import (
    AffiliateService, AffiliateNotFoundError, InvalidReferralError,
    CommissionNotFoundError, WithdrawalNotFoundError, InsufficientBalanceError,
    InvalidStateTransitionError, AffiliateServiceError,
)

router = APIRouter(prefix="/affiliates", tags=["Affiliates"])
admin_router = APIRouter(prefix="/admin/affiliates", tags=["Admin"])


@router.post("/register", response_model=Affiliate, status_code=status.HTTP_201_CREATED)
def register_affiliate(
    request: RegisterAffiliateRequest,
    service: AffiliateService = Depends(get_affiliate_service),
) -> Affiliate:
    return service.register_affiliate(request.user_id, request.name, request.email)


@router.post("/referrals", response_model=ReferredClient, status_code=status.HTTP_201_CREATED)
def register_referred_client(
    request: RegisterClientRequest,
    service: AffiliateService = Depends(get_affiliate_service),
) -> ReferredClient:
    try:
        return service.register_referred_client(request.referral_code, request.client_id, request.name, request.email)
    except InvalidReferralError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/{user_id}/stats", response_model=AffiliateStats)
def get_stats(user_id: UUID, service: AffiliateService = Depends(get_affiliate_service)) -> AffiliateStats:
    try:
        return service.get_stats(user_id)
    except AffiliateNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.get("/{user_id}/withdrawal-eligibility", response_model=WithdrawalEligibility)
def get_withdrawal_eligibility(
    user_id: UUID,
    service: AffiliateService = Depends(get_affiliate_service),
) -> WithdrawalEligibility:
    try:
        return service.withdrawal_eligibility(user_id)
    except AffiliateNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.get("/{user_id}/clients", response_model=list[ClientSummary])
def list_clients(user_id: UUID, service: AffiliateService = Depends(get_affiliate_service)):
    try:
        return service.list_clients(user_id)
    except AffiliateNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.get("/{user_id}/commissions", response_model=CommissionHistoryResponse)
def list_commissions(
    user_id: UUID,
    service: AffiliateService = Depends(get_affiliate_service),
) -> CommissionHistoryResponse:
    try:
        commissions = service.list_commissions(user_id)
    except AffiliateNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return CommissionHistoryResponse(commissions=commissions, totals=service.commission_totals(commissions))


@router.post("/commissions/{commission_id}/reverse", response_model=Commission)
def reverse_commission(
    commission_id: UUID,
    request: ReverseCommissionRequest,
    service: AffiliateService = Depends(get_affiliate_service),
) -> Commission:
    try:
        return service.reverse_commission(commission_id, request.reason)
    except CommissionNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidStateTransitionError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/{user_id}/withdrawals", response_model=list[WithdrawalRequest])
def list_withdrawals(user_id: UUID, service: AffiliateService = Depends(get_affiliate_service)):
    try:
        return service.list_withdrawal_requests(user_id)
    except AffiliateNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.post("/{user_id}/withdrawals", response_model=WithdrawalResponse, status_code=status.HTTP_201_CREATED)
def create_withdrawal(
    user_id: UUID,
    request: CreateWithdrawalRequest,
    service: AffiliateService = Depends(get_affiliate_service),
) -> WithdrawalResponse:
    try:
        return service.create_withdrawal_request(user_id, request)
    except AffiliateNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InsufficientBalanceError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except AffiliateServiceError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@admin_router.get("", response_model=list[AdminAffiliateRow])
def list_affiliates(
    search: str = "",
    level: str = "all",
    balance: BalanceBucket = BalanceBucket.ALL,
    signup: SignupWindow = SignupWindow.ALL,
    service: AffiliateService = Depends(get_affiliate_service),
):
    if level not in ("all", "1", "2"):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Unknown level {level}")
    now = service.clock()
    rows = service.list_affiliates_admin(now)
    return apply_filter(affiliate_filter(search, level, balance, signup, now), rows)


@admin_router.get("/withdrawals/pending", response_model=list[WithdrawalRequest])
def list_pending_withdrawals(search: str = "", service: AffiliateService = Depends(get_affiliate_service)):
    return apply_filter(withdrawal_filter(search), service.list_pending_withdrawals())


@admin_router.post("/withdrawals/{request_id}/process", response_model=WithdrawalResponse)
def process_withdrawal(
    request_id: UUID,
    request: ProcessWithdrawalRequest,
    service: AffiliateService = Depends(get_affiliate_service),
) -> WithdrawalResponse:
    try:
        return service.process_withdrawal(request_id, request)
    except WithdrawalNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidStateTransitionError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@admin_router.get("/{affiliate_id}/clients", response_model=list[ClientSummary])
def list_affiliate_clients(affiliate_id: UUID, service: AffiliateService = Depends(get_affiliate_service)):
    try:
        return service.list_affiliate_clients_admin(affiliate_id)
    except AffiliateNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
