import logging
import secrets
import string
from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional
from uuid import UUID, uuid4

from core.action_log import ActionLogger, ActionType, PerformerType, utc_now

from .commission import level_for_pages, commission_rate, pages_to_next_level, quote_commission
from .formatting import format_currency, format_payment_details
from .models import (
    CommissionStatus,
    WithdrawalStatus,
    WithdrawalAction,
    Affiliate,
    ReferredClient,
    Commission,
    WithdrawalRequest,
    AffiliateStats,
    ClientSummary,
    CommissionTotals,
    AdminAffiliateRow,
    CreateWithdrawalRequest,
    ProcessWithdrawalRequest,
    WithdrawalResponse,
    WithdrawalEligibility,
)
from .withdrawal import (
    WITHDRAWAL_WINDOW,
    balance_countdown,
    format_countdown,
    days_until_available,
    withdrawal_status_message,
)

logger = logging.getLogger(__name__)

REFERRAL_CODE_ALPHABET = string.ascii_uppercase + string.digits
REFERRAL_CODE_LENGTH = 8

RESERVING_STATUSES = (WithdrawalStatus.PENDING, WithdrawalStatus.APPROVED, WithdrawalStatus.COMPLETED)


class AffiliateServiceError(Exception):
    pass


class AffiliateNotFoundError(AffiliateServiceError):
    pass


class InvalidReferralError(AffiliateServiceError):
    pass


class CommissionNotFoundError(AffiliateServiceError):
    pass


class WithdrawalNotFoundError(AffiliateServiceError):
    pass


class InsufficientBalanceError(AffiliateServiceError):
    pass


class InvalidStateTransitionError(AffiliateServiceError):
    pass


class InMemoryStorage:
    def __init__(self):
        self.affiliates: dict[UUID, dict] = {}
        self.referrals: dict[UUID, dict] = {}
        self.commissions: dict[UUID, dict] = {}
        self.withdrawals: dict[UUID, dict] = {}
        self.user_index: dict[UUID, UUID] = {}
        self.code_index: dict[str, UUID] = {}
        self.client_index: dict[UUID, UUID] = {}
        self.document_index: dict[UUID, UUID] = {}


class AffiliateService:
    def __init__(
        self,
        storage: Optional[InMemoryStorage] = None,
        action_logger: Optional[ActionLogger] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.storage = storage or InMemoryStorage()
        self.action_logger = action_logger or ActionLogger(clock=clock)
        self.clock = clock or utc_now

    # Registration

    def register_affiliate(self, user_id: UUID, name: str, email: str) -> Affiliate:
        existing_id = self.storage.user_index.get(user_id)
        if existing_id:
            return Affiliate(**self.storage.affiliates[existing_id])

        affiliate_id = uuid4()
        data = {
            "id": affiliate_id,
            "user_id": user_id,
            "name": name,
            "email": email.lower(),
            "referral_code": self._new_referral_code(),
            "created_at": self.clock(),
        }
        self.storage.affiliates[affiliate_id] = data
        self.storage.user_index[user_id] = affiliate_id
        self.storage.code_index[data["referral_code"]] = affiliate_id
        logger.info(f"Registered affiliate {affiliate_id} with code {data['referral_code']}")
        return Affiliate(**data)

    def get_affiliate(self, affiliate_id: UUID) -> Affiliate:
        data = self.storage.affiliates.get(affiliate_id)
        if not data:
            raise AffiliateNotFoundError(f"Affiliate {affiliate_id} not found")
        return Affiliate(**data)

    def get_affiliate_by_user(self, user_id: UUID) -> Affiliate:
        affiliate_id = self.storage.user_index.get(user_id)
        if not affiliate_id:
            raise AffiliateNotFoundError("Affiliate not found for this user")
        return Affiliate(**self.storage.affiliates[affiliate_id])

    def get_affiliate_by_code(self, referral_code: str) -> Affiliate:
        affiliate_id = self.storage.code_index.get(referral_code.strip().upper())
        if not affiliate_id:
            raise InvalidReferralError(f"Unknown referral code {referral_code}")
        return Affiliate(**self.storage.affiliates[affiliate_id])

    def register_referred_client(self, referral_code: str, client_id: UUID, name: str, email: str) -> ReferredClient:
        affiliate = self.get_affiliate_by_code(referral_code)
        if affiliate.user_id == client_id:
            raise InvalidReferralError("Affiliates cannot refer themselves")

        existing_id = self.storage.client_index.get(client_id)
        if existing_id:
            logger.info(f"Client {client_id} was already referred")
            return ReferredClient(**self.storage.referrals[existing_id])

        referral_id = uuid4()
        data = {
            "id": referral_id,
            "affiliate_id": affiliate.id,
            "client_id": client_id,
            "name": name,
            "email": email.lower(),
            "registered_at": self.clock(),
        }
        self.storage.referrals[referral_id] = data
        self.storage.client_index[client_id] = referral_id
        return ReferredClient(**data)

    # Commissions

    def record_commission(self, client_id: UUID, document_id: UUID, pages: int) -> Optional[Commission]:
        referral_id = self.storage.client_index.get(client_id)
        if not referral_id:
            return None

        existing_id = self.storage.document_index.get(document_id)
        if existing_id:
            return Commission(**self.storage.commissions[existing_id])

        referral = self.storage.referrals[referral_id]
        affiliate_id = referral["affiliate_id"]
        quote = quote_commission(self._total_pages(affiliate_id), pages)

        commission_id = uuid4()
        data = {
            "id": commission_id,
            "affiliate_id": affiliate_id,
            "client_id": client_id,
            "client_name": referral["name"],
            "document_id": document_id,
            "pages": pages,
            "rate": quote.rate,
            "level": quote.level,
            "amount": quote.amount,
            "status": CommissionStatus.CONFIRMED,
            "created_at": self.clock(),
            "reversal_reason": None,
            "reversed_at": None,
        }
        self.storage.commissions[commission_id] = data
        self.storage.document_index[document_id] = commission_id

        self.action_logger.log(
            ActionType.COMMISSION_EARNED,
            f"Commission of {format_currency(quote.amount)} earned for {pages} pages",
            entity_type="commission",
            entity_id=commission_id,
            metadata={"document_id": str(document_id), "level": quote.level, "rate": str(quote.rate)},
            affected_user_id=self.storage.affiliates[affiliate_id]["user_id"],
        )
        return Commission(**data)

    def reverse_commission(self, commission_id: UUID, reason: str) -> Commission:
        data = self.storage.commissions.get(commission_id)
        if not data:
            raise CommissionNotFoundError(f"Commission {commission_id} not found")

        commission = Commission(**data)
        if not commission.can_reverse():
            raise InvalidStateTransitionError(f"Cannot reverse commission in {commission.status.value} state")

        data["status"] = CommissionStatus.REVERSED
        data["reversal_reason"] = reason
        data["reversed_at"] = self.clock()

        self.action_logger.log(
            ActionType.COMMISSION_REVERSED,
            f"Commission reversed: {reason}",
            entity_type="commission",
            entity_id=commission_id,
            metadata={"document_id": str(data["document_id"]), "amount": str(data["amount"])},
            affected_user_id=self.storage.affiliates[data["affiliate_id"]]["user_id"],
        )
        return Commission(**data)

    def reverse_commissions_for_document(self, document_id: UUID, reason: str) -> Optional[Commission]:
        commission_id = self.storage.document_index.get(document_id)
        if not commission_id:
            return None
        if self.storage.commissions[commission_id]["status"] != CommissionStatus.CONFIRMED:
            return Commission(**self.storage.commissions[commission_id])
        return self.reverse_commission(commission_id, reason)

    def list_commissions(self, user_id: UUID) -> list[Commission]:
        affiliate = self.get_affiliate_by_user(user_id)
        commissions = [
            Commission(**c) for c in self.storage.commissions.values()
            if c["affiliate_id"] == affiliate.id
        ]
        commissions.sort(key=lambda c: c.created_at, reverse=True)
        return commissions

    def commission_totals(self, commissions: list[Commission]) -> CommissionTotals:
        confirmed = sum((c.amount for c in commissions if c.status == CommissionStatus.CONFIRMED), Decimal("0.00"))
        reversed_ = sum((c.amount for c in commissions if c.status == CommissionStatus.REVERSED), Decimal("0.00"))
        return CommissionTotals(confirmed=confirmed, reversed=reversed_)

    # Ledger snapshot

    def get_stats(self, user_id: UUID, now: Optional[datetime] = None) -> AffiliateStats:
        affiliate = self.get_affiliate_by_user(user_id)
        return self._stats_for(affiliate.id, now or self.clock())

    def withdrawal_eligibility(self, user_id: UUID, now: Optional[datetime] = None) -> WithdrawalEligibility:
        now = now or self.clock()
        stats = self.get_stats(user_id, now)
        days_until = None if stats.can_request_withdrawal else days_until_available(stats.next_withdrawal_date, now)
        return WithdrawalEligibility(
            can_request_withdrawal=stats.can_request_withdrawal,
            available_balance=stats.available_balance,
            days_until_available=days_until,
            countdown=stats.countdown,
            countdown_text=format_countdown(stats.countdown),
            status_message=withdrawal_status_message(
                stats.can_request_withdrawal, days_until, stats.available_balance
            ),
        )

    def list_clients(self, user_id: UUID) -> list[ClientSummary]:
        affiliate = self.get_affiliate_by_user(user_id)
        return self._client_summaries(affiliate.id)

    # Withdrawals

    def list_withdrawal_requests(self, user_id: UUID) -> list[WithdrawalRequest]:
        affiliate = self.get_affiliate_by_user(user_id)
        requests = [
            WithdrawalRequest(**w) for w in self.storage.withdrawals.values()
            if w["affiliate_id"] == affiliate.id
        ]
        requests.sort(key=lambda w: w.requested_at, reverse=True)
        return requests

    def create_withdrawal_request(self, user_id: UUID, request: CreateWithdrawalRequest) -> WithdrawalResponse:
        affiliate = self.get_affiliate_by_user(user_id)
        now = self.clock()
        stats = self._stats_for(affiliate.id, now)

        if request.amount <= 0:
            raise AffiliateServiceError("Amount must be greater than zero")
        if request.amount > stats.available_balance:
            raise InsufficientBalanceError(
                f"Insufficient balance. Maximum: {format_currency(stats.available_balance)}"
            )

        request_id = uuid4()
        data = {
            "id": request_id,
            "affiliate_id": affiliate.id,
            "affiliate_name": affiliate.name,
            "affiliate_email": affiliate.email,
            "amount": request.amount,
            "payment_method": request.payment_method,
            "payment_details": request.payment_details,
            "payment_details_display": format_payment_details(request.payment_method.value, request.payment_details),
            "status": WithdrawalStatus.PENDING,
            "requested_at": now,
            "processed_at": None,
            "processed_by": None,
            "admin_notes": None,
        }
        self.storage.withdrawals[request_id] = data

        self.action_logger.log(
            ActionType.WITHDRAWAL_REQUESTED,
            f"Withdrawal of {format_currency(request.amount)} requested via {request.payment_method.value}",
            entity_type="withdrawal",
            entity_id=request_id,
            affected_user_id=user_id,
            performed_by=user_id,
            performer_type=PerformerType.USER,
        )
        return WithdrawalResponse(
            withdrawal=WithdrawalRequest(**data),
            message="Withdrawal request created successfully",
        )

    def process_withdrawal(self, request_id: UUID, request: ProcessWithdrawalRequest) -> WithdrawalResponse:
        data = self.storage.withdrawals.get(request_id)
        if not data:
            raise WithdrawalNotFoundError(f"Withdrawal request {request_id} not found")

        withdrawal = WithdrawalRequest(**data)
        transitions = {
            WithdrawalAction.APPROVE: (withdrawal.can_approve, WithdrawalStatus.APPROVED, ActionType.WITHDRAWAL_APPROVED),
            WithdrawalAction.REJECT: (withdrawal.can_reject, WithdrawalStatus.REJECTED, ActionType.WITHDRAWAL_REJECTED),
            WithdrawalAction.COMPLETE: (withdrawal.can_complete, WithdrawalStatus.COMPLETED, ActionType.WITHDRAWAL_COMPLETED),
        }
        allowed, new_status, action_type = transitions[request.action]
        if not allowed():
            raise InvalidStateTransitionError(
                f"Cannot {request.action.value} withdrawal in {withdrawal.status.value} state"
            )

        data["status"] = new_status
        data["admin_notes"] = request.notes
        data["processed_at"] = self.clock()
        data["processed_by"] = request.processed_by

        self.action_logger.log(
            action_type,
            f"Withdrawal {request_id} {new_status.value}",
            entity_type="withdrawal",
            entity_id=request_id,
            metadata={"amount": str(withdrawal.amount), "notes": request.notes},
            affected_user_id=self.storage.affiliates[withdrawal.affiliate_id]["user_id"],
            performed_by=request.processed_by,
            performer_type=PerformerType.ADMIN,
        )
        return WithdrawalResponse(
            withdrawal=WithdrawalRequest(**data),
            message=f"Withdrawal request {new_status.value}",
        )

    # Admin views

    def list_affiliates_admin(self, now: Optional[datetime] = None) -> list[AdminAffiliateRow]:
        now = now or self.clock()
        rows = []
        for data in self.storage.affiliates.values():
            stats = self._stats_for(data["id"], now)
            rows.append(AdminAffiliateRow(
                affiliate_id=data["id"],
                user_name=data["name"],
                user_email=data["email"],
                referral_code=data["referral_code"],
                current_level=stats.current_level,
                available_balance=stats.available_balance,
                pending_balance=stats.pending_balance,
                next_withdrawal_date=stats.next_withdrawal_date,
                total_clients=stats.total_clients,
                total_pages=stats.total_pages,
                total_earned=stats.total_earned,
                created_at=data["created_at"],
            ))
        rows.sort(key=lambda r: r.created_at, reverse=True)
        return rows

    def list_pending_withdrawals(self) -> list[WithdrawalRequest]:
        requests = [
            WithdrawalRequest(**w) for w in self.storage.withdrawals.values()
            if w["status"] == WithdrawalStatus.PENDING
        ]
        requests.sort(key=lambda w: w.requested_at)
        return requests

    def list_affiliate_clients_admin(self, affiliate_id: UUID) -> list[ClientSummary]:
        self.get_affiliate(affiliate_id)
        return self._client_summaries(affiliate_id)

    # Internals

    def _new_referral_code(self) -> str:
        while True:
            code = "".join(secrets.choice(REFERRAL_CODE_ALPHABET) for _ in range(REFERRAL_CODE_LENGTH))
            if code not in self.storage.code_index:
                return code

    def _confirmed_commissions(self, affiliate_id: UUID) -> list[dict]:
        return [
            c for c in self.storage.commissions.values()
            if c["affiliate_id"] == affiliate_id and c["status"] == CommissionStatus.CONFIRMED
        ]

    def _total_pages(self, affiliate_id: UUID) -> int:
        return sum(c["pages"] for c in self._confirmed_commissions(affiliate_id))

    def _stats_for(self, affiliate_id: UUID, now: datetime) -> AffiliateStats:
        affiliate = self.storage.affiliates[affiliate_id]
        confirmed = self._confirmed_commissions(affiliate_id)

        earned = sum((c["amount"] for c in confirmed), Decimal("0.00"))
        matured = sum(
            (c["amount"] for c in confirmed if c["created_at"] + WITHDRAWAL_WINDOW <= now),
            Decimal("0.00"),
        )
        reserved = sum(
            (w["amount"] for w in self.storage.withdrawals.values()
             if w["affiliate_id"] == affiliate_id and w["status"] in RESERVING_STATUSES),
            Decimal("0.00"),
        )
        available = max(matured - reserved, Decimal("0.00"))
        pending = earned - matured

        maturity_dates = [
            c["created_at"] + WITHDRAWAL_WINDOW for c in confirmed
            if c["created_at"] + WITHDRAWAL_WINDOW > now
        ]
        next_withdrawal_date = min(maturity_dates) if maturity_dates else None

        first_page_at = min((c["created_at"] for c in confirmed), default=None)

        total_pages = sum(c["pages"] for c in confirmed)
        total_clients = sum(1 for r in self.storage.referrals.values() if r["affiliate_id"] == affiliate_id)

        return AffiliateStats(
            affiliate_id=affiliate_id,
            referral_code=affiliate["referral_code"],
            total_balance=available + pending,
            available_balance=available,
            pending_balance=pending,
            next_withdrawal_date=next_withdrawal_date,
            first_page_translated_at=first_page_at,
            total_earned=earned,
            total_clients=total_clients,
            total_pages=total_pages,
            current_level=level_for_pages(total_pages),
            commission_rate=commission_rate(total_pages),
            pages_to_next_level=pages_to_next_level(total_pages),
            can_request_withdrawal=available > 0,
            countdown=balance_countdown(
                available,
                pending,
                next_withdrawal_date=next_withdrawal_date,
                first_page_translated_at=first_page_at,
                now=now,
            ),
        )

    def _client_summaries(self, affiliate_id: UUID) -> list[ClientSummary]:
        summaries = []
        for referral in self.storage.referrals.values():
            if referral["affiliate_id"] != affiliate_id:
                continue
            confirmed = [
                c for c in self._confirmed_commissions(affiliate_id)
                if c["client_id"] == referral["client_id"]
            ]
            summaries.append(ClientSummary(
                client_id=referral["client_id"],
                client_name=referral["name"],
                client_email=referral["email"],
                registered_at=referral["registered_at"],
                total_pages=sum(c["pages"] for c in confirmed),
                total_commission=sum((c["amount"] for c in confirmed), Decimal("0.00")),
            ))
        summaries.sort(key=lambda s: s.registered_at, reverse=True)
        return summaries
