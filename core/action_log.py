import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


class ActionType(str, Enum):
    DOCUMENT_UPLOADED = "DOCUMENT_UPLOADED"
    DOCUMENT_READY_FOR_AUTHENTICATION = "DOCUMENT_READY_FOR_AUTHENTICATION"
    DOCUMENT_APPROVED = "DOCUMENT_APPROVED"
    DOCUMENT_REJECTED = "DOCUMENT_REJECTED"
    DOCUMENT_STATUS_CHANGED = "DOCUMENT_STATUS_CHANGED"
    DOCUMENT_DELETED = "document_delete"

    CHECKOUT_CREATED = "CHECKOUT_CREATED"
    PAYMENT_COMPLETED = "payment_completed"
    PAYMENT_CANCELLED = "payment_cancelled_by_admin"
    PAYMENT_REFUNDED = "payment_refunded_by_admin"

    COMMISSION_EARNED = "commission_earned"
    COMMISSION_REVERSED = "commission_reversed"
    WITHDRAWAL_REQUESTED = "withdrawal_requested"
    WITHDRAWAL_APPROVED = "withdrawal_approved"
    WITHDRAWAL_REJECTED = "withdrawal_rejected"
    WITHDRAWAL_COMPLETED = "withdrawal_completed"

    DRAFT_CLEANUP_APPROVED = "draft_cleanup_approved"


class PerformerType(str, Enum):
    USER = "user"
    AUTHENTICATOR = "authenticator"
    ADMIN = "admin"
    SYSTEM = "system"


class ActionLog(BaseModel):
    id: UUID
    action_type: ActionType
    description: str
    entity_type: Optional[str] = None
    entity_id: Optional[str] = None
    metadata: dict = Field(default_factory=dict)
    affected_user_id: Optional[str] = None
    performed_by: Optional[str] = None
    performer_type: PerformerType = PerformerType.SYSTEM
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ActionLogger:
    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self.entries: list[ActionLog] = []
        self.clock = clock or utc_now

    def log(
        self,
        action_type: ActionType,
        description: str,
        entity_type: Optional[str] = None,
        entity_id: Optional[object] = None,
        metadata: Optional[dict] = None,
        affected_user_id: Optional[object] = None,
        performed_by: Optional[object] = None,
        performer_type: PerformerType = PerformerType.SYSTEM,
    ) -> ActionLog:
        entry = ActionLog(
            id=uuid4(),
            action_type=action_type,
            description=description,
            entity_type=entity_type,
            entity_id=str(entity_id) if entity_id is not None else None,
            metadata=metadata or {},
            affected_user_id=str(affected_user_id) if affected_user_id is not None else None,
            performed_by=str(performed_by) if performed_by is not None else None,
            performer_type=performer_type,
            created_at=self.clock(),
        )
        self.entries.append(entry)
        logger.info(f"{action_type.value}: {description}")
        return entry

    def list(
        self,
        entity_type: Optional[str] = None,
        entity_id: Optional[object] = None,
        action_type: Optional[ActionType] = None,
        affected_user_id: Optional[object] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[ActionLog]:
        entries = self.entries
        if entity_type:
            entries = [e for e in entries if e.entity_type == entity_type]
        if entity_id is not None:
            entries = [e for e in entries if e.entity_id == str(entity_id)]
        if action_type:
            entries = [e for e in entries if e.action_type == action_type]
        if affected_user_id is not None:
            entries = [e for e in entries if e.affected_user_id == str(affected_user_id)]
        entries = sorted(entries, key=lambda e: e.created_at, reverse=True)
        return entries[offset:offset + limit]
