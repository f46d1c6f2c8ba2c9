from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Generic, Optional, TypeVar
from uuid import UUID
from pydantic import BaseModel, Field, ConfigDict

T = TypeVar("T")


class DocumentStatus(str, Enum):
    DRAFT = "draft"
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    DELETED = "deleted"


class VerificationStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"


class UploadDocumentRequest(BaseModel):
    filename: str = Field(..., min_length=1)
    file_url: Optional[str] = None
    pages: int = Field(..., ge=1)
    is_bank_statement: bool = False
    source_language: str = "Portuguese"
    target_language: str = "English"

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "filename": "birth_certificate.pdf",
            "pages": 2,
            "is_bank_statement": False,
            "source_language": "Portuguese",
            "target_language": "English",
        }
    })


class SendForAuthenticationRequest(BaseModel):
    translated_file_url: str


class Authenticator(BaseModel):
    id: UUID
    email: str
    name: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.name or self.email


class CorrectionRequest(BaseModel):
    authenticator: Authenticator
    filename: str = Field(..., min_length=1)
    file_url: Optional[str] = None


class Document(BaseModel):
    id: UUID
    user_id: UUID
    filename: str
    file_url: Optional[str] = None
    pages: int
    is_bank_statement: bool = False
    source_language: str
    target_language: str
    total_cost: Decimal
    verification_code: str
    status: DocumentStatus
    created_at: datetime
    updated_at: datetime
    authenticated_by: Optional[UUID] = None
    authenticated_by_name: Optional[str] = None
    authenticated_by_email: Optional[str] = None
    authentication_date: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class VerificationRecord(BaseModel):
    id: UUID
    document_id: UUID
    user_id: UUID
    filename: str
    file_url: Optional[str] = None
    translated_file_url: Optional[str] = None
    pages: int
    total_cost: Decimal
    verification_code: str
    status: VerificationStatus
    created_at: datetime
    authenticated_by: Optional[UUID] = None
    authenticated_by_name: Optional[str] = None
    authenticated_by_email: Optional[str] = None
    authentication_date: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class TranslatedDocument(BaseModel):
    id: UUID
    verification_id: UUID
    document_id: UUID
    user_id: UUID
    filename: str
    translated_file_url: str
    source_language: str
    target_language: str
    pages: int
    total_cost: Decimal
    verification_code: str
    is_authenticated: bool = True
    is_correction: bool = False
    authenticated_by: UUID
    authenticated_by_name: str
    authenticated_by_email: str
    authentication_date: datetime
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ReviewResult(BaseModel):
    document: Document
    verification: VerificationRecord
    translated: TranslatedDocument
    message: str


class ReviewStats(BaseModel):
    pending: int
    approved: int


class VerificationInfo(BaseModel):
    verification_code: str
    translated_file_url: str
    is_authenticated: bool
    authentication_date: Optional[datetime] = None
    authenticated_by_name: Optional[str] = None


class Page(BaseModel, Generic[T]):
    items: list[T]
    total_count: int
    page: int
    page_size: int
    total_pages: int


class CleanupCandidate(BaseModel):
    document_id: UUID
    filename: str
    user_id: UUID
    file_url: Optional[str] = None
    created_at: datetime
    reason: str
    session_ids: list[str] = Field(default_factory=list)
    payment_ids: list[UUID] = Field(default_factory=list)


class CleanupReport(BaseModel):
    to_cleanup: list[CleanupCandidate]
    to_keep: list[CleanupCandidate]
    total_to_cleanup: int
    total_to_keep: int
    generated_at: datetime


class ApproveCleanupRequest(BaseModel):
    document_ids: list[UUID] = Field(..., min_length=1)


class CleanupError(BaseModel):
    document_id: UUID
    error: str


class CleanupResult(BaseModel):
    deleted_count: int
    sessions_deleted_count: int
    storage_deleted_count: int
    errors: list[CleanupError]
