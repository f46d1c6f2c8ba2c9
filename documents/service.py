import logging
import math
from datetime import datetime
from typing import Callable, Optional
from uuid import UUID, uuid4

from core.action_log import ActionLogger, ActionType, PerformerType, utc_now
from core.storage import correction_upload_path

from .models import (
    DocumentStatus,
    VerificationStatus,
    Document,
    VerificationRecord,
    TranslatedDocument,
    UploadDocumentRequest,
    Authenticator,
    CorrectionRequest,
    ReviewResult,
    ReviewStats,
    VerificationInfo,
    Page,
)
from .pricing import translation_price, generate_verification_code

logger = logging.getLogger(__name__)


class DocumentServiceError(Exception):
    pass


class DocumentNotFoundError(DocumentServiceError):
    pass


class InvalidStateTransitionError(DocumentServiceError):
    pass


class InMemoryStorage:
    def __init__(self):
        self.documents: dict[UUID, dict] = {}
        self.verifications: dict[UUID, dict] = {}
        self.translated: dict[UUID, dict] = {}


def paginate(items: list, page: int, page_size: int) -> Page:
    page = max(page, 1)
    page_size = max(page_size, 1)
    start = (page - 1) * page_size
    return Page(
        items=items[start:start + page_size],
        total_count=len(items),
        page=page,
        page_size=page_size,
        total_pages=math.ceil(len(items) / page_size) if items else 0,
    )


class DocumentService:
    def __init__(
        self,
        storage: Optional[InMemoryStorage] = None,
        action_logger: Optional[ActionLogger] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.storage = storage or InMemoryStorage()
        self.action_logger = action_logger or ActionLogger(clock=clock)
        self.clock = clock or utc_now

    # Customer side

    def upload_document(self, user_id: UUID, request: UploadDocumentRequest) -> Document:
        now = self.clock()
        document_id = uuid4()
        data = {
            "id": document_id,
            "user_id": user_id,
            "filename": request.filename,
            "file_url": request.file_url,
            "pages": request.pages,
            "is_bank_statement": request.is_bank_statement,
            "source_language": request.source_language,
            "target_language": request.target_language,
            "total_cost": translation_price(request.pages, request.is_bank_statement),
            "verification_code": generate_verification_code(),
            "status": DocumentStatus.DRAFT,
            "created_at": now,
            "updated_at": now,
            "authenticated_by": None,
            "authenticated_by_name": None,
            "authenticated_by_email": None,
            "authentication_date": None,
        }
        self.storage.documents[document_id] = data

        self.action_logger.log(
            ActionType.DOCUMENT_UPLOADED,
            f"Document uploaded: {request.filename}",
            entity_type="document",
            entity_id=document_id,
            metadata={"pages": request.pages, "total_cost": str(data["total_cost"])},
            affected_user_id=user_id,
            performed_by=user_id,
            performer_type=PerformerType.USER,
        )
        return Document(**data)

    def get_document(self, document_id: UUID) -> Document:
        return Document(**self._document_data(document_id))

    def list_documents(
        self,
        user_id: Optional[UUID] = None,
        status: Optional[DocumentStatus] = None,
        page: int = 1,
        page_size: int = 10,
    ) -> Page:
        documents = [Document(**d) for d in self.storage.documents.values()]
        if user_id:
            documents = [d for d in documents if d.user_id == user_id]
        if status:
            documents = [d for d in documents if d.status == status]
        else:
            documents = [d for d in documents if d.status != DocumentStatus.DELETED]
        documents.sort(key=lambda d: d.created_at, reverse=True)
        return paginate(documents, page, page_size)

    def delete_document(self, document_id: UUID, performed_by: Optional[UUID] = None) -> Document:
        data = self._document_data(document_id)
        if data["status"] == DocumentStatus.DELETED:
            raise InvalidStateTransitionError(f"Document {document_id} is already deleted")
        previous = data["status"]
        self._set_status(data, DocumentStatus.DELETED)
        self.action_logger.log(
            ActionType.DOCUMENT_DELETED,
            f"Document deleted: {data['filename']}",
            entity_type="document",
            entity_id=document_id,
            metadata={"previous_status": previous.value},
            affected_user_id=data["user_id"],
            performed_by=performed_by,
            performer_type=PerformerType.ADMIN if performed_by else PerformerType.SYSTEM,
        )
        return Document(**data)

    # Pipeline

    def mark_payment_received(self, document_id: UUID) -> Document:
        data = self._document_data(document_id)
        if data["status"] != DocumentStatus.DRAFT:
            raise InvalidStateTransitionError(
                f"Cannot accept payment for document in {data['status'].value} state"
            )
        self._change_status(data, DocumentStatus.PENDING)
        return Document(**data)

    def start_translation(self, document_id: UUID) -> Document:
        data = self._document_data(document_id)
        if data["status"] != DocumentStatus.PENDING:
            raise InvalidStateTransitionError(
                f"Cannot start translation for document in {data['status'].value} state"
            )
        self._change_status(data, DocumentStatus.PROCESSING)
        return Document(**data)

    def send_for_authentication(self, document_id: UUID, translated_file_url: str) -> VerificationRecord:
        data = self._document_data(document_id)
        if data["status"] not in (DocumentStatus.PENDING, DocumentStatus.PROCESSING):
            raise InvalidStateTransitionError(
                f"Cannot send document in {data['status'].value} state for authentication"
            )
        existing = self._pending_verification(document_id)
        if existing:
            existing["translated_file_url"] = translated_file_url
            return VerificationRecord(**existing)
        return VerificationRecord(**self._create_verification(data, translated_file_url))

    # Authenticator side

    def approve_document(self, document_id: UUID, authenticator: Authenticator) -> ReviewResult:
        data = self._document_data(document_id)
        verification = self._reviewable_verification(data)

        auth_data = self._auth_data(authenticator)
        verification.update(auth_data)
        verification["status"] = VerificationStatus.COMPLETED

        previous = data["status"]
        data.update(auth_data)
        self._set_status(data, DocumentStatus.COMPLETED)

        translated = self._create_translated(
            data,
            verification,
            auth_data,
            filename=data["filename"],
            translated_file_url=verification["translated_file_url"] or data["file_url"] or "",
            verification_code=verification["verification_code"],
            is_correction=False,
        )

        self.action_logger.log(
            ActionType.DOCUMENT_APPROVED,
            f"Document approved by authenticator: {data['filename']}",
            entity_type="document",
            entity_id=verification["id"],
            metadata={
                "document_id": str(document_id),
                "verification_code": verification["verification_code"],
                "authenticated_by_name": auth_data["authenticated_by_name"],
            },
            affected_user_id=data["user_id"],
            performed_by=authenticator.id,
            performer_type=PerformerType.AUTHENTICATOR,
        )
        self._log_status_change(data, previous, DocumentStatus.COMPLETED, authenticator.id)

        return ReviewResult(
            document=Document(**data),
            verification=VerificationRecord(**verification),
            translated=TranslatedDocument(**translated),
            message="Document approved successfully",
        )

    def upload_correction(self, document_id: UUID, request: CorrectionRequest) -> ReviewResult:
        data = self._document_data(document_id)
        verification = self._reviewable_verification(data)
        authenticator = request.authenticator
        now = self.clock()

        file_url = request.file_url or correction_upload_path(authenticator.id, document_id, request.filename, now)
        new_code = generate_verification_code()

        auth_data = self._auth_data(authenticator)
        verification.update(auth_data)
        verification["status"] = VerificationStatus.COMPLETED

        previous = data["status"]
        data.update(auth_data)
        self._set_status(data, DocumentStatus.COMPLETED)

        translated = self._create_translated(
            data,
            verification,
            auth_data,
            filename=request.filename,
            translated_file_url=file_url,
            verification_code=new_code,
            is_correction=True,
        )

        self.action_logger.log(
            ActionType.DOCUMENT_REJECTED,
            f"Document rejected by authenticator: {data['filename']}",
            entity_type="document",
            entity_id=verification["id"],
            metadata={
                "document_id": str(document_id),
                "original_verification_code": verification["verification_code"],
                "new_verification_code": new_code,
                "correction_file_url": file_url,
                "correction_filename": request.filename,
                "reason": "Document correction after rejection",
            },
            affected_user_id=data["user_id"],
            performed_by=authenticator.id,
            performer_type=PerformerType.AUTHENTICATOR,
        )
        self._log_status_change(data, previous, DocumentStatus.COMPLETED, authenticator.id)

        return ReviewResult(
            document=Document(**data),
            verification=VerificationRecord(**verification),
            translated=TranslatedDocument(**translated),
            message="Correction uploaded successfully",
        )

    def review_queue(self, page: int = 1, page_size: int = 10) -> Page:
        pending = [
            VerificationRecord(**v) for v in self.storage.verifications.values()
            if v["status"] == VerificationStatus.PENDING
        ]
        pending.sort(key=lambda v: v.created_at)
        return paginate(pending, page, page_size)

    def review_stats(self) -> ReviewStats:
        statuses = [v["status"] for v in self.storage.verifications.values()]
        return ReviewStats(
            pending=statuses.count(VerificationStatus.PENDING),
            approved=statuses.count(VerificationStatus.COMPLETED),
        )

    def verification_info(self, document_id: UUID) -> VerificationInfo:
        data = self._document_data(document_id)
        verifications = sorted(
            (v for v in self.storage.verifications.values() if v["document_id"] == document_id),
            key=lambda v: v["created_at"],
        )
        if not verifications:
            return VerificationInfo(
                verification_code=data["verification_code"],
                translated_file_url=data["file_url"] or "",
                is_authenticated=data["status"] == DocumentStatus.COMPLETED,
            )

        verification = verifications[-1]
        translated = sorted(
            (t for t in self.storage.translated.values() if t["verification_id"] == verification["id"]),
            key=lambda t: t["created_at"],
        )
        if translated:
            latest = translated[-1]
            return VerificationInfo(
                verification_code=latest["verification_code"],
                translated_file_url=latest["translated_file_url"],
                is_authenticated=latest["is_authenticated"],
                authentication_date=latest["authentication_date"],
                authenticated_by_name=latest["authenticated_by_name"],
            )
        return VerificationInfo(
            verification_code=verification["verification_code"],
            translated_file_url=verification["translated_file_url"] or "",
            is_authenticated=verification["status"] == VerificationStatus.COMPLETED,
            authentication_date=verification["authentication_date"],
            authenticated_by_name=verification["authenticated_by_name"],
        )

    # Internals

    def _document_data(self, document_id: UUID) -> dict:
        data = self.storage.documents.get(document_id)
        if not data:
            raise DocumentNotFoundError(f"Document {document_id} not found")
        return data

    def _pending_verification(self, document_id: UUID) -> Optional[dict]:
        for verification in self.storage.verifications.values():
            if verification["document_id"] == document_id and verification["status"] == VerificationStatus.PENDING:
                return verification
        return None

    def _reviewable_verification(self, data: dict) -> dict:
        if data["status"] not in (DocumentStatus.PENDING, DocumentStatus.PROCESSING):
            raise InvalidStateTransitionError(
                f"Cannot review document in {data['status'].value} state"
            )
        # Documents that skipped the queue get their verification record on review.
        return self._pending_verification(data["id"]) or self._create_verification(data, data["file_url"])

    def _create_verification(self, data: dict, translated_file_url: Optional[str]) -> dict:
        verification_id = uuid4()
        verification = {
            "id": verification_id,
            "document_id": data["id"],
            "user_id": data["user_id"],
            "filename": data["filename"],
            "file_url": data["file_url"],
            "translated_file_url": translated_file_url,
            "pages": data["pages"],
            "total_cost": data["total_cost"],
            "verification_code": data["verification_code"],
            "status": VerificationStatus.PENDING,
            "created_at": self.clock(),
            "authenticated_by": None,
            "authenticated_by_name": None,
            "authenticated_by_email": None,
            "authentication_date": None,
        }
        self.storage.verifications[verification_id] = verification

        self.action_logger.log(
            ActionType.DOCUMENT_READY_FOR_AUTHENTICATION,
            f"Document ready for authentication: {data['filename']}",
            entity_type="document",
            entity_id=verification_id,
            metadata={"document_id": str(data["id"]), "verification_code": data["verification_code"]},
            affected_user_id=data["user_id"],
        )
        return verification

    def _create_translated(
        self,
        data: dict,
        verification: dict,
        auth_data: dict,
        filename: str,
        translated_file_url: str,
        verification_code: str,
        is_correction: bool,
    ) -> dict:
        translated_id = uuid4()
        translated = {
            "id": translated_id,
            "verification_id": verification["id"],
            "document_id": data["id"],
            "user_id": data["user_id"],
            "filename": filename,
            "translated_file_url": translated_file_url,
            "source_language": data["source_language"],
            "target_language": data["target_language"],
            "pages": data["pages"],
            "total_cost": data["total_cost"],
            "verification_code": verification_code,
            "is_authenticated": True,
            "is_correction": is_correction,
            "created_at": self.clock(),
            **auth_data,
        }
        self.storage.translated[translated_id] = translated
        return translated

    def _auth_data(self, authenticator: Authenticator) -> dict:
        return {
            "authenticated_by": authenticator.id,
            "authenticated_by_name": authenticator.display_name,
            "authenticated_by_email": authenticator.email,
            "authentication_date": self.clock(),
        }

    def _set_status(self, data: dict, status: DocumentStatus) -> None:
        data["status"] = status
        data["updated_at"] = self.clock()

    def _change_status(self, data: dict, status: DocumentStatus) -> None:
        previous = data["status"]
        self._set_status(data, status)
        self._log_status_change(data, previous, status, None)

    def _log_status_change(
        self,
        data: dict,
        previous: DocumentStatus,
        new: DocumentStatus,
        performed_by: Optional[UUID],
    ) -> None:
        self.action_logger.log(
            ActionType.DOCUMENT_STATUS_CHANGED,
            f"Document status changed to {new.value}: {data['filename']}",
            entity_type="document",
            entity_id=data["id"],
            metadata={"previous_status": previous.value, "new_status": new.value},
            affected_user_id=data["user_id"],
            performed_by=performed_by,
            performer_type=PerformerType.AUTHENTICATOR if performed_by else PerformerType.SYSTEM,
        )
