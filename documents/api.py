from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, HTTPException, Query, status

from core.baas import PlatformClient, PlatformError
from core.services import get_cleanup_service, get_document_service, get_platform_client
from core.storage import secure_url

from .cleanup import DraftCleanupService
from .models import (
    DocumentStatus, UploadDocumentRequest, SendForAuthenticationRequest,
    Authenticator, CorrectionRequest, ApproveCleanupRequest,
    Document, VerificationRecord, ReviewResult, ReviewStats, VerificationInfo,
    Page, CleanupReport, CleanupResult,
)
from .service import DocumentService, DocumentNotFoundError, InvalidStateTransitionError

router = APIRouter(prefix="/documents", tags=["Documents"])
authenticator_router = APIRouter(prefix="/authenticator", tags=["Authenticator"])
admin_router = APIRouter(prefix="/admin/drafts", tags=["Admin"])


@router.post("/users/{user_id}", response_model=Document, status_code=status.HTTP_201_CREATED)
def upload_document(
    user_id: UUID,
    request: UploadDocumentRequest,
    service: DocumentService = Depends(get_document_service),
) -> Document:
    return service.upload_document(user_id, request)


@router.get("/users/{user_id}", response_model=Page[Document])
def list_user_documents(
    user_id: UUID,
    status_filter: Optional[DocumentStatus] = Query(None, alias="status"),
    page: int = 1,
    page_size: int = 10,
    service: DocumentService = Depends(get_document_service),
):
    return service.list_documents(user_id=user_id, status=status_filter, page=page, page_size=page_size)


@router.get("/{document_id}", response_model=Document)
def get_document(document_id: UUID, service: DocumentService = Depends(get_document_service)) -> Document:
    try:
        return service.get_document(document_id)
    except DocumentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.delete("/{document_id}", response_model=Document)
def delete_document(document_id: UUID, service: DocumentService = Depends(get_document_service)) -> Document:
    try:
        return service.delete_document(document_id)
    except DocumentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidStateTransitionError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("/{document_id}/start-translation", response_model=Document)
def start_translation(document_id: UUID, service: DocumentService = Depends(get_document_service)) -> Document:
    try:
        return service.start_translation(document_id)
    except DocumentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidStateTransitionError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("/{document_id}/send-for-authentication", response_model=VerificationRecord)
def send_for_authentication(
    document_id: UUID,
    request: SendForAuthenticationRequest,
    service: DocumentService = Depends(get_document_service),
) -> VerificationRecord:
    try:
        return service.send_for_authentication(document_id, request.translated_file_url)
    except DocumentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidStateTransitionError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/{document_id}/verification", response_model=VerificationInfo)
def get_verification_info(
    document_id: UUID,
    service: DocumentService = Depends(get_document_service),
) -> VerificationInfo:
    try:
        return service.verification_info(document_id)
    except DocumentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@authenticator_router.get("/queue", response_model=Page[VerificationRecord])
def review_queue(page: int = 1, page_size: int = 10, service: DocumentService = Depends(get_document_service)):
    return service.review_queue(page, page_size)


@authenticator_router.get("/stats", response_model=ReviewStats)
def review_stats(service: DocumentService = Depends(get_document_service)) -> ReviewStats:
    return service.review_stats()


@authenticator_router.post("/documents/{document_id}/approve", response_model=ReviewResult)
def approve_document(
    document_id: UUID,
    authenticator: Authenticator,
    service: DocumentService = Depends(get_document_service),
) -> ReviewResult:
    try:
        return service.approve_document(document_id, authenticator)
    except DocumentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidStateTransitionError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@authenticator_router.post("/documents/{document_id}/correction", response_model=ReviewResult)
def upload_correction(
    document_id: UUID,
    request: CorrectionRequest,
    service: DocumentService = Depends(get_document_service),
) -> ReviewResult:
    try:
        return service.upload_correction(document_id, request)
    except DocumentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidStateTransitionError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@admin_router.get("/cleanup", response_model=CleanupReport)
def list_cleanup_candidates(service: DraftCleanupService = Depends(get_cleanup_service)) -> CleanupReport:
    return service.list_candidates()


@admin_router.post("/cleanup", response_model=CleanupResult)
def approve_cleanup(
    request: ApproveCleanupRequest,
    service: DraftCleanupService = Depends(get_cleanup_service),
) -> CleanupResult:
    return service.approve_cleanup(request.document_ids)


@router.get("/{document_id}/download-url")
def get_download_url(
    document_id: UUID,
    service: DocumentService = Depends(get_document_service),
    platform: Optional[PlatformClient] = Depends(get_platform_client),
):
    try:
        document = service.get_document(document_id)
    except DocumentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if not document.file_url:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Document has no stored file")
    if not platform:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Storage is not configured")
    try:
        return {"url": secure_url(platform, document.file_url)}
    except PlatformError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
