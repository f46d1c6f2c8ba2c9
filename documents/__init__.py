"""
Customer Documents

This module provides:
- Document upload with per-page pricing and a 9-character verification code
- The document pipeline: draft → pending → processing → completed
- Authenticator review: approval or correction upload with a new code
- Admin-approved cleanup of abandoned drafts
"""

from .models import (
    DocumentStatus,
    VerificationStatus,
    Document,
    VerificationRecord,
    TranslatedDocument,
    Authenticator,
)
from .pricing import translation_price, generate_verification_code
from .service import DocumentService
from .cleanup import DraftCleanupService, classify_draft

__all__ = [
    "DocumentStatus",
    "VerificationStatus",
    "Document",
    "VerificationRecord",
    "TranslatedDocument",
    "Authenticator",
    "translation_price",
    "generate_verification_code",
    "DocumentService",
    "DraftCleanupService",
    "classify_draft",
]
