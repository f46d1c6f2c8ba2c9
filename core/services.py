"""
Service singletons shared by the API routers.

Routers depend on the ``get_*`` functions rather than the instances so that
tests can swap in fresh services with ``app.dependency_overrides``.
"""

import logging
from typing import Optional

from affiliates.service import AffiliateService
from documents.cleanup import DraftCleanupService
from documents.service import DocumentService
from payments.service import PaymentService

from .action_log import ActionLogger
from .baas import PlatformClient
from .config import ConfigurationError, settings

logger = logging.getLogger(__name__)


def platform_client() -> Optional[PlatformClient]:
    try:
        return PlatformClient.from_settings(settings)
    except ConfigurationError as e:
        logger.warning(f"Platform storage disabled: {e}")
        return None


platform = platform_client()
action_logger = ActionLogger()
affiliate_service = AffiliateService(action_logger=action_logger)
document_service = DocumentService(action_logger=action_logger)
payment_service = PaymentService(document_service, affiliates=affiliate_service, action_logger=action_logger)
cleanup_service = DraftCleanupService(
    document_service,
    payment_service,
    action_logger=action_logger,
    platform=platform,
)


def get_action_logger() -> ActionLogger:
    return action_logger


def get_affiliate_service() -> AffiliateService:
    return affiliate_service


def get_document_service() -> DocumentService:
    return document_service


def get_payment_service() -> PaymentService:
    return payment_service


def get_cleanup_service() -> DraftCleanupService:
    return cleanup_service


def get_platform_client() -> Optional[PlatformClient]:
    return platform
