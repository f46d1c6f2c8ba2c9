from typing import Optional
from fastapi import APIRouter, Depends

from .action_log import ActionLog, ActionLogger, ActionType
from .services import get_action_logger

router = APIRouter(prefix="/admin/action-logs", tags=["Admin"])


@router.get("", response_model=list[ActionLog])
def list_action_logs(
    entity_type: Optional[str] = None,
    entity_id: Optional[str] = None,
    action_type: Optional[ActionType] = None,
    affected_user_id: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
    action_logger: ActionLogger = Depends(get_action_logger),
):
    return action_logger.list(
        entity_type=entity_type,
        entity_id=entity_id,
        action_type=action_type,
        affected_user_id=affected_user_id,
        limit=limit,
        offset=offset,
    )
