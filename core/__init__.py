"""
Shared plumbing for the translation portal backend.

- Settings loaded from the environment
- Audit trail of business actions
- HTTP client for the hosted database/storage platform
- Object-storage path helpers
"""

from .config import settings, Settings, ConfigurationError
from .action_log import ActionLogger, ActionLog, ActionType, PerformerType

__all__ = [
    "settings",
    "Settings",
    "ConfigurationError",
    "ActionLogger",
    "ActionLog",
    "ActionType",
    "PerformerType",
]
