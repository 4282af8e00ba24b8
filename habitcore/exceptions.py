"""
Standardized exception hierarchy for habitcore
Provides rich context and consistent logging for engine and storage errors

Public engine methods do not raise for bad UI input (unknown ids, malformed
categories); they log and return a sentinel instead. These exceptions cover
the remaining cases: invalid catalog data at startup, store failures inside
the persistence layer, and broken internal invariants.
"""

from datetime import datetime, timezone
from typing import Optional, Dict, Any
from uuid import uuid4
import logging

logger = logging.getLogger(__name__)


class HabitCoreError(Exception):
    """
    Base exception for all habitcore errors

    Provides:
    - Automatic timestamping
    - Request ID for tracing
    - Structured context
    - Automatic logging

    Example:
        raise HabitCoreError(
            message="Failed to save engine state",
            user_id="local-user",
            operation="save_state",
            context={"key": "habitcore:local-user:streaks"}
        )
    """

    def __init__(
        self,
        message: str,
        user_id: Optional[str] = None,
        request_id: Optional[str] = None,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.message = message
        self.user_id = user_id
        self.request_id = request_id or str(uuid4())
        self.operation = operation
        self.context = context or {}
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc)

        # Auto-log on creation
        self._log_error()

    def _log_error(self) -> None:
        """Log error with full context"""
        log_data = {
            "error_type": self.__class__.__name__,
            "error_message": self.message,  # Avoid conflict with logging's 'message' field
            "request_id": self.request_id,
            "user_id": self.user_id,
            "operation": self.operation,
            "error_context": self.context,
            "timestamp": self.timestamp.isoformat()
        }

        if self.cause:
            log_data["cause"] = str(self.cause)
            logger.error(f"{self.__class__.__name__}: {self.message}", extra=log_data, exc_info=self.cause)
        else:
            logger.error(f"{self.__class__.__name__}: {self.message}", extra=log_data)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for diagnostics"""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "operation": self.operation,
            "request_id": self.request_id,
            "timestamp": self.timestamp.isoformat()
        }


# ==========================================
# Catalog Errors
# ==========================================

class CatalogError(HabitCoreError):
    """Achievement catalog definition is invalid"""

    def __init__(
        self,
        message: str,
        achievement_id: Optional[str] = None,
        **kwargs
    ):
        self.achievement_id = achievement_id
        super().__init__(
            message=message,
            operation="load_catalog",
            context={"achievement_id": achievement_id},
            **kwargs
        )


# ==========================================
# Storage Errors
# ==========================================

class StorageError(HabitCoreError):
    """Store get/set/delete failed"""

    def __init__(
        self,
        message: str,
        key: Optional[str] = None,
        **kwargs
    ):
        self.key = key
        super().__init__(
            message=message,
            context={"key": key},
            **kwargs
        )


# ==========================================
# Programming Errors
# ==========================================

class InvariantViolation(HabitCoreError):
    """Engine state broke one of its invariants"""
    pass
