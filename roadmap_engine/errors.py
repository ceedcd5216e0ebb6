"""Error taxonomy for roadmap generation and structured error logging."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class RoadmapGenerationError(Exception):
    """Base exception for every failure the engine surfaces."""

    code = "ROADMAP_GENERATION_ERROR"
    is_retryable = False

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        *,
        code: Optional[str] = None,
        is_retryable: Optional[bool] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = dict(details or {})
        if code is not None:
            self.code = code
        if is_retryable is not None:
            self.is_retryable = is_retryable


# =============================================================================
# Transient infrastructure errors
# =============================================================================

class EmbeddingServiceError(RoadmapGenerationError):
    """Raised when the embedding collaborator keeps failing."""

    code = "EMBEDDING_SERVICE_ERROR"
    is_retryable = True


class DatabaseSearchError(RoadmapGenerationError):
    """Raised when vector search or the corpus dump keeps failing."""

    code = "DATABASE_SEARCH_ERROR"
    is_retryable = True


# =============================================================================
# User-facing, non-retryable errors
# =============================================================================

class InsufficientContentError(RoadmapGenerationError):
    """Raised when fewer than the minimum number of usable candidates were found."""

    code = "INSUFFICIENT_CONTENT"


class InvalidGoalError(RoadmapGenerationError):
    """Raised when the goal text fails the pre-generation checks."""

    code = "INVALID_GOAL"


class RoadmapValidationError(RoadmapGenerationError):
    """Raised when an assembled roadmap fails the structural post-check."""

    code = "ROADMAP_VALIDATION_FAILED"

    def __init__(self, message: str, errors: list[str], details: Optional[Dict[str, Any]] = None) -> None:
        payload = dict(details or {})
        payload["errors"] = list(errors)
        super().__init__(message, payload)
        self.errors = list(errors)


def is_retryable(error: BaseException) -> bool:
    """Anything not explicitly marked non-retryable is worth another attempt."""
    if isinstance(error, RoadmapGenerationError):
        return error.is_retryable
    return True


def user_message(error: BaseException) -> str:
    if isinstance(error, InvalidGoalError):
        return error.message
    if isinstance(error, InsufficientContentError):
        return (
            "We couldn't find enough relevant content for your goal. "
            "Please try rephrasing it or being more specific."
        )
    if isinstance(error, EmbeddingServiceError):
        return "Our AI service is temporarily unavailable. Please try again in a few moments."
    if isinstance(error, DatabaseSearchError):
        return "We're having trouble searching our knowledge base. Please try again."
    return (
        "An unexpected error occurred while generating your roadmap. "
        "Please try again or contact support if the issue persists."
    )


def log_error(
    error: BaseException,
    *,
    user_id: Optional[str] = None,
    goal: Optional[str] = None,
    phase: Optional[str] = None,
    **context: Any,
) -> Dict[str, Any]:
    """Log an error with request context and return the structured record.

    The caller is expected to re-raise; nothing here swallows the error.
    """
    record: Dict[str, Any] = {
        "name": type(error).__name__,
        "message": str(error),
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "user_id": user_id,
        "goal": goal,
        "phase": phase,
        **context,
    }
    if isinstance(error, RoadmapGenerationError):
        record["code"] = error.code
        record["details"] = error.details
        record["is_retryable"] = error.is_retryable

    logger.error(
        "Roadmap generation error %s",
        json.dumps(record, default=str),
        exc_info=(type(error), error, error.__traceback__),
    )
    return record


__all__ = [
    "DatabaseSearchError",
    "EmbeddingServiceError",
    "InsufficientContentError",
    "InvalidGoalError",
    "RoadmapGenerationError",
    "RoadmapValidationError",
    "is_retryable",
    "log_error",
    "user_message",
]
