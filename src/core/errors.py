"""
Classification des erreurs pour les routeurs.

Convertit les exceptions du domaine, de SQLAlchemy ou inattendues en une
réponse HTTP homogène ``{"code", "message", "details"}``.
"""
import logging
from typing import Any, Optional

from fastapi import HTTPException, status
from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError, NoResultFound

from src.config import settings
from src.core.exceptions import DomainException

logger = logging.getLogger(__name__)

_UNIQUE_MARKERS = ("unique", "duplicate key")


class ApiError(BaseModel):
    status_code: int
    code: str
    message: str
    details: Optional[Any] = None


def classify_error(error: Exception) -> ApiError:
    """Associe une exception à un statut HTTP et un message exploitable par l'UI."""
    if isinstance(error, DomainException):
        return ApiError(
            status_code=error.status_code,
            code=error.code,
            message=error.message,
            details=error.details,
        )

    if isinstance(error, IntegrityError):
        text = str(error.orig).lower() if error.orig is not None else str(error).lower()
        if any(marker in text for marker in _UNIQUE_MARKERS):
            return ApiError(
                status_code=status.HTTP_409_CONFLICT,
                code="CONFLICT",
                message="Conflict - record already exists",
                details=str(error.orig) if settings.is_development else None,
            )
        return ApiError(
            status_code=status.HTTP_400_BAD_REQUEST,
            code="VALIDATION_ERROR",
            message="Invalid reference",
            details=str(error.orig) if settings.is_development else None,
        )

    if isinstance(error, NoResultFound):
        return ApiError(
            status_code=status.HTTP_404_NOT_FOUND,
            code="NOT_FOUND",
            message="Record not found",
        )

    return ApiError(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        code="INTERNAL_ERROR",
        message="Internal server error",
        details=str(error) if settings.is_development else None,
    )


def to_http_exception(error: Exception, context: str) -> HTTPException:
    """Journalise l'erreur avec son contexte et construit la HTTPException correspondante."""
    api_error = classify_error(error)
    if api_error.status_code >= 500:
        logger.exception(f"[{context}] Erreur inattendue: {error}")
    else:
        logger.warning(f"[{context}] Requête rejetée ({api_error.code}): {api_error.message}")
    return HTTPException(
        status_code=api_error.status_code,
        detail=api_error.model_dump(exclude={"status_code"}),
    )
