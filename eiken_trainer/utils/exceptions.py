"""Custom exception classes and error handling utilities."""
from typing import Any, Dict, Optional

from fastapi import HTTPException, status
from loguru import logger


class TrainerException(Exception):
    """Base exception for the application."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class DatabaseError(TrainerException):
    """Database operation errors."""
    pass


class ValidationError(TrainerException):
    """Data validation errors."""
    pass


class NotFoundError(TrainerException):
    """A referenced catalogue entity does not exist."""
    pass


class ProgressError(TrainerException):
    """Progress tracking errors."""
    pass


class ProgressConflictError(ProgressError):
    """A progress row kept changing underneath a compare-and-swap update."""
    pass


def handle_database_error(error: Exception) -> HTTPException:
    """Handle database errors and return appropriate HTTP response."""
    logger.error(f"Database error: {error}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Database operation failed. Please try again later."
    )


def handle_validation_error(error: ValidationError) -> HTTPException:
    """Handle validation errors."""
    logger.warning(f"Validation error: {error.message}")
    return HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail={
            "message": error.message,
            "details": error.details
        }
    )


def handle_not_found_error(error: NotFoundError) -> HTTPException:
    """Handle missing catalogue entities."""
    logger.info(f"Not found: {error.message}")
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=error.message
    )


def handle_progress_error(error: ProgressError) -> HTTPException:
    """Handle progress tracking errors."""
    if isinstance(error, ProgressConflictError):
        logger.warning(f"Progress conflict: {error.message}", **error.details)
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=error.message
        )
    logger.error(f"Progress error: {error.message}")
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=error.message
    )
