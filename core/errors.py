# core/errors.py

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError

from core.logging_config import logger


def extract_db_error(error: Exception) -> str:
    """
    Safely extract readable details from SQLAlchemy / DBAPI errors.
    Handles:
      • SQLAlchemy wrapped errors (``.orig`` holds the driver error)
      • Generic Python exceptions
    """

    # Case 1: SQLAlchemy DBAPIError wrapping a driver error
    orig = getattr(error, "orig", None)
    if orig is not None:
        return str(orig)

    # Case 2: errors with args (common)
    if error.args:
        return str(error.args[0])

    return str(error) or error.__class__.__name__


def is_unique_violation(error: Exception) -> bool:
    if isinstance(error, IntegrityError):
        return True
    detail = extract_db_error(error).lower()
    return "duplicate" in detail or "unique" in detail


def handle_db_error(error: Exception, operation: str = "Database operation", status_code: int = 500) -> HTTPException:
    """
    Handle storage errors with consistent formatting.
    Returns HTTPException (doesn't raise) so caller can customize or re-raise.

    Args:
        error: The exception that occurred
        operation: Description of what operation failed (e.g., "Failed to create role")
        status_code: HTTP status code for anything that is not a conflict

    Returns:
        HTTPException with a generic message; the underlying cause is only logged
    """
    error_detail = extract_db_error(error)
    logger.error(f"{operation}: {error_detail}")

    if is_unique_violation(error):
        return HTTPException(status_code=409, detail=f"{operation}: Record already exists")
    return HTTPException(status_code=status_code, detail=operation)
