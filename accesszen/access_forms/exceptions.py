# accesszen/access_forms/exceptions.py

"""
Custom exceptions for the access form generation module.
"""

from typing import Optional
from fastapi import HTTPException, status


class AccessFormBaseException(Exception):
    """Base exception for all access-form errors."""
    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class PreconditionFailedException(AccessFormBaseException):
    """Raised when the project, estate or template configuration cannot produce a form."""


class ProjectNotFoundException(PreconditionFailedException):
    """Raised when the requested project does not exist."""
    def __init__(self, project_id: str):
        super().__init__("Project not found.", {"project_id": project_id})


class EstateNotFoundException(PreconditionFailedException):
    """Raised when the estate a project points at does not exist."""
    def __init__(self, estate_id: str):
        super().__init__("Estate not found.", {"estate_id": estate_id})


class TemplateLoadException(AccessFormBaseException):
    """Raised when the blank form template cannot be parsed as a PDF."""
    def __init__(self, template_url: str, reason: str):
        super().__init__(
            f"The estate form template could not be read: {reason}",
            {"template_url": template_url}
        )


class DocumentBundlingException(AccessFormBaseException):
    """Raised for a single supporting document that cannot be rendered."""
    def __init__(self, document_key: str, owner_name: str, reason: str):
        super().__init__(
            f"Could not embed {document_key} for {owner_name}: {reason}",
            {"document_key": document_key, "owner_name": owner_name}
        )


def convert_to_http_exception(exc: AccessFormBaseException) -> HTTPException:
    """
    Convert an AccessFormBaseException to an HTTPException with appropriate status code.

    Args:
        exc: The access form exception to convert

    Returns:
        HTTPException with appropriate status code and detail
    """
    if isinstance(exc, (ProjectNotFoundException, EstateNotFoundException)):
        return HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"message": exc.message, "details": exc.details}
        )
    elif isinstance(exc, (PreconditionFailedException, TemplateLoadException)):
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": exc.message, "details": exc.details}
        )
    else:
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"message": str(exc), "details": {}}
        )
