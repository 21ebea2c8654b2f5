"""
Core Exceptions
================

Custom exceptions for the application following clean architecture principles.

Every rejected engine operation raises exactly one of the domain exceptions
below, so callers can tell "you may not do this" (Forbidden) from "this does
not exist" (ResourceNotFound) from "this is not a valid move from here"
(InvalidTransition). The HTTP layer maps ``error_code`` to a status code.
"""

from typing import Optional


class ApplicationException(Exception):
    """Base exception for all application errors."""

    error_code = "application_error"

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class DomainException(ApplicationException):
    """Base exception for domain logic violations."""

    error_code = "domain_error"


class RepositoryException(ApplicationException):
    """Base exception for repository/data access errors."""

    error_code = "repository_error"


class ConfigurationException(ApplicationException):
    """Exception for configuration errors."""

    error_code = "configuration_error"


class ValidationException(DomainException):
    """Malformed or missing input (blank title, unknown department, ...)."""

    error_code = "validation_error"


class ResourceNotFoundException(DomainException):
    """Exception when a requested resource is not found."""

    error_code = "not_found"

    def __init__(
        self,
        resource_type: str,
        resource_id: Optional[str] = None,
        details: Optional[dict] = None
    ):
        self.resource_type = resource_type
        self.resource_id = resource_id
        message = f"{resource_type}"
        if resource_id:
            message += f" with id '{resource_id}'"
        message += " not found"
        super().__init__(message, details)


class ForbiddenException(DomainException):
    """The actor lacks scope to read or act on the issue."""

    error_code = "forbidden"


class InvalidTransitionException(DomainException):
    """Status edge not permitted, or the issue is in a terminal state."""

    error_code = "invalid_transition"

    def __init__(
        self,
        message: str,
        from_status: Optional[str] = None,
        to_status: Optional[str] = None,
        details: Optional[dict] = None
    ):
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            message,
            details or {"from_status": from_status, "to_status": to_status}
        )


class AlreadyEscalatedException(DomainException):
    """Escalation requested on an issue that is already escalated."""

    error_code = "already_escalated"

    def __init__(self, issue_id: str, details: Optional[dict] = None):
        self.issue_id = issue_id
        super().__init__(
            f"Issue {issue_id} is already escalated",
            details or {"issue_id": issue_id}
        )


class NoOpChangeException(DomainException):
    """A change that would leave the issue exactly as it is."""

    error_code = "no_op_change"
