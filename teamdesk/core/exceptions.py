"""
Core Exceptions
================

Custom exceptions for the application.

Not-found and no-eligible-assignee outcomes are returned as values by the
ticket service, not raised. These exceptions cover the cases that really
are errors and are handled at the application boundary.
"""

from typing import Optional


class ApplicationException(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class DomainException(ApplicationException):
    """Base exception for domain logic violations."""


class RepositoryException(ApplicationException):
    """Base exception for repository/data access errors."""


class ValidationException(ApplicationException):
    """Exception for validation errors."""


class ConfigurationException(ApplicationException):
    """Exception for configuration errors."""


class InvalidTransitionException(DomainException):
    """Raised when a ticket entity would break a status invariant."""

    def __init__(self, ticket_id: Optional[int], status: str, reason: str):
        self.ticket_id = ticket_id
        self.status = status
        super().__init__(
            f"Ticket {ticket_id} cannot be {status}: {reason}",
            {"ticket_id": ticket_id, "status": status}
        )
