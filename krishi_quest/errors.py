# krishi_quest/errors.py
"""
Domain errors raised by the repository and services.

Routes never build HTTP errors for these by hand; ``main.py`` registers one
handler that renders ``{"error": message}`` with the error's status code.
"""


class DomainError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(DomainError):
    """Payload is well-formed but breaks a domain rule. No state changed."""

    status_code = 400


class NotFound(DomainError):
    status_code = 404


class Conflict(DomainError):
    """Operation clashes with current state (duplicate, illegal transition)."""

    status_code = 409


class InconsistentState(DomainError):
    """Stored records disagree with each other, e.g. a user without a Progress record."""

    status_code = 500
