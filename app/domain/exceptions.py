from __future__ import annotations


class BusinessValidationError(Exception):
    """Raised when a domain/business rule is violated."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class PermissionDeniedError(Exception):
    """Raised when the caller is authenticated but may not act on a resource."""

    def __init__(self, message: str = "You do not have permission to access this resource"):
        super().__init__(message)
        self.message = message


class AuthenticationError(Exception):
    """Raised when credentials are missing, invalid or expired."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)
        self.message = message
