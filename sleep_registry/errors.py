"""
Error taxonomy shared by the handlers and the HTTP layer.
"""


class RegistryError(Exception):
    """Base class for errors surfaced to callers of a mutation."""
    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class AuthenticationError(RegistryError):
    status_code = 401


class AuthorizationError(RegistryError):
    status_code = 403


class NotFoundError(RegistryError):
    status_code = 404


class ConflictError(RegistryError):
    status_code = 409


class ValidationError(RegistryError):
    status_code = 400

    def __init__(self, message: str, details=None):
        self.details = details or []
        super().__init__(message)
