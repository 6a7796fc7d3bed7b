"""
Errors shared across services
"""


class ServiceError(Exception):
    """Base exception for domain service errors"""

    code = "BAD_REQUEST"
    status_code = 400

    def __init__(self, message: str, code: str = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code


class NotFoundError(ServiceError):
    """Raised when a requested resource doesn't exist"""
    code = "NOT_FOUND"
    status_code = 404


class PermissionDeniedError(ServiceError):
    """Raised when the caller may not act on a resource"""
    code = "FORBIDDEN"
    status_code = 403


class ConflictError(ServiceError):
    """Raised when a request conflicts with current state"""
    code = "CONFLICT"
    status_code = 409


class ValidationFailedError(ServiceError):
    """Raised when input passes schema checks but fails domain rules"""
    code = "VALIDATION_FAILED"
    status_code = 422
