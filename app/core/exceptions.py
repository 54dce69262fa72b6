"""
Custom application exceptions
"""

from typing import Optional, Dict, Any


class MoveAppException(Exception):
    """Base exception for The Move application"""

    def __init__(
        self,
        message: str,
        code: str,
        status_code: int = 400,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class AuthenticationError(MoveAppException):
    """Authentication related errors"""

    def __init__(self, message: str = "Authentication failed", details: Optional[Dict] = None):
        super().__init__(
            message=message,
            code="AUTH_ERROR",
            status_code=401,
            details=details
        )


class AuthorizationError(MoveAppException):
    """Authorization related errors"""

    def __init__(self, message: str = "Not authorized", details: Optional[Dict] = None):
        super().__init__(
            message=message,
            code="AUTH_FORBIDDEN",
            status_code=403,
            details=details
        )


class NotFoundError(MoveAppException):
    """Resource not found errors"""

    def __init__(self, resource: str, identifier: Any = None):
        message = f"{resource} not found"
        if identifier:
            message = f"{resource} with id {identifier} not found"
        super().__init__(
            message=message,
            code="NOT_FOUND",
            status_code=404
        )


class ValidationError(MoveAppException):
    """Validation errors, raised before any mutation is attempted"""

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            status_code=400,
            details=details
        )


class PreconditionError(MoveAppException):
    """The move is not in a state that allows the requested transition"""

    def __init__(self, message: str, details: Optional[Dict] = None):
        super().__init__(
            message=message,
            code="PRECONDITION_FAILED",
            status_code=409,
            details=details
        )


class CapacityConflictError(MoveAppException):
    """Join attempted on a full move; the caller may offer the waitlist instead"""

    def __init__(self, move_id: str, max_participants: int):
        super().__init__(
            message="This move is full. Join the waitlist to get the next open spot.",
            code="MOVE_FULL",
            status_code=409,
            details={"move_id": move_id, "max_participants": max_participants}
        )


class ConcurrencyError(MoveAppException):
    """Concurrency conflict error"""

    def __init__(self, message: str = "Move was modified by another client"):
        super().__init__(
            message=message,
            code="CONCURRENCY_ERROR",
            status_code=409
        )


class RemoteFailureError(MoveAppException):
    """A call to an external collaborator (store, place lookup) failed"""

    def __init__(self, service: str, message: str = None):
        super().__init__(
            message=message or f"External service {service} is unavailable",
            code="REMOTE_FAILURE",
            status_code=503,
            details={"service": service}
        )
