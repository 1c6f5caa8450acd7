from fastapi import HTTPException, status
from typing import Optional, Dict, Any

class BaseAPIException(HTTPException):
    """Base exception for API errors"""
    def __init__(
        self,
        status_code: int,
        error_code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        self.error_code = error_code
        self.message = message
        self.details = details or {}

        super().__init__(
            status_code=status_code,
            detail={
                "success": False,
                "error": {
                    "code": error_code,
                    "message": message,
                    "details": self.details
                }
            }
        )

    def __str__(self) -> str:  # Ensure str(e) returns the human message
        return self.message

class AuthenticationError(BaseAPIException):
    """Authentication related errors"""
    def __init__(self, message: str = "Authentication failed", details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            error_code="AUTH_001",
            message=message,
            details=details
        )

class AuthorizationError(BaseAPIException):
    """Authorization related errors"""
    def __init__(self, message: str = "Access forbidden", details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            error_code="AUTH_002",
            message=message,
            details=details
        )

class ValidationError(BaseAPIException):
    """Malformed input. Never retried, surfaced immediately."""
    def __init__(self, message: str = "Validation failed", details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            error_code="VALIDATION_001",
            message=message,
            details=details
        )

class BusinessLogicError(BaseAPIException):
    """Business logic errors"""
    def __init__(self, error_code: str, message: str, details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code=error_code,
            message=message,
            details=details
        )

class NotFoundError(BaseAPIException):
    """Resource not found errors"""
    def __init__(self, message: str = "Resource not found", details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            error_code="NOT_FOUND_001",
            message=message,
            details=details
        )

class RecordNotFoundError(NotFoundError):
    """Location (or other owned record) absent or not owned by the caller"""
    def __init__(self, message: str = "Record not found", details: Optional[Dict] = None):
        super().__init__(message=message, details=details)

class RewardNotFoundError(BaseAPIException):
    """Reward missing or inactive"""
    def __init__(self, reward_id: str):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            error_code="REWARD_001",
            message=f"Reward not found or inactive: {reward_id}",
            details={"reward_id": reward_id}
        )

class ConflictError(BaseAPIException):
    """Resource conflict errors"""
    def __init__(self, message: str = "Resource conflict", details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            error_code="CONFLICT_001",
            message=message,
            details=details
        )

class InternalServerError(BaseAPIException):
    """Internal server errors"""
    def __init__(self, message: str = "Internal server error", details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error_code="INTERNAL_001",
            message=message,
            details=details
        )

class TransientFailure(BaseAPIException):
    """Network or server unavailable. Safe to queue and retry."""
    def __init__(self, message: str = "Service temporarily unavailable", details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            error_code="TRANSIENT_001",
            message=message,
            details=details
        )

class InvalidAmountError(BaseAPIException):
    """Non-positive point award or bag count"""
    def __init__(self, amount: int, message: Optional[str] = None):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            error_code="POINTS_001",
            message=message or f"Amount must be a positive integer, got {amount}",
            details={"amount": amount}
        )

class InsufficientBalanceError(BaseAPIException):
    """Insufficient balance errors"""
    def __init__(self, message: str = "Insufficient balance", details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code="BALANCE_001",
            message=message,
            details=details
        )

class InsufficientPointsError(InsufficientBalanceError):
    """Balance below a reward's cost. Carries the shortfall for display."""
    def __init__(self, required: int, available: int):
        self.required = required
        self.available = available
        self.shortfall = required - available
        super().__init__(
            message=f"Insufficient points. Required: {required}, Available: {available}",
            details={
                "required": required,
                "available": available,
                "shortfall": self.shortfall,
            }
        )

class SyncConflictError(ConflictError):
    """Queued change is older than the server version (last write wins)"""
    def __init__(self, location_id: str, server_updated_at: str, local_updated_at: str):
        super().__init__(
            message=f"Location {location_id} changed on the server after this update",
            details={
                "location_id": location_id,
                "server_updated_at": server_updated_at,
                "local_updated_at": local_updated_at,
            }
        )
