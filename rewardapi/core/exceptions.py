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
    """Validation errors"""
    def __init__(self, message: str = "Validation failed", details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            error_code="VALIDATION_001",
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


# ==================== 경제(잔액) 관련 에러 ====================


class EconomyError(BaseAPIException):
    """잔액 변경 작업의 거절 - 안정적인 코드와 사람이 읽을 메시지를 가짐"""

    error_code = "ECONOMY_ERROR"
    default_message = "Operation rejected"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: Optional[str] = None, details: Optional[Dict] = None):
        super().__init__(
            status_code=type(self).status_code,
            error_code=type(self).error_code,
            message=message or type(self).default_message,
            details=details
        )


class UserNotFoundError(EconomyError):
    error_code = "USER_NOT_FOUND"
    default_message = "User not found"
    status_code = status.HTTP_404_NOT_FOUND


class InsufficientBalanceError(EconomyError):
    error_code = "INSUFFICIENT_BALANCE"
    default_message = "Insufficient balance"


class TryAgainError(EconomyError):
    """일시적 실패 - 트랜잭션은 롤백되었고 재시도해도 안전함"""
    error_code = "TRY_AGAIN"
    default_message = "Temporary failure, please try again"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class NoSpinsLeftError(EconomyError):
    error_code = "NO_SPINS_LEFT"
    default_message = "No spins left today"


class NoPrizesError(EconomyError):
    error_code = "NO_PRIZES"
    default_message = "No prizes available"


class ItemNotFoundError(EconomyError):
    error_code = "ITEM_NOT_FOUND"
    default_message = "Item not found"
    status_code = status.HTTP_404_NOT_FOUND


class ItemInactiveError(EconomyError):
    error_code = "ITEM_INACTIVE"
    default_message = "Item is not available"


class OutOfStockError(EconomyError):
    error_code = "OUT_OF_STOCK"
    default_message = "Item out of stock"


class PurchaseLimitReachedError(EconomyError):
    error_code = "PURCHASE_LIMIT_REACHED"
    default_message = "Purchase limit reached for this item"


class MissingProfileFieldError(EconomyError):
    """구매에 필요한 프로필 정보 누락 - details 로 어떤 정보가 필요한지 전달"""
    error_code = "MISSING_PROFILE_FIELD"
    default_message = "Required profile information is missing"


class OrderNotFoundError(EconomyError):
    error_code = "ORDER_NOT_FOUND"
    default_message = "Order not found"
    status_code = status.HTTP_404_NOT_FOUND


class OrderAlreadyCancelledError(EconomyError):
    """취소된 주문은 다른 상태로 되돌릴 수 없음"""
    error_code = "ORDER_ALREADY_CANCELLED"
    default_message = "Cancelled orders cannot change status"
    status_code = status.HTTP_409_CONFLICT


class CodeNotFoundError(EconomyError):
    error_code = "CODE_NOT_FOUND"
    default_message = "Invalid promocode"
    status_code = status.HTTP_404_NOT_FOUND


class CodeInactiveError(EconomyError):
    error_code = "CODE_INACTIVE"
    default_message = "This promocode is no longer active"


class CodeExpiredError(EconomyError):
    error_code = "CODE_EXPIRED"
    default_message = "This promocode has expired"


class UsageLimitReachedError(EconomyError):
    error_code = "USAGE_LIMIT_REACHED"
    default_message = "This promocode has reached its usage limit"


class AlreadyUsedError(EconomyError):
    error_code = "ALREADY_USED"
    default_message = "You have already used this promocode"


class CooldownActiveError(EconomyError):
    error_code = "COOLDOWN_ACTIVE"
    default_message = "Cooldown active"
    status_code = status.HTTP_429_TOO_MANY_REQUESTS

    def __init__(self, remaining_seconds: int, message: Optional[str] = None):
        self.remaining_seconds = remaining_seconds
        super().__init__(
            message=message or f"Cooldown active, retry in {remaining_seconds}s",
            details={"remaining_seconds": remaining_seconds},
        )


class MessageTooShortError(EconomyError):
    error_code = "MESSAGE_TOO_SHORT"
    default_message = "Message too short"


class UserNotLinkedError(EconomyError):
    error_code = "USER_NOT_LINKED"
    default_message = "User not linked to website"
