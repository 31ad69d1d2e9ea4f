"""
错误处理模块 - 定义自定义异常类和错误处理逻辑
Validation and persistence failures are local and recoverable; upstream
generation failures are the only category surfaced to top-level callers.
"""
from enum import Enum
from typing import Any, Dict, Optional

from fastapi import status


class ErrorCode(str, Enum):
    """错误代码枚举"""
    # 客户端错误
    INVALID_INPUT = "INVALID_INPUT"
    NO_OP_CORRECTION = "NO_OP_CORRECTION"
    EMPTY_CORRECTION = "EMPTY_CORRECTION"
    INVALID_STATE = "INVALID_STATE"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"

    # 服务端错误
    INTERNAL_ERROR = "INTERNAL_ERROR"
    PERSISTENCE_FAILED = "PERSISTENCE_FAILED"

    # 外部服务错误
    UPSTREAM_ERROR = "UPSTREAM_ERROR"
    UPSTREAM_RATE_LIMITED = "UPSTREAM_RATE_LIMITED"
    UPSTREAM_TIMEOUT = "UPSTREAM_TIMEOUT"
    UPSTREAM_MISCONFIGURED = "UPSTREAM_MISCONFIGURED"


class BaseApplicationError(Exception):
    """应用基础异常类"""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.status_code = status_code
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典格式"""
        return {
            "code": self.error_code.value,
            "message": self.message,
            "details": self.details
        }


# 客户端错误 (4xx)
class ValidationError(BaseApplicationError):
    """输入验证错误 - the caller returns immediately, no store access is attempted"""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Any = None,
        error_code: ErrorCode = ErrorCode.INVALID_INPUT,
        status_code: int = status.HTTP_422_UNPROCESSABLE_ENTITY,
    ):
        details = {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)

        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
            status_code=status_code
        )


class PatternError(ValidationError):
    """Nothing learnable in a correction. Non-fatal."""


class NoOpCorrectionError(PatternError):
    def __init__(self, phrase: str):
        super().__init__(
            message="Original and corrected phrases are identical",
            field="corrected",
            value=phrase,
            error_code=ErrorCode.NO_OP_CORRECTION,
        )


class EmptyCorrectionError(PatternError):
    def __init__(self, field: str):
        super().__init__(
            message=f"'{field}' is empty after trimming",
            field=field,
            error_code=ErrorCode.EMPTY_CORRECTION,
        )


class PhraseTooLongError(PatternError):
    def __init__(self, field: str, length: int, limit: int):
        super().__init__(
            message=f"'{field}' is {length} characters long, the limit is {limit}",
            field=field,
            value=length,
        )


class InvalidStateTransitionError(ValidationError):
    """Editing-session operation not allowed in the current state"""

    def __init__(self, current: str, operation: str):
        super().__init__(
            message=f"Cannot {operation} while session is {current}",
            field="state",
            value=current,
            error_code=ErrorCode.INVALID_STATE,
            status_code=status.HTTP_409_CONFLICT,
        )


class ResourceNotFoundError(BaseApplicationError):
    """资源不存在错误"""

    def __init__(self, resource_type: str, resource_id: Optional[str] = None):
        message = f"{resource_type} not found"
        details = {"resource_type": resource_type}
        if resource_id:
            details["resource_id"] = resource_id
            message = f"{resource_type} with id '{resource_id}' not found"

        super().__init__(
            message=message,
            error_code=ErrorCode.RESOURCE_NOT_FOUND,
            details=details,
            status_code=status.HTTP_404_NOT_FOUND
        )


# 服务端错误 (5xx)
class PersistenceError(BaseApplicationError):
    """存储操作错误 - logged and swallowed by the learning paths"""

    def __init__(self, message: str, operation: str, original_error: Optional[Exception] = None):
        details = {"operation": operation}
        if original_error is not None:
            details["original_error"] = str(original_error)
        super().__init__(
            message=f"Storage operation '{operation}' failed: {message}",
            error_code=ErrorCode.PERSISTENCE_FAILED,
            details=details,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
        )


# 外部服务错误
class UpstreamServiceError(BaseApplicationError):
    """Generation service call failed (transport, auth, rate limit, timeout)"""

    retryable: bool = False

    def __init__(
        self,
        message: str,
        upstream_status: Optional[int] = None,
        original_error: Optional[Exception] = None,
        error_code: ErrorCode = ErrorCode.UPSTREAM_ERROR,
        status_code: int = status.HTTP_502_BAD_GATEWAY,
    ):
        self.upstream_status = upstream_status
        details: Dict[str, Any] = {"retryable": self.retryable}
        if upstream_status is not None:
            details["upstream_status"] = upstream_status
        if original_error is not None:
            details["original_error"] = str(original_error)

        super().__init__(
            message=f"Generation service error: {message}",
            error_code=error_code,
            details=details,
            status_code=status_code
        )


class RateLimitedError(UpstreamServiceError):
    """429 from the generation service; retry later"""

    retryable = True

    def __init__(self, message: str = "rate limit exceeded", original_error: Optional[Exception] = None):
        super().__init__(
            message,
            upstream_status=status.HTTP_429_TOO_MANY_REQUESTS,
            original_error=original_error,
            error_code=ErrorCode.UPSTREAM_RATE_LIMITED,
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        )


class UpstreamTimeoutError(UpstreamServiceError):
    """Deadline expired before the generation service answered"""

    retryable = True

    def __init__(self, timeout: float, original_error: Optional[Exception] = None):
        self.timeout = timeout
        super().__init__(
            f"no response within {timeout:g}s",
            original_error=original_error,
            error_code=ErrorCode.UPSTREAM_TIMEOUT,
            status_code=status.HTTP_504_GATEWAY_TIMEOUT,
        )


class UpstreamConfigurationError(UpstreamServiceError):
    """Missing or rejected credentials; retrying will not help"""

    def __init__(
        self,
        message: str = "API key not configured",
        upstream_status: Optional[int] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(
            message,
            upstream_status=upstream_status,
            original_error=original_error,
            error_code=ErrorCode.UPSTREAM_MISCONFIGURED,
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        )
