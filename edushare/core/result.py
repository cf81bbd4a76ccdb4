# edushare/core/result.py
"""
서비스 계층 공통 결과 타입

모든 서비스 연산은 예외를 던지거나 None/False를 돌려주는 대신
ServiceResult를 반환합니다. 호출하는 쪽(라우트)은 error_kind를 보고
응답 형태를 결정합니다.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from google.api_core import exceptions as gcp_exceptions


class ErrorKind(Enum):
    """서비스 실패 유형"""
    NOT_FOUND = "NOT_FOUND"
    VALIDATION_FAILURE = "VALIDATION_FAILURE"
    TRANSIENT_FAILURE = "TRANSIENT_FAILURE"
    FORBIDDEN = "FORBIDDEN"
    CONFLICT = "CONFLICT"


# error_kind -> HTTP 상태 코드
HTTP_STATUS_BY_ERROR_KIND = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.VALIDATION_FAILURE: 400,
    ErrorKind.TRANSIENT_FAILURE: 503,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.CONFLICT: 409,
}


@dataclass
class ServiceResult:
    ok: bool
    value: Any = None
    error_kind: Optional[ErrorKind] = None
    message: Optional[str] = None

    @classmethod
    def success(cls, value: Any = None) -> "ServiceResult":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error_kind: ErrorKind, message: str) -> "ServiceResult":
        return cls(ok=False, error_kind=error_kind, message=message)

    @classmethod
    def not_found(cls, message: str) -> "ServiceResult":
        return cls.failure(ErrorKind.NOT_FOUND, message)

    @classmethod
    def from_exception(cls, exc: Exception, message: str) -> "ServiceResult":
        return cls.failure(classify_exception(exc), message)

    @property
    def is_not_found(self) -> bool:
        return self.error_kind is ErrorKind.NOT_FOUND

    @property
    def http_status(self) -> int:
        if self.ok:
            return 200
        return HTTP_STATUS_BY_ERROR_KIND.get(self.error_kind, 500)


def classify_exception(exc: Exception) -> ErrorKind:
    """플랫폼 SDK 예외를 ErrorKind로 분류합니다."""
    # identity_service의 예외는 자신의 분류를 가지고 있습니다.
    error_kind = getattr(exc, 'error_kind', None)
    if isinstance(error_kind, ErrorKind):
        return error_kind

    if isinstance(exc, gcp_exceptions.NotFound):
        return ErrorKind.NOT_FOUND
    if isinstance(exc, (gcp_exceptions.AlreadyExists, gcp_exceptions.Conflict)):
        return ErrorKind.CONFLICT
    if isinstance(exc, (gcp_exceptions.InvalidArgument, gcp_exceptions.FailedPrecondition)):
        return ErrorKind.VALIDATION_FAILURE
    if isinstance(exc, (gcp_exceptions.PermissionDenied, gcp_exceptions.Forbidden)):
        return ErrorKind.FORBIDDEN
    if isinstance(exc, ValueError):
        return ErrorKind.VALIDATION_FAILURE
    return ErrorKind.TRANSIENT_FAILURE
