from enum import Enum

from fastapi import HTTPException, status


class ErrorCode(str, Enum):
    VALIDATION = "VALIDATION"
    NOT_FOUND = "NOT_FOUND"
    FORBIDDEN = "FORBIDDEN"
    UNAUTHENTICATED = "UNAUTHENTICATED"
    CONFLICT = "CONFLICT"
    UPSTREAM_UNAVAILABLE = "UPSTREAM_UNAVAILABLE"
    INTERNAL = "INTERNAL"


_DEFAULT_CODES = {
    status.HTTP_400_BAD_REQUEST: ErrorCode.VALIDATION,
    status.HTTP_401_UNAUTHORIZED: ErrorCode.UNAUTHENTICATED,
    status.HTTP_403_FORBIDDEN: ErrorCode.FORBIDDEN,
    status.HTTP_404_NOT_FOUND: ErrorCode.NOT_FOUND,
    status.HTTP_409_CONFLICT: ErrorCode.CONFLICT,
    status.HTTP_502_BAD_GATEWAY: ErrorCode.UPSTREAM_UNAVAILABLE,
}


class ServiceError(Exception):
    """Base exception for service layer errors."""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        code: ErrorCode = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code or _DEFAULT_CODES.get(status_code, ErrorCode.INTERNAL)

    def to_http(self) -> HTTPException:
        message = self.message
        if self.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            message = "Internal server error"
        return HTTPException(
            status_code=self.status_code,
            detail={"code": self.code.value, "message": message},
        )


def error_detail(code: ErrorCode, message: str) -> dict:
    return {"code": code.value, "message": message}
