"""도메인 예외 클래스 모듈 — 태그가 붙은 닫힌 오류 분류.

Tagged domain error classes.
Every error raised by the service layer is an ``AppError`` subclass carrying a
stable machine-readable ``code`` plus structured ``context``. Because they are
HTTPException subclasses, FastAPI maps them to status codes directly; the
handler registered in ``app.main`` renders code and context into the body.

Usage:
    from app.utils.exceptions import NotFoundError, InvalidStateError
    raise NotFoundError("Issue not found", resource="issue", id=str(issue_id))
    raise InvalidStateError("Inspection already finalized", status="FINALIZED")
"""

from typing import Any

from fastapi import HTTPException, status


class AppError(HTTPException):
    """모든 도메인 예외의 베이스 클래스.

    Base class for all tagged domain errors.

    Attributes:
        code: 오류 코드 (Stable error code, e.g. "INVALID_STATE")
        context: 구조화된 부가 정보 (Structured context for the caller)
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "APP_ERROR"
    default_detail: str = "Application error"

    def __init__(self, detail: str | None = None, **context: Any) -> None:
        super().__init__(status_code=self.status_code, detail=detail or self.default_detail)
        self.context: dict[str, Any] = context


class NotFoundError(AppError):
    """404 — 장비/점검 기록/이슈가 존재하지 않음 (Equipment, inspection or issue missing)."""

    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"
    default_detail = "Resource not found"


class ForbiddenError(AppError):
    """403 — 범위/소유권 위반 (Scope or ownership violation, a.k.a. PermissionDenied)."""

    status_code = status.HTTP_403_FORBIDDEN
    code = "PERMISSION_DENIED"
    default_detail = "Insufficient permissions"


class InvalidStateError(AppError):
    """409 — 현재 생명주기 상태에서 허용되지 않는 작업.

    Operation not legal for the record's current lifecycle state
    (finalizing a non-draft inspection, handling a non-PENDING issue, ...).
    """

    status_code = status.HTTP_409_CONFLICT
    code = "INVALID_STATE"
    default_detail = "Operation not allowed in the current state"


class ImageAlreadyExistsError(AppError):
    """409 — 이미 첨부된 이미지 URL (Image URL already attached)."""

    status_code = status.HTTP_409_CONFLICT
    code = "IMAGE_ALREADY_EXISTS"
    default_detail = "Image already exists"


class ImageNotFoundError(AppError):
    """404 — 첨부되지 않은 이미지 URL (Image URL not attached to the record)."""

    status_code = status.HTTP_404_NOT_FOUND
    code = "IMAGE_NOT_FOUND"
    default_detail = "Image not found"


class BadRequestError(AppError):
    """400 — DB 쓰기 전에 감지된 잘못된 요청 데이터.

    Malformed finalize/batch payload caught before any database write
    (the ValidationError of the error taxonomy).
    """

    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"
    default_detail = "Bad request"


class UnauthorizedError(AppError):
    """401 — 인증 실패 (Missing, invalid or expired credentials)."""

    status_code = status.HTTP_401_UNAUTHORIZED
    code = "UNAUTHORIZED"
    default_detail = "Authentication required"
