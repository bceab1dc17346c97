"""이슈 라우터 — 이슈 조회, 처리, 심사, 메모 API.

Issue Router — Hazard ticket reads and transitions.
Handling and auditing are admin-only (FACTORY_ADMIN within their factory,
SUPER_ADMIN anywhere).
"""

from datetime import datetime
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_principal, require_admin
from app.database import get_db
from app.schemas.auth import Principal
from app.schemas.common import PaginatedResponse
from app.schemas.issue import IssueAudit, IssueComment, IssueHandle
from app.services.image_reference_service import image_reference_service
from app.services.issue_service import issue_service
from app.services.permission_service import permission_service
from app.utils.period import PERIOD_PATTERN

router: APIRouter = APIRouter()


@router.get("", response_model=PaginatedResponse)
async def list_issues(
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(get_principal)],
    status: str | None = Query(None),
    equipment_id: UUID | None = Query(None),
    reporter_id: UUID | None = Query(None),
    severity: str | None = Query(None),
    start_date: datetime | None = Query(None),
    end_date: datetime | None = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
) -> dict:
    """이슈 목록. 점검원은 본인이 보고한 이슈만 조회."""
    items, total = await issue_service.list_issues(
        db,
        principal,
        status=status,
        equipment_id=equipment_id,
        reporter_id=reporter_id,
        start_date=start_date,
        end_date=end_date,
        severity=severity,
        page=page,
        per_page=per_page,
    )
    return {"items": items, "total": total, "page": page, "per_page": per_page}


@router.get("/stats")
async def get_issue_stats(
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(get_principal)],
    period: str = Query("month", pattern=PERIOD_PATTERN),
) -> dict:
    """기간별 이슈 통계 — 상태별 건수, 해결률, 평균 처리 일수."""
    return await issue_service.get_stats(db, principal, period)


@router.get("/trend")
async def get_issue_trend(
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(get_principal)],
    days: int = Query(30, ge=1, le=365),
) -> list[dict]:
    return await issue_service.get_trend(db, principal, days)


@router.get("/{issue_id}")
async def get_issue(
    issue_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(get_principal)],
) -> dict:
    """이슈 상세."""
    issue = await issue_service.get_detail(db, issue_id, principal)
    return await issue_service.build_response(db, issue)


@router.put("/{issue_id}/handle")
async def handle_issue(
    issue_id: UUID,
    data: IssueHandle,
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(require_admin)],
) -> dict:
    """이슈 처리 (PENDING → PENDING_AUDIT)."""
    issue = await issue_service.handle(
        db, issue_id, data, principal.id, permission_service.scope_of(principal)
    )
    await db.commit()
    return await issue_service.build_response(db, issue)


@router.put("/{issue_id}/audit")
async def audit_issue(
    issue_id: UUID,
    data: IssueAudit,
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(require_admin)],
) -> dict:
    """이슈 심사. 반려 시 폐기된 조치 이미지는 커밋 후 정리."""
    issue, discarded = await issue_service.audit(
        db, issue_id, data, principal.id, permission_service.scope_of(principal)
    )
    await db.commit()
    await image_reference_service.release_all(db, discarded)
    return await issue_service.build_response(db, issue)


@router.post("/{issue_id}/comments", status_code=201)
async def add_issue_comment(
    issue_id: UUID,
    data: IssueComment,
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(get_principal)],
) -> dict:
    """이슈 메모 추가."""
    result = await issue_service.add_comment(
        db, issue_id, data.comment, permission_service.scope_of(principal)
    )
    await db.commit()
    return result
