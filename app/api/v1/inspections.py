"""점검 기록 라우터 — 점검 생명주기 API.

Inspection Router — Draft, image capture, finalize, one-shot and batch
creation, plus scoped reads. Every mutating endpoint commits once; files
detached from a record are released only after that commit.
"""

from datetime import datetime
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_principal
from app.database import get_db
from app.schemas.auth import Principal
from app.schemas.common import PaginatedResponse
from app.schemas.inspection import (
    BatchInspectionCreate,
    InspectionCreate,
    InspectionEmptyCreate,
    InspectionFinalize,
    InspectionImageAppend,
)
from app.services.batch_inspection_service import batch_inspection_service
from app.services.image_reference_service import image_reference_service
from app.services.inspection_service import inspection_service
from app.utils.period import PERIOD_PATTERN

router: APIRouter = APIRouter()


@router.get("", response_model=PaginatedResponse)
async def list_inspections(
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(get_principal)],
    equipment_id: UUID | None = Query(None),
    inspector_id: UUID | None = Query(None),
    result: str | None = Query(None),
    status: str | None = Query(None),
    start_date: datetime | None = Query(None),
    end_date: datetime | None = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
) -> dict:
    """점검 기록 목록. 점검원은 본인 기록만 조회."""
    items, total = await inspection_service.list_inspections(
        db,
        principal,
        equipment_id=equipment_id,
        inspector_id=inspector_id,
        result=result,
        status=status,
        start_date=start_date,
        end_date=end_date,
        page=page,
        per_page=per_page,
    )
    return {"items": items, "total": total, "page": page, "per_page": per_page}


@router.get("/pending-equipment")
async def list_pending_equipment(
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(get_principal)],
    days: int | None = Query(None, ge=1, le=365),
) -> list[dict]:
    """점검 기한이 지난 장비 목록."""
    return await inspection_service.list_pending_equipment(db, principal, days)


@router.get("/stats")
async def get_inspection_stats(
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(get_principal)],
    period: str = Query("month", pattern=PERIOD_PATTERN),
) -> dict:
    """기간별 점검 통계 (today, week, month, year)."""
    return await inspection_service.get_stats(db, principal, period)


@router.get("/trend")
async def get_inspection_trend(
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(get_principal)],
    days: int = Query(30, ge=1, le=365),
) -> list[dict]:
    return await inspection_service.get_trend(db, principal, days)


@router.post("/empty", status_code=201)
async def create_empty_inspection(
    data: InspectionEmptyCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(get_principal)],
) -> dict:
    """빈 점검 기록(DRAFT) 생성."""
    log = await inspection_service.create_empty_inspection(db, data.equipment_id, principal)
    await db.commit()
    return await inspection_service.build_response(db, log)


@router.post("/batch", status_code=201)
async def create_batch_inspection(
    data: BatchInspectionCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(get_principal)],
) -> dict:
    """위치 단위 일괄 점검. 전부 성공하거나 전부 롤백."""
    result = await batch_inspection_service.create_for_location(db, data, principal)
    await db.commit()
    return result


@router.post("", status_code=201)
async def create_inspection(
    data: InspectionCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(get_principal)],
) -> dict:
    """점검 기록 즉시 생성 (최종 제출 상태)."""
    log = await inspection_service.create_inspection(db, data, principal)
    await db.commit()
    return await inspection_service.build_response(db, log)


@router.get("/{inspection_id}")
async def get_inspection(
    inspection_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(get_principal)],
) -> dict:
    """점검 기록 상세."""
    log = await inspection_service.get_detail(db, inspection_id, principal)
    return await inspection_service.build_response(db, log)


@router.post("/{inspection_id}/images")
async def append_inspection_image(
    inspection_id: UUID,
    data: InspectionImageAppend,
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(get_principal)],
) -> dict:
    """임시 저장 기록에 이미지 추가."""
    log = await inspection_service.append_image(db, inspection_id, data.image_url, principal)
    await db.commit()
    return await inspection_service.build_response(db, log)


@router.delete("/{inspection_id}/images")
async def remove_inspection_image(
    inspection_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(get_principal)],
    url: str = Query(...),
) -> dict:
    """임시 저장 기록에서 이미지 제거. 커밋 후 참조가 없으면 파일 삭제."""
    log = await inspection_service.remove_image(db, inspection_id, url, principal)
    await db.commit()
    await image_reference_service.safe_delete(db, url)
    return await inspection_service.build_response(db, log)


@router.patch("/{inspection_id}/finalize")
async def finalize_inspection(
    inspection_id: UUID,
    data: InspectionFinalize,
    db: Annotated[AsyncSession, Depends(get_db)],
    principal: Annotated[Principal, Depends(get_principal)],
) -> dict:
    """점검 기록 최종 제출 (1회만 가능)."""
    log = await inspection_service.finalize(db, inspection_id, data, principal)
    await db.commit()
    return await inspection_service.build_response(db, log)
