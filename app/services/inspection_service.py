"""점검 기록 서비스 — 임시 저장부터 최종 제출까지의 점검 생명주기.

Inspection Service — Inspection record lifecycle.

    create_empty_inspection → DRAFT (no checklist, empty image list)
    append_image / remove_image → DRAFT only
    finalize → FINALIZED (one way, exactly once)

An ABNORMAL result opens a PENDING issue linked to the record and marks the
equipment ABNORMAL. A NORMAL result on ABNORMAL equipment recounts its open
issues. Every path updates the equipment's ``last_inspected_at``.
"""

from datetime import datetime, timedelta, timezone
from typing import Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.constants import (
    EquipmentStatus,
    ImageOwner,
    InspectionResult,
    InspectionStatus,
    Role,
)
from app.models.equipment import Equipment
from app.models.inspection import InspectionLog
from app.models.issue import Issue
from app.repositories.equipment_repository import equipment_repository
from app.repositories.image_repository import image_repository
from app.repositories.inspection_repository import inspection_repository
from app.schemas.auth import Principal
from app.schemas.inspection import ChecklistResultItem, InspectionCreate, InspectionFinalize
from app.services.equipment_status_service import equipment_status_service
from app.services.issue_service import days_between, issue_service
from app.services.permission_service import permission_service
from app.utils.exceptions import (
    BadRequestError,
    ImageAlreadyExistsError,
    ImageNotFoundError,
    InvalidStateError,
    NotFoundError,
)
from app.utils.period import as_utc, percentage, period_start, trend_dates, trend_start


def validate_result(
    overall_result: str | None,
    checklist_results: list[ChecklistResultItem] | None,
    **context,
) -> list[dict]:
    """종합 결과와 체크리스트를 검증하고 저장 형식으로 변환합니다.

    Raises:
        BadRequestError: 결과 값이 잘못되었거나 체크리스트가 비어 있음
    """
    if overall_result not in InspectionResult.ALL:
        raise BadRequestError(
            "overall_result must be NORMAL or ABNORMAL",
            field="overall_result",
            value=overall_result,
            **context,
        )
    if not checklist_results:
        raise BadRequestError(
            "checklist_results must be a non-empty list",
            field="checklist_results",
            **context,
        )
    return [item.model_dump(exclude_none=True) for item in checklist_results]


class InspectionService:

    def serialize(self, log: InspectionLog, image_urls: list[str]) -> dict:
        """관계가 로드된 점검 기록을 응답 딕셔너리로 변환합니다."""
        equipment: Equipment = log.equipment
        issue: Issue | None = log.issue
        return {
            "id": str(log.id),
            "equipment_id": str(log.equipment_id),
            "equipment_name": equipment.name if equipment else None,
            "equipment_location": equipment.location if equipment else None,
            "equipment_status": equipment.status if equipment else None,
            "factory_id": str(equipment.factory_id) if equipment else None,
            "inspector_id": str(log.inspector_id),
            "inspector_name": log.inspector.full_name if log.inspector else None,
            "status": log.status,
            "is_draft": log.is_draft,
            "overall_result": log.overall_result,
            "checklist_results": log.checklist_results,
            "inspection_image_url": log.inspection_image_url,
            "inspection_image_urls": image_urls,
            "issue_id": str(log.issue_id) if log.issue_id else None,
            "issue_status": issue.status if issue else None,
            "issue_description": issue.description if issue else None,
            "inspection_time": log.inspection_time,
            "created_at": log.created_at,
            "updated_at": log.updated_at,
        }

    async def build_response(self, db: AsyncSession, log: InspectionLog) -> dict:
        image_urls: list[str] = await image_repository.get_urls(db, ImageOwner.INSPECTION, log.id)
        return self.serialize(log, image_urls)

    # --- 내부 헬퍼 (Internal helpers) ---

    async def _reload(self, db: AsyncSession, inspection_id: UUID) -> InspectionLog:
        log = await inspection_repository.get_with_relations(db, inspection_id)
        if log is None:
            raise NotFoundError("Inspection not found", resource="inspection", id=str(inspection_id))
        return log

    async def _get_authorized(
        self,
        db: AsyncSession,
        inspection_id: UUID,
        principal: Principal,
    ) -> InspectionLog:
        """점검 기록을 장비와 함께 로드하고 권한을 검사합니다."""
        log = await self._reload(db, inspection_id)
        permission_service.ensure_access(principal, log.equipment.factory_id, log.inspector_id)
        return log

    async def _get_equipment_in_scope(
        self,
        db: AsyncSession,
        equipment_id: UUID,
        principal: Principal,
    ) -> Equipment:
        equipment = await equipment_repository.get_by_id(db, equipment_id)
        if equipment is None:
            raise NotFoundError("Equipment not found", resource="equipment", id=str(equipment_id))
        permission_service.ensure_access(principal, equipment.factory_id)
        return equipment

    async def _set_images(self, db: AsyncSession, log: InspectionLog, urls: Sequence[str]) -> list[str]:
        """이미지 목록을 저장하고 첫 번째 이미지를 대표 필드에 반영합니다."""
        stored: list[str] = await image_repository.replace_urls(db, ImageOwner.INSPECTION, log.id, urls)
        first: str | None = stored[0] if stored else None
        if log.inspection_image_url != first:
            await inspection_repository.update(db, log, {"inspection_image_url": first})
        return stored

    async def apply_result(
        self,
        db: AsyncSession,
        equipment: Equipment,
        overall_result: str,
        reporter_id: UUID,
        issue_description: str | None,
        issue_image_urls: Sequence[str],
    ) -> Issue | None:
        """결과에 따른 이슈 생성 및 장비 상태 갱신.

        Shared branch of finalize, one-shot creation and batch creation:
        ABNORMAL opens an issue, NORMAL on ABNORMAL equipment recounts open
        issues. Always stamps ``last_inspected_at``.
        """
        issue: Issue | None = None
        if overall_result == InspectionResult.ABNORMAL:
            issue = await issue_service.open_issue(
                db, equipment.id, reporter_id, issue_description, issue_image_urls
            )
        elif equipment.status == EquipmentStatus.ABNORMAL:
            await equipment_status_service.recompute_after_clear(db, equipment.id)

        await equipment_status_service.touch_last_inspected(db, equipment)
        return issue

    # --- 생명주기 (Lifecycle) ---

    async def create_empty_inspection(
        self,
        db: AsyncSession,
        equipment_id: UUID,
        principal: Principal,
    ) -> InspectionLog:
        """빈 점검 기록(DRAFT)을 생성합니다.

        Create a DRAFT record owned by the caller. Images are attached later
        with ``append_image``; the checklist arrives with ``finalize``.
        """
        equipment = await self._get_equipment_in_scope(db, equipment_id, principal)
        log = await inspection_repository.create(
            db,
            {
                "equipment_id": equipment.id,
                "inspector_id": principal.id,
                "status": InspectionStatus.DRAFT,
                "overall_result": InspectionResult.NORMAL,
                "checklist_results": None,
            },
        )
        return await self._reload(db, log.id)

    async def append_image(
        self,
        db: AsyncSession,
        inspection_id: UUID,
        url: str,
        principal: Principal,
    ) -> InspectionLog:
        """임시 저장 기록에 이미지 URL을 추가합니다.

        Raises:
            ImageAlreadyExistsError: 이미 첨부된 URL (URL already attached)
            InvalidStateError: 최종 제출된 기록 (Record already finalized)
        """
        if not url or not url.strip():
            raise BadRequestError("image_url must not be empty", field="image_url")
        url = url.strip()

        log = await self._get_authorized(db, inspection_id, principal)
        if not log.is_draft:
            raise InvalidStateError("Inspection already finalized", status=log.status)

        urls: list[str] = await image_repository.get_urls(db, ImageOwner.INSPECTION, log.id)
        if url in urls:
            raise ImageAlreadyExistsError("Image already attached", url=url)

        await self._set_images(db, log, [*urls, url])
        return await self._reload(db, inspection_id)

    async def remove_image(
        self,
        db: AsyncSession,
        inspection_id: UUID,
        url: str,
        principal: Principal,
    ) -> InspectionLog:
        """임시 저장 기록에서 이미지 URL을 제거합니다.

        The file itself is released by the caller after commit, through
        ``image_reference_service.safe_delete``.

        Raises:
            ImageNotFoundError: 첨부되지 않은 URL (URL not attached)
            InvalidStateError: 최종 제출된 기록 (Record already finalized)
        """
        log = await self._get_authorized(db, inspection_id, principal)
        if not log.is_draft:
            raise InvalidStateError("Inspection already finalized", status=log.status)

        urls: list[str] = await image_repository.get_urls(db, ImageOwner.INSPECTION, log.id)
        if url not in urls:
            raise ImageNotFoundError("Image not attached", url=url)

        await self._set_images(db, log, [existing for existing in urls if existing != url])
        return await self._reload(db, inspection_id)

    async def finalize(
        self,
        db: AsyncSession,
        inspection_id: UUID,
        data: InspectionFinalize,
        principal: Principal,
    ) -> InspectionLog:
        """임시 저장 기록을 최종 제출합니다 (DRAFT → FINALIZED, 1회).

        The DRAFT → FINALIZED write is ``UPDATE ... WHERE status = 'DRAFT'``;
        a concurrent finalize that loses the race gets InvalidStateError and
        opens no second issue.

        Raises:
            NotFoundError: 기록 없음 (Record missing)
            ForbiddenError: 권한 없음 (Outside the caller's scope)
            InvalidStateError: DRAFT가 아님 (Already finalized)
            BadRequestError: 결과/체크리스트가 잘못됨 (Malformed result payload)
        """
        log = await self._get_authorized(db, inspection_id, principal)
        if not log.is_draft:
            raise InvalidStateError("Inspection already finalized", status=log.status)

        checklist: list[dict] = validate_result(data.overall_result, data.checklist_results)

        moved: bool = await inspection_repository.transition_status(
            db,
            inspection_id,
            InspectionStatus.DRAFT,
            {
                "status": InspectionStatus.FINALIZED,
                "overall_result": data.overall_result,
                "checklist_results": checklist,
                "inspection_time": datetime.now(timezone.utc),
            },
        )
        if not moved:
            raise InvalidStateError("Inspection was finalized concurrently", expected=InspectionStatus.DRAFT)

        # 이슈 보고자는 기록 생성자 (The record creator reports the issue)
        issue = await self.apply_result(
            db,
            log.equipment,
            data.overall_result,
            log.inspector_id,
            data.issue_description,
            data.issue_image_urls,
        )
        if issue is not None:
            await inspection_repository.transition_status(
                db, inspection_id, InspectionStatus.FINALIZED, {"issue_id": issue.id}
            )
        return await self._reload(db, inspection_id)

    async def create_inspection(
        self,
        db: AsyncSession,
        data: InspectionCreate,
        principal: Principal,
    ) -> InspectionLog:
        """점검 기록을 최종 제출 상태로 바로 생성합니다.

        One-shot creation without the draft phase; branches like finalize.
        """
        checklist: list[dict] = validate_result(data.overall_result, data.checklist_results)
        equipment = await self._get_equipment_in_scope(db, data.equipment_id, principal)

        issue = await self.apply_result(
            db,
            equipment,
            data.overall_result,
            principal.id,
            data.issue_description,
            data.issue_image_urls,
        )
        log = await inspection_repository.create(
            db,
            {
                "equipment_id": equipment.id,
                "inspector_id": principal.id,
                "status": InspectionStatus.FINALIZED,
                "overall_result": data.overall_result,
                "checklist_results": checklist,
                "issue_id": issue.id if issue else None,
            },
        )
        await self._set_images(db, log, data.inspection_image_urls)
        return await self._reload(db, log.id)

    # --- 조회 (Reads) ---

    async def get_detail(
        self,
        db: AsyncSession,
        inspection_id: UUID,
        principal: Principal,
    ) -> InspectionLog:
        return await self._get_authorized(db, inspection_id, principal)

    async def list_inspections(
        self,
        db: AsyncSession,
        principal: Principal,
        equipment_id: UUID | None = None,
        inspector_id: UUID | None = None,
        result: str | None = None,
        status: str | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[list[dict], int]:
        """점검 기록 목록 — 공장 범위, 점검원은 본인 기록만."""
        scope: UUID | None = permission_service.scope_of(principal)
        if principal.role == Role.INSPECTOR:
            inspector_id = principal.id

        logs, total = await inspection_repository.get_by_filters(
            db,
            factory_id=scope,
            inspector_id=inspector_id,
            equipment_id=equipment_id,
            result=result,
            status=status,
            start_date=start_date,
            end_date=end_date,
            page=page,
            per_page=per_page,
        )
        images = await image_repository.get_urls_for_owners(
            db, ImageOwner.INSPECTION, [log.id for log in logs]
        )
        return [self.serialize(log, images[log.id]) for log in logs], total

    async def list_pending_equipment(
        self,
        db: AsyncSession,
        principal: Principal,
        days: int | None = None,
    ) -> list[dict]:
        """점검 기한이 지난 장비 목록.

        Non-scrapped equipment never inspected or not inspected within
        ``days`` days (default ``PENDING_INSPECTION_DAYS``).
        """
        days = days if days is not None else settings.PENDING_INSPECTION_DAYS
        if not 1 <= days <= 365:
            raise BadRequestError("days must be between 1 and 365", field="days", value=days)

        now: datetime = datetime.now(timezone.utc)
        overdue_before: datetime = now - timedelta(days=days)
        scope: UUID | None = permission_service.scope_of(principal)

        equipments = await equipment_repository.get_overdue(db, overdue_before, scope)
        counts = await equipment_repository.count_inspections(db, [equipment.id for equipment in equipments])

        return [
            {
                "id": str(equipment.id),
                "name": equipment.name,
                "qr_code": equipment.qr_code,
                "location": equipment.location,
                "status": equipment.status,
                "factory_id": str(equipment.factory_id),
                "factory_name": equipment.factory.name if equipment.factory else None,
                "last_inspected_at": equipment.last_inspected_at,
                "days_since_last_inspection": (
                    days_between(equipment.last_inspected_at, now) if equipment.last_inspected_at else None
                ),
                "total_inspections": counts[equipment.id],
                "is_overdue": True,
            }
            for equipment in equipments
        ]

    # --- 통계 (Statistics) ---

    async def get_stats(self, db: AsyncSession, principal: Principal, period: str = "month") -> dict:
        """기간별 점검 통계 — 확정된 기록만 집계 (drafts are not counted).

        Counts by result, pass rate, distinct equipment and inspectors since
        the start of ``period``. Inspectors see only their own records.
        """
        scope: UUID | None = permission_service.scope_of(principal)
        inspector_id: UUID | None = principal.id if principal.role == Role.INSPECTOR else None
        now: datetime = datetime.now(timezone.utc)
        since: datetime = period_start(period, now)

        by_result = await inspection_repository.count_by_result(db, since, scope, inspector_id)
        equipment_coverage, inspector_count = await inspection_repository.count_distinct(
            db, since, scope, inspector_id
        )
        normal: int = by_result.get(InspectionResult.NORMAL, 0)
        abnormal: int = by_result.get(InspectionResult.ABNORMAL, 0)
        total: int = normal + abnormal
        return {
            "period": period,
            "start_time": since,
            "end_time": now,
            "total": total,
            "by_result": {"normal": normal, "abnormal": abnormal},
            "pass_rate": percentage(normal, total),
            "equipment_coverage": equipment_coverage,
            "inspector_count": inspector_count,
        }

    async def get_trend(self, db: AsyncSession, principal: Principal, days: int = 30) -> list[dict]:
        """최근 ``days``일의 일별 점검 건수 (today included)."""
        if not 1 <= days <= 365:
            raise BadRequestError("days must be between 1 and 365", field="days", value=days)
        scope: UUID | None = permission_service.scope_of(principal)
        inspector_id: UUID | None = principal.id if principal.role == Role.INSPECTOR else None
        now: datetime = datetime.now(timezone.utc)

        buckets: dict = {
            day: {"date": day.isoformat(), "total": 0, "normal": 0, "abnormal": 0} for day in trend_dates(days, now)
        }
        rows = await inspection_repository.get_trend_rows(db, trend_start(days, now), scope, inspector_id)
        for inspection_time, overall_result in rows:
            bucket = buckets.get(as_utc(inspection_time).date())
            if bucket is None:
                continue
            bucket["total"] += 1
            if overall_result == InspectionResult.ABNORMAL:
                bucket["abnormal"] += 1
            else:
                bucket["normal"] += 1
        return list(buckets.values())


inspection_service: InspectionService = InspectionService()
