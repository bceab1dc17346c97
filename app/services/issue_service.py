"""이슈(隐患) 서비스 — 이슈 생명주기 비즈니스 로직.

Issue Service — Hazard ticket lifecycle.

State machine:
    PENDING --handle--> PENDING_AUDIT --audit(approve)--> CLOSED
    PENDING_AUDIT --audit(reject)--> PENDING  (handling data discarded)

Issues are only opened by inspections (``open_issue``). Every transition is
a conditional update on the expected status, so two concurrent requests
cannot both move the same ticket; the loser gets InvalidStateError.
"""

import math
from datetime import datetime, timezone
from typing import Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.constants import ImageOwner, IssueStatus, Role
from app.models.issue import Issue
from app.repositories.image_repository import image_repository
from app.repositories.issue_repository import issue_repository
from app.schemas.auth import Principal
from app.schemas.issue import IssueAudit, IssueHandle
from app.services.equipment_status_service import equipment_status_service
from app.services.permission_service import permission_service
from app.utils.exceptions import BadRequestError, InvalidStateError, NotFoundError
from app.utils.period import as_utc, percentage, period_start, trend_dates, trend_start

DEFAULT_ISSUE_DESCRIPTION: str = "点检发现异常"

# 심각도 키워드 — Severity keywords matched against the description
CRITICAL_KEYWORDS: tuple[str, ...] = ("火灾", "爆炸", "泄漏", "危险", "紧急")
HIGH_KEYWORDS: tuple[str, ...] = ("故障", "损坏", "失效", "异常")

SEVERITIES: tuple[str, ...] = ("LOW", "MEDIUM", "HIGH", "CRITICAL")

_DAY_SECONDS: int = 24 * 60 * 60


def days_between(start: datetime, end: datetime) -> int:
    return math.floor((as_utc(end) - as_utc(start)).total_seconds() / _DAY_SECONDS)


def _append_line(note: str | None, line: str | None) -> str | None:
    # audit_note는 줄 단위 누적 기록 (one entry per line)
    if not line:
        return note
    return f"{note}\n{line}" if note else line


def calculate_severity(description: str, days_open: int) -> str:
    """설명 키워드와 경과 일수로 심각도를 계산합니다 (표시용).

    Read-time severity: LOW, MEDIUM, HIGH or CRITICAL.
    """
    text: str = (description or "").lower()
    if any(keyword in text for keyword in CRITICAL_KEYWORDS) or days_open > 7:
        return "CRITICAL"
    if any(keyword in text for keyword in HIGH_KEYWORDS) or days_open > 3:
        return "HIGH"
    if days_open > 1:
        return "MEDIUM"
    return "LOW"


class IssueService:

    def serialize(
        self,
        issue: Issue,
        issue_image_urls: list[str],
        fixed_image_urls: list[str],
        now: datetime | None = None,
    ) -> dict:
        """관계가 로드된 이슈를 응답 딕셔너리로 변환합니다."""
        now = now or datetime.now(timezone.utc)
        days_open: int = days_between(issue.created_at, now)
        equipment = issue.equipment
        return {
            "id": str(issue.id),
            "equipment_id": str(issue.equipment_id),
            "equipment_name": equipment.name if equipment else None,
            "equipment_location": equipment.location if equipment else None,
            "equipment_status": equipment.status if equipment else None,
            "factory_id": str(equipment.factory_id) if equipment else None,
            "description": issue.description,
            "status": issue.status,
            "reporter_id": str(issue.reporter_id),
            "reporter_name": issue.reporter.full_name if issue.reporter else None,
            "handler_id": str(issue.handler_id) if issue.handler_id else None,
            "handler_name": issue.handler.full_name if issue.handler else None,
            "handled_at": issue.handled_at,
            "solution": issue.solution,
            "auditor_id": str(issue.auditor_id) if issue.auditor_id else None,
            "auditor_name": issue.auditor.full_name if issue.auditor else None,
            "audited_at": issue.audited_at,
            "audit_note": issue.audit_note,
            "issue_image_url": issue.issue_image_url,
            "issue_image_urls": issue_image_urls,
            "fixed_image_url": issue.fixed_image_url,
            "fixed_image_urls": fixed_image_urls,
            "inspection_id": str(issue.inspection_log.id) if issue.inspection_log else None,
            "severity": calculate_severity(issue.description, days_open),
            "days_open": days_open,
            "processing_days": days_between(issue.created_at, issue.handled_at) if issue.handled_at else None,
            "created_at": issue.created_at,
            "updated_at": issue.updated_at,
        }

    async def build_response(self, db: AsyncSession, issue: Issue) -> dict:
        issue_images: list[str] = await image_repository.get_urls(db, ImageOwner.ISSUE, issue.id)
        fixed_images: list[str] = await image_repository.get_urls(db, ImageOwner.ISSUE_FIXED, issue.id)
        return self.serialize(issue, issue_images, fixed_images)

    async def _get_scoped(
        self,
        db: AsyncSession,
        issue_id: UUID,
        scope_factory_id: UUID | None,
    ) -> Issue:
        issue = await issue_repository.get_with_relations(db, issue_id)
        if issue is None:
            raise NotFoundError("Issue not found", resource="issue", id=str(issue_id))
        permission_service.ensure_scope(scope_factory_id, issue.equipment.factory_id)
        return issue

    async def _reload(self, db: AsyncSession, issue_id: UUID) -> Issue:
        issue = await issue_repository.get_with_relations(db, issue_id)
        if issue is None:
            raise NotFoundError("Issue not found", resource="issue", id=str(issue_id))
        return issue

    # --- 생성 (Creation, called by inspections only) ---

    async def open_issue(
        self,
        db: AsyncSession,
        equipment_id: UUID,
        reporter_id: UUID,
        description: str | None,
        image_urls: Sequence[str] = (),
    ) -> Issue:
        """PENDING 이슈를 생성하고 장비를 ABNORMAL로 표시합니다.

        Open a PENDING ticket for an abnormal inspection and mark the
        equipment ABNORMAL in the same transaction.
        """
        issue = await issue_repository.create(
            db,
            {
                "equipment_id": equipment_id,
                "reporter_id": reporter_id,
                "description": (description or "").strip() or DEFAULT_ISSUE_DESCRIPTION,
                "status": IssueStatus.PENDING,
            },
        )
        stored: list[str] = await image_repository.replace_urls(db, ImageOwner.ISSUE, issue.id, image_urls)
        if stored:
            issue = await issue_repository.update(db, issue, {"issue_image_url": stored[0]})

        await equipment_status_service.recompute_after_abnormal_report(db, equipment_id)
        return issue

    # --- 조회 (Reads) ---

    async def get_detail(self, db: AsyncSession, issue_id: UUID, principal: Principal) -> Issue:
        """이슈 상세 — 점검원은 본인이 보고한 이슈만 조회 가능."""
        issue = await self._reload(db, issue_id)
        permission_service.ensure_access(principal, issue.equipment.factory_id, issue.reporter_id)
        return issue

    async def list_issues(
        self,
        db: AsyncSession,
        principal: Principal,
        status: str | None = None,
        equipment_id: UUID | None = None,
        reporter_id: UUID | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        severity: str | None = None,
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[list[dict], int]:
        """이슈 목록을 조회합니다.

        Paginated in the database. Severity is derived at read time, so a
        severity-filtered listing loads every match and paginates in memory.
        """
        if severity and severity not in SEVERITIES:
            raise BadRequestError("Invalid severity", severity=severity)

        scope: UUID | None = permission_service.scope_of(principal)
        if principal.role == Role.INSPECTOR:
            reporter_id = principal.id
        filters: dict = {
            "factory_id": scope,
            "reporter_id": reporter_id,
            "equipment_id": equipment_id,
            "status": status,
            "start_date": start_date,
            "end_date": end_date,
        }

        if not severity:
            issues, total = await issue_repository.get_by_filters(db, page=page, per_page=per_page, **filters)
            return await self._serialize_all(db, issues), total

        issues = await issue_repository.get_all_by_filters(db, **filters)
        items: list[dict] = [
            item for item in await self._serialize_all(db, issues) if item["severity"] == severity
        ]
        offset: int = (page - 1) * per_page
        return items[offset:offset + per_page], len(items)

    async def _serialize_all(self, db: AsyncSession, issues: Sequence[Issue]) -> list[dict]:
        issue_ids: list[UUID] = [issue.id for issue in issues]
        issue_images = await image_repository.get_urls_for_owners(db, ImageOwner.ISSUE, issue_ids)
        fixed_images = await image_repository.get_urls_for_owners(db, ImageOwner.ISSUE_FIXED, issue_ids)
        now: datetime = datetime.now(timezone.utc)
        return [self.serialize(issue, issue_images[issue.id], fixed_images[issue.id], now) for issue in issues]

    # --- 통계 (Statistics) ---

    async def get_stats(self, db: AsyncSession, principal: Principal, period: str = "month") -> dict:
        """기간별 이슈 통계.

        Counts by status, resolve rate and the average processing time (whole
        days from creation to handling, over CLOSED issues) for issues opened
        since the start of ``period``. Inspectors see only issues they reported.
        """
        scope: UUID | None = permission_service.scope_of(principal)
        reporter_id: UUID | None = principal.id if principal.role == Role.INSPECTOR else None
        now: datetime = datetime.now(timezone.utc)
        since: datetime = period_start(period, now)

        counts = await issue_repository.count_by_status(db, since, scope, reporter_id)
        durations = await issue_repository.get_closed_durations(db, since, scope, reporter_id)

        by_status: dict[str, int] = {status.lower(): counts.get(status, 0) for status in IssueStatus.ALL}
        total: int = sum(by_status.values())
        avg_processing_days: int = 0
        if durations:
            mean = sum(days_between(created_at, handled_at) for created_at, handled_at in durations) / len(durations)
            avg_processing_days = math.floor(mean + 0.5)
        return {
            "period": period,
            "start_time": since,
            "end_time": now,
            "total": total,
            "by_status": by_status,
            "resolve_rate": percentage(by_status["closed"], total),
            "avg_processing_days": avg_processing_days,
        }

    async def get_trend(self, db: AsyncSession, principal: Principal, days: int = 30) -> list[dict]:
        """최근 ``days``일의 일별 신규 이슈 건수와 현재 상태 분포."""
        if not 1 <= days <= 365:
            raise BadRequestError("days must be between 1 and 365", field="days", value=days)
        scope: UUID | None = permission_service.scope_of(principal)
        reporter_id: UUID | None = principal.id if principal.role == Role.INSPECTOR else None
        now: datetime = datetime.now(timezone.utc)

        buckets: dict = {
            day: {"date": day.isoformat(), "total": 0, "pending": 0, "closed": 0} for day in trend_dates(days, now)
        }
        for created_at, status in await issue_repository.get_trend_rows(db, trend_start(days, now), scope, reporter_id):
            bucket = buckets.get(as_utc(created_at).date())
            if bucket is None:
                continue
            bucket["total"] += 1
            if status == IssueStatus.PENDING:
                bucket["pending"] += 1
            elif status == IssueStatus.CLOSED:
                bucket["closed"] += 1
        return list(buckets.values())


    # --- 전이 (Transitions) ---

    async def handle(
        self,
        db: AsyncSession,
        issue_id: UUID,
        data: IssueHandle,
        handler_id: UUID,
        scope_factory_id: UUID | None,
    ) -> Issue:
        """이슈 처리 — PENDING → PENDING_AUDIT.

        Record the handling (solution and fix images) and send the ticket
        to audit.

        Raises:
            NotFoundError: 이슈 없음 (Issue missing)
            ForbiddenError: 공장 범위 밖 (Outside the caller's factory)
            InvalidStateError: PENDING 상태가 아님 (Not PENDING)
        """
        issue = await self._get_scoped(db, issue_id, scope_factory_id)
        if issue.status != IssueStatus.PENDING:
            raise InvalidStateError(
                "Issue cannot be handled in its current state",
                status=issue.status,
                expected=IssueStatus.PENDING,
            )

        fixed_urls: list[str] = data.image_urls()
        moved: bool = await issue_repository.transition_status(
            db,
            issue_id,
            IssueStatus.PENDING,
            {
                "status": IssueStatus.PENDING_AUDIT,
                "handler_id": handler_id,
                "handled_at": datetime.now(timezone.utc),
                "solution": data.solution,
                "fixed_image_url": fixed_urls[0] if fixed_urls else None,
            },
        )
        if not moved:
            raise InvalidStateError("Issue was changed concurrently", expected=IssueStatus.PENDING)

        await image_repository.replace_urls(db, ImageOwner.ISSUE_FIXED, issue_id, fixed_urls)
        return await self._reload(db, issue_id)

    async def audit(
        self,
        db: AsyncSession,
        issue_id: UUID,
        data: IssueAudit,
        auditor_id: UUID,
        scope_factory_id: UUID | None,
    ) -> tuple[Issue, list[str]]:
        """이슈 심사 — 승인 시 CLOSED, 반려 시 PENDING으로 복귀.

        Approve: CLOSED, then recompute equipment status (the equipment goes
        back to NORMAL when this was its last open ticket). The audit note is
        appended after any earlier comment lines in ``audit_note``.
        Reject: back to PENDING with handler, solution, fix images and every
        audit field (auditor, audited_at, audit_note) cleared. Equipment stays
        ABNORMAL since the ticket is still open.

        Returns:
            tuple[Issue, list[str]]: (이슈, 폐기된 조치 이미지 URL)
                (Issue, discarded fix-image URLs to release after commit)
        """
        issue = await self._get_scoped(db, issue_id, scope_factory_id)
        if issue.status != IssueStatus.PENDING_AUDIT:
            raise InvalidStateError(
                "Issue cannot be audited in its current state",
                status=issue.status,
                expected=IssueStatus.PENDING_AUDIT,
            )

        now: datetime = datetime.now(timezone.utc)
        discarded: list[str] = []

        if data.approved:
            values: dict = {
                "status": IssueStatus.CLOSED,
                "auditor_id": auditor_id,
                "audited_at": now,
                "audit_note": _append_line(issue.audit_note, data.audit_note),
            }
        else:
            discarded = await image_repository.get_urls(db, ImageOwner.ISSUE_FIXED, issue_id)
            if issue.fixed_image_url and issue.fixed_image_url not in discarded:
                discarded.append(issue.fixed_image_url)
            values = {
                "status": IssueStatus.PENDING,
                "handler_id": None,
                "handled_at": None,
                "solution": None,
                "fixed_image_url": None,
                "auditor_id": None,
                "audited_at": None,
                "audit_note": None,
            }

        moved: bool = await issue_repository.transition_status(db, issue_id, IssueStatus.PENDING_AUDIT, values)
        if not moved:
            raise InvalidStateError("Issue was changed concurrently", expected=IssueStatus.PENDING_AUDIT)

        if data.approved:
            await equipment_status_service.recompute_after_clear(db, issue.equipment_id)
        else:
            await image_repository.replace_urls(db, ImageOwner.ISSUE_FIXED, issue_id, [])

        return await self._reload(db, issue_id), discarded

    async def add_comment(
        self,
        db: AsyncSession,
        issue_id: UUID,
        comment: str,
        scope_factory_id: UUID | None,
    ) -> dict:
        """이슈에 타임스탬프가 붙은 메모를 추가합니다 (audit_note에 한 줄 추가)."""
        if not comment or not comment.strip():
            raise BadRequestError("Comment must not be empty")

        issue = await self._get_scoped(db, issue_id, scope_factory_id)
        line: str = f"[{datetime.now(timezone.utc).isoformat()}] {comment.strip()}"
        await issue_repository.update(db, issue, {"audit_note": _append_line(issue.audit_note, line)})
        return {"issue_id": str(issue_id), "comment": line}


issue_service: IssueService = IssueService()
