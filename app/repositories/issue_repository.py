"""이슈 레포지토리.

Issue repository — Handles issues DB queries.
"""

from datetime import datetime
from typing import Sequence
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.constants import IssueStatus
from app.models.equipment import Equipment
from app.models.issue import Issue
from app.repositories.base import BaseRepository


def _scoped(query: Select, factory_id: UUID | None) -> Select:
    if factory_id is None:
        return query
    return query.join(Equipment, Issue.equipment_id == Equipment.id).where(Equipment.factory_id == factory_id)


class IssueRepository(BaseRepository[Issue]):

    def __init__(self) -> None:
        super().__init__(Issue)

    async def get_with_relations(
        self,
        db: AsyncSession,
        issue_id: UUID,
    ) -> Issue | None:
        """장비 및 관련 사용자, 점검 기록을 함께 로드합니다."""
        result = await db.execute(
            select(Issue)
            .options(
                selectinload(Issue.equipment),
                selectinload(Issue.reporter),
                selectinload(Issue.handler),
                selectinload(Issue.auditor),
                selectinload(Issue.inspection_log),
            )
            .where(Issue.id == issue_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    def _filter_query(
        self,
        factory_id: UUID | None = None,
        reporter_id: UUID | None = None,
        equipment_id: UUID | None = None,
        status: str | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
    ) -> Select:
        query: Select = _scoped(
            select(Issue)
            .options(
                selectinload(Issue.equipment),
                selectinload(Issue.reporter),
                selectinload(Issue.handler),
                selectinload(Issue.auditor),
                selectinload(Issue.inspection_log),
            )
            .order_by(Issue.created_at.desc()),
            factory_id,
        )
        if reporter_id is not None:
            query = query.where(Issue.reporter_id == reporter_id)
        if equipment_id is not None:
            query = query.where(Issue.equipment_id == equipment_id)
        if status:
            query = query.where(Issue.status == status)
        if start_date is not None:
            query = query.where(Issue.created_at >= start_date)
        if end_date is not None:
            query = query.where(Issue.created_at <= end_date)
        return query

    async def get_by_filters(
        self,
        db: AsyncSession,
        page: int = 1,
        per_page: int = 20,
        **filters,
    ) -> tuple[Sequence[Issue], int]:
        """필터 조건에 맞는 이슈를 DB에서 페이지네이션하여 조회합니다."""
        return await self.get_paginated(db, self._filter_query(**filters), page, per_page)

    async def get_all_by_filters(self, db: AsyncSession, **filters) -> Sequence[Issue]:
        """필터 조건에 맞는 이슈 전체를 최신순으로 조회합니다.

        Only for the read-time severity filter, which cannot be expressed in
        SQL; the service filters and paginates the result in memory.
        """
        result = await db.execute(self._filter_query(**filters))
        return result.scalars().all()

    async def count_by_status(
        self,
        db: AsyncSession,
        since: datetime,
        factory_id: UUID | None = None,
        reporter_id: UUID | None = None,
    ) -> dict[str, int]:
        """기간 내 생성된 이슈의 상태별 개수."""
        query: Select = _scoped(
            select(Issue.status, func.count()).where(Issue.created_at >= since).group_by(Issue.status),
            factory_id,
        )
        if reporter_id is not None:
            query = query.where(Issue.reporter_id == reporter_id)
        result = await db.execute(query)
        return {status: count for status, count in result.all()}

    async def get_closed_durations(
        self,
        db: AsyncSession,
        since: datetime,
        factory_id: UUID | None = None,
        reporter_id: UUID | None = None,
    ) -> list[tuple[datetime, datetime]]:
        """기간 내 종료된 이슈의 (생성 일시, 처리 일시) 목록."""
        query: Select = _scoped(
            select(Issue.created_at, Issue.handled_at).where(
                Issue.created_at >= since,
                Issue.status == IssueStatus.CLOSED,
                Issue.handled_at.is_not(None),
            ),
            factory_id,
        )
        if reporter_id is not None:
            query = query.where(Issue.reporter_id == reporter_id)
        result = await db.execute(query)
        return [(created_at, handled_at) for created_at, handled_at in result.all()]

    async def get_trend_rows(
        self,
        db: AsyncSession,
        since: datetime,
        factory_id: UUID | None = None,
        reporter_id: UUID | None = None,
    ) -> list[tuple[datetime, str]]:
        """추이 집계용 (생성 일시, 상태) 목록 — Only the two columns are loaded."""
        query: Select = _scoped(
            select(Issue.created_at, Issue.status).where(Issue.created_at >= since),
            factory_id,
        )
        if reporter_id is not None:
            query = query.where(Issue.reporter_id == reporter_id)
        result = await db.execute(query)
        return [(created_at, status) for created_at, status in result.all()]


issue_repository: IssueRepository = IssueRepository()
