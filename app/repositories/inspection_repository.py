"""점검 기록 레포지토리.

Inspection log repository — Handles inspection_logs DB queries.
"""

from datetime import datetime
from typing import Sequence
from uuid import UUID

from sqlalchemy import Select, distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.constants import InspectionStatus
from app.models.equipment import Equipment
from app.models.inspection import InspectionLog
from app.repositories.base import BaseRepository


class InspectionRepository(BaseRepository[InspectionLog]):

    def __init__(self) -> None:
        super().__init__(InspectionLog)

    async def get_with_relations(
        self,
        db: AsyncSession,
        inspection_id: UUID,
    ) -> InspectionLog | None:
        """장비, 점검원, 연결 이슈를 함께 로드합니다.

        Load a record with its equipment (for the factory scope check),
        inspector and linked issue.
        """
        result = await db.execute(
            select(InspectionLog)
            .options(
                selectinload(InspectionLog.equipment),
                selectinload(InspectionLog.inspector),
                selectinload(InspectionLog.issue),
            )
            .where(InspectionLog.id == inspection_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_by_filters(
        self,
        db: AsyncSession,
        factory_id: UUID | None = None,
        inspector_id: UUID | None = None,
        equipment_id: UUID | None = None,
        result: str | None = None,
        status: str | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[Sequence[InspectionLog], int]:
        """필터 조건에 맞는 점검 기록을 페이지네이션하여 조회합니다."""
        query: Select = (
            select(InspectionLog)
            .options(
                selectinload(InspectionLog.equipment),
                selectinload(InspectionLog.inspector),
                selectinload(InspectionLog.issue),
            )
            .order_by(InspectionLog.inspection_time.desc())
        )
        if factory_id is not None:
            query = query.join(Equipment, InspectionLog.equipment_id == Equipment.id).where(
                Equipment.factory_id == factory_id
            )
        if inspector_id is not None:
            query = query.where(InspectionLog.inspector_id == inspector_id)
        if equipment_id is not None:
            query = query.where(InspectionLog.equipment_id == equipment_id)
        if result:
            query = query.where(InspectionLog.overall_result == result)
        if status:
            query = query.where(InspectionLog.status == status)
        if start_date is not None:
            query = query.where(InspectionLog.inspection_time >= start_date)
        if end_date is not None:
            query = query.where(InspectionLog.inspection_time <= end_date)
        return await self.get_paginated(db, query, page, per_page)

    def _finalized_since(
        self,
        columns: list,
        since: datetime,
        factory_id: UUID | None,
        inspector_id: UUID | None,
    ) -> Select:
        query: Select = select(*columns).where(
            InspectionLog.status == InspectionStatus.FINALIZED,
            InspectionLog.inspection_time >= since,
        )
        if factory_id is not None:
            query = query.join(Equipment, InspectionLog.equipment_id == Equipment.id).where(
                Equipment.factory_id == factory_id
            )
        if inspector_id is not None:
            query = query.where(InspectionLog.inspector_id == inspector_id)
        return query

    async def count_by_result(
        self,
        db: AsyncSession,
        since: datetime,
        factory_id: UUID | None = None,
        inspector_id: UUID | None = None,
    ) -> dict[str, int]:
        """기간 내 확정된 점검 기록의 결과별 개수 (drafts excluded)."""
        query = self._finalized_since(
            [InspectionLog.overall_result, func.count()], since, factory_id, inspector_id
        ).group_by(InspectionLog.overall_result)
        result = await db.execute(query)
        return {overall_result: count for overall_result, count in result.all()}

    async def count_distinct(
        self,
        db: AsyncSession,
        since: datetime,
        factory_id: UUID | None = None,
        inspector_id: UUID | None = None,
    ) -> tuple[int, int]:
        """기간 내 점검된 장비 수와 점검원 수."""
        query = self._finalized_since(
            [func.count(distinct(InspectionLog.equipment_id)), func.count(distinct(InspectionLog.inspector_id))],
            since,
            factory_id,
            inspector_id,
        )
        equipment_count, inspector_count = (await db.execute(query)).one()
        return equipment_count, inspector_count

    async def get_trend_rows(
        self,
        db: AsyncSession,
        since: datetime,
        factory_id: UUID | None = None,
        inspector_id: UUID | None = None,
    ) -> list[tuple[datetime, str]]:
        result = await db.execute(
            self._finalized_since(
                [InspectionLog.inspection_time, InspectionLog.overall_result], since, factory_id, inspector_id
            )
        )
        return [(inspection_time, overall_result) for inspection_time, overall_result in result.all()]


inspection_repository: InspectionRepository = InspectionRepository()
