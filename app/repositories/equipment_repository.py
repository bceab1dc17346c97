"""장비 레포지토리.

Equipment repository — Handles equipments DB queries.
"""

from datetime import datetime
from typing import Sequence
from uuid import UUID

from sqlalchemy import Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.constants import EquipmentStatus, IssueStatus
from app.models.equipment import Equipment
from app.models.inspection import InspectionLog
from app.models.issue import Issue
from app.repositories.base import BaseRepository


class EquipmentRepository(BaseRepository[Equipment]):

    def __init__(self) -> None:
        super().__init__(Equipment)

    async def count_open_issues(self, db: AsyncSession, equipment_id: UUID) -> int:
        """장비에 연결된 미해결 이슈 수 (PENDING, IN_PROGRESS, PENDING_AUDIT)."""
        result = await db.execute(
            select(func.count())
            .select_from(Issue)
            .where(Issue.equipment_id == equipment_id, Issue.status.in_(IssueStatus.OPEN))
        )
        return result.scalar() or 0

    async def get_overdue(
        self,
        db: AsyncSession,
        overdue_before: datetime,
        factory_id: UUID | None = None,
    ) -> Sequence[Equipment]:
        """점검이 없거나 기준일 이전에 마지막으로 점검된 장비 목록.

        Non-scrapped equipment never inspected, or last inspected before
        ``overdue_before``. Oldest first, never-inspected at the top.
        """
        query: Select = (
            select(Equipment)
            .options(selectinload(Equipment.factory))
            .where(
                Equipment.status != EquipmentStatus.SCRAPPED,
                or_(Equipment.last_inspected_at.is_(None), Equipment.last_inspected_at < overdue_before),
            )
            .order_by(Equipment.last_inspected_at.asc().nulls_first(), Equipment.name.asc())
        )
        if factory_id is not None:
            query = query.where(Equipment.factory_id == factory_id)
        result = await db.execute(query)
        return result.scalars().all()

    async def count_inspections(self, db: AsyncSession, equipment_ids: Sequence[UUID]) -> dict[UUID, int]:
        """장비별 점검 기록 수 (임시 저장 포함, drafts included)."""
        counts: dict[UUID, int] = {equipment_id: 0 for equipment_id in equipment_ids}
        if not equipment_ids:
            return counts
        result = await db.execute(
            select(InspectionLog.equipment_id, func.count())
            .where(InspectionLog.equipment_id.in_(equipment_ids))
            .group_by(InspectionLog.equipment_id)
        )
        for equipment_id, count in result.all():
            counts[equipment_id] = count
        return counts


equipment_repository: EquipmentRepository = EquipmentRepository()
