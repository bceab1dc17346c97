"""장비 상태 서비스 — 미해결 이슈로부터 장비 상태 도출.

Equipment Status Service — Derives equipment health from open issues.
Equipment is ABNORMAL exactly while at least one PENDING, IN_PROGRESS or
PENDING_AUDIT issue is attached to it. SCRAPPED equipment is never touched.

Every method flushes into the caller's session and never commits, so the
status change lands in the same transaction as the issue or inspection
change that triggered it.
"""

from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.constants import EquipmentStatus
from app.models.equipment import Equipment
from app.repositories.equipment_repository import equipment_repository
from app.utils.exceptions import NotFoundError


class EquipmentStatusService:

    async def _load(self, db: AsyncSession, equipment_id: UUID) -> Equipment:
        equipment = await equipment_repository.get_by_id(db, equipment_id)
        if equipment is None:
            raise NotFoundError("Equipment not found", resource="equipment", id=str(equipment_id))
        return equipment

    async def count_open_issues(self, db: AsyncSession, equipment_id: UUID) -> int:
        return await equipment_repository.count_open_issues(db, equipment_id)

    async def recompute_after_abnormal_report(self, db: AsyncSession, equipment_id: UUID) -> Equipment:
        """이상 보고 후 장비를 ABNORMAL로 설정합니다 (무조건).

        An abnormal report alone is enough to mark the equipment ABNORMAL.
        """
        equipment = await self._load(db, equipment_id)
        if equipment.status == EquipmentStatus.SCRAPPED:
            return equipment
        if equipment.status != EquipmentStatus.ABNORMAL:
            equipment = await equipment_repository.update(
                db, equipment, {"status": EquipmentStatus.ABNORMAL}
            )
        return equipment

    async def recompute_after_clear(self, db: AsyncSession, equipment_id: UUID) -> Equipment:
        """미해결 이슈 수로 장비 상태를 재계산합니다.

        Recount open issues: none left → NORMAL, otherwise ABNORMAL.
        """
        equipment = await self._load(db, equipment_id)
        if equipment.status == EquipmentStatus.SCRAPPED:
            return equipment

        open_count: int = await self.count_open_issues(db, equipment_id)
        new_status: str = EquipmentStatus.ABNORMAL if open_count > 0 else EquipmentStatus.NORMAL
        if equipment.status != new_status:
            equipment = await equipment_repository.update(db, equipment, {"status": new_status})
        return equipment

    async def touch_last_inspected(
        self,
        db: AsyncSession,
        equipment: Equipment,
        when: datetime | None = None,
    ) -> Equipment:
        """장비의 마지막 점검 일시를 갱신합니다."""
        return await equipment_repository.update(
            db, equipment, {"last_inspected_at": when or datetime.now(timezone.utc)}
        )


equipment_status_service: EquipmentStatusService = EquipmentStatusService()
