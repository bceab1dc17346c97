"""위치 단위 일괄 점검 서비스.

Batch Inspection Service — One-shot inspection of every equipment at a
location. Each element already carries its full result, so records are
written directly as FINALIZED.

The whole batch shares the request transaction. Any error (a missing
equipment, a scope violation) propagates and the session is rolled back, so
a batch is persisted entirely or not at all.
"""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.constants import ImageOwner, InspectionResult, InspectionStatus
from app.models.inspection import InspectionLog
from app.models.issue import Issue
from app.repositories.equipment_repository import equipment_repository
from app.repositories.image_repository import image_repository
from app.repositories.inspection_repository import inspection_repository
from app.repositories.issue_repository import issue_repository
from app.schemas.auth import Principal
from app.schemas.inspection import BatchEquipmentItem, BatchInspectionCreate
from app.services.inspection_service import inspection_service, validate_result
from app.services.issue_service import issue_service
from app.services.permission_service import permission_service
from app.utils.exceptions import BadRequestError, NotFoundError

logger = logging.getLogger(__name__)


class BatchInspectionService:

    def validate(self, data: BatchInspectionCreate) -> list[list[dict]]:
        """DB 쓰기 전에 모든 항목을 검증합니다.

        Validate every element before the first write. Returns the stored
        checklist form of each element, in order.
        """
        if not data.location or not data.location.strip():
            raise BadRequestError("location is required", field="location")
        if not data.equipments:
            raise BadRequestError("equipments must be a non-empty list", field="equipments")

        checklists: list[list[dict]] = []
        seen: set[UUID] = set()
        for index, item in enumerate(data.equipments):
            if item.equipment_id is None:
                raise BadRequestError("equipment_id is required", field="equipment_id", index=index)
            if item.equipment_id in seen:
                raise BadRequestError(
                    "Equipment listed more than once",
                    field="equipment_id",
                    index=index,
                    equipment_id=str(item.equipment_id),
                )
            seen.add(item.equipment_id)

            checklists.append(validate_result(item.overall_result, item.checklist_results, index=index))

            if not item.inspection_image_url:
                raise BadRequestError("inspection_image_url is required", field="inspection_image_url", index=index)
            if item.overall_result == InspectionResult.ABNORMAL and not (item.issue_description or "").strip():
                raise BadRequestError(
                    "issue_description is required for ABNORMAL results",
                    field="issue_description",
                    index=index,
                )
        return checklists

    async def _create_one(
        self,
        db: AsyncSession,
        item: BatchEquipmentItem,
        checklist: list[dict],
        principal: Principal,
    ) -> tuple[InspectionLog, Issue | None]:
        equipment = await equipment_repository.get_by_id(db, item.equipment_id)
        if equipment is None:
            raise NotFoundError("Equipment not found", resource="equipment", id=str(item.equipment_id))
        permission_service.ensure_access(principal, equipment.factory_id)

        issue: Issue | None = await inspection_service.apply_result(
            db,
            equipment,
            item.overall_result,
            principal.id,
            item.issue_description,
            [item.issue_image_url] if item.issue_image_url else [],
        )
        log = await inspection_repository.create(
            db,
            {
                "equipment_id": equipment.id,
                "inspector_id": principal.id,
                "status": InspectionStatus.FINALIZED,
                "overall_result": item.overall_result,
                "checklist_results": checklist,
                "inspection_image_url": item.inspection_image_url,
                "issue_id": issue.id if issue else None,
            },
        )
        await image_repository.replace_urls(db, ImageOwner.INSPECTION, log.id, [item.inspection_image_url])
        return log, issue

    async def create_for_location(
        self,
        db: AsyncSession,
        data: BatchInspectionCreate,
        principal: Principal,
    ) -> dict:
        """위치의 장비들을 한 번에 점검 기록으로 생성합니다.

        Returns:
            dict: {"inspections", "issues", "summary"}
        """
        checklists = self.validate(data)
        location: str = data.location.strip()
        logger.info(
            "Batch inspection started: location=%s equipments=%d inspector=%s",
            location,
            len(data.equipments),
            principal.id,
        )

        log_ids: list[UUID] = []
        issue_ids: list[UUID] = []
        normal_count: int = 0
        abnormal_count: int = 0

        for item, checklist in zip(data.equipments, checklists):
            log, issue = await self._create_one(db, item, checklist, principal)
            log_ids.append(log.id)
            if issue is not None:
                issue_ids.append(issue.id)
            if item.overall_result == InspectionResult.ABNORMAL:
                abnormal_count += 1
            else:
                normal_count += 1

        inspections: list[dict] = []
        for log_id in log_ids:
            log = await inspection_repository.get_with_relations(db, log_id)
            inspections.append(await inspection_service.build_response(db, log))

        issues: list[dict] = []
        for issue_id in issue_ids:
            issue = await issue_repository.get_with_relations(db, issue_id)
            issues.append(await issue_service.build_response(db, issue))

        logger.info(
            "Batch inspection prepared: location=%s normal=%d abnormal=%d issues=%d",
            location,
            normal_count,
            abnormal_count,
            len(issue_ids),
        )
        return {
            "inspections": inspections,
            "issues": issues,
            "summary": {
                "location": location,
                "total_equipments": len(data.equipments),
                "normal_count": normal_count,
                "abnormal_count": abnormal_count,
                "issue_count": len(issue_ids),
                "inspector_id": str(principal.id),
            },
        }


batch_inspection_service: BatchInspectionService = BatchInspectionService()
