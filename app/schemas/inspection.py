"""점검 기록 Pydantic 스키마.

Inspection request schemas.
Field presence and value checks that must fail with VALIDATION_ERROR
(result values, empty checklists, incomplete batch elements) are done by
the services, so most fields here are typed but optional.
"""

from uuid import UUID

from pydantic import BaseModel, Field


class ChecklistResultItem(BaseModel):
    item: str
    result: str  # PASS, FAIL, ...
    note: str | None = None


class InspectionEmptyCreate(BaseModel):
    equipment_id: UUID


class InspectionImageAppend(BaseModel):
    image_url: str


class InspectionFinalize(BaseModel):
    overall_result: str | None = None  # NORMAL, ABNORMAL
    checklist_results: list[ChecklistResultItem] | None = None
    issue_description: str | None = None
    issue_image_urls: list[str] = Field(default_factory=list)


class InspectionCreate(InspectionFinalize):
    """점검 기록 즉시 생성 (임시 저장 단계 없음).

    One-shot creation of a finalized record, no draft phase.
    """

    equipment_id: UUID
    inspection_image_urls: list[str] = Field(default_factory=list)


class BatchEquipmentItem(BaseModel):
    equipment_id: UUID | None = None
    overall_result: str | None = None
    checklist_results: list[ChecklistResultItem] | None = None
    inspection_image_url: str | None = None
    issue_description: str | None = None
    issue_image_url: str | None = None


class BatchInspectionCreate(BaseModel):
    location: str
    equipments: list[BatchEquipmentItem] = Field(default_factory=list)
