"""위치 단위 일괄 점검 테스트.

Batch inspection tests — All equipment at a location inspected in one
request, persisted entirely or not at all.
"""

import uuid

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.constants import Role
from app.models.equipment import Equipment
from app.models.image import RecordImage
from app.models.inspection import InspectionLog
from app.models.issue import Issue
from app.schemas.auth import Principal
from app.schemas.inspection import BatchInspectionCreate
from app.services.batch_inspection_service import batch_inspection_service
from app.utils.exceptions import NotFoundError
from tests.conftest import auth_header, count_rows, fetch, make_equipment

URL = "/api/v1/inspections/batch"

PASS = [{"item": "外观", "result": "PASS"}]
FAIL = [{"item": "外观", "result": "FAIL"}]


def element(equipment_id, result: str = "NORMAL", **extra) -> dict:
    item = {
        "equipment_id": str(equipment_id),
        "overall_result": result,
        "checklist_results": PASS if result == "NORMAL" else FAIL,
        "inspection_image_url": f"/uploads/batch/{equipment_id}.jpg",
    }
    if result == "ABNORMAL":
        item["issue_description"] = "箱体损坏"
    item.update(extra)
    return item


async def location_equipment(db: AsyncSession, factory, count: int) -> list[Equipment]:
    return [await make_equipment(db, factory, f"B栋-{i}", location="B栋2层") for i in range(count)]


class TestBatchInspection:
    """일괄 점검 성공 경로 테스트."""

    async def test_batch_summary(self, client: AsyncClient, db: AsyncSession, inspector_token, inspector, factory):
        equipments = await location_equipment(db, factory, 3)
        res = await client.post(
            URL,
            json={
                "location": "B栋2层",
                "equipments": [
                    element(equipments[0].id),
                    element(equipments[1].id, "ABNORMAL", issue_image_url="/uploads/batch/issue.jpg"),
                    element(equipments[2].id),
                ],
            },
            headers=auth_header(inspector_token),
        )
        assert res.status_code == 201, res.json()
        data = res.json()
        assert data["summary"] == {
            "location": "B栋2层",
            "total_equipments": 3,
            "normal_count": 2,
            "abnormal_count": 1,
            "issue_count": 1,
            "inspector_id": str(inspector.id),
        }
        assert len(data["inspections"]) == 3
        assert all(item["status"] == "FINALIZED" for item in data["inspections"])
        assert len(data["issues"]) == 1
        assert data["issues"][0]["description"] == "箱体损坏"
        assert data["issues"][0]["issue_image_urls"] == ["/uploads/batch/issue.jpg"]

        assert (await fetch(db, Equipment, equipments[1].id)).status == "ABNORMAL"
        assert (await fetch(db, Equipment, equipments[0].id)).status == "NORMAL"
        assert (await fetch(db, Equipment, equipments[2].id)).last_inspected_at is not None

    async def test_abnormal_record_links_issue(self, client: AsyncClient, db: AsyncSession, inspector_token, factory):
        equipments = await location_equipment(db, factory, 1)
        res = await client.post(
            URL,
            json={"location": "B栋2层", "equipments": [element(equipments[0].id, "ABNORMAL")]},
            headers=auth_header(inspector_token),
        )
        record = res.json()["inspections"][0]
        assert record["issue_id"] == res.json()["issues"][0]["id"]
        assert record["inspection_image_urls"] == [f"/uploads/batch/{equipments[0].id}.jpg"]


class TestBatchAtomicity:
    """일괄 점검 원자성 테스트 — 하나라도 실패하면 아무것도 저장되지 않음."""

    async def test_missing_equipment_rolls_back_everything(
        self, client: AsyncClient, db: AsyncSession, inspector_token, factory
    ):
        """5개 중 3번째 장비가 없으면 기록/이슈 0건."""
        equipments = await location_equipment(db, factory, 4)
        items = [element(equipments[0].id, "ABNORMAL"), element(equipments[1].id)]
        items.append(element(uuid.uuid4()))
        items += [element(equipments[2].id), element(equipments[3].id, "ABNORMAL")]

        res = await client.post(URL, json={"location": "B栋2层", "equipments": items}, headers=auth_header(inspector_token))
        assert res.status_code == 404
        assert res.json()["code"] == "NOT_FOUND"

        assert await count_rows(db, InspectionLog) == 0
        assert await count_rows(db, Issue) == 0
        assert await count_rows(db, RecordImage) == 0
        refreshed = await fetch(db, Equipment, equipments[0].id)
        assert refreshed.status == "NORMAL"
        assert refreshed.last_inspected_at is None

    async def test_service_raises_before_commit(self, db: AsyncSession, inspector, factory):
        """서비스 수준: 예외 전파 후 롤백하면 남는 행 없음."""
        equipments = await location_equipment(db, factory, 2)
        data = BatchInspectionCreate(
            location="B栋2层",
            equipments=[element(equipments[0].id), element(equipments[1].id), element(uuid.uuid4())],
        )
        principal = Principal(id=inspector.id, role=Role.INSPECTOR, factory_id=factory.id)

        with pytest.raises(NotFoundError):
            await batch_inspection_service.create_for_location(db, data, principal)
        await db.rollback()

        assert await count_rows(db, InspectionLog) == 0

    async def test_equipment_outside_factory_rolls_back(
        self, client: AsyncClient, db: AsyncSession, inspector_token, factory, other_factory
    ):
        mine = await make_equipment(db, factory, "B栋-mine")
        foreign = await make_equipment(db, other_factory, "C栋-foreign")
        res = await client.post(
            URL,
            json={"location": "B栋2层", "equipments": [element(mine.id), element(foreign.id)]},
            headers=auth_header(inspector_token),
        )
        assert res.status_code == 403
        assert await count_rows(db, InspectionLog) == 0


class TestBatchValidation:
    """일괄 점검 입력 검증 테스트 — DB 쓰기 전에 400."""

    async def test_empty_equipment_list(self, client: AsyncClient, inspector_token, inspector):
        res = await client.post(URL, json={"location": "B栋2层", "equipments": []}, headers=auth_header(inspector_token))
        assert res.status_code == 400
        assert res.json()["code"] == "VALIDATION_ERROR"

    async def test_blank_location(self, client: AsyncClient, inspector_token, equipment):
        res = await client.post(
            URL, json={"location": " ", "equipments": [element(equipment.id)]}, headers=auth_header(inspector_token)
        )
        assert res.status_code == 400

    async def test_missing_image(self, client: AsyncClient, db: AsyncSession, inspector_token, equipment):
        res = await client.post(
            URL,
            json={"location": "A栋1层", "equipments": [element(equipment.id, inspection_image_url=None)]},
            headers=auth_header(inspector_token),
        )
        assert res.status_code == 400
        assert res.json()["context"]["field"] == "inspection_image_url"
        assert await count_rows(db, InspectionLog) == 0

    async def test_abnormal_without_description(self, client: AsyncClient, inspector_token, equipment):
        res = await client.post(
            URL,
            json={"location": "A栋1层", "equipments": [element(equipment.id, "ABNORMAL", issue_description="")]},
            headers=auth_header(inspector_token),
        )
        assert res.status_code == 400
        assert res.json()["context"]["field"] == "issue_description"

    async def test_invalid_result_reports_index(self, client: AsyncClient, db: AsyncSession, inspector_token, factory):
        equipments = await location_equipment(db, factory, 2)
        res = await client.post(
            URL,
            json={
                "location": "B栋2层",
                "equipments": [element(equipments[0].id), element(equipments[1].id, overall_result="UNKNOWN")],
            },
            headers=auth_header(inspector_token),
        )
        assert res.status_code == 400
        assert res.json()["context"]["index"] == 1

    async def test_duplicate_equipment(self, client: AsyncClient, inspector_token, equipment):
        res = await client.post(
            URL,
            json={"location": "A栋1层", "equipments": [element(equipment.id), element(equipment.id)]},
            headers=auth_header(inspector_token),
        )
        assert res.status_code == 400
