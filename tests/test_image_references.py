"""업로드 이미지 참조 추적 테스트.

Image reference tests — A file shared by several records survives until
the last reference is gone; paths outside the uploads directory are never
touched.
"""

import pytest
import pytest_asyncio
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.constants import ImageOwner
from app.models.inspection import InspectionLog
from app.models.issue import Issue
from app.repositories.image_repository import image_repository
from app.services.image_reference_service import image_reference_service
from tests.conftest import auth_header

INSPECTIONS = "/api/v1/inspections"


@pytest.fixture
def uploads(tmp_path, monkeypatch):
    """UPLOADS_DIR을 임시 디렉토리로 교체합니다."""
    monkeypatch.setattr(settings, "UPLOADS_DIR", str(tmp_path))
    return tmp_path


@pytest_asyncio.fixture
async def draft_log(db: AsyncSession, equipment, inspector):
    log = InspectionLog(equipment_id=equipment.id, inspector_id=inspector.id)
    db.add(log)
    await db.commit()
    return log


class TestIsReferenced:
    """참조 여부 확인 테스트 — 모든 이미지 위치를 검사."""

    async def test_unreferenced(self, db: AsyncSession, draft_log):
        assert await image_reference_service.is_referenced(db, "/uploads/nowhere.jpg") is False

    async def test_inspection_image_list(self, db: AsyncSession, draft_log):
        await image_repository.replace_urls(db, ImageOwner.INSPECTION, draft_log.id, ["/uploads/a.jpg"])
        assert await image_reference_service.is_referenced(db, "/uploads/a.jpg") is True

    async def test_legacy_inspection_column(self, db: AsyncSession, draft_log):
        draft_log.inspection_image_url = "/uploads/legacy.jpg"
        await db.flush()
        assert await image_reference_service.is_referenced(db, "/uploads/legacy.jpg") is True

    async def test_issue_columns(self, db: AsyncSession, equipment, inspector):
        db.add(Issue(
            equipment_id=equipment.id,
            reporter_id=inspector.id,
            description="压力不足",
            issue_image_url="/uploads/issue.jpg",
            fixed_image_url="/uploads/fixed.jpg",
        ))
        await db.flush()
        assert await image_reference_service.is_referenced(db, "/uploads/issue.jpg") is True
        assert await image_reference_service.is_referenced(db, "/uploads/fixed.jpg") is True


class TestSafeDelete:
    """참조 기반 안전 삭제 테스트."""

    async def test_deletes_unreferenced_file(self, db: AsyncSession, uploads, draft_log):
        (uploads / "orphan.jpg").write_bytes(b"jpeg")
        assert await image_reference_service.safe_delete(db, "/uploads/orphan.jpg") is True
        assert not (uploads / "orphan.jpg").exists()

    async def test_keeps_shared_file(self, db: AsyncSession, uploads, draft_log):
        """다른 기록이 참조 중이면 파일 유지."""
        (uploads / "shared.jpg").write_bytes(b"jpeg")
        await image_repository.replace_urls(db, ImageOwner.INSPECTION, draft_log.id, ["/uploads/shared.jpg"])
        assert await image_reference_service.safe_delete(db, "/uploads/shared.jpg") is False
        assert (uploads / "shared.jpg").exists()

    async def test_missing_file(self, db: AsyncSession, uploads, draft_log):
        assert await image_reference_service.safe_delete(db, "/uploads/gone.jpg") is False

    async def test_refuses_path_traversal(self, db: AsyncSession, uploads, draft_log):
        outside = uploads.parent / "outside.txt"
        outside.write_text("keep")
        assert await image_reference_service.safe_delete(db, "/uploads/../outside.txt") is False
        assert outside.exists()

    async def test_refuses_foreign_url(self, db: AsyncSession, uploads, draft_log):
        assert image_reference_service.resolve_path("https://cdn.example.com/a.jpg") is None
        assert await image_reference_service.safe_delete(db, "https://cdn.example.com/a.jpg") is False

    def test_resolve_strips_query(self, uploads):
        assert image_reference_service.resolve_path("/uploads/a/b.jpg?v=2") == (uploads / "a" / "b.jpg").resolve()

    async def test_release_all_counts_deleted(self, db: AsyncSession, uploads, draft_log):
        (uploads / "one.jpg").write_bytes(b"1")
        (uploads / "two.jpg").write_bytes(b"2")
        urls = ["/uploads/one.jpg", "/uploads/two.jpg", "/uploads/one.jpg", None]
        assert await image_reference_service.release_all(db, urls) == 2


class TestRemoveImageEndpoint:
    """임시 저장 기록에서 이미지 제거 시 파일 정리."""

    async def test_remove_deletes_file_after_commit(
        self, client: AsyncClient, uploads, inspector_token, equipment
    ):
        (uploads / "draft.jpg").write_bytes(b"jpeg")
        draft = (await client.post(
            f"{INSPECTIONS}/empty", json={"equipment_id": str(equipment.id)}, headers=auth_header(inspector_token)
        )).json()
        await client.post(
            f"{INSPECTIONS}/{draft['id']}/images", json={"image_url": "/uploads/draft.jpg"},
            headers=auth_header(inspector_token),
        )
        res = await client.delete(
            f"{INSPECTIONS}/{draft['id']}/images", params={"url": "/uploads/draft.jpg"},
            headers=auth_header(inspector_token),
        )
        assert res.status_code == 200
        assert not (uploads / "draft.jpg").exists()

    async def test_remove_keeps_file_used_by_other_draft(
        self, client: AsyncClient, uploads, inspector_token, equipment
    ):
        """같은 파일을 다른 기록이 쓰고 있으면 유지."""
        (uploads / "reused.jpg").write_bytes(b"jpeg")
        drafts = []
        for _ in range(2):
            draft = (await client.post(
                f"{INSPECTIONS}/empty", json={"equipment_id": str(equipment.id)}, headers=auth_header(inspector_token)
            )).json()
            await client.post(
                f"{INSPECTIONS}/{draft['id']}/images", json={"image_url": "/uploads/reused.jpg"},
                headers=auth_header(inspector_token),
            )
            drafts.append(draft)

        await client.delete(
            f"{INSPECTIONS}/{drafts[0]['id']}/images", params={"url": "/uploads/reused.jpg"},
            headers=auth_header(inspector_token),
        )
        assert (uploads / "reused.jpg").exists()
