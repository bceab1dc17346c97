"""레코드 이미지 레포지토리.

Record image repository — Handles record_images DB queries.
An owner's image list is the ordered set of rows for (owner_type, owner_id).
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.image import RecordImage
from app.models.inspection import InspectionLog
from app.models.issue import Issue
from app.repositories.base import BaseRepository


class ImageRepository(BaseRepository[RecordImage]):

    def __init__(self) -> None:
        super().__init__(RecordImage)

    async def get_urls(
        self,
        db: AsyncSession,
        owner_type: str,
        owner_id: UUID,
    ) -> list[str]:
        """소유 레코드의 이미지 URL 목록을 순서대로 조회합니다."""
        result = await db.execute(
            select(RecordImage.url)
            .where(RecordImage.owner_type == owner_type, RecordImage.owner_id == owner_id)
            .order_by(RecordImage.position)
        )
        return list(result.scalars().all())

    async def get_urls_for_owners(
        self,
        db: AsyncSession,
        owner_type: str,
        owner_ids: Sequence[UUID],
    ) -> dict[UUID, list[str]]:
        """여러 레코드의 이미지 목록을 한 번에 조회합니다 (목록 API용).

        Bulk-load image lists for many owners, keyed by owner id.
        """
        urls_by_owner: dict[UUID, list[str]] = {owner_id: [] for owner_id in owner_ids}
        if not owner_ids:
            return urls_by_owner

        result = await db.execute(
            select(RecordImage.owner_id, RecordImage.url)
            .where(RecordImage.owner_type == owner_type, RecordImage.owner_id.in_(owner_ids))
            .order_by(RecordImage.owner_id, RecordImage.position)
        )
        for owner_id, url in result.all():
            urls_by_owner[owner_id].append(url)
        return urls_by_owner

    async def replace_urls(
        self,
        db: AsyncSession,
        owner_type: str,
        owner_id: UUID,
        urls: Sequence[str],
    ) -> list[str]:
        """소유 레코드의 이미지 목록 전체를 교체합니다.

        Replace an owner's whole image list, preserving the given order.
        Duplicate URLs keep their first position.

        Returns:
            list[str]: 저장된 URL 목록 (Stored URL list)
        """
        await db.execute(
            delete(RecordImage).where(
                RecordImage.owner_type == owner_type,
                RecordImage.owner_id == owner_id,
            )
        )
        stored: list[str] = []
        for url in urls:
            if url and url not in stored:
                stored.append(url)
        for position, url in enumerate(stored):
            db.add(RecordImage(owner_type=owner_type, owner_id=owner_id, url=url, position=position))
        await db.flush()
        return stored

    async def count_references(self, db: AsyncSession, url: str) -> int:
        """URL을 참조하는 모든 위치의 개수를 셉니다.

        Count every place a URL is stored: image list rows of inspections,
        issues and fixes, plus the three legacy single-image columns.
        Exact equality, so a URL never matches as a substring of another.
        """
        image_rows: int = (
            await db.execute(select(func.count()).select_from(RecordImage).where(RecordImage.url == url))
        ).scalar() or 0
        issue_rows: int = (
            await db.execute(
                select(func.count())
                .select_from(Issue)
                .where(or_(Issue.issue_image_url == url, Issue.fixed_image_url == url))
            )
        ).scalar() or 0
        inspection_rows: int = (
            await db.execute(
                select(func.count())
                .select_from(InspectionLog)
                .where(InspectionLog.inspection_image_url == url)
            )
        ).scalar() or 0
        return image_rows + issue_rows + inspection_rows


image_repository: ImageRepository = ImageRepository()
