"""레코드 이미지 SQLAlchemy ORM 모델 정의.

Record image SQLAlchemy ORM model definition.
One row per (owner record, image field, url). The ordered rows of an owner
form that record's image list; counting rows by url answers whether an
uploaded file is still referenced anywhere.

Tables:
    - record_images: 점검/이슈 이미지 (Inspection and issue images)
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import String, DateTime, Integer, Index, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class RecordImage(Base):
    """레코드 이미지 모델.

    Record image model.

    Attributes:
        id: 고유 식별자 UUID (Unique identifier)
        owner_type: 이미지 필드 종류 (INSPECTION, ISSUE, ISSUE_FIXED)
        owner_id: 소유 레코드 UUID (Owning inspection or issue id)
        url: 파일 URL (Uploaded file URL)
        position: 목록 내 순서 (0-based position within the owner's list)
        created_at: 생성 일시 UTC (Creation timestamp)

    Constraints:
        uq_record_image_owner_url: 같은 필드에 같은 URL 중복 불가 (No duplicate URL per owner field)
    """

    __tablename__ = "record_images"

    # 이미지 고유 식별자 — Image row identifier (UUID v4, auto-generated)
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # 이미지 필드 종류 — Which image list of the owner this row belongs to
    owner_type: Mapped[str] = mapped_column(String(20), nullable=False)
    # 소유 레코드 — inspection_logs.id 또는 issues.id (Polymorphic owner id)
    owner_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    # 파일 URL — Uploaded file URL
    url: Mapped[str] = mapped_column(String(1000), nullable=False)
    # 목록 내 순서 — Position in the owner's list
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    # 생성 일시 — Record creation timestamp (UTC)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("owner_type", "owner_id", "url", name="uq_record_image_owner_url"),
        Index("ix_record_images_owner", "owner_type", "owner_id"),
        Index("ix_record_images_url", "url"),
    )
