"""점검 기록 SQLAlchemy ORM 모델 정의.

Inspection record SQLAlchemy ORM model definition.
A record starts as a DRAFT (created empty, images captured incrementally) and
is finalized exactly once with the real checklist payload. Records created in
batch or one-shot mode are written directly as FINALIZED.

Tables:
    - inspection_logs: 점검 기록 (Inspection records)
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import JSON, String, DateTime, ForeignKey, Index, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.models.constants import InspectionResult, InspectionStatus


class InspectionLog(Base):
    """점검 기록 모델.

    Inspection log model.

    Attributes:
        id: 고유 식별자 UUID (Unique identifier)
        equipment_id: 점검 대상 장비 FK (Inspected equipment)
        inspector_id: 점검원 FK (Inspector who created the record)
        status: 생명주기 상태 (DRAFT -> FINALIZED, one way)
        overall_result: 종합 결과 (NORMAL or ABNORMAL)
        checklist_results: 항목별 결과 JSON (Per-item results; NULL while DRAFT)
        inspection_image_url: 대표 이미지 (First inspection image, legacy single-image field)
        issue_id: 이 점검으로 생성된 이슈 FK (Issue opened by this inspection)
        inspection_time: 점검 일시 (Inspection timestamp)
        created_at: 생성 일시 UTC (Creation timestamp)
        updated_at: 수정 일시 UTC (Last update timestamp)
    """

    __tablename__ = "inspection_logs"

    # 점검 기록 고유 식별자 — Inspection unique identifier (UUID v4, auto-generated)
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # 점검 대상 장비 FK — Inspected equipment
    equipment_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("equipments.id", ondelete="CASCADE"), nullable=False)
    # 점검원 FK — Creator / owner of the record
    inspector_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id"), nullable=False)
    # 생명주기 상태 — DRAFT → FINALIZED
    status: Mapped[str] = mapped_column(String(20), default=InspectionStatus.DRAFT, nullable=False)
    # 종합 결과 — NORMAL, ABNORMAL (DRAFT 동안은 NORMAL 기본값, Defaults to NORMAL while draft)
    overall_result: Mapped[str] = mapped_column(String(20), default=InspectionResult.NORMAL, nullable=False)
    # 항목별 결과 — [{"item": ..., "result": ..., "note": ...}], DRAFT 동안 NULL
    checklist_results: Mapped[list | None] = mapped_column(JSON().with_variant(JSONB, "postgresql"), nullable=True)
    # 대표 이미지 — 이미지 목록의 첫 번째 항목 (Mirror of the first RecordImage row)
    inspection_image_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    # 생성된 이슈 FK — Issue detected by this inspection (at most one)
    issue_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("issues.id", ondelete="SET NULL"), nullable=True)
    # 점검 일시 — Inspection timestamp (UTC)
    inspection_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    # 생성 일시 — Record creation timestamp (UTC)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    # 수정 일시 — Last modification timestamp (UTC, auto-updated)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        Index("ix_inspection_logs_equipment_id", "equipment_id"),
        Index("ix_inspection_logs_inspector_id", "inspector_id"),
        Index("ix_inspection_logs_status", "status"),
    )

    # 관계 — Relationships
    equipment = relationship("Equipment", back_populates="inspection_logs")
    inspector = relationship("User")
    issue = relationship("Issue", back_populates="inspection_log")

    @property
    def is_draft(self) -> bool:
        return self.status == InspectionStatus.DRAFT
