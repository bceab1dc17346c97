"""이슈(隐患) SQLAlchemy ORM 모델 정의.

Hazard ticket (issue) SQLAlchemy ORM model definition.
Issues are only ever created as a side effect of an abnormal inspection and
flow PENDING → PENDING_AUDIT → CLOSED, with a rejected audit rolling the
ticket back to PENDING.

Tables:
    - issues: 이슈 (Hazard tickets)
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import String, DateTime, Text, ForeignKey, Index, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.models.constants import IssueStatus


class Issue(Base):
    """이슈 모델 — 장비 하나에 대한 결함 티켓.

    Issue model — A tracked defect opened against one piece of equipment.

    Attributes:
        id: 고유 식별자 UUID (Unique identifier)
        equipment_id: 대상 장비 FK (Equipment the hazard belongs to)
        reporter_id: 보고자 FK (Inspector who reported it)
        description: 이슈 설명 (Hazard description)
        status: 상태 (PENDING, IN_PROGRESS, PENDING_AUDIT, CLOSED)
        handler_id: 처리자 FK (User who handled it)
        handled_at: 처리 일시 (Handling timestamp)
        solution: 처리 내용 (Solution description)
        auditor_id: 심사자 FK (User who audited the handling)
        audited_at: 심사 일시 (Audit timestamp)
        audit_note: 심사 메모 (Audit note / appended comments)
        issue_image_url: 대표 이슈 이미지 (First issue image, legacy field)
        fixed_image_url: 대표 조치 이미지 (First fix image, legacy field)
        created_at: 생성 일시 UTC (Creation timestamp)
        updated_at: 수정 일시 UTC (Last update timestamp)
    """

    __tablename__ = "issues"

    # 이슈 고유 식별자 — Issue unique identifier (UUID v4, auto-generated)
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # 대상 장비 FK — Equipment the ticket is attached to
    equipment_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("equipments.id", ondelete="CASCADE"), nullable=False)
    # 보고자 FK — Reporting inspector
    reporter_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id"), nullable=False)
    # 이슈 설명 — Hazard description
    description: Mapped[str] = mapped_column(Text, nullable=False)
    # 상태 — PENDING → PENDING_AUDIT → CLOSED (반려 시 PENDING 복귀)
    status: Mapped[str] = mapped_column(String(20), default=IssueStatus.PENDING, nullable=False)
    # 처리 정보 — Handling data, cleared when an audit rejects it
    handler_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("users.id"), nullable=True)
    handled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    solution: Mapped[str | None] = mapped_column(Text, nullable=True)
    # 심사 정보 — Audit data
    auditor_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("users.id"), nullable=True)
    audited_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    audit_note: Mapped[str | None] = mapped_column(Text, nullable=True)
    # 대표 이미지 — RecordImage 첫 번째 행의 미러 (Mirrors of the first RecordImage row)
    issue_image_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    fixed_image_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    # 생성 일시 — Record creation timestamp (UTC)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    # 수정 일시 — Last modification timestamp (UTC, auto-updated)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        Index("ix_issues_equipment_status", "equipment_id", "status"),
        Index("ix_issues_reporter_id", "reporter_id"),
    )

    # 관계 — Relationships
    equipment = relationship("Equipment", back_populates="issues")
    reporter = relationship("User", foreign_keys=[reporter_id])
    handler = relationship("User", foreign_keys=[handler_id])
    auditor = relationship("User", foreign_keys=[auditor_id])
    inspection_log = relationship("InspectionLog", back_populates="issue", uselist=False)
