"""소방 장비 SQLAlchemy ORM 모델 정의.

Fire-safety equipment SQLAlchemy ORM model definition.

Tables:
    - equipments: 소방 장비 (Extinguishers, hydrants, alarms, ...)
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import String, DateTime, ForeignKey, Index, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.models.constants import EquipmentStatus


class Equipment(Base):
    """장비 모델 — 점검 대상 소방 장비.

    Equipment model — A piece of fire-safety equipment under inspection.
    ``status`` is ABNORMAL exactly when at least one open issue (PENDING,
    IN_PROGRESS, PENDING_AUDIT) is attached to it. SCRAPPED equipment is
    outside the health state machine.

    Attributes:
        id: 고유 식별자 UUID (Unique identifier)
        factory_id: 소속 공장 FK (Owning factory)
        name: 장비 이름 (Equipment name)
        qr_code: QR 코드 값 (Scanned QR code value, unique)
        location: 설치 위치 (Physical location; batch inspections group by it)
        status: 상태 (NORMAL, ABNORMAL, SCRAPPED)
        last_inspected_at: 마지막 점검 일시 (Last inspection timestamp)
        created_at: 생성 일시 UTC (Creation timestamp)
        updated_at: 수정 일시 UTC (Last update timestamp)
    """

    __tablename__ = "equipments"

    # 장비 고유 식별자 — Equipment unique identifier (UUID v4, auto-generated)
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # 소속 공장 FK — Owning factory (permission scope)
    factory_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("factories.id", ondelete="CASCADE"), nullable=False)
    # 장비 이름 — Equipment display name
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    # QR 코드 — Unique scan code
    qr_code: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True)
    # 설치 위치 — Physical location label
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    # 상태 — NORMAL, ABNORMAL, SCRAPPED
    status: Mapped[str] = mapped_column(String(20), default=EquipmentStatus.NORMAL, nullable=False)
    # 마지막 점검 일시 — Updated by every finalized inspection
    last_inspected_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    # 생성 일시 — Record creation timestamp (UTC)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    # 수정 일시 — Last modification timestamp (UTC, auto-updated)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        Index("ix_equipments_factory_id", "factory_id"),
        Index("ix_equipments_location", "location"),
    )

    # 관계 — Relationships
    factory = relationship("Factory", back_populates="equipments")
    issues = relationship("Issue", back_populates="equipment")
    inspection_logs = relationship("InspectionLog", back_populates="equipment")
