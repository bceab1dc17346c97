"""공장(厂区) SQLAlchemy ORM 모델 정의.

Factory SQLAlchemy ORM model definition.
A factory is the permission scope unit: factory admins and inspectors only
act on equipment that belongs to their own factory.

Tables:
    - factories: 공장 (Factory / plant site)
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import String, DateTime, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class Factory(Base):
    """공장 모델 — 권한 범위의 최상위 단위.

    Factory model — Top-level scope for equipment and users.

    Attributes:
        id: 고유 식별자 UUID (Unique identifier)
        name: 공장 이름 (Factory name)
        address: 주소 (Address, optional)
        created_at: 생성 일시 UTC (Creation timestamp)
        updated_at: 수정 일시 UTC (Last update timestamp)

    Relationships:
        equipments: 소속 장비 목록 (Equipment located in this factory)
        users: 소속 사용자 목록 (Users assigned to this factory)
    """

    __tablename__ = "factories"

    # 공장 고유 식별자 — Factory unique identifier (UUID v4, auto-generated)
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # 공장 이름 — Factory display name
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    # 주소 — Optional street address
    address: Mapped[str | None] = mapped_column(String(500), nullable=True)
    # 생성 일시 — Record creation timestamp (UTC)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    # 수정 일시 — Last modification timestamp (UTC, auto-updated)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    # 관계 — Relationships
    equipments = relationship("Equipment", back_populates="factory")
    users = relationship("User", back_populates="factory")
