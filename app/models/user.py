"""사용자 SQLAlchemy ORM 모델 정의.

User SQLAlchemy ORM model definition.
Accounts are managed by the auth service; this service only reads them to
resolve the request principal (id, role, factory).

Tables:
    - users: 사용자 계정 (User accounts with role and factory scoping)
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import String, Boolean, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class User(Base):
    """사용자 모델 — 점검원/공장 관리자/최고 관리자.

    User model — Inspector, factory admin or super admin.
    SUPER_ADMIN users have no factory; everyone else belongs to exactly one.

    Attributes:
        id: 고유 식별자 UUID (Unique identifier)
        factory_id: 소속 공장 FK (Assigned factory, NULL for SUPER_ADMIN)
        username: 로그인 아이디 (Login username, globally unique)
        full_name: 사용자 실명 (Display name)
        role: 역할 (SUPER_ADMIN, FACTORY_ADMIN or INSPECTOR)
        is_active: 활성 상태 (Active flag; inactive users cannot authenticate)
        created_at: 생성 일시 UTC (Creation timestamp)
        updated_at: 수정 일시 UTC (Last update timestamp)
    """

    __tablename__ = "users"

    # 사용자 고유 식별자 — User unique identifier (UUID v4, auto-generated)
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # 소속 공장 FK — NULL이면 전체 공장 접근 (NULL = not bound to a factory)
    factory_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("factories.id", ondelete="SET NULL"), nullable=True)
    # 로그인 아이디 — Login username
    username: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    # 사용자 실명 — Display name
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    # 역할 — SUPER_ADMIN, FACTORY_ADMIN, INSPECTOR
    role: Mapped[str] = mapped_column(String(30), nullable=False)
    # 활성 상태 — Whether the account can be used
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    # 생성 일시 — Record creation timestamp (UTC)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    # 수정 일시 — Last modification timestamp (UTC, auto-updated)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    # 관계 — Relationships
    factory = relationship("Factory", back_populates="users")
