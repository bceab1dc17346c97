"""SQLAlchemy ORM 모델 패키지 — 모든 도메인 모델의 중앙 임포트 지점.

SQLAlchemy ORM models package — Central import point for all domain models.
Importing from this package ensures all models are registered with the
SQLAlchemy metadata, which is required for Alembic migrations and
relationship resolution.

Modules:
    factory: 공장 (Factory, permission scope)
    user: 사용자 (User accounts)
    equipment: 소방 장비 (Fire-safety equipment)
    inspection: 점검 기록 (Inspection logs)
    issue: 이슈 (Hazard tickets)
    image: 점검/이슈 이미지 (Record images)
"""

from app.models.factory import Factory
from app.models.user import User
from app.models.equipment import Equipment
from app.models.issue import Issue
from app.models.inspection import InspectionLog
from app.models.image import RecordImage

__all__ = [
    "Factory",
    "User",
    "Equipment",
    "Issue",
    "InspectionLog",
    "RecordImage",
]
