"""도메인 상태 값 상수.

Domain status value constants.
Values are stored as plain strings in the database; these namespaces keep the
allowed values in one place.
"""


class Role:
    SUPER_ADMIN = "SUPER_ADMIN"
    FACTORY_ADMIN = "FACTORY_ADMIN"
    INSPECTOR = "INSPECTOR"


class EquipmentStatus:
    NORMAL = "NORMAL"
    ABNORMAL = "ABNORMAL"
    SCRAPPED = "SCRAPPED"  # 폐기 — 상태 재계산 대상 아님 (Terminal, never recomputed)


class InspectionStatus:
    DRAFT = "DRAFT"
    FINALIZED = "FINALIZED"


class InspectionResult:
    NORMAL = "NORMAL"
    ABNORMAL = "ABNORMAL"

    ALL = (NORMAL, ABNORMAL)


class IssueStatus:
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"  # 예약됨, 현재 미사용 (Reserved, currently unused)
    PENDING_AUDIT = "PENDING_AUDIT"
    CLOSED = "CLOSED"
    REJECTED = "REJECTED"  # 반려 시 PENDING으로 롤백되므로 저장되지 않음 (Never persisted)

    # 미해결 이슈 — 장비를 ABNORMAL로 유지하는 상태 (Statuses that keep equipment ABNORMAL)
    OPEN = (PENDING, IN_PROGRESS, PENDING_AUDIT)
    ALL = (PENDING, IN_PROGRESS, PENDING_AUDIT, CLOSED, REJECTED)


class ImageOwner:
    """RecordImage.owner_type 값 — 이미지가 속한 필드 (Which image field a row belongs to)."""

    INSPECTION = "INSPECTION"
    ISSUE = "ISSUE"
    ISSUE_FIXED = "ISSUE_FIXED"
