"""Permission 서비스 — 레코드 접근 권한 판정.

Permission Service — Capability resolution for inspection and issue records.
All role branching lives in ``resolve_access``; services call ``ensure_access``
and never inspect roles themselves.

Rules:
    SUPER_ADMIN   → 모든 레코드 (any record)
    FACTORY_ADMIN → 자기 공장 장비의 레코드 (records whose equipment is in their factory)
    INSPECTOR     → 본인이 만든 레코드 중 자기 공장 장비 (own records in their factory)
    그 외         → 거부 (anything else is denied)
"""

from uuid import UUID

from pydantic import BaseModel

from app.models.constants import Role
from app.schemas.auth import Principal
from app.utils.exceptions import ForbiddenError


class AccessVerdict(BaseModel):
    """권한 판정 결과 (Authorization verdict)."""

    allowed: bool
    reason: str | None = None


class PermissionService:

    def resolve_access(
        self,
        principal: Principal,
        factory_id: UUID,
        owner_id: UUID | None = None,
    ) -> AccessVerdict:
        """주체가 해당 공장/소유자의 레코드에 접근할 수 있는지 판정합니다.

        Decide whether ``principal`` may act on a record whose equipment
        belongs to ``factory_id``. ``owner_id`` is the record creator; when
        None (e.g. equipment-level actions) only the factory scope applies.

        Args:
            principal: 요청 주체 (Resolved caller)
            factory_id: 레코드 장비의 공장 UUID (Factory of the record's equipment)
            owner_id: 레코드 생성자 UUID (Record creator, optional)

        Returns:
            AccessVerdict: allowed 및 거부 사유 (Verdict with denial reason)
        """
        if principal.role == Role.SUPER_ADMIN:
            return AccessVerdict(allowed=True)

        if principal.role == Role.FACTORY_ADMIN:
            if principal.factory_id is not None and principal.factory_id == factory_id:
                return AccessVerdict(allowed=True)
            return AccessVerdict(allowed=False, reason="outside_factory_scope")

        if principal.role == Role.INSPECTOR:
            if principal.factory_id is None or principal.factory_id != factory_id:
                return AccessVerdict(allowed=False, reason="outside_factory_scope")
            if owner_id is not None and owner_id != principal.id:
                return AccessVerdict(allowed=False, reason="not_record_owner")
            return AccessVerdict(allowed=True)

        return AccessVerdict(allowed=False, reason="unknown_role")

    def ensure_access(
        self,
        principal: Principal,
        factory_id: UUID,
        owner_id: UUID | None = None,
    ) -> None:
        """접근 불가 시 ForbiddenError를 발생시킵니다."""
        verdict = self.resolve_access(principal, factory_id, owner_id)
        if not verdict.allowed:
            raise ForbiddenError(
                "Permission denied",
                reason=verdict.reason,
                role=principal.role,
            )

    def ensure_scope(self, scope_factory_id: UUID | None, factory_id: UUID) -> None:
        """관리자 작업의 공장 범위 검사 — None이면 전체 범위.

        Scope check for admin-only operations (handle, audit, comment).
        ``scope_factory_id`` None means unrestricted (SUPER_ADMIN).
        """
        if scope_factory_id is not None and scope_factory_id != factory_id:
            raise ForbiddenError("Permission denied", reason="outside_factory_scope")

    def scope_of(self, principal: Principal) -> UUID | None:
        """주체의 공장 범위 (SUPER_ADMIN은 None).

        A non-super-admin without an assigned factory has no scope at all.
        """
        if principal.role == Role.SUPER_ADMIN:
            return None
        if principal.factory_id is None:
            raise ForbiddenError("Permission denied", reason="no_factory_assigned")
        return principal.factory_id


permission_service: PermissionService = PermissionService()
