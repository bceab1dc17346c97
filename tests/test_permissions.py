"""권한 판정 단위 테스트.

Permission resolution unit tests — role, factory scope and ownership.
"""

import uuid

import pytest

from app.models.constants import Role
from app.schemas.auth import Principal
from app.services.permission_service import permission_service
from app.utils.exceptions import ForbiddenError

FACTORY = uuid.uuid4()
OTHER_FACTORY = uuid.uuid4()


def principal(role: str, factory_id=FACTORY) -> Principal:
    return Principal(id=uuid.uuid4(), role=role, factory_id=factory_id)


class TestResolveAccess:
    """resolve_access 판정 테스트."""

    def test_super_admin_any_factory(self):
        verdict = permission_service.resolve_access(principal(Role.SUPER_ADMIN, None), OTHER_FACTORY, uuid.uuid4())
        assert verdict.allowed is True
        assert verdict.reason is None

    def test_factory_admin_own_factory(self):
        assert permission_service.resolve_access(principal(Role.FACTORY_ADMIN), FACTORY, uuid.uuid4()).allowed

    def test_factory_admin_other_factory(self):
        verdict = permission_service.resolve_access(principal(Role.FACTORY_ADMIN), OTHER_FACTORY)
        assert verdict.allowed is False
        assert verdict.reason == "outside_factory_scope"

    def test_factory_admin_without_factory(self):
        assert not permission_service.resolve_access(principal(Role.FACTORY_ADMIN, None), FACTORY).allowed

    def test_inspector_own_record(self):
        me = principal(Role.INSPECTOR)
        assert permission_service.resolve_access(me, FACTORY, me.id).allowed

    def test_inspector_equipment_level_action(self):
        """소유자 없는 작업 (빈 기록 생성 등)은 공장 범위만 검사."""
        assert permission_service.resolve_access(principal(Role.INSPECTOR), FACTORY).allowed

    def test_inspector_other_record(self):
        verdict = permission_service.resolve_access(principal(Role.INSPECTOR), FACTORY, uuid.uuid4())
        assert verdict.allowed is False
        assert verdict.reason == "not_record_owner"

    def test_inspector_other_factory(self):
        me = principal(Role.INSPECTOR)
        verdict = permission_service.resolve_access(me, OTHER_FACTORY, me.id)
        assert verdict.reason == "outside_factory_scope"

    def test_unknown_role(self):
        verdict = permission_service.resolve_access(principal("GUEST"), FACTORY)
        assert verdict.allowed is False
        assert verdict.reason == "unknown_role"


class TestEnsureAccess:
    """ensure_access / scope_of 예외 테스트."""

    def test_ensure_access_raises_with_reason(self):
        with pytest.raises(ForbiddenError) as exc_info:
            permission_service.ensure_access(principal(Role.INSPECTOR), FACTORY, uuid.uuid4())
        assert exc_info.value.status_code == 403
        assert exc_info.value.context["reason"] == "not_record_owner"

    def test_scope_of_super_admin_is_unrestricted(self):
        assert permission_service.scope_of(principal(Role.SUPER_ADMIN, None)) is None

    def test_scope_of_factory_admin(self):
        assert permission_service.scope_of(principal(Role.FACTORY_ADMIN)) == FACTORY

    def test_scope_of_without_factory(self):
        with pytest.raises(ForbiddenError):
            permission_service.scope_of(principal(Role.INSPECTOR, None))

    def test_ensure_scope(self):
        permission_service.ensure_scope(None, OTHER_FACTORY)
        permission_service.ensure_scope(FACTORY, FACTORY)
        with pytest.raises(ForbiddenError):
            permission_service.ensure_scope(FACTORY, OTHER_FACTORY)
