"""인증 주체 Pydantic 스키마 정의.

Authenticated principal schema.
The lifecycle services never see the User ORM object; the auth dependency
resolves the bearer token into this small value and passes it down.
"""

from uuid import UUID

from pydantic import BaseModel, ConfigDict


class Principal(BaseModel):
    """요청을 보낸 인증된 사용자.

    Resolved caller identity.

    Attributes:
        id: 사용자 UUID (User identifier)
        role: 역할 (SUPER_ADMIN, FACTORY_ADMIN, INSPECTOR)
        factory_id: 소속 공장 UUID (Assigned factory; None for SUPER_ADMIN)
    """

    model_config = ConfigDict(frozen=True)

    id: UUID
    role: str
    factory_id: UUID | None = None
