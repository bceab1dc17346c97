"""이슈 Pydantic 스키마.

Issue request schemas.
"""

from pydantic import BaseModel


class IssueHandle(BaseModel):
    solution: str
    fixed_image_url: str | None = None  # 단일 이미지 (legacy single-image field)
    fixed_image_urls: list[str] | None = None  # 우선 적용 (takes precedence when given)

    def image_urls(self) -> list[str]:
        if self.fixed_image_urls is not None:
            return [url for url in self.fixed_image_urls if url]
        if self.fixed_image_url:
            return [self.fixed_image_url]
        return []


class IssueAudit(BaseModel):
    approved: bool
    audit_note: str | None = None


class IssueComment(BaseModel):
    comment: str
