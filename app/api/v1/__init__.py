"""v1 API 라우터 패키지 — 점검 및 이슈 엔드포인트 통합.

v1 API Router package — Aggregates the inspection and issue endpoints
into a single router for inclusion in the FastAPI application.

Included routers:
    - inspections: 점검 기록 생명주기 (Inspection lifecycle, batch inspection)
    - issues: 이슈 처리/심사 (Issue handling and audit)
"""

from fastapi import APIRouter

from app.api.v1.inspections import router as inspections_router
from app.api.v1.issues import router as issues_router

api_router: APIRouter = APIRouter()

api_router.include_router(inspections_router, prefix="/inspections", tags=["Inspections"])
api_router.include_router(issues_router, prefix="/issues", tags=["Issues"])
