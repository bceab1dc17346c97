"""이미지 참조 추적 서비스 — 업로드 파일의 안전한 공유와 회수.

Image Reference Service — Safe sharing and reclamation of uploaded files.
The same uploaded file may be attached to several unrelated records (an
inspection image reused as the issue image, for example). A file is only
removed from disk once no record points at it anymore.

Physical deletion is never part of the request transaction: routers call
``release_all`` after ``commit()``. A failed unlink leaves an orphaned file,
which is logged and otherwise ignored.
"""

import logging
from pathlib import Path
from typing import Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.repositories.image_repository import image_repository

logger = logging.getLogger(__name__)

# 기본 업로드 디렉토리 — server/uploads/
_SERVER_ROOT: Path = Path(__file__).resolve().parent.parent.parent


def uploads_root() -> Path:
    """업로드 디렉토리 경로 (.env의 UPLOADS_DIR 또는 server/uploads/)."""
    if settings.UPLOADS_DIR:
        return Path(settings.UPLOADS_DIR).resolve()
    return (_SERVER_ROOT / "uploads").resolve()


class ImageReferenceService:

    async def is_referenced(self, db: AsyncSession, url: str) -> bool:
        """URL이 점검 기록 또는 이슈에서 아직 참조되는지 확인합니다.

        Checks every image location: the inspection, issue and fix image
        lists plus their legacy single-image columns. Read-only.
        """
        return await image_repository.count_references(db, url) > 0

    def resolve_path(self, url: str) -> Path | None:
        """업로드 URL을 디스크 경로로 변환합니다.

        Map an upload URL to its file under the uploads directory.
        Returns None for URLs outside the upload prefix or paths that would
        escape the uploads directory (``/uploads/../app/main.py``).
        """
        prefix: str = settings.UPLOAD_URL_PREFIX
        if not url or not url.startswith(prefix):
            return None
        relative: str = url[len(prefix):].split("?", 1)[0]
        if not relative:
            return None

        root: Path = uploads_root()
        path: Path = (root / relative).resolve()
        if not path.is_relative_to(root) or path == root:
            return None
        return path

    async def safe_delete(self, db: AsyncSession, url: str) -> bool:
        """참조되지 않는 업로드 파일을 삭제합니다.

        Delete the file behind ``url`` if nothing references it anymore.
        Filesystem errors are logged and swallowed.

        Returns:
            bool: 파일 삭제 여부 (True when a file was removed)
        """
        path: Path | None = self.resolve_path(url)
        if path is None:
            logger.info("Skipping delete of non-upload url %s", url)
            return False

        if await self.is_referenced(db, url):
            logger.debug("Image %s is still referenced, keeping file", url)
            return False

        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError:
            logger.warning("Failed to delete image file %s", path, exc_info=True)
            return False

        logger.info("Deleted unreferenced image file %s", path)
        return True

    async def release_all(self, db: AsyncSession, urls: Iterable[str]) -> int:
        """여러 URL을 safe_delete 합니다. 삭제된 파일 수를 반환합니다."""
        deleted: int = 0
        seen: set[str] = set()
        for url in urls:
            if not url or url in seen:
                continue
            seen.add(url)
            if await self.safe_delete(db, url):
                deleted += 1
        return deleted


image_reference_service: ImageReferenceService = ImageReferenceService()
