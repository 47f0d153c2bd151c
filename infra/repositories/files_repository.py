import logging
import os
from typing import Optional
from app.settings import settings

logger = logging.getLogger(__name__)


class FilesRepository:
    """Generated PDFs on local disk, addressed by bare filename only."""

    def __init__(self, base_dir: Optional[str] = None):
        self.base_dir = base_dir or settings.PDF_DIR

    def ensure_dir(self) -> str:
        os.makedirs(self.base_dir, exist_ok=True)
        return self.base_dir

    def get_path(self, filename: str) -> str:
        safe = os.path.basename(filename)
        if not safe or safe != filename or safe in {".", ".."}:
            raise KeyError("invalid filename")
        return os.path.join(self.base_dir, safe)

    def exists(self, filename: str) -> bool:
        try:
            return os.path.isfile(self.get_path(filename))
        except KeyError:
            return False

    def remove(self, filename: Optional[str]) -> None:
        if not filename:
            return
        try:
            os.remove(self.get_path(filename))
            logger.info("Deleted superseded PDF %s", filename)
        except FileNotFoundError:
            logger.info("Superseded PDF %s already gone", filename)
        except KeyError:
            logger.warning("Refusing to delete suspicious filename %r", filename)
