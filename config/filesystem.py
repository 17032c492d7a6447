# config/filesystem.py
import logging
import os
from config.settings import settings

logger = logging.getLogger(__name__)


def prepare_filesystem(*dirs: str) -> None:
    """
    Create the download and temp directories (or the given ones) if missing.
    Raises OSError when a directory cannot be created.
    """
    targets = dirs or (settings.DOWNLOAD_DIR, settings.TEMP_DIR)
    for d in targets:
        if not os.path.isdir(d):
            logger.info("fs.mkdir dir=%s", d)
        os.makedirs(d, mode=0o755, exist_ok=True)
