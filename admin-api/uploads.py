import os
import shutil
import time
import logging
from starlette.datastructures import UploadFile
from config import settings

logger = logging.getLogger(__name__)

UPLOAD_URL_PREFIX = "/uploads"


def ensure_upload_dir() -> str:
    os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
    return settings.UPLOAD_DIR


def store_avatar(upload: UploadFile) -> str:
    """
    Writes the upload as <epoch-millis>-<original name> and returns its public URL.
    Two uploads with the same name in the same millisecond overwrite each other.
    """
    original = os.path.basename(upload.filename or "avatar")
    filename = f"{int(time.time() * 1000)}-{original}"
    path = os.path.join(ensure_upload_dir(), filename)

    with open(path, "wb") as out:
        shutil.copyfileobj(upload.file, out)

    logger.info(f"Stored avatar {filename}")
    return f"{UPLOAD_URL_PREFIX}/{filename}"
