import logging
import time
from pathlib import Path

from werkzeug.utils import secure_filename

from .errors import ValidationError

logger = logging.getLogger(__name__)

ALLOWED = {".xlsx", ".xls"}


def allowed_workbook(filename) -> bool:
    return bool(filename) and Path(filename).suffix.lower() in ALLOWED


def save_upload(storage, upload_dir) -> Path:
    """Save an uploaded workbook as <millis>-<name> in upload_dir."""
    if storage is None or not storage.filename:
        raise ValidationError("No Excel file uploaded")
    if not allowed_workbook(storage.filename):
        raise ValidationError("Only Excel files (.xlsx, .xls) are allowed")

    updir = Path(upload_dir)
    updir.mkdir(parents=True, exist_ok=True)
    name = secure_filename(storage.filename) or "upload" + Path(storage.filename).suffix.lower()
    p = updir / f"{int(time.time() * 1000)}-{name}"
    storage.save(str(p))
    logger.info(f"Saved upload {p.name}")
    return p


def prune_uploads(upload_dir, keep=3):
    """Delete all but the `keep` most recently modified workbooks."""
    updir = Path(upload_dir)
    if not updir.is_dir():
        return []
    files = sorted((f for f in updir.iterdir() if f.is_file() and f.suffix.lower() in ALLOWED),
                   key=lambda f: f.stat().st_mtime, reverse=True)
    removed = []
    for f in files[keep:]:
        try:
            f.unlink()
            removed.append(f.name)
        except OSError as e:
            logger.error(f"Error deleting old Excel file {f.name}: {e}")
    if removed:
        logger.info(f"Removed {len(removed)} old Excel files")
    return removed
