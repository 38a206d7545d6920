# uploads.py
import os
import time
from pathlib import Path

from errors import UploadError


def file_extension(filename: str) -> str:
    return os.path.splitext(filename)[1][1:].lower()


def validate_upload(filename, allowed_extensions):
    """Reject a missing file or a disallowed extension before anything is written."""
    if not filename:
        raise UploadError("No file uploaded")
    if file_extension(filename) not in allowed_extensions:
        raise UploadError("Invalid file type")


def stored_name(filename: str, now: float = None) -> str:
    # keep only the last path component; "../x.png" must not leave the uploads dir
    base = os.path.basename(filename.replace("\\", "/"))
    millis = int((time.time() if now is None else now) * 1000)
    return f"{millis}-{base}"


def save_upload(content: bytes, filename: str, uploads_dir: Path) -> Path:
    uploads_dir = Path(uploads_dir)
    uploads_dir.mkdir(parents=True, exist_ok=True)
    path = uploads_dir / stored_name(filename)
    with open(path, "wb") as f:
        f.write(content)
    return path
