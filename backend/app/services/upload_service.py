import logging
import os
import re
import secrets
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, Callable, FrozenSet, List, Optional

from app.config import settings
from app.exceptions import UploadRejected

log = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024
IMPORT_PREFIX = "import-"

CSV_MIME_TYPES = frozenset(
    {"text/csv", "application/csv", "application/vnd.ms-excel", "text/plain"}
)


@dataclass(frozen=True)
class UploadPolicy:
    """What an endpoint accepts and how the stored file is named."""

    field_name: str
    max_bytes: Callable[[], int]
    allowed_types: FrozenSet[str] = field(default_factory=frozenset)
    type_prefix: Optional[str] = None
    allowed_extension: Optional[str] = None
    type_error: str = "Unsupported file type"
    default_extension: str = ""
    keep_original_name: bool = True

    def accepts(self, content_type: Optional[str], filename: Optional[str]) -> bool:
        ctype = (content_type or "").lower()
        if self.type_prefix and ctype.startswith(self.type_prefix):
            return True
        if ctype in self.allowed_types:
            return True
        # odd MIME types are fine when the extension says what it is
        if self.allowed_extension and filename:
            return Path(filename).suffix.lower() == self.allowed_extension
        return False


IMAGE_POLICY = UploadPolicy(
    field_name="image",
    max_bytes=lambda: settings.IMAGE_MAX_BYTES,
    type_prefix="image/",
    type_error="Only image files allowed",
)

CSV_POLICY = UploadPolicy(
    field_name="csvFile",
    max_bytes=lambda: settings.IMPORT_MAX_BYTES,
    allowed_types=CSV_MIME_TYPES,
    allowed_extension=".csv",
    type_error="Only CSV files allowed",
    default_extension=".csv",
    keep_original_name=False,
)


def uploads_dir() -> Path:
    p = Path(settings.UPLOADS_DIR)
    p.mkdir(parents=True, exist_ok=True)
    return p


def _unique_suffix() -> str:
    return f"{int(time.time() * 1000)}-{secrets.randbelow(1_000_000)}"


def safe_filename(original: Optional[str], max_base: int = 40) -> str:
    """
    `my photo.png` -> `my-photo-<ms>-<rand>.png`.
    The base keeps letters, digits, dot, underscore and dash only.
    """
    name = re.sub(r"\s+", "-", os.path.basename(original or ""))
    base, ext = os.path.splitext(name)
    base = re.sub(r"[^A-Za-z0-9._-]", "", base)[:max_base] or "file"
    ext = re.sub(r"[^A-Za-z0-9.]", "", ext)
    return f"{base}-{_unique_suffix()}{ext}"


def import_filename(original: Optional[str]) -> str:
    ext = os.path.splitext(original or "")[1]
    ext = re.sub(r"[^A-Za-z0-9.]", "", ext) or CSV_POLICY.default_extension
    return f"{IMPORT_PREFIX}{_unique_suffix()}{ext}"


def remove_quietly(path: Optional[Path]) -> None:
    """Best-effort delete; a failure is logged and otherwise ignored."""
    if path is None:
        return
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError as e:
        log.warning("could not remove %s: %s", path, e)


def save_upload(
    stream: BinaryIO,
    filename: Optional[str],
    content_type: Optional[str],
    policy: UploadPolicy,
    dest_dir: Optional[Path] = None,
) -> Path:
    """
    Validate and write one uploaded file. The size cap is enforced while
    copying, so a rejected upload never leaves a file behind.
    """
    if not policy.accepts(content_type, filename):
        log.info("rejected upload %r (%s): bad type", filename, content_type)
        raise UploadRejected(policy.type_error, "LIMIT_UNEXPECTED_FILE")

    dest_dir = dest_dir or uploads_dir()
    dest_dir.mkdir(parents=True, exist_ok=True)
    name = safe_filename(filename) if policy.keep_original_name else import_filename(filename)
    target = dest_dir / name

    limit = policy.max_bytes()
    written = 0
    try:
        with open(target, "wb") as out:
            while True:
                chunk = stream.read(CHUNK_SIZE)
                if not chunk:
                    break
                written += len(chunk)
                if written > limit:
                    raise UploadRejected("File too large", "LIMIT_FILE_SIZE")
                out.write(chunk)
    except Exception:
        remove_quietly(target)
        raise

    log.info("stored upload %s (%d bytes)", target.name, written)
    return target


def public_url(scheme: str, host: str, filename: str) -> str:
    return f"{scheme}://{host}/uploads/{filename}"


def sweep_stale_imports(
    max_age_seconds: Optional[int] = None, directory: Optional[Path] = None
) -> List[str]:
    """Delete import files left behind longer than max_age_seconds. Returns removed names."""
    max_age = settings.IMPORT_STALE_AFTER_SECONDS if max_age_seconds is None else max_age_seconds
    directory = directory or Path(settings.UPLOADS_DIR)
    if not directory.is_dir():
        return []
    cutoff = time.time() - max_age
    removed = []
    for p in directory.glob(f"{IMPORT_PREFIX}*"):
        try:
            if p.is_file() and p.stat().st_mtime < cutoff:
                p.unlink()
                removed.append(p.name)
        except OSError as e:
            log.warning("sweep could not remove %s: %s", p, e)
    if removed:
        log.info("removed %d stale import file(s)", len(removed))
    return removed
