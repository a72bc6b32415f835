import csv
import enum
import io
import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.exceptions import ImportParseError
from app.models.product import STOCK_MAX, STOCK_MIN
from app.repositories.product_repo import ProductRepository
from app.services.upload_service import remove_quietly

log = logging.getLogger(__name__)

RECOGNIZED_COLUMNS = ("name", "unit", "category", "brand", "stock", "status", "image")


@dataclass
class ImportRow:
    """One parsed CSV line, normalised but not yet checked against the store."""

    name: str
    unit: str = ""
    category: str = ""
    brand: str = ""
    stock: int = 0
    status: Optional[str] = None
    image: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    def product_fields(self) -> dict:
        return {
            "name": self.name,
            "unit": self.unit,
            "category": self.category,
            "brand": self.brand,
            "stock": self.stock,
            "status": self.status,
            "image": self.image,
        }


class Outcome(enum.Enum):
    ADDED = "added"
    DUPLICATE = "duplicate"
    INVALID = "invalid"
    ERROR = "error"


@dataclass
class RowOutcome:
    kind: Outcome
    row: Dict[str, Any]
    name: str = ""
    reason: Optional[str] = None
    product_id: Optional[int] = None
    error: Optional[str] = None

    @property
    def skipped(self) -> bool:
        return self.kind is not Outcome.ADDED


@dataclass
class ImportSummary:
    outcomes: List[RowOutcome] = field(default_factory=list)

    @property
    def added_count(self) -> int:
        return sum(1 for o in self.outcomes if not o.skipped)

    @property
    def skipped_count(self) -> int:
        return sum(1 for o in self.outcomes if o.skipped)

    def to_dict(self) -> dict:
        added, skipped, duplicates = [], [], []
        for o in self.outcomes:
            if o.kind is Outcome.ADDED:
                added.append({"id": o.product_id, "name": o.name})
                continue
            entry = {"row": o.row, "reason": o.reason}
            if o.kind is Outcome.DUPLICATE:
                entry["existingId"] = o.product_id
                duplicates.append({"name": o.name, "existingId": o.product_id})
            if o.error is not None:
                entry["error"] = o.error
            skipped.append(entry)
        return {
            "addedCount": self.added_count,
            "skippedCount": self.skipped_count,
            "added": added,
            "skipped": skipped,
            "duplicates": duplicates,
        }


def coerce_stock(value: Any) -> int:
    """
    Numeric parse; anything unparseable becomes 0. Sign is not checked, but
    the result is clamped to what a 64-bit stock column can hold.
    """
    if value is None:
        return 0
    text = str(value).strip()
    try:
        num = int(text)
    except ValueError:
        try:
            f = float(text)
        except ValueError:
            return 0
        if math.isnan(f) or math.isinf(f):
            return 0
        num = int(f)
    return max(STOCK_MIN, min(STOCK_MAX, num))


def detect_delimiter(text: str) -> str:
    """Comma unless the header line only splits on semicolons."""
    lines = text.splitlines()
    header = lines[0] if lines else ""
    if ";" in header and len(next(csv.reader([header]), [])) <= 1:
        return ";"
    return ","


def decode_bytes(data: bytes) -> str:
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise ImportParseError("Failed to parse CSV", details=str(e))


def _text(rec: Dict[str, str], key: str) -> str:
    return (rec.get(key) or "").strip()


def parse_rows(data: bytes) -> List[ImportRow]:
    """
    Decode and split a CSV upload into ImportRows. Headers match
    case-insensitively; unknown columns are ignored.
    """
    text = decode_bytes(data)
    reader = csv.DictReader(io.StringIO(text, newline=""), delimiter=detect_delimiter(text))
    rows = []
    try:
        for raw in reader:
            # DictReader puts overflow cells under None
            raw = {k: v for k, v in raw.items() if k is not None}
            rec = {}
            for key, value in raw.items():
                norm = key.strip().lower()
                if norm in RECOGNIZED_COLUMNS and norm not in rec:
                    rec[norm] = value if isinstance(value, str) else ""
            rows.append(
                ImportRow(
                    name=_text(rec, "name"),
                    unit=rec.get("unit") or "",
                    category=rec.get("category") or "",
                    brand=rec.get("brand") or "",
                    stock=coerce_stock(rec.get("stock")),
                    status=rec.get("status") or None,
                    image=rec.get("image") or None,
                    raw=raw,
                )
            )
    except csv.Error as e:
        raise ImportParseError("Failed to parse CSV", details=str(e))
    return rows


class ImportService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = ProductRepository(db)

    def merge_row(self, row: ImportRow) -> RowOutcome:
        if not row.name:
            return RowOutcome(Outcome.INVALID, row.raw, reason="missing name")
        try:
            existing = self.repo.find_by_name(row.name)
            if existing:
                return RowOutcome(
                    Outcome.DUPLICATE,
                    row.raw,
                    name=row.name,
                    reason="duplicate",
                    product_id=existing.id,
                )
            p = self.repo.add(**row.product_fields())
            self.db.commit()
            return RowOutcome(Outcome.ADDED, row.raw, name=row.name, product_id=p.id)
        except (SQLAlchemyError, OverflowError) as e:
            # sqlite3 raises a bare OverflowError for out-of-range integers
            self.db.rollback()
            log.error("import insert failed for row %r: %s", row.raw, e)
            return RowOutcome(
                Outcome.ERROR, row.raw, name=row.name, reason="storage error", error=str(e)
            )

    def import_rows(self, rows: List[ImportRow]) -> ImportSummary:
        summary = ImportSummary()
        for row in rows:
            summary.outcomes.append(self.merge_row(row))
        log.info(
            "import finished: %d added, %d skipped",
            summary.added_count,
            summary.skipped_count,
        )
        return summary

    def import_bytes(self, data: bytes) -> ImportSummary:
        return self.import_rows(parse_rows(data))

    def import_file(self, path: Path) -> ImportSummary:
        """Import a stored upload and delete it afterwards, whatever happens."""
        try:
            return self.import_bytes(Path(path).read_bytes())
        finally:
            remove_quietly(Path(path))
