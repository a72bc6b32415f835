import csv
import io
from typing import Iterable

from app.models.product import Product

EXPORT_COLUMNS = ["id", "name", "unit", "category", "brand", "stock", "status", "image"]


def products_to_csv(products: Iterable[Product]) -> str:
    """Header row unquoted, every value quoted, nulls empty."""
    buf = io.StringIO()
    buf.write(",".join(EXPORT_COLUMNS) + "\n")
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    for p in products:
        writer.writerow(
            ["" if getattr(p, col, None) is None else str(getattr(p, col)) for col in EXPORT_COLUMNS]
        )
    return buf.getvalue()
