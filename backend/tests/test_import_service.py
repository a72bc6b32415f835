import pytest

from app.exceptions import ImportParseError
from app.services.import_service import (
    ImportRow,
    ImportService,
    coerce_stock,
    detect_delimiter,
    parse_rows,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("7", 7),
        (" 12 ", 12),
        ("7.9", 7),
        ("-2", -2),
        ("", 0),
        (None, 0),
        ("abc", 0),
        ("nan", 0),
        ("inf", 0),
        ("99999999999999999999", 2**63 - 1),
        ("-99999999999999999999", -(2**63)),
    ],
)
def test_coerce_stock(raw, expected):
    assert coerce_stock(raw) == expected


def test_detect_delimiter():
    assert detect_delimiter("name,stock\na,1") == ","
    assert detect_delimiter("name;stock;unit\na;1;kg") == ";"
    assert detect_delimiter('name,unit\n"a;b;c;d;e",kg') == ","
    assert detect_delimiter("") == ","


def test_parse_rows_matches_headers_case_insensitively():
    data = b"NAME,Stock,Colour,Category\nTea,3,green,drinks\n"
    rows = parse_rows(data)
    assert len(rows) == 1
    row = rows[0]
    assert row.name == "Tea"
    assert row.stock == 3
    assert row.category == "drinks"
    assert row.unit == ""
    assert row.brand == ""
    assert row.status is None
    assert row.image is None
    assert row.raw["Colour"] == "green"


def test_parse_rows_accepts_bom_and_semicolons():
    data = "\ufeffname;stock\nKávé;4\n".encode("utf-8")
    rows = parse_rows(data)
    assert [(r.name, r.stock) for r in rows] == [("Kávé", 4)]


def test_parse_rows_short_lines_default_missing_cells():
    rows = parse_rows(b"name,unit,stock\nTea\n")
    assert rows[0].name == "Tea"
    assert rows[0].unit == ""
    assert rows[0].stock == 0


def test_parse_rows_rejects_undecodable_bytes():
    with pytest.raises(ImportParseError):
        parse_rows(b"name\n\xff\xfe\xfa\n")


def test_header_only_file_has_no_rows():
    assert parse_rows(b"name,stock\n") == []


def test_import_rows_classifies_each_row(db):
    svc = ImportService(db)
    summary = svc.import_rows(
        [
            ImportRow(name="Tea", stock=2, raw={"name": "Tea"}),
            ImportRow(name="", raw={"name": ""}),
            ImportRow(name="TEA", raw={"name": "TEA"}),
        ]
    )
    result = summary.to_dict()
    assert result["addedCount"] == 1
    assert result["skippedCount"] == 2
    assert result["added"][0]["name"] == "Tea"
    assert [s["reason"] for s in result["skipped"]] == ["missing name", "duplicate"]
    assert result["duplicates"] == [{"name": "TEA", "existingId": result["added"][0]["id"]}]
