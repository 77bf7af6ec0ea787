import io
import math

import pandas as pd
import pytest

from analysis import ingest
from analysis.ingest import (
    FileParseError, MissingColumnsError, NoValidRowsError, UnsupportedFileError,
    coerce_date, coerce_number, coerce_volume, excel_serial_to_iso,
    read_upload, rows_to_records,
)


def test_excel_serial_to_iso():
    assert excel_serial_to_iso(45474) == "2024-07-01"
    assert excel_serial_to_iso(25569) == "1970-01-01"
    # fractional part (time of day) does not move the day
    assert excel_serial_to_iso(45474.25) == "2024-07-01"


@pytest.mark.parametrize("raw, expected", [
    (45474, "2024-07-01"),
    ("45474", "2024-07-01"),
    ("2024-03-01", "2024-03-01"),
    ("mars 2024", "2024-03-01"),
    ("03/04/2024", "2024-04-03"),
    ("15/03/2024", "2024-03-15"),
    (pd.Timestamp("2023-11-01"), "2023-11-01"),
    ("12", None),
    ("not a date", None),
    ("", None),
    (None, None),
])
def test_coerce_date(raw, expected):
    assert coerce_date(raw) == expected


@pytest.mark.parametrize("raw, expected", [
    ("1 234,50", 1234.5),
    ("1,234", 1234.0),
    ("1.234.567", 1234567.0),
    ("12 500 DH", 12500.0),
    ("(1,500.25)", -1500.25),
    (42, 42.0),
])
def test_coerce_number(raw, expected):
    assert coerce_number(raw) == pytest.approx(expected)


def test_coerce_number_not_numeric():
    assert math.isnan(coerce_number("abc"))
    assert math.isnan(coerce_number(None))
    assert math.isnan(coerce_number(""))


def test_coerce_volume_truncates():
    assert coerce_volume("1 200.9") == 1200
    assert coerce_volume("n/a") is None


def test_rows_to_records_sorted_and_aliased():
    rows = [
        {"Date": "2024-02-01", "Total Cost": "1100", "Unit Cost": "11", "Volume": "100"},
        {"Date": "2024-01-01", "Total Cost": "1000", "Unit Cost": "10", "Volume": "100"},
    ]
    recs = rows_to_records(rows)
    assert [r.date for r in recs] == ["2024-01-01", "2024-02-01"]
    assert recs[0].total_cost == 1000.0
    assert recs[0].volume == 100


def test_rows_to_records_french_headers():
    rows = [{"Mois": "45474", "Coût Total": "125 000", "Coût Unitaire": "120,5", "Volume": "1037"}]
    recs = rows_to_records(rows)
    assert len(recs) == 1
    r = recs[0]
    assert r.date == "2024-07-01"
    assert r.total_cost == 125000.0
    assert r.unit_cost == pytest.approx(120.5)
    assert r.volume == 1037


def test_rows_to_records_drops_invalid_rows():
    rows = [
        {"date": "2024-01-01", "totalcost": "1000", "unitcost": "10", "volume": "100"},
        {"date": "garbage", "totalcost": "1000", "unitcost": "10", "volume": "100"},
        {"date": "2024-02-01", "totalcost": "abc", "unitcost": "10", "volume": "100"},
    ]
    recs = rows_to_records(rows)
    assert [r.date for r in recs] == ["2024-01-01"]


def test_rows_to_records_missing_column():
    rows = [{"date": "2024-01-01", "totalcost": "1000", "unitcost": "10"}]
    with pytest.raises(MissingColumnsError) as ei:
        rows_to_records(rows)
    assert ei.value.missing == ["volume"]
    assert ei.value.title == "Invalid Header"
    assert str(ei.value) == "File must have columns: date, totalcost, unitcost, volume"


def test_rows_to_records_no_valid_rows():
    with pytest.raises(NoValidRowsError):
        rows_to_records([])
    with pytest.raises(NoValidRowsError):
        rows_to_records([{"date": "x", "totalcost": "1", "unitcost": "1", "volume": "1"}])


def test_read_upload_csv_comma():
    data = (
        "Date,Total Cost,Unit Cost,Volume\n"
        "2024-02-01,130000,125.5,1036\n"
        "2024-01-01,120000,120,1000\n"
    ).encode("utf-8")
    recs = read_upload("costs.csv", data)
    assert [r.date for r in recs] == ["2024-01-01", "2024-02-01"]
    assert recs[1].unit_cost == pytest.approx(125.5)


def test_read_upload_csv_semicolon_french():
    data = (
        "Date;Coût Total;Coût Unitaire;Volume\n"
        "2024-01-01;1 000,5;10,5;95\n"
    ).encode("utf-8")
    recs = read_upload("couts.csv", data)
    assert len(recs) == 1
    assert recs[0].total_cost == pytest.approx(1000.5)
    assert recs[0].unit_cost == pytest.approx(10.5)
    assert recs[0].volume == 95


def test_read_upload_xlsx_serial_dates():
    buf = io.BytesIO()
    pd.DataFrame({
        "date": [45474, 45505],
        "totalCost": [125000, 130000],
        "unitCost": [120.5, 121.0],
        "volume": [1037, 1074],
    }).to_excel(buf, index=False)
    recs = read_upload("costs.xlsx", buf.getvalue())
    assert [r.date for r in recs] == ["2024-07-01", "2024-08-01"]
    assert recs[0].volume == 1037


def test_read_upload_unsupported_extension():
    with pytest.raises(UnsupportedFileError) as ei:
        read_upload("costs.txt", b"date,totalcost,unitcost,volume\n")
    assert ei.value.title == "Unsupported File Type"


def test_read_upload_csv_trailing_delimiter():
    data = (
        "Date,Total Cost,Unit Cost,Volume\n"
        "2024-01-01,120000,120,1000,\n"
        "2024-02-01,130000,125.5,1036,\n"
    ).encode("utf-8")
    recs = read_upload("export.csv", data)
    assert [r.date for r in recs] == ["2024-01-01", "2024-02-01"]
    assert recs[0].total_cost == 120000.0
    assert recs[0].unit_cost == 120.0
    assert recs[1].volume == 1036


def test_read_upload_csv_cp1252_fallback():
    data = (
        "Date;Coût Total;Coût Unitaire;Volume\n"
        "2024-01-01;1000;10;100\n"
    ).encode("cp1252")
    recs = read_upload("couts.csv", data)
    assert len(recs) == 1
    assert recs[0].total_cost == 1000.0


def test_read_upload_empty_csv_is_parse_error():
    with pytest.raises(FileParseError) as ei:
        read_upload("empty.csv", b"")
    assert ei.value.title == "Parsing Error"
    assert str(ei.value).startswith("Could not parse the CSV file")


def test_read_upload_corrupt_xlsx():
    with pytest.raises(FileParseError) as ei:
        read_upload("broken.xlsx", b"this is not a workbook")
    assert ei.value.title == "Excel Parsing Error"
    assert str(ei.value) == "Could not parse the Excel file."


def test_read_upload_xls_goes_through_read_excel(monkeypatch):
    seen = {}

    def fake_read_excel(buf, sheet_name=0):
        seen["sheet"] = sheet_name
        seen["bytes"] = buf.getvalue()
        return pd.DataFrame({
            "Date": ["2024-01-01"], "Total Cost": [1000.0], "Unit Cost": [10.0], "Volume": [100],
        })

    monkeypatch.setattr(ingest.pd, "read_excel", fake_read_excel)
    recs = read_upload("legacy.XLS", b"\xd0\xcf\x11\xe0")
    assert seen == {"sheet": 0, "bytes": b"\xd0\xcf\x11\xe0"}
    assert [r.date for r in recs] == ["2024-01-01"]
