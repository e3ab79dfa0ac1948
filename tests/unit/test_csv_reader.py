from __future__ import annotations

from pathlib import Path

import pytest

from resident_import.csv.reader import CsvParseError, parse_csv_text, read_upload


def test_parse_basic_rows_in_file_order(example_csv):
    table = parse_csv_text(example_csv)
    assert table.headers == ["First Name", "Last Name", "ID", "Room"]
    assert len(table) == 2
    assert table.rows[0]["First Name"] == "Jane"
    assert table.rows[1]["Last Name"] == "Smith"
    assert not table.rows[1]["First Name"]


def test_cells_stay_text():
    table = parse_csv_text("Name,ID,Room\nNA,0012,101\n")
    row = table.rows[0]
    assert row == {"Name": "NA", "ID": "0012", "Room": "101"}


def test_quoted_fields():
    table = parse_csv_text('Name,ID\n"Doe, Jane",1\n"Say ""hi""",2\n')
    assert table.rows[0]["Name"] == "Doe, Jane"
    assert table.rows[1]["Name"] == 'Say "hi"'


def test_blank_lines_skipped():
    table = parse_csv_text("Name,ID\n\nJane,1\n\n\nJohn,2\n")
    assert [r["ID"] for r in table.rows] == ["1", "2"]


def test_row_with_too_few_fields_is_a_parse_error():
    with pytest.raises(CsvParseError) as e:
        parse_csv_text("Name,ID,Email\nJane,1,j@x.edu\nJohn\n")
    assert e.value.details == [
        {
            "type": "FieldMismatch",
            "code": "TooFewFields",
            "message": "Too few fields: expected 3 fields but parsed 1",
            "row": 3,
        }
    ]


def test_every_short_row_is_reported():
    with pytest.raises(CsvParseError) as e:
        parse_csv_text("Name,ID\nJane\nJohn,2\nJim\n")
    assert [d["row"] for d in e.value.details] == [2, 4]


def test_whitespace_only_line_is_a_parse_error():
    with pytest.raises(CsvParseError) as e:
        parse_csv_text("Name,ID\nJane,1\n   \nJohn,2\n")
    assert e.value.details[0]["row"] == 3


def test_trailing_empty_cells_are_kept_as_text():
    table = parse_csv_text("Name,ID,Email\nJane,,\n")
    assert table.rows[0] == {"Name": "Jane", "ID": "", "Email": ""}


def test_bom_is_dropped():
    table = parse_csv_text("\ufeffName,ID\nJane,1\n")
    assert table.headers == ["Name", "ID"]


def test_header_only_has_no_rows():
    table = parse_csv_text("Name,ID\n")
    assert table.headers == ["Name", "ID"]
    assert table.rows == []


def test_duplicate_headers_kept_apart():
    table = parse_csv_text("Name,Name,ID\nA,B,1\n")
    assert table.headers == ["Name", "Name_1", "ID"]
    assert table.rows[0]["Name_1"] == "B"


def test_row_with_extra_fields_is_a_parse_error():
    with pytest.raises(CsvParseError) as e:
        parse_csv_text("Name,ID\nJane,1\nJohn,2,extra\n")
    assert e.value.details
    assert e.value.details[0]["row"] == 3


def test_unterminated_quote_is_a_parse_error():
    with pytest.raises(CsvParseError):
        parse_csv_text('Name,ID\n"Jane,1\n')


def test_empty_text_is_a_parse_error():
    with pytest.raises(CsvParseError):
        parse_csv_text("  \n\n")


def test_read_upload_decodes_utf8(tmp_path: Path):
    f = tmp_path / "r.csv"
    f.write_bytes("\ufeffName,ID\nJosé,1\n".encode("utf-8"))
    assert read_upload(f) == "Name,ID\nJosé,1\n"


def test_read_upload_rejects_non_utf8(tmp_path: Path):
    f = tmp_path / "r.csv"
    f.write_bytes("Name,ID\nJos\xe9,1\n".encode("latin-1"))
    with pytest.raises(CsvParseError):
        read_upload(f)
