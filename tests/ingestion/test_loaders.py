import pandas as pd
import pytest

from roster_import.ingestion.loaders import UnreadableFileError, UnsupportedFileTypeError, read_import_text
from roster_import.ingestion.parser import parse_candidates


@pytest.fixture()
def sample_dataframe():
    return pd.DataFrame(
        [
            {
                "Name": "Ada Lovelace",
                "Email": "ADA@example.com",
                "Age": "12",
                "Grade": "6th",
                "Gender": "Female",
                "Address": "1 Analytical Row, London",
                "Phone": "+441234567",
                "Parent Name": "Anne Byron",
            },
            {
                "Name": "Grace Hopper",
                "Email": "grace@example.com",
                "Age": "",
                "Grade": "5th",
                "Gender": "Female",
                "Address": "",
                "Phone": "",
                "Parent Name": "",
            },
        ]
    )


def test_read_csv_strips_byte_order_mark(tmp_path):
    csv_path = tmp_path / "students.csv"
    csv_path.write_text("\ufeffName,Email\nAda,ada@example.com\n", encoding="utf-8")

    text = read_import_text(csv_path)

    assert text.startswith("Name,Email")


def test_read_excel_produces_parseable_csv_text(sample_dataframe, tmp_path):
    excel_path = tmp_path / "students.xlsx"
    sample_dataframe.to_excel(excel_path, index=False)

    candidates = parse_candidates(read_import_text(excel_path), "students")

    assert [candidate.email for candidate in candidates] == ["ada@example.com", "grace@example.com"]
    assert candidates[0].age == 12
    assert candidates[0].address == "1 Analytical Row, London"
    assert candidates[1].age is None
    assert candidates[1].parent_name == ""


def test_unsupported_file_extension(tmp_path):
    bad_path = tmp_path / "students.json"
    bad_path.write_text("{}", encoding="utf-8")

    with pytest.raises(UnsupportedFileTypeError):
        read_import_text(bad_path)


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_import_text(tmp_path / "missing.csv")


def test_non_utf8_csv_is_rejected_with_a_hint(tmp_path):
    csv_path = tmp_path / "students.csv"
    csv_path.write_bytes("Name,Email\nAlé,ale@example.com\n".encode("cp1252"))

    with pytest.raises(UnreadableFileError, match="CSV UTF-8") as excinfo:
        read_import_text(csv_path)

    assert "0xe9" in str(excinfo.value)
