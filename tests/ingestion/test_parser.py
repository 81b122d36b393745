import pytest

from roster_import.ingestion.parser import (
    EmptyImportError,
    InvalidEmailError,
    MissingFieldError,
    RowShapeError,
    TooManyRecordsError,
    is_valid_email,
    normalise_email,
    parse_candidates,
    sample_csv,
)
from roster_import.models import ImportKind

STUDENT_HEADER = "Name,Email,Age,Grade,Gender,Address,Phone,Parent Name\n"
TEACHER_HEADER = "Name,Email,Subject,Phone,Qualification,Experience\n"


def test_parse_students_normalises_every_field() -> None:
    text = STUDENT_HEADER + ' "Ali" , Ali@Example.COM ,12,6th,Male,"12 Main St, Apt 4",555-0100,Omar\n'

    [candidate] = parse_candidates(text, "students")

    assert candidate.name == "Ali"
    assert candidate.email == "ali@example.com"
    assert candidate.age == 12
    assert candidate.grade == "6th"
    assert candidate.gender == "Male"
    assert candidate.address == "12 Main St, Apt 4"
    assert candidate.phone == "555-0100"
    assert candidate.parent_name == "Omar"
    assert candidate.kind is ImportKind.STUDENTS
    assert candidate.line_number == 2


def test_optional_student_fields_default_when_blank() -> None:
    text = STUDENT_HEADER + "Sara,sara@example.com,,,,,,\n"

    [candidate] = parse_candidates(text)

    assert candidate.age is None
    assert candidate.grade is None
    assert candidate.gender is None
    assert candidate.address == ""
    assert candidate.phone == ""
    assert candidate.parent_name == ""


def test_invalid_email_aborts_whole_batch() -> None:
    text = STUDENT_HEADER + "Ali,ali@example.com,12,6th,Male,,,\nSara,BAD_EMAIL,11,5th,Female,,,\n"

    with pytest.raises(InvalidEmailError) as excinfo:
        parse_candidates(text, "students")

    assert excinfo.value.value == "BAD_EMAIL"
    assert excinfo.value.line_number == 3
    assert "BAD_EMAIL" in str(excinfo.value)


def test_blank_lines_are_ignored_and_header_is_not_validated() -> None:
    text = "whatever,columns,here,a,b,c,d,e\n\n" + "Ali,ali@example.com,12,6th,Male,,,\n\n,,,,,,,\nSara,sara@example.com,11,5th,Female,,,\n"

    candidates = parse_candidates(text)

    assert [candidate.email for candidate in candidates] == ["ali@example.com", "sara@example.com"]


def test_embedded_whitespace_and_quotes_are_removed_from_email() -> None:
    text = STUDENT_HEADER + "Ali,'ALI @Example .com',12,6th,Male,,,\n"

    [candidate] = parse_candidates(text)

    assert candidate.email == "ali@example.com"


def test_row_with_extra_fields_is_rejected() -> None:
    text = STUDENT_HEADER + "Ali,ali@example.com,12,6th,Male,12 Main St, Apt 4,555-0100,Omar\n"

    with pytest.raises(RowShapeError) as excinfo:
        parse_candidates(text)

    assert excinfo.value.line_number == 2


def test_missing_name_is_rejected() -> None:
    text = STUDENT_HEADER + ",ali@example.com,12,6th,Male,,,\n"

    with pytest.raises(MissingFieldError):
        parse_candidates(text)


def test_non_numeric_age_is_treated_as_absent() -> None:
    text = STUDENT_HEADER + "Ali,ali@example.com,twelve,6th,Male,,,\n"

    [candidate] = parse_candidates(text)

    assert candidate.age is None


def test_parse_teachers_uses_teacher_layout() -> None:
    text = TEACHER_HEADER + "Dr. Ahmed Ali,AHMED@school.edu,Tajweed,+1234567890,PhD Islamic Studies,10 years\n"

    [candidate] = parse_candidates(text, ImportKind.TEACHERS)

    assert candidate.kind is ImportKind.TEACHERS
    assert candidate.email == "ahmed@school.edu"
    assert candidate.account_fields() == {
        "name": "Dr. Ahmed Ali",
        "email": "ahmed@school.edu",
        "subject": "Tajweed",
        "phone": "+1234567890",
        "qualification": "PhD Islamic Studies",
        "experience": "10 years",
    }


def test_record_limit_is_enforced() -> None:
    rows = "".join(f"Student {i},s{i}@example.com,10,4th,,,,\n" for i in range(3))

    with pytest.raises(TooManyRecordsError):
        parse_candidates(STUDENT_HEADER + rows, max_records=2)

    assert len(parse_candidates(STUDENT_HEADER + rows, max_records=None)) == 3


@pytest.mark.parametrize("text", ["", "\n\n", STUDENT_HEADER])
def test_empty_uploads_are_rejected(text: str) -> None:
    with pytest.raises(EmptyImportError):
        parse_candidates(text)


def test_unknown_kind_is_rejected() -> None:
    with pytest.raises(ValueError):
        parse_candidates(STUDENT_HEADER, "parents")


def test_sample_csv_parses_cleanly() -> None:
    students = parse_candidates(sample_csv("students"), "students")
    teachers = parse_candidates(sample_csv("teachers"), "teachers")

    assert len(students) == 2
    assert students[1].address == "456 Oak Ave, Apt 2"
    assert [teacher.subject for teacher in teachers] == ["Quran Studies", "Tajweed"]


def test_email_helpers() -> None:
    assert normalise_email(' "Jane.Doe @Example.org" ') == "jane.doe@example.org"
    assert is_valid_email("a@b.co")
    assert not is_valid_email("a@b")
    assert not is_valid_email("a b@c.com")
    assert not is_valid_email("")
