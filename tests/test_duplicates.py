"""Tests for :mod:`roster_import.duplicates`."""
from __future__ import annotations

from typing import Iterable, List, Set

from roster_import.duplicates import DuplicateDetector
from roster_import.models import ImportCandidate


class StubLookup:
    def __init__(self, existing: Iterable[str] = ()) -> None:
        self.existing = set(existing)
        self.calls: List[List[str]] = []

    def find_existing_emails(self, emails: Iterable[str]) -> Set[str]:
        emails = list(emails)
        self.calls.append(emails)
        return {email for email in self.existing if email.lower() in emails}


class BrokenLookup:
    def find_existing_emails(self, emails: Iterable[str]) -> Set[str]:
        raise RuntimeError("identity store unavailable")


def _candidates(*emails: str) -> List[ImportCandidate]:
    return [
        ImportCandidate(name=f"Student {index}", email=email, line_number=index + 2)
        for index, email in enumerate(emails)
    ]


def test_detect_partitions_with_single_query_and_keeps_order() -> None:
    lookup = StubLookup(existing={"b@example.com", "d@example.com"})
    candidates = _candidates("a@example.com", "b@example.com", "c@example.com", "d@example.com")

    report = DuplicateDetector(lookup).detect(candidates)

    assert len(lookup.calls) == 1
    assert lookup.calls[0] == ["a@example.com", "b@example.com", "c@example.com", "d@example.com"]
    assert [c.email for c in report.new_records] == ["a@example.com", "c@example.com"]
    assert [c.email for c in report.duplicates] == ["b@example.com", "d@example.com"]
    assert report.has_duplicates
    assert not report.lookup_failed


def test_existing_emails_are_compared_case_insensitively() -> None:
    lookup = StubLookup(existing={"ALI@Example.com"})

    report = DuplicateDetector(lookup).detect(_candidates("ali@example.com"))

    assert [c.email for c in report.duplicates] == ["ali@example.com"]
    assert report.new_records == ()


def test_lookup_failure_treats_everything_as_new() -> None:
    candidates = _candidates("a@example.com", "b@example.com")

    report = DuplicateDetector(BrokenLookup()).detect(candidates)

    assert report.lookup_failed
    assert list(report.new_records) == candidates
    assert report.duplicates == ()
    assert not report.has_duplicates


def test_repeated_email_within_file_is_reported_separately() -> None:
    lookup = StubLookup()
    candidates = _candidates("a@example.com", "b@example.com", "a@example.com")

    report = DuplicateDetector(lookup).detect(candidates)

    assert [c.email for c in report.new_records] == ["a@example.com", "b@example.com"]
    assert len(report.in_file_duplicates) == 1
    repeated = report.in_file_duplicates[0]
    assert repeated.candidate is candidates[2]
    assert repeated.first_line == 2
    assert lookup.calls == [["a@example.com", "b@example.com"]]
    assert report.has_duplicates


def test_detection_is_idempotent() -> None:
    detector = DuplicateDetector(StubLookup(existing={"b@example.com"}))
    candidates = _candidates("a@example.com", "b@example.com", "c@example.com")

    assert detector.detect(candidates) == detector.detect(candidates)


def test_empty_batch_skips_the_lookup() -> None:
    lookup = StubLookup()

    report = DuplicateDetector(lookup).detect([])

    assert lookup.calls == []
    assert not report.has_duplicates


def test_decisions_flag_each_unique_candidate() -> None:
    report = DuplicateDetector(StubLookup(existing={"b@example.com"})).detect(
        _candidates("a@example.com", "b@example.com")
    )

    flags = {decision.candidate.email: decision.is_duplicate for decision in report.decisions()}

    assert flags == {"a@example.com": False, "b@example.com": True}
