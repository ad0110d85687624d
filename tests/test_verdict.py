"""Verdict aggregation."""

from protocompat.codes import FindingKind
from protocompat.kernel.verdict import Finding, aggregate


def _finding(kind, name=None):
    return Finding(kind=kind, type_path="p.Foo", name=name, message="m")


def test_empty_findings_are_compatible():
    verdict = aggregate([])
    assert verdict.compatible is True
    assert verdict.findings == []
    assert verdict.summary() == {}


def test_any_finding_is_incompatible_and_order_is_kept():
    findings = [
        _finding(FindingKind.REMOVED_FIELD, "b"),
        _finding(FindingKind.REMOVED_TYPE),
        _finding(FindingKind.REMOVED_FIELD, "a"),
    ]
    verdict = aggregate(iter(findings))
    assert verdict.compatible is False
    assert verdict.findings == findings
    assert verdict.summary() == {"RemovedField": 2, "RemovedType": 1}
    assert [f.name for f in verdict.by_kind(FindingKind.REMOVED_FIELD)] == ["b", "a"]


def test_finding_serializes_kind_as_string():
    dumped = _finding(FindingKind.TAG_CONFLICT, "a").model_dump(mode="json")
    assert dumped["kind"] == "TagConflict"
    assert dumped["source"] is None
