"""Public API: check, check_trees, validate, load_schema."""

import pytest

from protocompat import CheckResult, FindingKind, LoadError, ValidationResult, check, check_trees, load_schema, validate
from protocompat.codes import LoadErrorCode
from protocompat.kernel.model import FieldDef, MessageType, SchemaTree


def doc(files):
    """files: {protopath: (package, [messages])}"""
    return {
        "definitions": [
            {"protopath": path, "def": {"package": {"name": pkg}, "messages": messages}}
            for path, (pkg, messages) in files.items()
        ]
    }


def msg(name, *fields):
    return {"name": name, "fields": [{"id": t, "name": n, "type": "string"} for n, t in fields]}


def test_check_compatible_from_dicts():
    baseline = doc({"a.proto": ("a", [msg("A", ("x", 1))])})
    candidate = doc({"a.proto": ("a", [msg("A", ("x", 1), ("y", 2))])})
    result = check(baseline, candidate)
    assert isinstance(result, CheckResult)
    assert result.compatible is True
    assert result.checked_paths == ["a.proto"]
    assert result.findings == []
    assert result.summary() == {}


def test_check_reports_findings_across_files():
    baseline = doc({
        "a.proto": ("a", [msg("A", ("x", 1), ("y", 2))]),
        "b.proto": ("b", [msg("B")]),
    })
    candidate = doc({"a.proto": ("a", [msg("A", ("x", 1))])})
    result = check(baseline, candidate)
    assert result.compatible is False
    assert [(f.source, f.kind, f.type_path) for f in result.findings] == [
        ("a.proto", FindingKind.REMOVED_FIELD, "a.A"),
        ("b.proto", FindingKind.REMOVED_TYPE, "b.B"),
    ]
    assert result.verdicts["a.proto"].compatible is False
    assert result.summary() == {"RemovedField": 1, "RemovedType": 1}


def test_check_lock_with_cross_file_reference_against_itself():
    lock = doc({
        "a:/:a.proto": ("pkg", [{"name": "A", "fields": [{"id": 1, "name": "b", "type": "B"}]}]),
        "b:/:b.proto": ("pkg", [msg("B", ("x", 1))]),
    })
    result = check(lock, lock)
    assert result.compatible is True
    assert result.checked_paths == ["a/a.proto", "b/b.proto"]


def test_check_restricted_to_proto_path():
    baseline = doc({
        "a.proto": ("a", [msg("A", ("x", 1))]),
        "b.proto": ("b", [msg("B")]),
    })
    candidate = doc({"a.proto": ("a", [msg("A", ("x", 1))])})
    result = check(baseline, candidate, proto_path="a.proto")
    assert result.compatible is True
    assert result.checked_paths == ["a.proto"]


def test_check_unknown_proto_path():
    baseline = doc({"a.proto": ("a", [msg("A")])})
    with pytest.raises(LoadError) as excinfo:
        check(baseline, baseline, proto_path="missing.proto")
    assert excinfo.value.issues[0].code == LoadErrorCode.UNKNOWN_PROTO_PATH


def test_check_from_scenario_files(scenarios_dir):
    scenario = scenarios_dir / "existingreservation"
    result = check(scenario / "baseline" / "proto.lock", str(scenario / "candidate" / "proto.lock"))
    assert result.compatible is False
    assert [f.kind for f in result.findings] == [FindingKind.RESERVED_TAG_REUSE]
    assert result.findings[0].source == "default/default.proto"


def test_check_rejects_invalid_candidate():
    baseline = doc({"a.proto": ("a", [msg("A", ("x", 1))])})
    candidate = doc({"a.proto": ("a", [msg("A", ("x", 1), ("y", 1))])})
    with pytest.raises(LoadError):
        check(baseline, candidate)
    result = check(baseline, candidate, validate=False)
    assert result.compatible is False


def test_check_trees():
    old = SchemaTree(messages=[MessageType(name="A", fields=[FieldDef(name="x", tag=1, type="string")])])
    new = SchemaTree(messages=[MessageType(name="A", fields=[FieldDef(name="x", tag=4, type="string")])])
    assert check_trees(old, new).compatible is True


def test_load_schema_returns_trees():
    trees = load_schema(doc({"a.proto": ("a", [msg("A")])}))
    assert trees["a.proto"].messages[0].name == "A"


def test_validate_reports_instead_of_raising(tmp_path):
    ok = validate(doc({"a.proto": ("a", [msg("A", ("x", 1))])}))
    assert isinstance(ok, ValidationResult)
    assert ok.ok is True

    bad = validate(doc({"a.proto": ("a", [msg("A", ("x", 1), ("x", 2))])}))
    assert bad.ok is False
    assert [e.code for e in bad.errors] == [LoadErrorCode.DUPLICATE_FIELD_NAME]

    missing = validate(tmp_path / "absent.lock")
    assert missing.ok is False
    assert missing.errors[0].code == LoadErrorCode.FILE_NOT_FOUND
