"""Type presence, nesting and determinism."""

import random

from protocompat.codes import FindingKind
from protocompat.kernel.analyzer import analyze, analyze_schema_sets, analyze_trees
from protocompat.kernel.model import EnumConstant, EnumType, FieldDef, MessageType, ReservedRange, SchemaTree
from protocompat.kernel.type_index import build_type_index


def message(name, fields=(), messages=(), enums=(), reserved_tags=()):
    return MessageType(
        name=name,
        fields=[FieldDef(name=n, tag=t, type="string") for n, t in fields],
        messages=messages,
        enums=enums,
        reserved_tags=[ReservedRange(start=s, end=e) for s, e in reserved_tags],
    )


def tree(*messages, enums=(), package="pkg"):
    return SchemaTree(package=package, messages=messages, enums=enums)


def test_removed_top_level_type_is_breaking():
    verdict = analyze_trees(tree(message("A"), message("B")), tree(message("A")))
    assert verdict.compatible is False
    assert [(f.kind, f.type_path) for f in verdict.findings] == [(FindingKind.REMOVED_TYPE, "pkg.B")]


def test_added_type_is_compatible():
    verdict = analyze_trees(tree(message("A")), tree(message("A"), message("B", fields=[("x", 1)])))
    assert verdict.compatible is True


def test_removed_enclosing_type_reports_each_nested_type():
    old = tree(message(
        "Outer",
        messages=[message("Mid", messages=[message("Leaf")])],
        enums=[EnumType(name="Kind", constants=[EnumConstant(name="K0", value=0)])],
    ))
    verdict = analyze_trees(old, tree())
    assert [f.type_path for f in verdict.by_kind(FindingKind.REMOVED_TYPE)] == [
        "pkg.Outer",
        "pkg.Outer.Kind",
        "pkg.Outer.Mid",
        "pkg.Outer.Mid.Leaf",
    ]
    assert len(verdict.findings) == 4


def test_enclosing_change_does_not_leak_into_nested_type():
    old = tree(message("Outer", fields=[("a", 1), ("b", 2)], messages=[message("Inner", fields=[("x", 1)])]))
    new = tree(message("Outer", fields=[("a", 1)], messages=[message("Inner", fields=[("x", 1)])]))
    verdict = analyze_trees(old, new)
    assert [f.type_path for f in verdict.findings] == ["pkg.Outer"]
    assert verdict.findings[0].kind == FindingKind.REMOVED_FIELD


def test_moving_type_between_nesting_levels_is_removal():
    old = tree(message("Outer", messages=[message("Inner", fields=[("x", 1)])]))
    new = tree(message("Outer"), message("Inner", fields=[("x", 1)]))
    verdict = analyze_trees(old, new)
    assert [(f.kind, f.type_path) for f in verdict.findings] == [(FindingKind.REMOVED_TYPE, "pkg.Outer.Inner")]


def test_message_replaced_by_enum_is_removal():
    old = tree(message("Thing", fields=[("a", 1)]))
    new = tree(enums=[EnumType(name="Thing", constants=[EnumConstant(name="A", value=0)])])
    verdict = analyze_trees(old, new)
    assert verdict.findings[0].kind == FindingKind.REMOVED_TYPE
    assert "replaced by an enum" in verdict.findings[0].message


def test_package_change_removes_every_type():
    verdict = analyze_trees(tree(message("A"), package="v1"), tree(message("A"), package="v2"))
    assert [f.type_path for f in verdict.findings] == ["v1.A"]


def test_deeply_nested_reservation_is_honored_on_unchanged_path():
    def build(fields, reserved):
        leaf = message("Leaf", fields=fields, reserved_tags=reserved)
        return tree(message("Root", messages=[message("Branch", messages=[leaf])]))

    verdict = analyze_trees(build([("a", 1)], [(3, 3)]), build([("a", 1), ("reuse", 3)], []))
    assert [(f.kind, f.type_path) for f in verdict.findings] == [
        (FindingKind.RESERVED_TAG_REUSE, "pkg.Root.Branch.Leaf"),
    ]


def test_ignored_reservation_behind_renamed_ancestor():
    """Regression: a deeply nested reservation reached only through a renamed
    ancestor does not block reuse of its tag in the new path.

    The verdict is still incompatible because every type under the old
    ancestor is reported as removed; no ReservedTagReuse is raised for the
    relocated message.
    """
    old = tree(message("Frame", messages=[message("Section", messages=[
        message("Entry", fields=[("id", 1)], reserved_tags=[(2, 2)]),
    ])]))
    new = tree(message("FrameV2", messages=[message("Section", messages=[
        message("Entry", fields=[("id", 1), ("reused", 2)]),
    ])]))

    verdict = analyze_trees(old, new)

    assert verdict.compatible is False
    assert [(f.kind, f.type_path) for f in verdict.findings] == [
        (FindingKind.REMOVED_TYPE, "pkg.Frame"),
        (FindingKind.REMOVED_TYPE, "pkg.Frame.Section"),
        (FindingKind.REMOVED_TYPE, "pkg.Frame.Section.Entry"),
    ]
    assert verdict.by_kind(FindingKind.RESERVED_TAG_REUSE) == []


def test_analysis_is_deterministic_under_declaration_reordering():
    fields = [("f%d" % i, i) for i in range(1, 30)]
    old = tree(message("A", fields=fields), message("B", fields=fields[:5]))

    survivors = [f for f in fields if f[1] % 3]
    shuffled = list(survivors)
    random.Random(7).shuffle(shuffled)

    new_sorted = tree(message("A", fields=survivors))
    new_shuffled = tree(message("A", fields=shuffled))

    first = analyze(build_type_index(old), build_type_index(new_sorted))
    second = analyze(build_type_index(old), build_type_index(new_shuffled))
    again = analyze(build_type_index(old), build_type_index(new_sorted))

    assert first == second == again
    assert first.compatible is False


def test_schema_sets_tag_findings_with_source():
    old = {
        "a/a.proto": tree(message("A", fields=[("x", 1)]), package="a"),
        "b/b.proto": tree(message("B"), package="b"),
    }
    new = {
        "a/a.proto": tree(message("A", fields=[("x", 1), ("y", 2)]), package="a"),
        "c/c.proto": tree(message("C"), package="c"),
    }
    verdicts = analyze_schema_sets(old, new)
    assert sorted(verdicts) == ["a/a.proto", "b/b.proto"]
    assert verdicts["a/a.proto"].compatible is True
    removed = verdicts["b/b.proto"].findings
    assert [(f.kind, f.type_path, f.source) for f in removed] == [
        (FindingKind.REMOVED_TYPE, "b.B", "b/b.proto"),
    ]
