"""Backward-compatibility analysis between a baseline and a candidate schema.

Identity is tracked by name: a field (or enum constant) present under the
same name in both versions is the same member, whatever its tag. Oneof
membership and declaration order are not part of identity and are never
consulted here.
"""

import logging
from enum import Enum
from typing import Callable, Dict, List, Mapping, NamedTuple, Optional

from protocompat.codes import FindingKind
from .model import EnumType, MessageType, SchemaTree
from .type_index import TypeDef, TypeIndex, build_type_index
from .verdict import Finding, Verdict, aggregate

logger = logging.getLogger("protocompat.analyzer")


class Outcome(Enum):
    """How a single member name reconciles across the two versions."""
    RETIRED = "retired"  # Gone, tag and name both reserved in the candidate
    REMOVED = "removed"  # Gone without full reservation (also covers renames)
    RETAINED = "retained"  # Same name in both
    RETAINED_CONFLICT = "retained_conflict"  # Same name, new number reserved or taken
    ADDED = "added"  # Only in the candidate
    ADDED_CONFLICT = "added_conflict"  # Only in the candidate, number reserved or taken


class _Vocabulary(NamedTuple):
    member: str  # "field" | "constant"
    number: str  # "tag" | "value"
    removed: FindingKind
    conflict: FindingKind


_FIELD_WORDS = _Vocabulary("field", "tag", FindingKind.REMOVED_FIELD, FindingKind.TAG_CONFLICT)
_CONSTANT_WORDS = _Vocabulary("constant", "value", FindingKind.REMOVED_ENUM_CONSTANT, FindingKind.VALUE_CONFLICT)


# Outcome -> finding kind. None means the outcome is compatible.
_DECISION_TABLE: Dict[Outcome, Callable[[_Vocabulary], Optional[FindingKind]]] = {
    Outcome.RETIRED: lambda words: None,
    Outcome.REMOVED: lambda words: words.removed,
    Outcome.RETAINED: lambda words: None,
    Outcome.RETAINED_CONFLICT: lambda words: words.conflict,
    Outcome.ADDED: lambda words: None,
    Outcome.ADDED_CONFLICT: lambda words: FindingKind.RESERVED_TAG_REUSE,
}


class _Side(NamedTuple):
    """Name -> number view of one message or enum, plus its reservations."""
    numbers: Dict[str, int]
    is_number_reserved: Callable[[int], bool]
    is_name_reserved: Callable[[str], bool]
    allow_alias: bool = False

    @classmethod
    def of_message(cls, message: MessageType) -> "_Side":
        return cls(
            numbers={name: f.tag for name, f in message.fields_by_name().items()},
            is_number_reserved=message.is_tag_reserved,
            is_name_reserved=message.is_name_reserved,
        )

    @classmethod
    def of_enum(cls, enum: EnumType) -> "_Side":
        return cls(
            numbers={name: c.value for name, c in enum.constants_by_name().items()},
            is_number_reserved=enum.is_value_reserved,
            is_name_reserved=enum.is_name_reserved,
            allow_alias=enum.allow_alias,
        )

    def holders_of(self, number: int, excluding: str) -> List[str]:
        """Other live members using `number`, sorted."""
        return sorted(n for n, v in self.numbers.items() if v == number and n != excluding)


def _number_problem(name: str, number: int, old: _Side, new: _Side, words: _Vocabulary) -> Optional[str]:
    """Describe why `number` cannot be used by `name` in the candidate, if it cannot."""
    if old.is_number_reserved(number) or new.is_number_reserved(number):
        return f"{words.number} {number} is reserved"
    if not new.allow_alias:
        holders = new.holders_of(number, excluding=name)
        if holders:
            quoted = ", ".join(f"'{h}'" for h in holders)
            return f"{words.number} {number} is also used by {words.member} {quoted}"
    return None


def _removal_gap(number: int, name: str, new: _Side, words: _Vocabulary) -> Optional[str]:
    """What is missing for a removal to count as properly retired, or None if retired."""
    tag_reserved = new.is_number_reserved(number)
    name_reserved = new.is_name_reserved(name)
    if tag_reserved and name_reserved:
        return None
    if tag_reserved:
        return "its name is not reserved"
    if name_reserved:
        return f"its {words.number} is not reserved"
    return f"neither its {words.number} nor its name is reserved"


def _compare_members(path: str, old: _Side, new: _Side, words: _Vocabulary) -> List[Finding]:
    findings: List[Finding] = []

    def emit(outcome: Outcome, name: str, number: int, message: str) -> None:
        kind = _DECISION_TABLE[outcome](words)
        if kind is not None:
            findings.append(Finding(kind=kind, type_path=path, name=name, number=number, message=message))

    for name in sorted(old.numbers):
        old_number = old.numbers[name]
        if name not in new.numbers:
            gap = _removal_gap(old_number, name, new, words)
            if gap is None:
                logger.debug("%s '%s' retired from %s with reservations", words.member, name, path)
                emit(Outcome.RETIRED, name, old_number, "")
            else:
                emit(
                    Outcome.REMOVED, name, old_number,
                    f"{words.member} '{name}' ({words.number} {old_number}) was removed from '{path}' "
                    f"but {gap}",
                )
            continue

        new_number = new.numbers[name]
        problem = _number_problem(name, new_number, old, new, words)
        if problem is None:
            if new_number != old_number:
                logger.debug("%s '%s' in %s moved %s %d -> %d", words.member, name, path, words.number,
                             old_number, new_number)
            emit(Outcome.RETAINED, name, new_number, "")
        else:
            emit(
                Outcome.RETAINED_CONFLICT, name, new_number,
                f"{words.member} '{name}' in '{path}' now uses {words.number} {new_number}, but {problem}",
            )

    for name in sorted(set(new.numbers) - set(old.numbers)):
        number = new.numbers[name]
        problem = _number_problem(name, number, old, new, words)
        if problem is None:
            emit(Outcome.ADDED, name, number, "")
        else:
            emit(
                Outcome.ADDED_CONFLICT, name, number,
                f"new {words.member} '{name}' in '{path}' uses {words.number} {number}, but {problem}",
            )
        if old.is_name_reserved(name) or new.is_name_reserved(name):
            findings.append(Finding(
                kind=FindingKind.RESERVED_NAME_REUSE,
                type_path=path,
                name=name,
                number=number,
                message=f"new {words.member} '{name}' in '{path}' uses a reserved name",
            ))

    return findings


def compare_messages(path: str, old: MessageType, new: MessageType) -> List[Finding]:
    """Field rules for one matched message pair. Nested types are not visited."""
    return _compare_members(path, _Side.of_message(old), _Side.of_message(new), _FIELD_WORDS)


def compare_enums(path: str, old: EnumType, new: EnumType) -> List[Finding]:
    """Constant rules for one matched enum pair."""
    return _compare_members(path, _Side.of_enum(old), _Side.of_enum(new), _CONSTANT_WORDS)


def _kind_word(definition: TypeDef) -> str:
    return "message" if isinstance(definition, MessageType) else "enum"


def _removed_type(path: str, old_def: TypeDef, new_def: Optional[TypeDef]) -> Finding:
    if new_def is None:
        message = f"{_kind_word(old_def)} '{path}' was removed"
    else:
        article = "an" if isinstance(new_def, EnumType) else "a"
        message = f"{_kind_word(old_def)} '{path}' was replaced by {article} {_kind_word(new_def)}"
    return Finding(kind=FindingKind.REMOVED_TYPE, type_path=path, message=message)


def analyze(old_index: TypeIndex, new_index: TypeIndex) -> Verdict:
    """Compare a baseline index against a candidate index.

    Every baseline path is visited in sorted order, nested paths included,
    so removing an enclosing message reports each nested type on its own.
    Paths that exist only in the candidate are additions and produce no
    findings. Neither index is modified.
    """
    findings: List[Finding] = []
    for path in old_index.paths():
        old_def = old_index.get(path)
        new_def = new_index.get(path)
        if new_def is None or type(new_def) is not type(old_def):
            findings.append(_removed_type(path, old_def, new_def))
            continue
        if isinstance(old_def, MessageType):
            findings.extend(compare_messages(path, old_def, new_def))
        else:
            findings.extend(compare_enums(path, old_def, new_def))

    verdict = aggregate(findings)
    logger.debug(
        "Analyzed %d baseline types against %d candidate types: %d finding(s)",
        len(old_index), len(new_index), len(verdict.findings),
    )
    return verdict


def analyze_trees(old_tree: SchemaTree, new_tree: SchemaTree) -> Verdict:
    """Index both trees and analyze them."""
    return analyze(build_type_index(old_tree), build_type_index(new_tree))


def analyze_schema_sets(
    old_trees: Mapping[str, SchemaTree],
    new_trees: Mapping[str, SchemaTree],
) -> Dict[str, Verdict]:
    """Analyze each baseline file against the candidate file at the same logical path.

    A baseline path with no candidate counterpart is compared against an
    empty tree, so every one of its types is reported as removed. Findings
    are tagged with the logical path in `source`.
    """
    verdicts: Dict[str, Verdict] = {}
    for proto_path in sorted(old_trees):
        old_tree = old_trees[proto_path]
        new_tree = new_trees.get(proto_path)
        if new_tree is None:
            logger.debug("%s has no candidate counterpart", proto_path)
            new_tree = SchemaTree(package=old_tree.package, source=proto_path)
        verdict = analyze_trees(old_tree, new_tree)
        verdicts[proto_path] = aggregate(
            f.model_copy(update={"source": proto_path}) for f in verdict.findings
        )
    return verdicts
