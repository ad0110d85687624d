"""Load-time structural validation of a schema tree.

Every issue is collected; validation never stops at the first problem.
Reservation checks here only look at a type's own reservations. Whether a
candidate reuses a baseline reservation is a compatibility question and
belongs to the analyzer.
"""

import re
from collections import defaultdict
from typing import Dict, List, Optional, Set

from protocompat.codes import LoadErrorCode
from .errors import LoadError, LoadIssue
from .model import (
    IMPLEMENTATION_RESERVED_TAGS,
    MAX_FIELD_TAG,
    EnumType,
    MessageType,
    SchemaTree,
)
from .type_index import duplicate_path_issue, iter_types

SCALAR_TYPES = frozenset({
    "double", "float", "int32", "int64", "uint32", "uint64", "sint32", "sint64",
    "fixed32", "fixed64", "sfixed32", "sfixed64", "bool", "string", "bytes",
})

WELL_KNOWN_PREFIX = "google.protobuf."

_MAP_TYPE = re.compile(r"^map\s*<\s*([\w.]+)\s*,\s*([\w.]+)\s*>$")


def is_valid_tag(tag: int) -> bool:
    """Whether `tag` is usable as a field tag."""
    low, high = IMPLEMENTATION_RESERVED_TAGS
    return 1 <= tag <= MAX_FIELD_TAG and not (low <= tag <= high)


def _parent_scope(path: str) -> Optional[str]:
    if not path:
        return None
    return path.rsplit(".", 1)[0] if "." in path else ""


def resolve_type_reference(reference: str, scope: str, known: Set[str]) -> Optional[str]:
    """Resolve a type reference from inside `scope` using protobuf scoping.

    Searches the innermost scope first and walks outward. A leading dot
    means the reference is already fully qualified. Returns the qualified
    path, or None when nothing matches.
    """
    if reference.startswith("."):
        target = reference[1:]
        return target if target in known else None
    current: Optional[str] = scope
    while current is not None:
        candidate = f"{current}.{reference}" if current else reference
        if candidate in known:
            return candidate
        current = _parent_scope(current)
    return None


def _referenced_types(type_ref: str) -> List[str]:
    """Non-scalar type names a field type refers to."""
    match = _MAP_TYPE.match(type_ref)
    names = [match.group(2)] if match else [type_ref]
    return [n for n in names if n not in SCALAR_TYPES]


def _check_message(path: str, message: MessageType, known: Set[str]) -> List[LoadIssue]:
    issues: List[LoadIssue] = []

    by_tag: Dict[int, List[str]] = defaultdict(list)
    by_name: Dict[str, int] = defaultdict(int)
    for f in message.fields:
        by_tag[f.tag].append(f.name)
        by_name[f.name] += 1

        if not is_valid_tag(f.tag):
            issues.append(LoadIssue(
                code=LoadErrorCode.TAG_OUT_OF_RANGE,
                message=f"tag is out of range: {f.tag} for field {f.name} in message {path}",
                type_path=path, subject=f.name,
            ))
        if message.is_name_reserved(f.name):
            issues.append(LoadIssue(
                code=LoadErrorCode.RESERVED_NAME_USED,
                message=f"name '{f.name}' is reserved for field {f.name} in message {path}",
                type_path=path, subject=f.name,
            ))
        if message.is_tag_reserved(f.tag):
            issues.append(LoadIssue(
                code=LoadErrorCode.RESERVED_TAG_USED,
                message=f"tag {f.tag} is reserved for field {f.name} in message {path}",
                type_path=path, subject=f.name,
            ))
        for ref in _referenced_types(f.type):
            if ref.lstrip(".").startswith(WELL_KNOWN_PREFIX):
                continue
            if resolve_type_reference(ref, path, known) is None:
                issues.append(LoadIssue(
                    code=LoadErrorCode.UNRESOLVED_TYPE_REFERENCE,
                    message=f"unable to resolve {ref} for field {f.name} in message {path}",
                    type_path=path, subject=f.name,
                ))

    for tag, names in sorted(by_tag.items()):
        if len(names) > 1:
            issues.append(LoadIssue(
                code=LoadErrorCode.DUPLICATE_TAG,
                message=f"multiple fields share tag {tag}: {', '.join(names)} in message {path}",
                type_path=path, subject=str(tag),
            ))
    for name, count in sorted(by_name.items()):
        if count > 1:
            issues.append(LoadIssue(
                code=LoadErrorCode.DUPLICATE_FIELD_NAME,
                message=f"multiple fields are named {name} in message {path}",
                type_path=path, subject=name,
            ))

    field_names = set(by_name)
    for group in message.oneofs:
        for member in group.members:
            if member not in field_names:
                issues.append(LoadIssue(
                    code=LoadErrorCode.UNKNOWN_ONEOF_MEMBER,
                    message=f"oneof {group.name} names unknown field {member} in message {path}",
                    type_path=path, subject=member,
                ))
    return issues


def _check_enum(path: str, enum: EnumType) -> List[LoadIssue]:
    issues: List[LoadIssue] = []

    by_value: Dict[int, List[str]] = defaultdict(list)
    by_name: Dict[str, int] = defaultdict(int)
    for c in enum.constants:
        by_value[c.value].append(c.name)
        by_name[c.name] += 1
        if enum.is_name_reserved(c.name):
            issues.append(LoadIssue(
                code=LoadErrorCode.RESERVED_NAME_USED,
                message=f"name '{c.name}' is reserved for constant {c.name} in enum {path}",
                type_path=path, subject=c.name,
            ))
        if enum.is_value_reserved(c.value):
            issues.append(LoadIssue(
                code=LoadErrorCode.RESERVED_TAG_USED,
                message=f"value {c.value} is reserved for constant {c.name} in enum {path}",
                type_path=path, subject=c.name,
            ))

    if not enum.allow_alias:
        for value, names in sorted(by_value.items()):
            if len(names) > 1:
                issues.append(LoadIssue(
                    code=LoadErrorCode.DUPLICATE_ENUM_VALUE,
                    message=f"multiple enum constants share tag {value}: {', '.join(names)} in enum {path}",
                    type_path=path, subject=str(value),
                ))
    for name, count in sorted(by_name.items()):
        if count > 1:
            issues.append(LoadIssue(
                code=LoadErrorCode.DUPLICATE_CONSTANT_NAME,
                message=f"multiple constants are named {name} in enum {path}",
                type_path=path, subject=name,
            ))
    return issues


def validate_tree(tree: SchemaTree, known: Optional[Set[str]] = None) -> List[LoadIssue]:
    """Collect every load-time issue in `tree`, sorted.

    `known` adds qualified paths declared elsewhere (other files of the same
    document) that field type references may resolve to.
    """
    issues: List[LoadIssue] = []
    seen: Set[str] = set()
    definitions = []
    for path, definition in iter_types(tree):
        if path in seen:
            issues.append(duplicate_path_issue(path))
            continue
        seen.add(path)
        definitions.append((path, definition))

    resolvable = seen | known if known else seen
    for path, definition in definitions:
        if isinstance(definition, MessageType):
            issues.extend(_check_message(path, definition, resolvable))
        else:
            issues.extend(_check_enum(path, definition))
    return sorted(issues, key=LoadIssue.sort_key)


def ensure_valid(tree: SchemaTree) -> SchemaTree:
    """Return `tree` unchanged, or raise LoadError listing every issue."""
    issues = validate_tree(tree)
    if issues:
        raise LoadError(issues)
    return tree
