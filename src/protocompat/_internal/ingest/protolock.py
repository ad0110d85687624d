"""Lock document -> schema tree conversion."""

import logging
from typing import Dict, Iterable, List, Tuple

from protocompat.codes import LoadErrorCode
from protocompat.kernel.errors import LoadError, LoadIssue
from protocompat.kernel.model import (
    MAX_ENUM_VALUE,
    MAX_FIELD_TAG,
    EnumConstant,
    EnumType,
    FieldDef,
    MessageType,
    OneofGroup,
    ReservedRange,
    SchemaTree,
)
from protocompat.kernel.type_index import iter_types
from protocompat.kernel.validation import validate_tree
from protocompat._internal.schemas.lock_schema import (
    LockDocument,
    LockEnum,
    LockField,
    LockMessage,
    LockReservedRange,
)

logger = logging.getLogger("protocompat.ingest")

PROTOPATH_SEPARATOR = ":/:"


def logical_path(protopath: str) -> str:
    """Turn a lock protopath (`a:/:b.proto`) into a slash-separated path."""
    return protopath.replace(PROTOPATH_SEPARATOR, "/").replace("\\", "/")


def coalesce_ids(ids: Iterable[int]) -> List[Tuple[int, int]]:
    """Merge a flat list of reserved ids into sorted inclusive (start, end) runs."""
    runs: List[Tuple[int, int]] = []
    for value in sorted(set(ids)):
        if runs and value == runs[-1][1] + 1:
            runs[-1] = (runs[-1][0], value)
        else:
            runs.append((value, value))
    return runs


def _reserved(ids: List[int], ranges: List[LockReservedRange], max_value: int) -> Tuple[ReservedRange, ...]:
    out = [ReservedRange(start=start, end=end) for start, end in coalesce_ids(ids)]
    for r in ranges:
        end = max_value if r.end == "max" else r.end
        out.append(ReservedRange(start=r.start, end=end))
    return tuple(sorted(out, key=lambda r: (r.start, r.end)))


def _label(field: LockField):
    if field.is_repeated:
        return "repeated"
    if field.required:
        return "required"
    if field.optional:
        return "optional"
    return None


def _convert_enum(enum: LockEnum) -> EnumType:
    return EnumType(
        name=enum.name,
        constants=tuple(EnumConstant(name=c.name, value=c.integer) for c in enum.enum_fields),
        reserved_values=_reserved(enum.reserved_ids, enum.reserved_ranges, MAX_ENUM_VALUE),
        reserved_names=tuple(enum.reserved_names),
        allow_alias=enum.allow_alias,
    )


def _convert_message(message: LockMessage) -> MessageType:
    fields: List[FieldDef] = []
    groups: Dict[str, List[str]] = {}
    for f in message.fields:
        oneof = f.oneof_parent or None
        fields.append(FieldDef(name=f.name, tag=f.id, type=f.type, label=_label(f), oneof=oneof))
        if oneof:
            groups.setdefault(oneof, []).append(f.name)
    for m in message.maps:
        fields.append(FieldDef(
            name=m.field.name,
            tag=m.field.id,
            type=f"map<{m.key_type},{m.field.type}>",
        ))

    return MessageType(
        name=message.name,
        fields=tuple(fields),
        oneofs=tuple(OneofGroup(name=name, members=tuple(members)) for name, members in groups.items()),
        messages=tuple(_convert_message(m) for m in message.messages),
        enums=tuple(_convert_enum(e) for e in message.enums),
        reserved_tags=_reserved(message.reserved_ids, message.reserved_ranges, MAX_FIELD_TAG),
        reserved_names=tuple(message.reserved_names),
    )


def lock_to_trees(document: LockDocument, validate: bool = True) -> Dict[str, SchemaTree]:
    """
    Convert every definition in a lock document to a schema tree.

    Args:
        document: Parsed lock document
        validate: Run load-time structural validation on every tree

    Returns:
        Logical proto path -> SchemaTree

    Raises:
        LoadError: duplicate proto paths, or validation issues in any tree
    """
    trees: Dict[str, SchemaTree] = {}
    issues: List[LoadIssue] = []
    for definition in document.definitions:
        path = logical_path(definition.protopath)
        if path in trees:
            issues.append(LoadIssue(
                code=LoadErrorCode.INVALID_STRUCTURE,
                message=f"Proto path '{path}' is defined more than once",
                subject=path,
            ))
            continue
        entry = definition.entry
        trees[path] = SchemaTree(
            package=entry.package.name,
            messages=tuple(_convert_message(m) for m in entry.messages),
            enums=tuple(_convert_enum(e) for e in entry.enums),
            source=path,
        )
        logger.debug("Loaded %s (package '%s')", path, trees[path].package_name)

    if validate:
        # A reference may resolve to a type declared in any file of the document.
        declared = {type_path for tree in trees.values() for type_path, _ in iter_types(tree)}
        for tree in trees.values():
            issues.extend(validate_tree(tree, known=declared))

    if issues:
        raise LoadError(issues)
    return trees
