"""Flattened index from fully-qualified type path to definition."""

from typing import Dict, Iterator, List, Optional, Tuple, Union

from protocompat.codes import LoadErrorCode
from .errors import LoadError, LoadIssue
from .model import EnumType, MessageType, SchemaTree

TypeDef = Union[MessageType, EnumType]


def qualify(scope: str, name: str) -> str:
    """Join an enclosing scope and a local name into a qualified path."""
    return f"{scope}.{name}" if scope else name


def iter_types(tree: SchemaTree) -> Iterator[Tuple[str, TypeDef]]:
    """Yield (qualified path, definition) for every type, depth-first, in declaration order."""
    def walk_message(scope: str, message: MessageType) -> Iterator[Tuple[str, TypeDef]]:
        path = qualify(scope, message.name)
        yield path, message
        for nested in message.messages:
            yield from walk_message(path, nested)
        for enum in message.enums:
            yield qualify(path, enum.name), enum

    scope = tree.package_name
    for message in tree.messages:
        yield from walk_message(scope, message)
    for enum in tree.enums:
        yield qualify(scope, enum.name), enum


def duplicate_path_issue(path: str) -> LoadIssue:
    return LoadIssue(
        code=LoadErrorCode.DUPLICATE_TYPE_PATH,
        message=f"Multiple types share the qualified path '{path}'",
        type_path=path,
    )


class TypeIndex:
    """Mapping of qualified path -> MessageType/EnumType for one tree.

    Covers every nesting level. Lookup is exact path equality only.
    """

    def __init__(self, tree: SchemaTree):
        self.tree = tree
        self.types: Dict[str, TypeDef] = {}
        self._build()

    def _build(self) -> None:
        issues: List[LoadIssue] = []
        for path, definition in iter_types(self.tree):
            if path in self.types:
                issues.append(duplicate_path_issue(path))
                continue
            self.types[path] = definition
        if issues:
            raise LoadError(issues)

    def get(self, path: str) -> Optional[TypeDef]:
        return self.types.get(path)

    def paths(self) -> List[str]:
        """All qualified paths, sorted."""
        return sorted(self.types)

    def __contains__(self, path: object) -> bool:
        return path in self.types

    def __len__(self) -> int:
        return len(self.types)

    def __iter__(self) -> Iterator[str]:
        return iter(self.paths())


def build_type_index(tree: SchemaTree) -> TypeIndex:
    """Build the type index for a tree. Raises LoadError on duplicate paths."""
    return TypeIndex(tree)
