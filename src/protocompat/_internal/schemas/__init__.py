"""Raw artifact schemas (lock documents)."""

from .lock_schema import (
    LockDefinition,
    LockDocument,
    LockEntry,
    LockEnum,
    LockEnumField,
    LockField,
    LockMap,
    LockMessage,
    LockPackage,
    LockReservedRange,
    parse_lock_document,
)

__all__ = [
    "LockDefinition",
    "LockDocument",
    "LockEntry",
    "LockEnum",
    "LockEnumField",
    "LockField",
    "LockMap",
    "LockMessage",
    "LockPackage",
    "LockReservedRange",
    "parse_lock_document",
]
