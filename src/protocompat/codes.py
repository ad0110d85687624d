"""Finding kinds and load error codes.

These constants prevent stringly-typed codes and ensure client code
matches on the values the analyzer and loader actually emit.
"""

from enum import Enum


class FindingKind(str, Enum):
    """Compatibility finding kinds. Every finding is breaking."""

    REMOVED_TYPE = "RemovedType"
    REMOVED_FIELD = "RemovedField"
    REMOVED_ENUM_CONSTANT = "RemovedEnumConstant"
    TAG_CONFLICT = "TagConflict"
    VALUE_CONFLICT = "ValueConflict"
    RESERVED_TAG_REUSE = "ReservedTagReuse"
    RESERVED_NAME_REUSE = "ReservedNameReuse"


class LoadErrorCode(str, Enum):
    """Load-time error codes (never compatibility findings)."""

    # Document level
    FILE_NOT_FOUND = "FILE_NOT_FOUND"
    INVALID_JSON = "INVALID_JSON"
    INVALID_STRUCTURE = "INVALID_STRUCTURE"
    UNKNOWN_PROTO_PATH = "UNKNOWN_PROTO_PATH"

    # Tree level
    DUPLICATE_TYPE_PATH = "DUPLICATE_TYPE_PATH"
    DUPLICATE_TAG = "DUPLICATE_TAG"
    DUPLICATE_FIELD_NAME = "DUPLICATE_FIELD_NAME"
    DUPLICATE_CONSTANT_NAME = "DUPLICATE_CONSTANT_NAME"
    DUPLICATE_ENUM_VALUE = "DUPLICATE_ENUM_VALUE"
    TAG_OUT_OF_RANGE = "TAG_OUT_OF_RANGE"
    RESERVED_TAG_USED = "RESERVED_TAG_USED"
    RESERVED_NAME_USED = "RESERVED_NAME_USED"
    UNKNOWN_ONEOF_MEMBER = "UNKNOWN_ONEOF_MEMBER"
    UNRESOLVED_TYPE_REFERENCE = "UNRESOLVED_TYPE_REFERENCE"
