"""Pydantic models for the parsed schema tree.

The tree is built once by the loader and never mutated afterwards: every
model is frozen, and collections are tuples. Reservations are plain value
sets owned by their message or enum, evaluated as predicates during
comparison.
"""

from typing import Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, field_validator, model_validator


# Largest field tag protobuf accepts (2^29 - 1).
MAX_FIELD_TAG = 536870911
# Largest enum value (int32).
MAX_ENUM_VALUE = 2147483647
# Tags the protobuf implementation reserves for itself.
IMPLEMENTATION_RESERVED_TAGS = (19000, 19999)


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class ReservedRange(_Frozen):
    """Inclusive range of reserved tags (or enum values)."""
    start: int
    end: int

    @model_validator(mode="after")
    def _check_bounds(self) -> "ReservedRange":
        if self.end < self.start:
            raise ValueError(f"Reserved range end {self.end} is before start {self.start}")
        return self

    def contains(self, value: int) -> bool:
        return self.start <= value <= self.end

    def __str__(self) -> str:
        if self.start == self.end:
            return str(self.start)
        return f"{self.start} to {self.end}"


class FieldDef(_Frozen):
    """A message field. `type` is an opaque reference, never compared."""
    name: str
    tag: int
    type: str
    label: Optional[str] = None  # "repeated" | "optional" | "required" | None
    oneof: Optional[str] = None  # Name of the owning oneof group (membership only)


class OneofGroup(_Frozen):
    """A named set of mutually exclusive fields. Structural only."""
    name: str
    members: Tuple[str, ...] = ()


class EnumConstant(_Frozen):
    name: str
    value: int


def _any_reserved(ranges: Tuple[ReservedRange, ...], value: int) -> bool:
    return any(r.contains(value) for r in ranges)


class EnumType(_Frozen):
    """An enum definition with its constants and reservations."""
    name: str
    constants: Tuple[EnumConstant, ...] = ()
    reserved_values: Tuple[ReservedRange, ...] = ()
    reserved_names: Tuple[str, ...] = ()
    allow_alias: bool = False

    def is_value_reserved(self, value: int) -> bool:
        return _any_reserved(self.reserved_values, value)

    def is_name_reserved(self, name: str) -> bool:
        return name in self.reserved_names

    def constants_by_name(self) -> Dict[str, EnumConstant]:
        return {c.name: c for c in self.constants}


class MessageType(_Frozen):
    """A message definition.

    Owns its fields, oneof groups, nested messages and enums, and two
    reservation sets (tag ranges and names).
    """
    name: str
    fields: Tuple[FieldDef, ...] = ()
    oneofs: Tuple[OneofGroup, ...] = ()
    messages: Tuple["MessageType", ...] = ()
    enums: Tuple[EnumType, ...] = ()
    reserved_tags: Tuple[ReservedRange, ...] = ()
    reserved_names: Tuple[str, ...] = ()

    def is_tag_reserved(self, tag: int) -> bool:
        return _any_reserved(self.reserved_tags, tag)

    def is_name_reserved(self, name: str) -> bool:
        return name in self.reserved_names

    def fields_by_name(self) -> Dict[str, FieldDef]:
        return {f.name: f for f in self.fields}

    def oneof(self, name: str) -> Optional[OneofGroup]:
        for group in self.oneofs:
            if group.name == name:
                return group
        return None


class SchemaTree(_Frozen):
    """Root container: top-level messages and enums under one package."""
    package: Tuple[str, ...] = ()
    messages: Tuple[MessageType, ...] = ()
    enums: Tuple[EnumType, ...] = ()
    source: Optional[str] = None  # Logical path of the originating file, informational

    @field_validator("package", mode="before")
    @classmethod
    def _split_package(cls, v):
        """Accept a dotted package string as well as a segment sequence."""
        if isinstance(v, str):
            return tuple(seg for seg in v.split(".") if seg)
        return v

    @property
    def package_name(self) -> str:
        return ".".join(self.package)
