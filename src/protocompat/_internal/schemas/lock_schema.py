"""Pydantic models for lock documents (protolock `proto.lock` JSON).

Only the parts of the document the compatibility check needs are modeled.
Options, services and imports are accepted and ignored.
"""

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from protocompat.codes import LoadErrorCode
from protocompat.kernel.errors import LoadError, LoadIssue


class _LockModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class LockPackage(_LockModel):
    name: str = ""


class LockField(_LockModel):
    id: int
    name: str
    type: str = ""
    is_repeated: bool = False
    optional: bool = False
    required: bool = False
    oneof_parent: Optional[str] = None


class LockMap(_LockModel):
    key_type: str
    field: LockField


class LockReservedRange(_LockModel):
    """Inclusive reserved range. `end` may be "max"."""
    start: int
    end: Union[int, Literal["max"]]


class LockEnumField(_LockModel):
    name: str
    integer: int


class LockEnum(_LockModel):
    name: str
    enum_fields: List[LockEnumField] = Field(default_factory=list)
    reserved_ids: List[int] = Field(default_factory=list)
    reserved_ranges: List[LockReservedRange] = Field(default_factory=list)
    reserved_names: List[str] = Field(default_factory=list)
    allow_alias: bool = False


class LockMessage(_LockModel):
    name: str
    fields: List[LockField] = Field(default_factory=list)
    maps: List[LockMap] = Field(default_factory=list)
    reserved_ids: List[int] = Field(default_factory=list)
    reserved_ranges: List[LockReservedRange] = Field(default_factory=list)
    reserved_names: List[str] = Field(default_factory=list)
    messages: List["LockMessage"] = Field(default_factory=list)
    enums: List[LockEnum] = Field(default_factory=list)


class LockEntry(_LockModel):
    package: LockPackage = Field(default_factory=LockPackage)
    messages: List[LockMessage] = Field(default_factory=list)
    enums: List[LockEnum] = Field(default_factory=list)


class LockDefinition(_LockModel):
    protopath: str
    entry: LockEntry = Field(alias="def")


class LockDocument(_LockModel):
    definitions: List[LockDefinition] = Field(default_factory=list)


def parse_lock_document(obj: Dict[str, Any], origin: Optional[str] = None) -> LockDocument:
    """
    Parse a raw lock document.

    Raises:
        LoadError: INVALID_STRUCTURE when the document does not match the lock shape.
    """
    if not isinstance(obj, dict):
        raise LoadError.single(
            LoadErrorCode.INVALID_STRUCTURE,
            f"Lock document must be a JSON object, got {type(obj).__name__}",
            subject=origin,
        )
    try:
        return LockDocument.model_validate(obj)
    except ValidationError as e:
        issues = []
        for err in e.errors():
            loc = ".".join(str(part) for part in err["loc"])
            issues.append(LoadIssue(
                code=LoadErrorCode.INVALID_STRUCTURE,
                message=f"{loc}: {err['msg']}",
                subject=origin,
            ))
        raise LoadError(issues) from e
