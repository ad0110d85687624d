"""Lock document I/O helpers (internal)."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Union

from protocompat.codes import LoadErrorCode
from protocompat.kernel.errors import LoadError
from protocompat._internal.canonical_json import canonical_dumps
from protocompat._internal.schemas.lock_schema import LockDocument

logger = logging.getLogger("protocompat.io")


def read_lock_json(path: Union[str, Path]) -> Dict[str, Any]:
    """Read a lock document from disk as raw JSON."""
    lock_path = Path(path)
    if not lock_path.is_file():
        raise LoadError.single(
            LoadErrorCode.FILE_NOT_FOUND,
            f"Lock file not found: {lock_path}",
            subject=str(lock_path),
        )
    try:
        with open(lock_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise LoadError.single(
            LoadErrorCode.INVALID_JSON,
            f"{lock_path}: invalid JSON at line {e.lineno} column {e.colno}: {e.msg}",
            subject=str(lock_path),
        ) from e
    logger.debug("Read lock document %s", lock_path)
    return data


def write_lock(path: Union[str, Path], document: Union[LockDocument, Dict[str, Any]]) -> Path:
    """Write a lock document in canonical JSON form. Returns the written path."""
    lock_path = Path(path)
    if isinstance(document, LockDocument):
        data = document.model_dump(by_alias=True, exclude_defaults=True)
    else:
        data = document
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    lock_path.write_text(canonical_dumps(data) + "\n", encoding="utf-8")
    logger.debug("Wrote lock document %s", lock_path)
    return lock_path
