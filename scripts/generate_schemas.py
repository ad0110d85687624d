"""Generate JSON schemas from Pydantic models and save to schemas/ directory."""

import json
from pathlib import Path

from protocompat.api import CheckResult
from protocompat._internal.schemas.lock_schema import LockDocument


def generate_schemas():
    """Generate JSON schemas for the lock document and the check result."""
    schemas_dir = Path(__file__).parent.parent / "schemas"
    schemas_dir.mkdir(exist_ok=True)

    # Lock document schema (input)
    lock_schema = LockDocument.model_json_schema(by_alias=True)
    lock_schema_path = schemas_dir / "lock_document.schema.json"
    with open(lock_schema_path, 'w', encoding='utf-8') as f:
        json.dump(lock_schema, f, indent=2, ensure_ascii=False)
    print(f"Generated: {lock_schema_path}")

    # Check result schema (output)
    result_schema = CheckResult.model_json_schema()
    result_schema_path = schemas_dir / "check_result.schema.json"
    with open(result_schema_path, 'w', encoding='utf-8') as f:
        json.dump(result_schema, f, indent=2, ensure_ascii=False)
    print(f"Generated: {result_schema_path}")

    print("\nSchema generation complete!")


if __name__ == "__main__":
    generate_schemas()
