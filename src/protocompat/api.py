"""Public API for protocompat.

High-level functions that load lock documents, run the compatibility
analysis and return complete, structured results.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field

from protocompat.codes import LoadErrorCode
from protocompat.kernel.analyzer import analyze_schema_sets, analyze_trees
from protocompat.kernel.errors import LoadError, LoadIssue
from protocompat.kernel.model import SchemaTree
from protocompat.kernel.verdict import Finding, Verdict
from protocompat._internal.ingest.protolock import lock_to_trees
from protocompat._internal.io.lock import read_lock_json
from protocompat._internal.schemas.lock_schema import parse_lock_document

logger = logging.getLogger("protocompat.api")

LockSource = Union[str, os.PathLike, Path, Dict[str, Any]]


class CheckResult(BaseModel):
    """Stable result model for a baseline/candidate check."""
    compatible: bool
    checked_paths: List[str]  # Sorted logical proto paths that were compared
    verdicts: Dict[str, Verdict]  # proto path -> verdict
    findings: List[Finding] = Field(default_factory=list)  # All findings, sorted, each tagged with its source

    def summary(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for verdict in self.verdicts.values():
            for kind, count in verdict.summary().items():
                counts[kind] = counts.get(kind, 0) + count
        return counts


class ValidationResult(BaseModel):
    """Result of load-time validation."""
    ok: bool
    errors: List[LoadIssue]


def _read_source(source: LockSource) -> tuple:
    if isinstance(source, dict):
        return source, None
    path = Path(source)
    return read_lock_json(path), str(path)


def load_schema(source: LockSource, validate: bool = True) -> Dict[str, SchemaTree]:
    """
    Load a lock document into schema trees.

    Args:
        source: Path to a lock JSON file, or the already-parsed document
        validate: Run load-time structural validation

    Returns:
        Logical proto path -> SchemaTree

    Raises:
        LoadError: unreadable file, malformed document, or invalid schema
    """
    data, origin = _read_source(source)
    document = parse_lock_document(data, origin=origin)
    return lock_to_trees(document, validate=validate)


def check(
    baseline: LockSource,
    candidate: LockSource,
    proto_path: Optional[str] = None,
    validate: bool = True,
) -> CheckResult:
    """
    Check whether `candidate` can replace `baseline` without breaking consumers.

    Args:
        baseline: Locked schema (path or parsed lock document)
        candidate: New schema (path or parsed lock document)
        proto_path: Restrict the check to one logical proto path
        validate: Run load-time structural validation on both sides

    Raises:
        LoadError: either side fails to load, or `proto_path` is not in the baseline
    """
    old_trees = load_schema(baseline, validate=validate)
    new_trees = load_schema(candidate, validate=validate)

    if proto_path is not None:
        proto_path = proto_path.replace("\\", "/")
        if proto_path not in old_trees:
            raise LoadError.single(
                LoadErrorCode.UNKNOWN_PROTO_PATH,
                f"Proto path '{proto_path}' is not present in the baseline",
                subject=proto_path,
            )
        old_trees = {proto_path: old_trees[proto_path]}
        new_trees = {k: v for k, v in new_trees.items() if k == proto_path}

    verdicts = analyze_schema_sets(old_trees, new_trees)
    findings: List[Finding] = []
    for verdict in verdicts.values():
        findings.extend(verdict.findings)
    findings.sort(key=Finding.sort_key)

    result = CheckResult(
        compatible=all(v.compatible for v in verdicts.values()),
        checked_paths=sorted(verdicts),
        verdicts=verdicts,
        findings=findings,
    )
    logger.info(
        "Checked %d proto file(s): %s",
        len(result.checked_paths),
        "compatible" if result.compatible else f"{len(findings)} finding(s)",
    )
    return result


def check_trees(old_tree: SchemaTree, new_tree: SchemaTree) -> Verdict:
    """Compare two already-built schema trees."""
    return analyze_trees(old_tree, new_tree)


def validate(lock: LockSource) -> ValidationResult:
    """Run load-time validation and report issues instead of raising."""
    try:
        load_schema(lock, validate=True)
    except LoadError as e:
        return ValidationResult(ok=False, errors=e.issues)
    return ValidationResult(ok=True, errors=[])
