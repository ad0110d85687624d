"""protocompat: backward-compatibility gate for protocol-buffer schemas."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("protocompat")
except PackageNotFoundError:
    __version__ = "dev"

# Public API exports
from protocompat.api import check, check_trees, load_schema, validate, CheckResult, ValidationResult
from protocompat.codes import FindingKind, LoadErrorCode
from protocompat.kernel.analyzer import analyze
from protocompat.kernel.errors import LoadError, LoadIssue
from protocompat.kernel.type_index import TypeIndex, build_type_index
from protocompat.kernel.verdict import Finding, Verdict

__all__ = [
    "__version__",
    "analyze",
    "build_type_index",
    "check",
    "check_trees",
    "load_schema",
    "validate",
    "CheckResult",
    "Finding",
    "FindingKind",
    "LoadError",
    "LoadErrorCode",
    "LoadIssue",
    "TypeIndex",
    "ValidationResult",
    "Verdict",
]
