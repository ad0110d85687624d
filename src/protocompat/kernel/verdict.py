"""Findings and the verdict aggregator."""

from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from protocompat.codes import FindingKind


class Finding(BaseModel):
    """One compatibility violation between two schema versions."""
    model_config = ConfigDict(frozen=True)

    kind: FindingKind
    type_path: str  # Qualified path of the containing type (or the type itself for RemovedType)
    name: Optional[str] = None  # Field or constant name involved
    number: Optional[int] = None  # Field tag, or enum constant value
    message: str
    source: Optional[str] = None  # Logical proto path, set by multi-file checks

    def sort_key(self) -> tuple:
        return (
            self.source or "",
            self.type_path,
            self.kind.value,
            self.name or "",
            self.number if self.number is not None else -1,
        )


class Verdict(BaseModel):
    """Overall result of one analysis run."""
    compatible: bool
    findings: List[Finding] = Field(default_factory=list)

    def summary(self) -> Dict[str, int]:
        """Count findings by kind."""
        counts: Dict[str, int] = {}
        for finding in self.findings:
            counts[finding.kind.value] = counts.get(finding.kind.value, 0) + 1
        return counts

    def by_kind(self, kind: FindingKind) -> List[Finding]:
        return [f for f in self.findings if f.kind == kind]


def aggregate(findings: Iterable[Finding]) -> Verdict:
    """Fold findings into a verdict: compatible iff there are none."""
    ordered = list(findings)
    return Verdict(compatible=not ordered, findings=ordered)
