"""Report rendering for compatibility checks."""

from pathlib import Path
from typing import Any, Dict, List, Tuple

from protocompat.api import CheckResult
from protocompat._internal.canonical_json import canonical_dumps

REPORT_VERSION = "1"


def build_report_dict(result: CheckResult) -> Dict[str, Any]:
    """Machine-readable report. Lists are already in deterministic order."""
    return {
        "report_version": REPORT_VERSION,
        "compatible": result.compatible,
        "checked_paths": list(result.checked_paths),
        "summary": dict(sorted(result.summary().items())),
        "findings": [f.model_dump(mode="json") for f in result.findings],
    }


def render_json(result: CheckResult) -> str:
    return canonical_dumps(build_report_dict(result))


def render_markdown(result: CheckResult) -> str:
    """Human-readable report, grouped by proto path."""
    lines: List[str] = []
    lines.append("# Compatibility Report")
    lines.append("")
    status = "COMPATIBLE" if result.compatible else "INCOMPATIBLE"
    lines.append(f"Status: **{status}**")
    lines.append("")

    if not result.checked_paths:
        lines.append("No proto files were compared.")
        lines.append("")
        return "\n".join(lines)

    summary = result.summary()
    if summary:
        lines.append("## Summary")
        lines.append("")
        for kind in sorted(summary):
            lines.append(f"- {kind}: {summary[kind]}")
        lines.append("")

    for proto_path in result.checked_paths:
        verdict = result.verdicts[proto_path]
        mark = "[OK]" if verdict.compatible else "[!]"
        lines.append(f"## {mark} {proto_path}")
        lines.append("")
        if verdict.compatible:
            lines.append("No breaking changes.")
        for finding in verdict.findings:
            target = finding.type_path
            if finding.name:
                target = f"{target}.{finding.name}"
            lines.append(f"- `{finding.kind.value}` {target}: {finding.message}")
        lines.append("")

    return "\n".join(lines)


def write_reports(result: CheckResult, output_dir: Path) -> Tuple[Path, Path]:
    """Write compat_report.md and compat_report.json. Returns both paths."""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    md_path = output_dir / "compat_report.md"
    json_path = output_dir / "compat_report.json"
    md_path.write_text(render_markdown(result), encoding="utf-8")
    json_path.write_text(render_json(result) + "\n", encoding="utf-8")
    return md_path, json_path
