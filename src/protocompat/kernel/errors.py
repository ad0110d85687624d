"""Load-time errors.

Load-time problems are fatal for a run and are never reported as
compatibility findings.
"""

from typing import Iterable, List, Optional

from pydantic import BaseModel

from protocompat.codes import LoadErrorCode


class LoadIssue(BaseModel):
    """A single load-time problem."""
    code: LoadErrorCode
    message: str
    type_path: Optional[str] = None  # Fully-qualified type path, when the issue belongs to one
    subject: Optional[str] = None  # Field/constant name, tag, or file path involved

    def sort_key(self) -> tuple:
        return (self.type_path or "", self.code.value, self.subject or "", self.message)


class LoadError(ValueError):
    """Raised when a schema cannot be loaded into a well-formed tree."""

    def __init__(self, issues: Iterable[LoadIssue]):
        self.issues: List[LoadIssue] = sorted(issues, key=LoadIssue.sort_key)
        lines = [f"{issue.code.value}: {issue.message}" for issue in self.issues]
        if len(lines) == 1:
            msg = lines[0]
        else:
            msg = f"{len(lines)} load errors:\n" + "\n".join(f"  {line}" for line in lines)
        super().__init__(msg)

    @classmethod
    def single(
        cls,
        code: LoadErrorCode,
        message: str,
        type_path: Optional[str] = None,
        subject: Optional[str] = None,
    ) -> "LoadError":
        return cls([LoadIssue(code=code, message=message, type_path=type_path, subject=subject)])
