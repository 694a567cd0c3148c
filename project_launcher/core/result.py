from __future__ import annotations

from enum import StrEnum
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, model_validator


class Outcome(StrEnum):
    """Classified outcome of a git step whose output is interpreted as text."""

    CLONED = "cloned"
    UP_TO_DATE = "up_to_date"
    FAST_FORWARD = "fast_forward"
    UPDATED = "updated"
    CONFLICT = "conflict"
    PUSHED = "pushed"
    REJECTED = "rejected"
    FAILED = "failed"


_FAILED_OUTCOMES = frozenset({Outcome.CONFLICT, Outcome.REJECTED, Outcome.FAILED})


class OutcomeReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    outcome: Outcome
    message: str

    @property
    def success(self) -> bool:
        return self.outcome not in _FAILED_OUTCOMES


class OperationResult(BaseModel):
    """Uniform result of every mutating workflow operation."""

    model_config = ConfigDict(frozen=True)

    success: bool
    message: str
    repo_path: Path
    outcome: Outcome | None = None

    @model_validator(mode="after")
    def _failure_needs_message(self) -> OperationResult:
        if not self.success and not self.message.strip():
            msg = "A failed operation must explain why it failed"
            raise ValueError(msg)
        return self

    @property
    def is_conflict(self) -> bool:
        return self.outcome is Outcome.CONFLICT

    @classmethod
    def ok(cls, repo_path: Path, message: str, outcome: Outcome | None = None) -> OperationResult:
        return cls(success=True, message=message, repo_path=repo_path, outcome=outcome)

    @classmethod
    def fail(cls, repo_path: Path, message: str, outcome: Outcome | None = Outcome.FAILED) -> OperationResult:
        return cls(success=False, message=message, repo_path=repo_path, outcome=outcome)


class BranchInfo(BaseModel):
    """One row of the branch listing."""

    model_config = ConfigDict(frozen=True)

    name: str
    display_name: str
    is_remote: bool = False
    is_current: bool = False

    @property
    def local_name(self) -> str:
        """Branch name without the ``remotes/<remote>/`` prefix."""
        if not self.is_remote:
            return self.name
        parts = self.name.split("/", 2)
        return parts[2] if len(parts) == 3 else self.name  # noqa: PLR2004


class FileStatus(StrEnum):
    MODIFIED = "Modified"
    ADDED = "Added"
    DELETED = "Deleted"
    RENAMED = "Renamed"
    UNTRACKED = "Untracked"
    CHANGED = "Changed"


_STATUS_CODES = {
    FileStatus.MODIFIED: "M",
    FileStatus.ADDED: "A",
    FileStatus.DELETED: "D",
    FileStatus.RENAMED: "R",
    FileStatus.UNTRACKED: "U",
    FileStatus.CHANGED: "C",
}


class ModifiedFileEntry(BaseModel):
    """One row of the working-tree status."""

    model_config = ConfigDict(frozen=True)

    path: str
    status: FileStatus

    @property
    def code(self) -> str:
        """Single-character code shown next to the path."""
        return _STATUS_CODES[self.status]


class SyncResult(BaseModel):
    name: str
    status: Literal["cloned", "updated", "failed"]
    message: str
