"""Interpretation of git's text output.

Every rule that matches on git's human-readable wording lives here, so the
orchestration code only ever deals with structured values. git's wording moves
between versions (``Already up-to-date.`` became ``Already up to date.``) and
the substring checks are written to accept both.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from project_launcher.core.result import BranchInfo, FileStatus, ModifiedFileEntry, Outcome, OutcomeReport

if TYPE_CHECKING:
    import subprocess
    from pathlib import Path

_REMOTE_PREFIX = "remotes/"
_CURRENT_MARKER = "*"
_SYMBOLIC_REF = "HEAD -> "
_DETACHED_PREFIX = "("
_MERGE_MARKER = "MERGE_HEAD"

# Checked in order; the first letter present in the two-character code wins.
_STATUS_PRECEDENCE = (
    ("M", FileStatus.MODIFIED),
    ("A", FileStatus.ADDED),
    ("D", FileStatus.DELETED),
    ("R", FileStatus.RENAMED),
    ("?", FileStatus.UNTRACKED),
)

_PUSH_RETRY_HINT = "Fetch and pull the latest changes, then try pushing again."
_CONFLICT_HINT = (
    "Merge conflicts detected. Resolve them in your editor, then complete the merge to commit and push the result."
)


def _remote_local_name(name: str) -> str:
    """``remotes/origin/feature/x`` -> ``feature/x``."""
    parts = name.split("/", 2)
    return parts[2] if len(parts) == 3 else name  # noqa: PLR2004


def parse_branches(output: str, current_branch: str | None) -> list[BranchInfo]:
    """Parse ``git branch -a`` output.

    Args:
        output: Raw listing, one branch per line, current branch prefixed with ``*``.
        current_branch: Result of ``git branch --show-current``, or None when unknown.

    Returns:
        Current branch first, then local branches, then remote-only branches, each
        tier sorted by display name. A remote branch whose local counterpart exists
        is dropped.

    """
    local: list[str] = []
    remote: list[str] = []
    for line in output.splitlines():
        name = line.strip().lstrip(_CURRENT_MARKER).strip()
        # "(HEAD detached at ...)" and "(no branch, rebasing ...)" are not branches
        if not name or _SYMBOLIC_REF in name or name.startswith(_DETACHED_PREFIX):
            continue
        if name.startswith(_REMOTE_PREFIX):
            remote.append(name)
        else:
            local.append(name)

    local_names = set(local)
    branches: list[BranchInfo] = []
    current_taken = False
    for name in local:
        is_current = not current_taken and name == current_branch
        current_taken = current_taken or is_current
        branches.append(BranchInfo(name=name, display_name=name, is_current=is_current))
    for name in remote:
        local_name = _remote_local_name(name)
        if local_name in local_names:
            continue
        is_current = not current_taken and current_branch is not None and name == f"remotes/origin/{current_branch}"
        current_taken = current_taken or is_current
        branches.append(
            BranchInfo(
                name=name,
                display_name=name.removeprefix(_REMOTE_PREFIX),
                is_remote=True,
                is_current=is_current,
            )
        )

    return sorted(branches, key=lambda b: (not b.is_current, b.is_remote, b.display_name))


def _classify_status_code(code: str) -> FileStatus:
    for letter, status in _STATUS_PRECEDENCE:
        if letter in code:
            return status
    return FileStatus.CHANGED


def parse_status(output: str) -> list[ModifiedFileEntry]:
    """Parse ``git status --porcelain`` output into entries, keeping line order."""
    entries = []
    for line in output.splitlines():
        if len(line) < 3:  # noqa: PLR2004
            continue
        code, path = line[:2], line[2:].strip()
        entries.append(ModifiedFileEntry(path=path, status=_classify_status_code(code)))
    return entries


def is_merge_in_progress(repo_path: Path) -> bool:
    """Check for the merge marker git leaves while a merge awaits its commit."""
    try:
        return (repo_path / ".git" / _MERGE_MARKER).is_file()
    except OSError:
        return False


def failure_text(result: subprocess.CompletedProcess[str]) -> str:
    """Best diagnostic text for a failed command; never empty."""
    return result.stderr.strip() or result.stdout.strip() or f"git exited with code {result.returncode}"


def _normalized(text: str) -> str:
    return text.lower().replace("-", " ")


def _has_conflict(text: str) -> bool:
    return "CONFLICT" in text or "Automatic merge failed" in text


def classify_pull(result: subprocess.CompletedProcess[str]) -> OutcomeReport:
    """Classify ``git pull`` output.

    A conflict is reported even when the exit code alone would not tell it apart
    from other failures; the repository is left mid-merge for the user to resolve.
    """
    combined = f"{result.stdout}\n{result.stderr}"
    if _has_conflict(combined):
        conflicts = [line.strip() for line in combined.splitlines() if "CONFLICT" in line]
        details = "\n".join(conflicts)
        return OutcomeReport(outcome=Outcome.CONFLICT, message=f"{_CONFLICT_HINT}\n{details}".strip())
    if result.returncode != 0:
        return OutcomeReport(outcome=Outcome.FAILED, message=f"Pull failed:\n{failure_text(result)}")
    if "already up to date" in _normalized(combined):
        return OutcomeReport(outcome=Outcome.UP_TO_DATE, message="Already up to date.")
    if "fast forward" in _normalized(combined):
        return OutcomeReport(
            outcome=Outcome.FAST_FORWARD,
            message=f"Fast-forwarded to the latest remote changes.\n{result.stdout.strip()}".strip(),
        )
    return OutcomeReport(
        outcome=Outcome.UPDATED,
        message=f"Merged the latest remote changes.\n{result.stdout.strip()}".strip(),
    )


def classify_push(result: subprocess.CompletedProcess[str]) -> OutcomeReport:
    """Classify ``git push`` output; failures always carry the fetch-and-retry hint."""
    if result.returncode == 0:
        return OutcomeReport(outcome=Outcome.PUSHED, message="Changes pushed to the remote.")
    text = failure_text(result)
    normalized = _normalized(text)
    if "rejected" in normalized or "fetch first" in normalized or "non fast forward" in normalized:
        return OutcomeReport(
            outcome=Outcome.REJECTED,
            message=f"Push rejected, the remote has changes you do not have locally:\n{text}\n{_PUSH_RETRY_HINT}",
        )
    return OutcomeReport(outcome=Outcome.FAILED, message=f"Push failed:\n{text}\n{_PUSH_RETRY_HINT}")


def checkout_succeeded(result: subprocess.CompletedProcess[str]) -> bool:
    """Some git versions print ``Switched to ...`` on stderr even for a clean switch."""
    return result.returncode == 0 or "Switched to" in result.stdout or "Switched to" in result.stderr


def branch_already_exists(result: subprocess.CompletedProcess[str]) -> bool:
    return "already exists" in result.stderr


def build_commit_message(title: str, description: str = "") -> str:
    """Title alone, or title, blank line, description."""
    title = title.strip()
    description = description.strip()
    if not description:
        return title
    return f"{title}\n\n{description}"


def authenticated_url(clone_url: str, token: str | None) -> str:
    """Splice a token right after the ``scheme://`` separator."""
    if not token or not token.strip() or "://" not in clone_url:
        return clone_url
    return clone_url.replace("://", f"://{token.strip()}@", 1)
