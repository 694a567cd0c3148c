"""Models for project-launcher."""

from project_launcher.core.result import BranchInfo, FileStatus, ModifiedFileEntry, OperationResult, SyncResult
from project_launcher.models.repository import RemoteRepository, RepositoryLocation

__all__ = [
    "BranchInfo",
    "FileStatus",
    "ModifiedFileEntry",
    "OperationResult",
    "RemoteRepository",
    "RepositoryLocation",
    "SyncResult",
]
