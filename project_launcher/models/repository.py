"""Repository models for project-launcher."""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RemoteRepository(BaseModel):
    """A repository as listed by the remote directory service."""

    name: str
    clone_url: str = Field(..., description="HTTPS clone URL, without credentials")
    description: str = ""
    private: bool = False


class RepositoryLocation(BaseModel):
    """Where a working copy lives on disk: ``base_dir / name``."""

    model_config = ConfigDict(frozen=True)

    base_dir: Path
    name: str

    @field_validator("name")
    @classmethod
    def _plain_directory_name(cls, value: str) -> str:
        if not value.strip() or value in {".", ".."} or "/" in value or "\\" in value:
            msg = f"Invalid repository name: {value!r}"
            raise ValueError(msg)
        return value

    @property
    def path(self) -> Path:
        return self.base_dir / self.name

    @property
    def exists(self) -> bool:
        """Whether the working copy has been cloned already."""
        return self.path.is_dir()
