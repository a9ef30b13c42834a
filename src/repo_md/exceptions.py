from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class RepoMdError(Exception):
    """Base exception for errors in the repo_md package."""


@dataclass(frozen=True)
class GitCommandError(RepoMdError):
    """Raised when a git command fails."""

    command: str
    returncode: int
    stdout: str
    stderr: str

    def __str__(self) -> str:
        return f"`{self.command}` exited with {self.returncode}: {self.stderr.strip()}"


@dataclass(frozen=True)
class NotAGitRepositoryError(RepoMdError):
    """Raised when the specified directory is not a Git repository."""

    folder: Path
    message: str = "The specified directory is not a Git repository."

    def __str__(self) -> str:
        return f"{self.message} ({self.folder})"


@dataclass(frozen=True)
class MalformedMetadataError(RepoMdError):
    """Raised when a document's front matter is absent or does not fit the schema."""

    reason: str
    source: str = ""

    def __str__(self) -> str:
        where = f" in {self.source}" if self.source else ""
        return f"Malformed metadata{where}: {self.reason}"


@dataclass(frozen=True)
class LanguageMapError(RepoMdError):
    """Raised when a language table cannot be loaded."""

    path: Path
    reason: str

    def __str__(self) -> str:
        return f"Invalid language map {self.path}: {self.reason}"
