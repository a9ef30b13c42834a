from __future__ import annotations

from datetime import datetime
from pathlib import PurePosixPath

from pydantic import BaseModel, ConfigDict, Field

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_BRANCH = "main"
NO_RELEASE = "No Release"
NO_RELEASE_DATE = "N/A"


def format_timestamp(moment: datetime) -> str:
    """Render a datetime the way front matter stores it (`YYYY-MM-DD HH:MM:SS`)."""
    return moment.strftime(TIMESTAMP_FORMAT)


def format_contributors(counts: dict[str, int], limit: int = 5) -> str:
    """Summarize commit authors for the front matter.

    Only authors with more than one commit are kept, ordered by commit count
    (descending) then name, and at most `limit` of them.

    Args:
        counts (dict[str, int]): commit count per author name
        limit (int): how many authors to keep

    Returns:
        str: e.g. "alice (12) | bob (3)", or "" when nobody qualifies
    """
    ranked = sorted(
        ((name, n) for name, n in counts.items() if n > 1),
        key=lambda item: (-item[1], item[0]),
    )
    return " | ".join(f"{name} ({n})" for name, n in ranked[:limit])


class RepoFacts(BaseModel):
    """Facts about a repository shared by every document of a run.

    Unknown facts are `None`; the `*_or_default` properties give the values
    written to front matter.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Repository directory name")
    remote_url: str | None = Field(default=None, description="Browsing URL of the origin remote")
    branch: str | None = Field(default=None, description="Checked-out branch")
    contributors: dict[str, int] = Field(default_factory=dict, description="Commit count per author")
    latest_release: str | None = Field(default=None, description="Latest tag name")
    release_date: str | None = Field(default=None, description="Commit time of the latest tag")

    @property
    def remote_or_default(self) -> str:
        return self.remote_url or ""

    @property
    def branch_or_default(self) -> str:
        return self.branch or DEFAULT_BRANCH

    @property
    def release_or_default(self) -> str:
        return self.latest_release or NO_RELEASE

    @property
    def release_date_or_default(self) -> str:
        if not self.latest_release:
            return NO_RELEASE_DATE
        return self.release_date or NO_RELEASE_DATE

    def blob_url(self, rel_path: str) -> str:
        """Remote browsing URL of a file at the checked-out branch."""
        return f"{self.remote_or_default}/blob/{self.branch_or_default}/{rel_path}"


class FileMetadata(BaseModel):
    """Front matter of one generated document.

    Attributes:
        title: "<repo> - <file name>".
        date: generation timestamp.
        language: language label looked up from the file extension.
        file_id: identifier of the file.
        github_label: display text of the remote link (the file name).
        github_url: remote browsing URL of the file.
        contributors: contributor summary string.
        latest_release: latest release name, or "No Release".
        release_date: latest release timestamp, or "N/A".
        path: file path relative to the repository root.
        size: UTF-8 byte length of the file content.
    """

    model_config = ConfigDict(frozen=True)

    title: str
    date: str
    language: str
    file_id: str
    github_label: str
    github_url: str
    contributors: str
    latest_release: str
    release_date: str
    path: str
    size: int = Field(..., ge=0)

    @classmethod
    def for_file(
        cls,
        facts: RepoFacts,
        rel_path: str,
        content: str,
        *,
        language: str,
        file_id: str,
        generated_at: datetime,
    ) -> FileMetadata:
        """Build the front matter of one source file.

        Args:
            facts (RepoFacts): repository facts of the run
            rel_path (str): POSIX path of the file relative to the repository root
            content (str): full file content
            language (str): language label of the file
            file_id (str): identifier of the file
            generated_at (datetime): timestamp of the run

        Returns:
            FileMetadata: the record to render
        """
        file_name = PurePosixPath(rel_path).name
        return cls(
            title=f"{facts.name} - {file_name}",
            date=format_timestamp(generated_at),
            language=language,
            file_id=file_id,
            github_label=file_name,
            github_url=facts.blob_url(rel_path),
            contributors=format_contributors(facts.contributors),
            latest_release=facts.release_or_default,
            release_date=facts.release_date_or_default,
            path=rel_path,
            size=len(content.encode("utf-8")),
        )


class Section(BaseModel):
    """One chunk of a document, tagged with its identifier."""

    model_config = ConfigDict(frozen=True)

    uuid: str
    content: str


class ParsedDocument(BaseModel):
    """A document read back from its markdown encoding.

    Chunked documents carry `sections`; whole-content documents carry
    `content` and no sections.
    """

    model_config = ConfigDict(frozen=True)

    file_metadata: FileMetadata
    sections: list[Section] = Field(default_factory=list)
    content: str | None = None

    @property
    def text(self) -> str:
        """The file content, reassembled from sections when chunked."""
        if self.content is not None:
            return self.content
        return "".join(s.content for s in self.sections)
