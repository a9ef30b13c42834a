from __future__ import annotations

import os
from pathlib import Path

from dotenv import dotenv_values, find_dotenv
from pydantic import BaseModel, ConfigDict, Field

from repo_md.config import DEFAULT_OUTPUT_DIRS, GenerationMode

ENV_FILE = find_dotenv(usecwd=True)


def env_default(name: str) -> str:
    """Read a default from the environment, then from the `.env` file."""
    if name in os.environ:
        return os.environ[name]
    values = dotenv_values(ENV_FILE) if ENV_FILE else {}
    return values.get(name) or ""


class Settings(BaseModel):
    """Configuration settings for markdown generation."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    repo: Path = Field(default_factory=Path.cwd, description="Repository root.")
    output: Path | None = Field(
        default=None,
        description="Base output directory (REPO_MD_OUTPUT_DIR, else per mode).",
    )
    mode: GenerationMode = Field(default=GenerationMode.DATASET, description="Generation mode.")
    no_git: bool = Field(default=False, description="Do not query git.")
    lang_map: Path | None = Field(
        default=None,
        description="YAML language table (REPO_MD_LANG_MAP, else built-in).",
    )
    log_file: str = Field(default="", description="Log file path.")

    @property
    def output_dir(self) -> Path:
        if self.output is not None:
            return self.output
        return Path(env_default("REPO_MD_OUTPUT_DIR") or DEFAULT_OUTPUT_DIRS[self.mode])

    @property
    def lang_map_path(self) -> Path | None:
        if self.lang_map is not None:
            return self.lang_map
        from_env = env_default("REPO_MD_LANG_MAP")
        return Path(from_env) if from_env else None


class IngestSettings(BaseModel):
    """Configuration settings for markdown to JSON conversion."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    source: Path = Field(..., description="Directory of generated documents.")
    output: Path = Field(..., description="JSON file to write.")
    skip_malformed: bool = Field(
        default=False,
        description="Skip documents with malformed metadata instead of failing.",
    )
    log_file: str = Field(default="", description="Log file path.")
