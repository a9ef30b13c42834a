from __future__ import annotations

from enum import StrEnum, auto
from functools import cached_property
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from repo_md.exceptions import LanguageMapError


class GenerationMode(StrEnum):
    """How a repository is rendered to markdown.

    SINGLE writes one blob for the whole repository, MULTI one document per
    file with the whole content, DATASET one chunked document per file.
    """

    SINGLE = auto()
    MULTI = auto()
    DATASET = auto()


DEFAULT_OUTPUT_DIRS: dict[GenerationMode, str] = {
    GenerationMode.SINGLE: "markdown",
    GenerationMode.MULTI: "markdown",
    GenerationMode.DATASET: "dataset",
}

SKIPPED_EXTENSIONS = frozenset({
    "png",
    "jpg",
    "jpeg",
    "gif",
    "ico",
    "bin",
    "exe",
    "dll",
    "so",
    "dylib",
})

MARKDOWN_SUFFIX = ".md"

DEFAULT_LANGUAGES: dict[str, list[str]] = {
    "Bash": [".sh", ".bash", ".zsh"],
    "C": [".c", ".h"],
    "C#": [".cs"],
    "C++": [".cc", ".cpp", ".cxx", ".hpp", ".hh", ".hxx"],
    "CSS": [".css", ".scss", ".sass", ".less"],
    "Dart": [".dart"],
    "Elixir": [".ex", ".exs"],
    "Go": [".go"],
    "Haskell": [".hs"],
    "HTML": [".html", ".htm"],
    "INI": [".ini", ".cfg", ".conf"],
    "Java": [".java"],
    "JavaScript": [".js", ".mjs", ".cjs", ".jsx"],
    "JSON": [".json"],
    "Kotlin": [".kt", ".kts"],
    "Lua": [".lua"],
    "Markdown": [".md", ".markdown"],
    "PHP": [".php"],
    "Python": [".py", ".pyi"],
    "R": [".r"],
    "Ruby": [".rb"],
    "Rust": [".rs"],
    "Scala": [".scala"],
    "SQL": [".sql"],
    "Swift": [".swift"],
    "Text": [".txt"],
    "TOML": [".toml"],
    "TypeScript": [".ts", ".tsx"],
    "XML": [".xml"],
    "YAML": [".yaml", ".yml"],
}


def normalize_extension(extension: str) -> str:
    """Lower-case an extension and drop its leading dot.

    Args:
        extension (str): an extension such as ".RS", "rs" or ""

    Returns:
        str: the bare extension, e.g. "rs"
    """
    return extension.strip().lower().removeprefix(".")


class LanguageMap(BaseModel):
    """Immutable extension to language lookup, loaded once per run.

    Attributes:
        languages: language label -> list of extensions (with or without dot).
    """

    model_config = ConfigDict(frozen=True)

    languages: dict[str, list[str]] = Field(default_factory=lambda: dict(DEFAULT_LANGUAGES))

    @cached_property
    def by_extension(self) -> dict[str, str]:
        """Reverse index of `languages`; the first language listing an extension wins."""
        index: dict[str, str] = {}
        for language, extensions in self.languages.items():
            for ext in extensions:
                index.setdefault(normalize_extension(ext), language)
        return index

    def lookup(self, extension: str) -> str:
        """Get the language label for a file extension.

        Args:
            extension (str): the extension, with or without its leading dot

        Returns:
            str: the mapped language, or the raw extension (without dot) when unmapped
        """
        ext = normalize_extension(extension)
        return self.by_extension.get(ext, ext)

    @classmethod
    def default(cls) -> LanguageMap:
        """Build the map from the built-in table."""
        return cls()

    @classmethod
    def from_yaml(cls, path: Path) -> LanguageMap:
        """Load a replacement table from a YAML file.

        The file maps each language to a list of extensions::

            Rust: [".rs"]
            Python: [".py", ".pyi"]

        Args:
            path (Path): the YAML file to read

        Raises:
            LanguageMapError: if the file is not a mapping of language to extension lists.

        Returns:
            LanguageMap: the loaded map
        """
        data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
        if not isinstance(data, dict):
            raise LanguageMapError(path=Path(path), reason="top level must be a mapping")
        try:
            return cls(languages=data)
        except ValidationError as e:
            raise LanguageMapError(path=Path(path), reason=str(e)) from e
