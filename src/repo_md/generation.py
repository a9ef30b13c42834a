from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING

from repo_md.config import MARKDOWN_SUFFIX, GenerationMode, LanguageMap
from repo_md.file_manipulation import discover_files, document_path, read_source, relpath, write_text_file
from repo_md.git_facts import collect_repo_facts
from repo_md.logging import logger
from repo_md.models import FileMetadata
from repo_md.output_construction import (
    assemble_chunked,
    assemble_whole,
    build_single_markdown,
    chunk_content,
    new_id,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from repo_md.models import RepoFacts
    from repo_md.settings import Settings


def build_document(
    facts: RepoFacts,
    rel_path: str,
    content: str,
    *,
    languages: LanguageMap,
    generated_at: datetime,
    chunked: bool,
) -> str:
    """Render the document of one source file.

    Args:
        facts (RepoFacts): repository facts of the run
        rel_path (str): POSIX path of the file relative to the repository root
        content (str): the file content
        languages (LanguageMap): extension lookup of the run
        generated_at (datetime): timestamp of the run
        chunked (bool): split the content into tagged chunks

    Returns:
        str: the document text
    """
    metadata = FileMetadata.for_file(
        facts,
        rel_path,
        content,
        language=languages.lookup(Path(rel_path).suffix),
        file_id=new_id(),
        generated_at=generated_at,
    )
    if chunked:
        return assemble_chunked(metadata, chunk_content(content))
    return assemble_whole(metadata, content)


def write_documents(
    repo: Path,
    files: Sequence[Path],
    output_dir: Path,
    *,
    facts: RepoFacts,
    languages: LanguageMap,
    chunked: bool,
    generated_at: datetime | None = None,
) -> list[Path]:
    """Write one document per source file under `<output_dir>/<repo name>/`.

    Returns:
        list[Path]: the written documents
    """
    moment = generated_at or datetime.now(UTC)
    written: list[Path] = []
    for f in files:
        rel = relpath(f, repo)
        doc = build_document(
            facts,
            rel,
            read_source(f),
            languages=languages,
            generated_at=moment,
            chunked=chunked,
        )
        target = document_path(output_dir, facts.name, rel)
        write_text_file(target, doc)
        written.append(target)
    return written


def write_single(repo: Path, files: Sequence[Path], output_dir: Path, *, repo_name: str) -> Path:
    """Write the whole repository as `<output_dir>/<repo name>.md`."""
    blob = build_single_markdown(repo_name, [(relpath(f, repo), read_source(f)) for f in files])
    target = output_dir / f"{repo_name}{MARKDOWN_SUFFIX}"
    write_text_file(target, blob)
    return target


def generate(settings: Settings) -> list[Path]:
    """Render a repository according to `settings`.

    The language table and the repository facts are loaded once for the run.

    Args:
        settings (Settings): the generation settings

    Returns:
        list[Path]: the files written
    """
    repo = Path(settings.repo).resolve()
    use_git = not settings.no_git
    output_dir = settings.output_dir
    # earlier runs may have written inside the repository
    out_root = output_dir.resolve()
    files = [f for f in discover_files(repo, use_git=use_git) if not f.resolve().is_relative_to(out_root)]
    facts = collect_repo_facts(repo, use_git=use_git)
    logger.info("generating", repo=str(repo), mode=str(settings.mode), files=len(files), output=str(output_dir))

    if settings.mode is GenerationMode.SINGLE:
        return [write_single(repo, files, output_dir, repo_name=facts.name)]

    lang_path = settings.lang_map_path
    languages = LanguageMap.from_yaml(lang_path) if lang_path else LanguageMap.default()
    return write_documents(
        repo,
        files,
        output_dir,
        facts=facts,
        languages=languages,
        chunked=settings.mode is GenerationMode.DATASET,
    )
