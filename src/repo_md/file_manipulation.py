from __future__ import annotations

import codecs
import os
import stat
from pathlib import Path
from typing import TYPE_CHECKING, Any

from repo_md.config import MARKDOWN_SUFFIX, SKIPPED_EXTENSIONS, normalize_extension
from repo_md.exceptions import GitCommandError, NotAGitRepositoryError
from repo_md.git_facts import run_git
from repo_md.logging import logger

if TYPE_CHECKING:
    from collections.abc import Sequence


def relpath(path: Path, root: Path) -> str:
    """Send the relative path of path from root.

    Args:
        path (Path): the path to "relativise"
        root (Path): the root to relativise from

    Returns:
        str: the relative path from root to path, with POSIX separators.
            If path is not under root, returns the original path as a string.
    """
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return str(path)


def is_regular_file(path: Path) -> bool:
    """Check if a file is regular.

    Args:
        path (Path): path to test.

    Returns:
        bool: True if the file is regular, False otherwise.
    """
    try:
        st = path.stat()
        return stat.S_ISREG(st.st_mode)
    except OSError:
        return False


def sniff_text_utf8(path: Path, nbytes: int = 4096) -> bool:
    """Check if path point to a utf-8 encoded text file.

    Args:
        path (Path): path to test.
        nbytes (int, optional): number of bytes to read for testing. Defaults to 4096.

    Returns:
        bool: True if the file is utf-8 encoded text, False otherwise.
    """
    try:
        if not is_regular_file(path):
            return False
        with path.open("rb") as f:
            chunk = f.read(nbytes)
        if b"\x00" in chunk:
            return False
        # a multi-byte character may be cut at the end of a full sample
        codecs.getincrementaldecoder("utf-8")().decode(chunk, final=len(chunk) < nbytes)
    except (OSError, UnicodeDecodeError):
        return False
    else:
        return True


def should_skip(path: Path, repo: Path) -> bool:
    """Decide whether a file is kept out of the export.

    Hidden files and directories (which covers `.git`), and files with a
    binary extension are skipped.

    Args:
        path (Path): the file to test
        repo (Path): the repository root

    Returns:
        bool: True if the file must not be exported
    """
    try:
        parts = path.relative_to(repo).parts
    except ValueError:
        return True
    if any(p.startswith(".") for p in parts):
        return True
    return normalize_extension(path.suffix) in SKIPPED_EXTENSIONS


def git_ls_files(repo: Path) -> list[Path]:
    """Get the list of tracked files in a git repository using `git ls-files`.

    Args:
        repo (Path): the root of the git repository to query

    Raises:
        NotAGitRepositoryError: if `.git` is missing.
        GitCommandError: if the `git` invocation fails.

    Returns:
        list[Path]: the list of tracked files within the repository
    """
    if not (repo / ".git").exists():
        raise NotAGitRepositoryError(folder=repo)
    out = run_git(repo, "ls-files", "-z")
    return [repo / name for name in out.split("\0") if name]


def walk_files(repo: Path) -> list[Path]:
    """Walk the directory tree rooted at `repo` and return a list of all files.

    Hidden directories are pruned.

    Args:
        repo (Path): the root directory to walk

    Returns:
        list[Path]: a list of all files found
    """
    results: list[Path] = []
    for root, dirs, files in os.walk(repo):
        dirs[:] = [d for d in dirs if not d.startswith(".")]
        for f in files:
            p = Path(root) / f
            if p.is_file():
                results.append(p)
    return results


def select_files(files: Sequence[Path], repo: Path) -> list[Path]:
    """Keep the exportable files and order them by relative path.

    Args:
        files (Sequence[Path]): candidate files under `repo`
        repo (Path): the repository root

    Returns:
        list[Path]: regular, UTF-8, non-skipped files sorted by relative path
    """
    out: list[Path] = []
    for f in files:
        if should_skip(f, repo) or not is_regular_file(f):
            continue
        if not sniff_text_utf8(f):
            logger.info("skipping non-text file", path=relpath(f, repo))
            continue
        out.append(f)
    return sorted(set(out), key=lambda p: relpath(p, repo))


def discover_files(repo: Path, *, use_git: bool = True) -> list[Path]:
    """List the files to export, preferring `git ls-files` over a filesystem walk.

    Args:
        repo (Path): the repository root
        use_git (bool): whether to ask git for the tracked files first

    Returns:
        list[Path]: the selected files, sorted by relative path
    """
    files: list[Path] | None = None
    if use_git:
        try:
            files = git_ls_files(repo)
        except (NotAGitRepositoryError, GitCommandError, OSError) as e:
            logger.info("falling back to filesystem walk", reason=str(e))
    if files is None:
        files = walk_files(repo)
    return select_files(files, repo)


def build_tree_lines(root_name: str, rel_paths: Sequence[str]) -> list[str]:
    """Build a visual tree representation of file paths.

    Args:
        root_name (str): the name to use for the root of the tree
        rel_paths (Sequence[str]): the list of file paths relative to the root, using POSIX separators (e.g. "src/main.py")

    Returns:
        list[str]: a list of strings representing the tree structure, suitable for printing
    """
    rels = sorted(
        {p.strip("/").replace("\\", "/") for p in rel_paths if p.strip()},
        key=str.lower,
    )
    tree: dict[str, Any] = {}
    for rp in rels:
        cur = tree
        parts = rp.split("/")
        for i, part in enumerate(parts):
            if i == len(parts) - 1:
                cur.setdefault("__files__", set()).add(part)
            else:
                cur = cur.setdefault(part, {})

    lines: list[str] = [root_name]

    def walk(node: dict[str, Any], prefix: str) -> None:
        dirs = sorted([k for k in node if k != "__files__"], key=str.lower)
        files = sorted(node.get("__files__", set()), key=str.lower)
        entries: list[tuple[str, str, Any]] = []
        entries.extend(("dir", d, node[d]) for d in dirs)
        entries.extend(("file", f, None) for f in files)
        for idx, (kind, name, child) in enumerate(entries):
            last = idx == len(entries) - 1
            branch = "└── " if last else "├── "
            lines.append(prefix + branch + name + ("/" if kind == "dir" else ""))
            if kind == "dir":
                ext = "    " if last else "│   "
                walk(child, prefix + ext)

    walk(tree, "")
    return lines


def read_source(path: Path) -> str:
    """Read a whole file as UTF-8 text, line endings untouched.

    Raises:
        OSError: if the file cannot be read.
        UnicodeDecodeError: if the file is not UTF-8.
    """
    return path.read_bytes().decode("utf-8")


def write_text_file(path: Path, text: str) -> None:
    """Write text to `path`, creating missing parent directories first."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8", newline="")


def document_path(output_dir: Path, repo_name: str, rel_path: str) -> Path:
    """Where the document of a source file is written: `<output>/<repo>/<rel>.md`."""
    return output_dir / repo_name / f"{rel_path}{MARKDOWN_SUFFIX}"
