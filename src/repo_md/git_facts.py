"""Read repository facts (remote, branch, authors, releases) with the git CLI."""

from __future__ import annotations

import subprocess  # noqa: S404
from collections import Counter
from datetime import UTC, datetime
from typing import TYPE_CHECKING, TypeVar

from repo_md.exceptions import GitCommandError
from repo_md.logging import logger
from repo_md.models import RepoFacts, format_timestamp

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

T = TypeVar("T")


def run_git(repo: Path, *args: str) -> str:
    """Run a git subcommand inside `repo` and return its standard output.

    Args:
        repo (Path): the working tree to run in
        *args (str): the git arguments, e.g. ("rev-parse", "HEAD")

    Raises:
        GitCommandError: if git exits with a non-zero status.
        OSError: if the git executable cannot be started.

    Returns:
        str: the command's stdout
    """
    cmd = ["git", *args]
    out = subprocess.run(  # noqa: S603
        cmd,
        cwd=str(repo),
        encoding="utf-8",
        capture_output=True,
        check=False,
    )
    if out.returncode != 0:
        raise GitCommandError(
            command=" ".join(cmd),
            returncode=out.returncode,
            stdout=out.stdout,
            stderr=out.stderr,
        )
    return out.stdout


def browsing_url(remote: str) -> str:
    """Turn a remote URL into the base URL used for blob links.

    `git@host:owner/repo.git` becomes `https://host/owner/repo`; a trailing
    `.git` is dropped from http(s) URLs.
    """
    url = remote.strip().removesuffix("/").removesuffix(".git")
    if url.startswith("git@") and ":" in url:
        host, path = url.removeprefix("git@").split(":", 1)
        url = f"https://{host}/{path}"
    return url


def remote_url(repo: Path) -> str:
    return browsing_url(run_git(repo, "remote", "get-url", "origin"))


def current_branch(repo: Path) -> str:
    branch = run_git(repo, "rev-parse", "--abbrev-ref", "HEAD").strip()
    # detached HEAD
    if branch == "HEAD":
        raise GitCommandError(
            command="git rev-parse --abbrev-ref HEAD",
            returncode=0,
            stdout=branch,
            stderr="detached HEAD",
        )
    return branch


def contributor_counts(repo: Path) -> dict[str, int]:
    """Count commits per author name reachable from HEAD."""
    names = run_git(repo, "log", "--format=%an", "HEAD").splitlines()
    return dict(Counter(name or "Unknown" for name in names))


def latest_release(repo: Path) -> tuple[str, str] | None:
    """Get the last tag (in git's listing order) and its commit time.

    Returns:
        tuple[str, str] | None: (tag, "YYYY-MM-DD HH:MM:SS" in UTC), or None without tags
    """
    tags = [t for t in run_git(repo, "tag", "--list").splitlines() if t.strip()]
    if not tags:
        return None
    tag = tags[-1].strip()
    seconds = int(run_git(repo, "log", "-1", "--format=%ct", f"{tag}^{{commit}}").strip())
    return tag, format_timestamp(datetime.fromtimestamp(seconds, tz=UTC))


def collect_repo_facts(repo: Path, *, use_git: bool = True) -> RepoFacts:
    """Gather the facts written into every document of a run.

    Each fact is read independently; a fact git cannot provide stays unset
    and the front matter falls back to its default.

    Args:
        repo (Path): the repository root
        use_git (bool): whether to query git at all

    Returns:
        RepoFacts: the collected facts
    """
    name = repo.name or "unknown_repo"
    if not use_git or not (repo / ".git").exists():
        logger.info("repository facts unavailable, using defaults", repo=str(repo), use_git=use_git)
        return RepoFacts(name=name)

    def attempt(label: str, fn: Callable[[Path], T], default: T) -> T:
        try:
            return fn(repo)
        except (GitCommandError, OSError, ValueError) as e:
            logger.info("git fact unavailable", fact=label, reason=str(e))
            return default

    release = attempt("latest_release", latest_release, None)
    return RepoFacts(
        name=name,
        remote_url=attempt("remote_url", remote_url, None),
        branch=attempt("branch", current_branch, None),
        contributors=attempt("contributors", contributor_counts, {}),
        latest_release=release[0] if release else None,
        release_date=release[1] if release else None,
    )
