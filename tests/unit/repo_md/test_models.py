from __future__ import annotations

import pytest

from repo_md.models import RepoFacts, format_contributors


@pytest.mark.unit
def test_repo_facts_defaults_are_explicit() -> None:
    facts = RepoFacts(name="repo")

    assert facts.remote_or_default == ""
    assert facts.branch_or_default == "main"
    assert facts.release_or_default == "No Release"
    assert facts.release_date_or_default == "N/A"
    assert facts.blob_url("src/a.py") == "/blob/main/src/a.py"


@pytest.mark.unit
def test_repo_facts_release_date_needs_a_release() -> None:
    facts = RepoFacts(name="repo", release_date="2024-01-01 00:00:00")

    assert facts.release_date_or_default == "N/A"


@pytest.mark.unit
def test_repo_facts_blob_url() -> None:
    facts = RepoFacts(name="repo", remote_url="https://github.com/o/repo", branch="dev")

    assert facts.blob_url("src/a.py") == "https://github.com/o/repo/blob/dev/src/a.py"


@pytest.mark.unit
def test_format_contributors_keeps_top_five_with_several_commits() -> None:
    counts = {"a": 2, "b": 9, "c": 1, "d": 5, "e": 5, "f": 3, "g": 4}

    assert format_contributors(counts) == "b (9) | d (5) | e (5) | g (4) | f (3)"


@pytest.mark.unit
def test_format_contributors_empty_when_nobody_qualifies() -> None:
    assert not format_contributors({"solo": 1})
    assert not format_contributors({})
