from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

import pytest

from repo_md import generation
from repo_md.config import LanguageMap
from repo_md.models import RepoFacts
from repo_md.parsing import parse_document
from repo_md.settings import Settings

if TYPE_CHECKING:
    from pathlib import Path

    from pytest_mock import MockerFixture

MOMENT = datetime(2024, 5, 1, 12, 0, 0, tzinfo=UTC)


def _repo(tmp_path: Path) -> Path:
    repo = tmp_path / "demo"
    (repo / "src").mkdir(parents=True)
    (repo / "src" / "main.rs").write_text("fn main() {\n" + "    let x = 1;\n" * 80 + "}\n", encoding="utf-8")
    (repo / "README.txt").write_text("hello\n", encoding="utf-8")
    (repo / "logo.png").write_bytes(b"\x89PNG")
    (repo / ".env").write_text("SECRET=1\n", encoding="utf-8")
    return repo


@pytest.mark.unit
def test_build_document_chunked_round_trips() -> None:
    content = "x = 1\n" * 300
    facts = RepoFacts(name="demo")

    doc = generation.build_document(
        facts,
        "pkg/mod.py",
        content,
        languages=LanguageMap.default(),
        generated_at=MOMENT,
        chunked=True,
    )
    parsed = parse_document(doc)

    assert parsed.file_metadata.title == "demo - mod.py"
    assert parsed.file_metadata.language == "Python"
    assert parsed.file_metadata.date == "2024-05-01 12:00:00"
    assert len(parsed.sections) > 1
    assert parsed.text == content


@pytest.mark.unit
def test_build_document_unknown_extension_uses_raw_extension() -> None:
    doc = generation.build_document(
        RepoFacts(name="demo"),
        "data/table.qqq",
        "a,b\n",
        languages=LanguageMap.default(),
        generated_at=MOMENT,
        chunked=False,
    )

    assert "tags:\n- qqq\n" in doc


@pytest.mark.unit
def test_write_documents_mirrors_relative_paths(tmp_path: Path) -> None:
    repo = _repo(tmp_path)
    files = [repo / "README.txt", repo / "src" / "main.rs"]
    out = tmp_path / "out"

    written = generation.write_documents(
        repo,
        files,
        out,
        facts=RepoFacts(name="demo"),
        languages=LanguageMap.default(),
        chunked=False,
        generated_at=MOMENT,
    )

    assert written == [out / "demo" / "README.txt.md", out / "demo" / "src" / "main.rs.md"]
    parsed = parse_document(written[1].read_text(encoding="utf-8"))
    assert parsed.content == (repo / "src" / "main.rs").read_text(encoding="utf-8")
    assert parsed.file_metadata.path == "src/main.rs"


@pytest.mark.unit
def test_generate_dataset_mode(tmp_path: Path) -> None:
    repo = _repo(tmp_path)
    out = tmp_path / "dataset"

    written = generation.generate(Settings(repo=repo, output=out, mode="dataset", no_git=True))

    assert sorted(p.relative_to(out).as_posix() for p in written) == ["demo/README.txt.md", "demo/src/main.rs.md"]
    parsed = parse_document((out / "demo" / "src" / "main.rs.md").read_text(encoding="utf-8"))
    assert parsed.file_metadata.language == "Rust"
    assert parsed.file_metadata.latest_release == "No Release"
    assert parsed.text == (repo / "src" / "main.rs").read_text(encoding="utf-8")


@pytest.mark.unit
def test_generate_skips_its_own_output_inside_the_repository(tmp_path: Path) -> None:
    repo = _repo(tmp_path)
    settings = Settings(repo=repo, output=repo / "dataset", mode="dataset", no_git=True)

    first = generation.generate(settings)
    second = generation.generate(settings)

    assert sorted(p.relative_to(repo).as_posix() for p in second) == [
        "dataset/demo/README.txt.md",
        "dataset/demo/src/main.rs.md",
    ]
    assert sorted(first) == sorted(second)
    assert not (repo / "dataset" / "demo" / "dataset").exists()


@pytest.mark.unit
def test_generate_single_mode(tmp_path: Path) -> None:
    repo = _repo(tmp_path)
    out = tmp_path / "markdown"

    written = generation.generate(Settings(repo=repo, output=out, mode="single", no_git=True))

    assert written == [out / "demo.md"]
    blob = written[0].read_text(encoding="utf-8")
    assert "## File: README.txt\n" in blob
    assert "## File: src/main.rs\n" in blob
    assert "logo.png" not in blob
    assert "SECRET" not in blob


@pytest.mark.unit
def test_generate_loads_language_table_once(tmp_path: Path, mocker: MockerFixture) -> None:
    repo = _repo(tmp_path)
    table = tmp_path / "langs.yaml"
    table.write_text('Oxide: [".rs"]\n', encoding="utf-8")
    load = mocker.spy(generation.LanguageMap, "from_yaml")

    generation.generate(
        Settings(repo=repo, output=tmp_path / "out", mode="multi", no_git=True, lang_map=table),
    )

    assert load.call_count == 1
    doc = (tmp_path / "out" / "demo" / "src" / "main.rs.md").read_text(encoding="utf-8")
    assert "- Oxide\n" in doc
