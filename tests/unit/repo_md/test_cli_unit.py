from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from repo_md import __version__, cli
from repo_md.config import GenerationMode
from repo_md.exceptions import MalformedMetadataError
from repo_md.settings import IngestSettings, Settings

if TYPE_CHECKING:
    from pytest_mock import MockerFixture


@pytest.mark.unit
def test_parse_args_generate_defaults() -> None:
    settings = cli.parse_args(["generate"])

    assert isinstance(settings, Settings)
    assert settings.repo == Path()
    assert settings.output is None
    assert settings.mode is GenerationMode.DATASET
    assert settings.no_git is False


@pytest.mark.unit
def test_parse_args_generate_options() -> None:
    settings = cli.parse_args(
        [
            "generate",
            "--repo",
            "some/repo",
            "--output",
            "out",
            "--mode",
            "multi",
            "--no-git",
            "--lang-map",
            "langs.yaml",
        ],
    )

    assert isinstance(settings, Settings)
    assert settings.repo == Path("some/repo")
    assert settings.output == Path("out")
    assert settings.mode is GenerationMode.MULTI
    assert settings.no_git is True
    assert settings.lang_map == Path("langs.yaml")


@pytest.mark.unit
def test_parse_args_to_json() -> None:
    settings = cli.parse_args(["to-json", "--source", "dataset", "--output", "out.json", "--skip-malformed"])

    assert isinstance(settings, IngestSettings)
    assert settings.source == Path("dataset")
    assert settings.output == Path("out.json")
    assert settings.skip_malformed is True


@pytest.mark.unit
def test_parse_args_rejects_unknown_mode() -> None:
    with pytest.raises(SystemExit):
        cli.parse_args(["generate", "--mode", "zip"])


@pytest.mark.unit
def test_parse_args_version_flag(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc_info:
        cli.parse_args(["--version"])

    assert exc_info.value.code == 0
    captured = capsys.readouterr()
    assert __version__ in captured.out


@pytest.mark.unit
def test_main_to_json_passes_strictness(tmp_path: Path, mocker: MockerFixture) -> None:
    convert = mocker.patch.object(cli, "convert_markdown_to_json", return_value=3)

    exit_code = cli.main(["to-json", "--source", str(tmp_path), "--output", str(tmp_path / "o.json")])

    assert exit_code == 0
    convert.assert_called_once_with(tmp_path, tmp_path / "o.json", strict=True)


@pytest.mark.unit
def test_main_reports_errors_on_stderr(
    tmp_path: Path,
    mocker: MockerFixture,
    capsys: pytest.CaptureFixture[str],
) -> None:
    mocker.patch.object(
        cli,
        "convert_markdown_to_json",
        side_effect=MalformedMetadataError(reason="front matter block not found", source="bad.md"),
    )

    exit_code = cli.main(["to-json", "--source", str(tmp_path), "--output", str(tmp_path / "o.json")])

    assert exit_code == 1
    err = capsys.readouterr().err
    assert "Error: Malformed metadata in bad.md: front matter block not found" in err
