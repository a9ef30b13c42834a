from pathlib import Path

import pytest

from repo_md.config import GenerationMode
from repo_md.settings import IngestSettings, Settings


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("REPO_MD_OUTPUT_DIR", raising=False)
    monkeypatch.delenv("REPO_MD_LANG_MAP", raising=False)
    monkeypatch.setattr("repo_md.settings.ENV_FILE", "")


@pytest.mark.unit
def test_settings_defaults() -> None:
    settings = Settings()

    assert settings.repo.resolve() == Path.cwd().resolve()
    assert settings.mode is GenerationMode.DATASET
    assert settings.output_dir == Path("dataset")
    assert settings.lang_map_path is None
    assert settings.no_git is False


@pytest.mark.unit
@pytest.mark.parametrize(
    ("mode", "expected"),
    [("single", "markdown"), ("multi", "markdown"), ("dataset", "dataset")],
)
def test_settings_default_output_per_mode(mode: str, expected: str) -> None:
    assert Settings(mode=mode).output_dir == Path(expected)


@pytest.mark.unit
def test_settings_environment_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("REPO_MD_OUTPUT_DIR", "exports")
    monkeypatch.setenv("REPO_MD_LANG_MAP", "langs.yaml")

    settings = Settings()

    assert settings.output_dir == Path("exports")
    assert settings.lang_map_path == Path("langs.yaml")


@pytest.mark.unit
def test_settings_dotenv_defaults(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text("REPO_MD_OUTPUT_DIR=from-dotenv\n", encoding="utf-8")
    monkeypatch.setattr("repo_md.settings.ENV_FILE", str(env_file))

    assert Settings().output_dir == Path("from-dotenv")


@pytest.mark.unit
def test_explicit_output_wins_over_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("REPO_MD_OUTPUT_DIR", "exports")

    assert Settings(output=Path("out")).output_dir == Path("out")


@pytest.mark.unit
def test_ingest_settings_defaults() -> None:
    settings = IngestSettings(source=Path("dataset"), output=Path("out.json"))

    assert settings.skip_malformed is False
    assert not settings.log_file
