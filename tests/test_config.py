from __future__ import annotations

from pathlib import Path

import pytest

from pressroom.config import Config, ConfigModel, load_config, save_config


def test_defaults_without_file(tmp_path: Path) -> None:
    config = Config(config_path=tmp_path / "missing.yaml")

    assert config.config.llm.model == "gpt-4o"
    assert config.config.narration.max_chars == 4000
    assert config.config.images.download_retries == 3
    assert config.config.server.port == 5000


def test_save_and_load_round_trip(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "config.yaml"
    save_config(ConfigModel(media_root=str(tmp_path / "media"), search={"num_results": 3}), path)

    loaded = load_config(path)

    assert loaded.media_root == str(tmp_path / "media")
    assert loaded.search.num_results == 3


def test_invalid_yaml_and_values(tmp_path: Path) -> None:
    bad_yaml = tmp_path / "bad.yaml"
    bad_yaml.write_text("llm: [unclosed")
    with pytest.raises(ValueError, match="Invalid YAML"):
        load_config(bad_yaml)

    bad_value = tmp_path / "value.yaml"
    bad_value.write_text("narration:\n  max_chars: 10000\n")
    with pytest.raises(ValueError, match="Invalid configuration"):
        load_config(bad_value)


def test_config_path_from_environment(tmp_path: Path, monkeypatch) -> None:
    path = tmp_path / "env.yaml"
    path.write_text("llm:\n  model: gpt-4o-mini\n")
    monkeypatch.setenv("PRESSROOM_CONFIG", str(path))

    assert Config().config.llm.model == "gpt-4o-mini"


def test_secrets_come_from_environment(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("GOOGLE_API_KEY", "g-key")
    monkeypatch.delenv("GOOGLE_CSE_ID", raising=False)
    monkeypatch.setenv("PRESSROOM_DB_PASSWORD", "secret")

    config = Config(
        config_path=tmp_path / "none.yaml",
        config=ConfigModel(postgres={"password_env": "PRESSROOM_DB_PASSWORD"}),
    )

    assert config.get_llm_config()["api_key"] == "sk-test"
    assert config.get_search_credentials() == ("g-key", None)
    assert config.get_db_config()["password"] == "secret"


def test_media_root_creates_folders(tmp_path: Path) -> None:
    config = Config(config=ConfigModel(media_root=str(tmp_path / "public")))

    root = config.media_root

    assert (root / "images").is_dir()
    assert (root / "audio").is_dir()
