from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from promptsmith.configuration import Settings, build_settings, load_settings
from promptsmith.exceptions import ValidationError


def test_build_settings_resolves_paths(tmp_path: Path) -> None:
    config = {
        "promptsmith": {
            "rendering": {
                "default_temperature": 0.3,
                "max_tokens": 512,
                "default_model": "gpt-4o",
                "retention_seconds": 5,
            },
            "enhancement": {
                "vague_goal_length": 80,
                "default_provider": "openai",
                "job_retention_hours": 1,
            },
            "executor": {
                "connections": {
                    "team-openai": {
                        "provider": "openai",
                        "model": "gpt-4o-mini",
                        "api_key_env": "TEAM_OPENAI_KEY",
                    },
                    "llama": {
                        "provider": "meta",
                        "base_url": "http://localhost:8000/v1",
                    },
                }
            },
            "logging": {"level": "debug", "file": "logs/promptsmith.log"},
            "templates": {"overrides": "prompts/overrides"},
        }
    }
    settings = build_settings(config, config_root=tmp_path)

    assert settings.rendering.default_temperature == 0.3
    assert settings.rendering.max_tokens == 512
    assert settings.rendering.default_model == "gpt-4o"
    assert settings.rendering.retention_seconds == 5.0
    assert settings.enhancement.vague_goal_length == 80
    assert settings.enhancement.default_provider == "openai"
    assert settings.enhancement.job_retention_hours == 1.0
    assert settings.enhancement.very_vague_goal_length == 30

    team = settings.executor.connections["team-openai"]
    assert team.provider == "openai"
    assert team.api_key_env == "TEAM_OPENAI_KEY"
    assert settings.executor.connections["llama"].base_url == (
        "http://localhost:8000/v1"
    )

    assert settings.logging.level == "DEBUG"
    assert settings.logging.file == (tmp_path / "logs/promptsmith.log").resolve()
    assert settings.templates.overrides == (
        (tmp_path / "prompts/overrides").resolve(),
    )


def test_empty_config_uses_defaults() -> None:
    settings = build_settings({})
    assert settings == Settings()
    assert settings.executor.connections == {}
    assert settings.logging.file is None


def test_unsupported_connection_provider_is_rejected() -> None:
    config = {
        "promptsmith": {
            "executor": {"connections": {"bad": {"provider": "cohere"}}}
        }
    }
    with pytest.raises(ValidationError, match="unsupported provider"):
        build_settings(config)


def test_load_settings_reads_yaml(tmp_path: Path) -> None:
    path = tmp_path / "promptsmith.yaml"
    path.write_text(
        yaml.safe_dump({"promptsmith": {"rendering": {"max_tokens": 64}}})
    )
    assert load_settings(path).rendering.max_tokens == 64
    assert load_settings() == Settings()


def test_load_settings_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_settings(tmp_path / "missing.yaml")
