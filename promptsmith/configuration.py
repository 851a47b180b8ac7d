"""Typed helpers for parsing promptsmith configuration dictionaries."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from dotenv import load_dotenv

from promptsmith.constants import SUPPORTED_PROVIDERS
from promptsmith.exceptions import ValidationError

_DOTENV_LOADED = False


def _ensure_path(value: Optional[str | Path], *, config_root: Path) -> Path:
    path = Path(value).expanduser() if value is not None else config_root
    if not path.is_absolute():
        path = (config_root / path).resolve()
    return path


@dataclass(frozen=True)
class RenderSettings:
    default_temperature: float = 0.7
    max_tokens: int = 2000
    default_model: str = "default"
    retention_seconds: float = 10.0
    history_limit: int = 1000


@dataclass(frozen=True)
class EnhancementSettings:
    """Heuristic thresholds for question generation.

    The values were tuned by trial against real prompts; keep them configurable
    rather than deriving new ones.
    """

    confidence_no_questions: float = 0.95
    confidence_with_questions: float = 0.75
    specific_min_length: int = 300
    detailed_step_length: int = 50
    min_detailed_steps: int = 3
    vague_goal_length: int = 50
    very_vague_goal_length: int = 30
    default_provider: str = "anthropic"
    default_model: str = "claude-3-sonnet"
    job_retention_hours: float = 24.0
    step_delay_seconds: float = 0.0


@dataclass(frozen=True)
class ConnectionSettings:
    """Credentials/endpoint description for one executor connection."""

    connection_id: str
    provider: str
    model: Optional[str] = None
    api_key_env: Optional[str] = None
    base_url: Optional[str] = None


@dataclass(frozen=True)
class ExecutorSettings:
    connections: Dict[str, ConnectionSettings] = field(default_factory=dict)


@dataclass(frozen=True)
class LoggingSettings:
    level: str = "INFO"
    file: Optional[Path] = None


@dataclass(frozen=True)
class PromptTemplateSettings:
    overrides: Tuple[Path, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class Settings:
    rendering: RenderSettings = field(default_factory=RenderSettings)
    enhancement: EnhancementSettings = field(
        default_factory=EnhancementSettings
    )
    executor: ExecutorSettings = field(default_factory=ExecutorSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)
    templates: PromptTemplateSettings = field(
        default_factory=PromptTemplateSettings
    )


def _build_connections(raw: Dict[str, Any]) -> Dict[str, ConnectionSettings]:
    connections: Dict[str, ConnectionSettings] = {}
    for connection_id, entry in (raw or {}).items():
        if not isinstance(entry, dict):
            raise ValidationError(
                f"Connection '{connection_id}' must be a mapping"
            )
        provider = entry.get("provider")
        if provider not in SUPPORTED_PROVIDERS:
            raise ValidationError(
                f"Connection '{connection_id}' has unsupported provider "
                f"'{provider}'"
            )
        connections[str(connection_id)] = ConnectionSettings(
            connection_id=str(connection_id),
            provider=str(provider),
            model=entry.get("model"),
            api_key_env=entry.get("api_key_env"),
            base_url=entry.get("base_url"),
        )
    return connections


def build_settings(
    config: Dict[str, Any], *, config_root: Optional[Path] = None
) -> Settings:
    """Parse the ``promptsmith`` section of a loaded config mapping."""

    root = Path(config_root or Path.cwd())
    cfg = config.get("promptsmith") or {}

    render_cfg = cfg.get("rendering") or {}
    rendering = RenderSettings(
        default_temperature=float(render_cfg.get("default_temperature", 0.7)),
        max_tokens=int(render_cfg.get("max_tokens", 2000)),
        default_model=str(render_cfg.get("default_model", "default")),
        retention_seconds=float(render_cfg.get("retention_seconds", 10.0)),
        history_limit=int(render_cfg.get("history_limit", 1000)),
    )

    enh_cfg = cfg.get("enhancement") or {}
    defaults = EnhancementSettings()
    enhancement = EnhancementSettings(
        **{
            name: type(getattr(defaults, name))(enh_cfg[name])
            for name in defaults.__dataclass_fields__
            if name in enh_cfg
        }
    )

    exec_cfg = cfg.get("executor") or {}
    executor = ExecutorSettings(
        connections=_build_connections(exec_cfg.get("connections") or {})
    )

    log_cfg = cfg.get("logging") or {}
    log_file = log_cfg.get("file")
    logging_settings = LoggingSettings(
        level=str(log_cfg.get("level", "INFO")).upper(),
        file=_ensure_path(log_file, config_root=root) if log_file else None,
    )

    tmpl_cfg = cfg.get("templates") or {}
    overrides_value = tmpl_cfg.get("overrides") or ()
    if isinstance(overrides_value, (str, Path)):
        overrides_value = [overrides_value]
    templates = PromptTemplateSettings(
        overrides=tuple(
            _ensure_path(value, config_root=root) for value in overrides_value
        )
    )

    return Settings(
        rendering=rendering,
        enhancement=enhancement,
        executor=executor,
        logging=logging_settings,
        templates=templates,
    )


def load_settings(config_path: Optional[Path] = None) -> Settings:
    """Load ``.env`` once, then parse the YAML file at ``config_path``."""

    global _DOTENV_LOADED
    if not _DOTENV_LOADED:
        load_dotenv()
        _DOTENV_LOADED = True
    if config_path is None:
        return Settings()
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    config = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    return build_settings(config, config_root=path.resolve().parent)
