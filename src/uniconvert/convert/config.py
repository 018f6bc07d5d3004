"""Configuration loader for conversion runs."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, MutableMapping, Optional

from uniconvert.core import config as core_config
from uniconvert.core import workspace as workspace_mod

from .converter import DEFAULT_MAX_TOKENS, DEFAULT_MODEL, DEFAULT_TEMPERATURE
from .errors import ConvertConfigError
from .targets import ConversionTarget

CONFIG_FILENAME = "uniconvert.toml"
CONFIG_ENV = "UNICONVERT_CONFIG"
ENV_PREFIX = "UNICONVERT_"

_DEFAULT_TARGET = ConversionTarget.JSON.value
_DEFAULT_LOG_LEVEL = "INFO"


@dataclass(frozen=True)
class ConvertConfig:
    """Fully resolved settings for one run."""

    model: str
    temperature: float
    max_tokens: int
    api_base: Optional[str]
    target: ConversionTarget
    instructions: str
    output_dir: Path
    log_level: str


@dataclass(frozen=True)
class ConfigOverrides:
    """Command-line values that win over env and file settings."""

    model: Optional[str] = None
    temperature: Optional[float] = None
    target: Optional[ConversionTarget] = None
    instructions: Optional[str] = None
    output_dir: Optional[Path] = None
    log_level: Optional[str] = None


@dataclass(frozen=True)
class LoadResult:
    config: ConvertConfig
    layout: workspace_mod.WorkspaceLayout
    config_path: Optional[Path]


def load_config(
    *,
    config_path: Optional[Path] = None,
    overrides: Optional[ConfigOverrides] = None,
    env: Optional[Mapping[str, str]] = None,
    workspace_path: Optional[Path] = None,
) -> LoadResult:
    """Resolve settings with precedence CLI > env > TOML file > defaults."""

    overrides = overrides or ConfigOverrides()
    env_map = os.environ if env is None else env

    layout = workspace_mod.ensure_workspace(env=env_map, path=workspace_path)
    requested_path = _resolve_config_path(
        config_path=config_path,
        env_map=env_map,
        default_path=layout.path_for("config") / CONFIG_FILENAME,
    )

    table = _default_table()
    loaded_path: Optional[Path] = None
    if requested_path.exists():
        loaded_path = requested_path
        try:
            core_config.merge_defaults(
                table, core_config.load_toml(requested_path)
            )
        except core_config.TomlConfigError as exc:
            raise ConvertConfigError(str(exc)) from exc
    elif config_path is not None or _env_string(env_map, "CONFIG"):
        raise ConvertConfigError(f"Config file not found: {requested_path}")

    model_table = table["model"]
    conversion_table = table["conversion"]

    model = _require_string(
        _pick_first(
            overrides.model,
            _env_string(env_map, "MODEL"),
            model_table["name"],
        ),
        "model.name",
    )
    temperature = _resolve_temperature(
        _pick_first(
            overrides.temperature,
            _env_string(env_map, "TEMPERATURE"),
            model_table["temperature"],
        )
    )
    max_tokens = _resolve_max_tokens(model_table["max_tokens"])
    api_base = _optional_string(model_table["api_base"], "model.api_base")

    target = _resolve_target(
        _pick_first(
            overrides.target,
            _env_string(env_map, "TARGET"),
            conversion_table["target"],
        )
    )
    instructions = _pick_first(
        overrides.instructions,
        _env_string(env_map, "INSTRUCTIONS"),
        conversion_table["instructions"],
    )
    if not isinstance(instructions, str):
        raise ConvertConfigError("conversion.instructions must be a string.")

    output_dir = _resolve_output_dir(
        _pick_first(
            overrides.output_dir,
            _env_path(env_map, "OUTPUT_DIR"),
            _coerce_optional_path(table["paths"]["output_dir"]),
        ),
        layout=layout,
    )
    log_level = _require_string(
        _pick_first(
            overrides.log_level,
            _env_string(env_map, "LOG_LEVEL"),
            table["logging"]["level"],
        ),
        "logging.level",
    ).upper()

    config = ConvertConfig(
        model=model,
        temperature=temperature,
        max_tokens=max_tokens,
        api_base=api_base,
        target=target,
        instructions=instructions,
        output_dir=output_dir,
        log_level=log_level,
    )
    return LoadResult(config=config, layout=layout, config_path=loaded_path)


def _default_table() -> MutableMapping[str, MutableMapping[str, object]]:
    return {
        "model": {
            "name": DEFAULT_MODEL,
            "temperature": DEFAULT_TEMPERATURE,
            "max_tokens": DEFAULT_MAX_TOKENS,
            "api_base": None,
        },
        "conversion": {
            "target": _DEFAULT_TARGET,
            "instructions": "",
        },
        "paths": {"output_dir": None},
        "logging": {"level": _DEFAULT_LOG_LEVEL},
    }


def _resolve_config_path(
    *,
    config_path: Optional[Path],
    env_map: Mapping[str, str],
    default_path: Path,
) -> Path:
    if config_path is not None:
        return config_path.expanduser()
    env_candidate = _env_string(env_map, "CONFIG")
    if env_candidate:
        return Path(env_candidate).expanduser()
    return default_path


def _resolve_target(value: object) -> ConversionTarget:
    if isinstance(value, ConversionTarget):
        return value
    if isinstance(value, str):
        return ConversionTarget.from_value(value)
    raise ConvertConfigError("conversion.target must be a string.")


def _resolve_temperature(value: object) -> float:
    if isinstance(value, bool):
        raise ConvertConfigError("model.temperature must be a number.")
    try:
        temperature = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise ConvertConfigError("model.temperature must be a number.") from exc
    if not 0.0 <= temperature <= 2.0:
        raise ConvertConfigError("model.temperature must be between 0 and 2.")
    return temperature


def _resolve_max_tokens(value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConvertConfigError("model.max_tokens must be a positive integer.")
    return value


def _resolve_output_dir(
    candidate: object, *, layout: workspace_mod.WorkspaceLayout
) -> Path:
    if candidate is None:
        return layout.path_for("converted")
    path = Path(candidate).expanduser()  # type: ignore[arg-type]
    if not path.is_absolute():
        return (layout.home / path).resolve()
    return path.resolve()


def _coerce_optional_path(value: object) -> Optional[Path]:
    if value is None:
        return None
    if isinstance(value, str):
        raw = value.strip()
        return Path(raw) if raw else None
    raise ConvertConfigError("paths.output_dir must be a string when provided.")


def _require_string(value: object, key: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ConvertConfigError(f"{key} must be a non-empty string.")
    return value.strip()


def _optional_string(value: object, key: str) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConvertConfigError(f"{key} must be a string when provided.")
    return value.strip() or None


def _env_path(env_map: Mapping[str, str], key: str) -> Optional[Path]:
    raw = _env_string(env_map, key)
    if raw is None:
        return None
    return Path(raw).expanduser()


def _env_string(env_map: Mapping[str, str], key: str) -> Optional[str]:
    value = env_map.get(f"{ENV_PREFIX}{key}")
    if value is None:
        return None
    return value.strip() or None


def _pick_first(*candidates: object) -> object:
    for candidate in candidates:
        if candidate is not None:
            return candidate
    return None


__all__ = [
    "CONFIG_FILENAME",
    "CONFIG_ENV",
    "ENV_PREFIX",
    "ConvertConfig",
    "ConvertConfigError",
    "ConfigOverrides",
    "LoadResult",
    "load_config",
]
