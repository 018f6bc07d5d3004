"""Core shared helpers for uniconvert commands."""

from __future__ import annotations

from .ai import load_client
from .config import (
    TomlConfigError,
    load_toml,
    merge_defaults,
    write_toml_template,
)
from .config_templates import (
    ConfigTemplate,
    ConfigTemplateError,
    get_template,
    iter_templates,
)
from .files import decode_text, iter_input_files
from .logging import JsonLogFormatter, configure_logger
from .workspace import (
    WORKSPACE_ENV,
    WorkspaceError,
    WorkspaceLayout,
    ensure_workspace,
)

__all__ = [
    "load_client",
    "TomlConfigError",
    "load_toml",
    "merge_defaults",
    "write_toml_template",
    "ConfigTemplate",
    "ConfigTemplateError",
    "get_template",
    "iter_templates",
    "decode_text",
    "iter_input_files",
    "configure_logger",
    "JsonLogFormatter",
    "ensure_workspace",
    "WorkspaceLayout",
    "WorkspaceError",
    "WORKSPACE_ENV",
]
