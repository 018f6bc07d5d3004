"""Per-user data directory used for config, logs and converted outputs."""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, MutableMapping


WORKSPACE_ENV = "UNICONVERT_DATA_HOME"
DEFAULT_WORKSPACE = Path.home() / ".uniconvert-data"

_SUBDIRS = {
    "config": "config",
    "logs": "logs",
    "converted": "converted",
}


class WorkspaceError(RuntimeError):
    """Raised when the workspace layout cannot be prepared."""


@dataclass(frozen=True)
class WorkspaceLayout:
    """Resolved workspace paths and whether each one was just created."""

    home: Path
    directories: Mapping[str, Path]
    created: Mapping[str, bool]

    def path_for(self, key: str) -> Path:
        try:
            return self.directories[key]
        except KeyError as exc:
            raise KeyError(f"Unknown workspace directory '{key}'.") from exc

    def items(self) -> tuple[tuple[str, Path], ...]:
        return tuple(self.directories.items())


def ensure_workspace(
    *,
    env: Mapping[str, str] | None = None,
    path: Path | None = None,
    create: bool = True,
) -> WorkspaceLayout:
    """Return the workspace layout, creating directories when ``create``.

    Without an explicit path or ``UNICONVERT_DATA_HOME`` the default home is
    tried first and a temp-dir location second.
    """

    env_map = os.environ if env is None else env
    base, explicit = _resolve_base(env_map, override=path)

    candidates = [base]
    if create and not explicit:
        fallback = _fallback_base()
        if fallback != base:
            candidates.append(fallback)

    last_error: Exception | None = None
    for candidate in candidates:
        try:
            return _materialize_layout(candidate, create=create)
        except PermissionError as exc:
            last_error = exc
    raise WorkspaceError(f"Unable to prepare workspace at {base}") from last_error


def _resolve_base(
    env: Mapping[str, str], *, override: Path | None
) -> tuple[Path, bool]:
    if override is not None:
        target, explicit = override, True
    else:
        custom = (env.get(WORKSPACE_ENV) or "").strip()
        if custom:
            target, explicit = Path(custom), True
        else:
            target, explicit = DEFAULT_WORKSPACE, False
    target = target.expanduser()
    try:
        return target.resolve(), explicit
    except FileNotFoundError:
        return target.absolute(), explicit


def _fallback_base() -> Path:
    return Path(tempfile.gettempdir()) / "uniconvert-data"


def _materialize_layout(base: Path, *, create: bool) -> WorkspaceLayout:
    if base.exists() and not base.is_dir():
        raise WorkspaceError(
            f"Configured workspace exists and is not a directory: {base}"
        )

    created: MutableMapping[str, bool] = {
        "home": _ensure_dir(base) if create else False
    }
    directories: MutableMapping[str, Path] = {}
    for key, relative in _SUBDIRS.items():
        candidate = base / relative
        if create:
            created[key] = _ensure_dir(candidate)
        else:
            created[key] = False
            if candidate.exists() and not candidate.is_dir():
                raise WorkspaceError(
                    "Expected workspace directory for '{0}' but found a "
                    "file: {1}".format(key, candidate)
                )
        directories[key] = candidate

    return WorkspaceLayout(
        home=base,
        directories=MappingProxyType(dict(directories)),
        created=MappingProxyType(dict(created)),
    )


def _ensure_dir(path: Path) -> bool:
    existed = path.exists()
    try:
        path.mkdir(parents=True, exist_ok=True)
    except FileExistsError as exc:
        raise WorkspaceError(
            f"Expected directory but found a non-directory entry: {path}"
        ) from exc
    if not path.is_dir():
        raise WorkspaceError(
            f"Expected directory but found a non-directory entry: {path}"
        )
    try:
        path.chmod(0o700)
    except (PermissionError, NotImplementedError):
        pass
    return not existed
