"""Unified CLI entry point: ``uniconvert <command> [args...]``."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from importlib import import_module, metadata
from typing import Callable, Mapping, Optional, Sequence


@dataclass(frozen=True)
class CommandSpec:
    """A subcommand and the module whose ``main(argv)`` implements it."""

    name: str
    summary: str
    module: str


_COMMAND_SPECS: Sequence[CommandSpec] = (
    CommandSpec(
        name="init",
        summary="Bootstrap the uniconvert workspace.",
        module="uniconvert.workspace.cli",
    ),
    CommandSpec(
        name="convert",
        summary="Convert text or files into another format with an LLM.",
        module="uniconvert.convert.cli",
    ),
)

COMMANDS: Mapping[str, CommandSpec] = {
    spec.name: spec for spec in _COMMAND_SPECS
}


def format_command_table() -> str:
    """Return a formatted command table for help output."""

    width = max(len(spec.name) for spec in _COMMAND_SPECS)
    lines = ["Available commands:"]
    for spec in _COMMAND_SPECS:
        lines.append(f"  {spec.name.ljust(width)}  {spec.summary}")
    return "\n".join(lines)


def format_usage() -> str:
    parts = [
        "Usage: uniconvert <command> [args...]",
        "Run `uniconvert list` for commands or `uniconvert help <name>` for "
        "details.",
        "",
        format_command_table(),
    ]
    return "\n".join(parts)


def _print(
    text: str, *, stream: Optional[Callable[[str], object]] = None
) -> None:
    target = stream if stream is not None else sys.stdout.write
    if text:
        target(text + "\n")


def _handle_version() -> int:
    try:
        version = metadata.version("uniconvert")
    except metadata.PackageNotFoundError:
        version = "unknown"
    _print(version)
    return 0


def _handle_help(argv: Sequence[str]) -> int:
    if not argv:
        _print(format_usage())
        return 0

    spec = COMMANDS.get(argv[0])
    if spec is None:
        _print(f"Unknown command '{argv[0]}'.", stream=sys.stderr.write)
        _print(format_command_table(), stream=sys.stderr.write)
        return 2

    _print(f"{spec.name}: {spec.summary}")
    _print(f"Run `uniconvert {spec.name} --help` for CLI-specific options.")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = list(argv if argv is not None else sys.argv[1:])

    if not args:
        _print(format_usage())
        return 2

    head, *tail = args

    if head in ("-h", "--help"):
        _print(format_usage())
        return 0
    if head in ("-V", "--version", "version"):
        return _handle_version()
    if head == "list":
        _print(format_command_table())
        return 0
    if head == "help":
        return _handle_help(tail)

    spec = COMMANDS.get(head)
    if spec is None:
        _print(f"Unknown command '{head}'.", stream=sys.stderr.write)
        _print(format_command_table(), stream=sys.stderr.write)
        return 2
    return _run_command(spec, tail)


def _run_command(spec: CommandSpec, argv: Sequence[str]) -> int:
    target = getattr(import_module(spec.module), "main")
    try:
        result = target(list(argv))
    except SystemExit as exc:
        return _normalize_system_exit(exc)
    return result if isinstance(result, int) else 0


def _normalize_system_exit(exc: SystemExit) -> int:
    code = exc.code
    if code is None:
        return 0
    if isinstance(code, int):
        return code
    _print(str(code), stream=sys.stderr.write)
    return 1


if __name__ == "__main__":  # pragma: no cover - manual invocation guard
    raise SystemExit(main())
