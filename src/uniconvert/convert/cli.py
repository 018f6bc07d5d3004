"""CLI entry point for converting text and files with the model."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from uniconvert.core import config_templates
from uniconvert.core import workspace as workspace_mod
from uniconvert.core.config_templates import ConfigTemplateError
from uniconvert.core.files import iter_input_files
from uniconvert.core.logging import configure_logger
from uniconvert.core.workspace import WorkspaceError

from .config import (
    CONFIG_FILENAME,
    ConfigOverrides,
    ConvertConfig,
    ConvertConfigError,
    load_config,
)
from .controller import BatchQueueController
from .converter import Converter, OpenAIConverter
from .errors import ConversionValidationError
from .export import build_export, write_export
from .payloads import FilePayload
from .state import ConversionState, InputMode, ItemStatus
from .targets import ConversionTarget, export_format

_STATUS_STYLES = {
    ItemStatus.PENDING: "dim",
    ItemStatus.IN_PROGRESS: "yellow",
    ItemStatus.SUCCEEDED: "green",
    ItemStatus.FAILED: "red",
}


def _target_arg(value: str) -> ConversionTarget:
    try:
        return ConversionTarget.from_value(value)
    except ConvertConfigError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="uniconvert convert",
        description=(
            "Convert pasted text or files (PDF, DOCX, images, CSV, JSON, "
            "Markdown, ...) into JSON, XML, CSV, Markdown, HTML, LaTeX, SQL, "
            "YAML, Word, plain text or Mermaid using an OpenAI model."
        ),
        epilog=(
            "Run `uniconvert convert config init` to scaffold the default "
            "uniconvert.toml template."
        ),
    )
    parser.add_argument(
        "paths",
        nargs="*",
        type=Path,
        help="Files or directories to convert as a batch.",
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--text",
        help="Convert this text instead of files.",
    )
    source.add_argument(
        "--stdin",
        action="store_true",
        help="Read the text to convert from standard input.",
    )
    parser.add_argument(
        "--to",
        dest="target",
        type=_target_arg,
        help=(
            "Target format: "
            + ", ".join(member.value for member in ConversionTarget)
            + " (defaults to the configured target)."
        ),
    )
    parser.add_argument(
        "--instructions",
        help="Extra rules appended to every conversion request.",
    )
    parser.add_argument(
        "--filename",
        help="Output filename (without extension) for text conversions.",
    )
    parser.add_argument(
        "--stdout",
        action="store_true",
        help="Print the text conversion result instead of writing a file.",
    )
    parser.add_argument(
        "--retry-failed",
        action="store_true",
        help="Run a second pass over files that failed in the first pass.",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        help="Directory for converted files.",
    )
    parser.add_argument(
        "--model",
        help="OpenAI model to use (defaults to gpt-4o-mini).",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to a TOML config file (defaults to the workspace config).",
    )
    parser.add_argument(
        "--workspace",
        type=Path,
        help="Override the workspace root used for config, logs and output.",
    )
    parser.add_argument(
        "--log-level",
        help="Set the logging level for the run (defaults to INFO).",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Mirror log records to stderr.",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args_list = list(argv) if argv is not None else list(sys.argv[1:])

    if args_list[:1] == ["config"]:
        return _handle_config(args_list[1:])

    parser = _build_parser()
    args = parser.parse_args(args_list)

    text_mode = args.text is not None or args.stdin
    if text_mode and args.paths:
        parser.error("Pass either files or --text/--stdin, not both.")
    if not text_mode and not args.paths:
        parser.error("Nothing to convert: pass files, --text or --stdin.")
    if args.stdout and not text_mode:
        parser.error("--stdout is only available for text conversions.")

    overrides = ConfigOverrides(
        model=args.model,
        target=args.target,
        instructions=args.instructions,
        output_dir=args.output_dir,
        log_level=args.log_level,
    )
    try:
        load_result = load_config(
            config_path=args.config,
            overrides=overrides,
            workspace_path=args.workspace,
        )
    except (ConvertConfigError, WorkspaceError) as exc:
        parser.error(str(exc))
    config = load_result.config

    err_console = Console(stderr=True, highlight=False)
    state = ConversionState.create(
        target=config.target,
        instructions=config.instructions,
        mode=InputMode.TEXT if text_mode else InputMode.BATCH,
    )
    if text_mode:
        text = args.text if args.text is not None else sys.stdin.read()
        state = state.set_input_text(text).set_custom_filename(
            args.filename or ""
        )
        rejected = 0
    else:
        try:
            payloads = [
                FilePayload.from_path(path)
                for path in iter_input_files(args.paths)
            ]
        except OSError as exc:
            sys.stderr.write(f"{exc}\n")
            return 1
        enqueued = state.enqueue(payloads)
        for reason in enqueued.rejections:
            err_console.print(f"[red]Skipped:[/red] {escape(reason)}")
        state = enqueued.state
        rejected = len(enqueued.rejections)

    try:
        converter = _build_converter(config)
    except RuntimeError as exc:
        sys.stderr.write(f"{exc}\n")
        return 1

    logger, log_path = configure_logger(
        "uniconvert.convert",
        log_dir=load_result.layout.path_for("logs"),
        level=config.log_level,
        verbose=args.verbose,
    )
    logger.debug("convert CLI invoked", extra={"model": config.model})

    controller = BatchQueueController(
        state,
        converter,
        logger=logger,
        on_change=_ProgressPrinter(err_console),
    )
    try:
        final = controller.run_batch()
        if args.retry_failed and _failed_count(final):
            err_console.print("Retrying failed files...")
            final = controller.run_batch(retry_failed=True)
    except ConversionValidationError as exc:
        sys.stderr.write(f"{exc}\n")
        return 1

    if args.stdout:
        if final.text_status is ItemStatus.SUCCEEDED:
            sys.stdout.write(final.current_result())
            if not final.current_result().endswith("\n"):
                sys.stdout.write("\n")
            return 0
        sys.stderr.write(f"{final.text_error}\n")
        return 1

    outputs = _write_outputs(final, config.output_dir)
    _print_summary(final, outputs, log_path, config.output_dir)

    if rejected or _failed_count(final):
        return 1
    return 0


def _build_converter(config: ConvertConfig) -> Converter:
    """Return the default model-backed converter."""
    return OpenAIConverter(
        model=config.model,
        temperature=config.temperature,
        max_tokens=config.max_tokens,
        api_base=config.api_base,
    )


class _ProgressPrinter:
    """Announce each conversion as the controller starts it."""

    def __init__(self, console: Console) -> None:
        self._console = console
        self._current: Optional[str] = None

    def __call__(self, state: ConversionState) -> None:
        if state.mode is InputMode.TEXT:
            key, label = "text", "text input"
            busy = state.text_status is ItemStatus.IN_PROGRESS
        else:
            item = state.active_item()
            if item is None:
                return
            key, label = item.identity, item.name
            busy = item.status is ItemStatus.IN_PROGRESS
        if busy and key != self._current:
            self._current = key
            self._console.print(
                f"Converting {escape(label)} to {state.target.label}..."
            )
        elif not busy and key == self._current:
            self._current = None


def _failed_count(state: ConversionState) -> int:
    if state.mode is InputMode.TEXT:
        return int(state.text_status is ItemStatus.FAILED)
    return sum(1 for item in state.queue if item.status is ItemStatus.FAILED)


def _write_outputs(
    state: ConversionState, output_dir: Path
) -> dict[str, Path]:
    """Write every available result; map identity ("text" in text mode)."""

    written: dict[str, Path] = {}
    taken: set[Path] = set()
    if state.mode is InputMode.TEXT:
        artifact = build_export(state)
        if artifact is not None:
            written["text"] = write_export(artifact, output_dir, taken=taken)
        return written

    for item in state.queue:
        if item.status is not ItemStatus.SUCCEEDED:
            continue
        artifact = build_export(state, item.identity)
        if artifact is not None:
            written[item.identity] = write_export(
                artifact, output_dir, taken=taken
            )
    return written


def _print_summary(
    state: ConversionState,
    outputs: dict[str, Path],
    log_path: Path,
    output_dir: Path,
) -> None:
    console = Console(highlight=False)
    fmt = export_format(state.target)

    table = Table(
        title=f"Conversion to {state.target.label} (.{fmt.extension})",
        box=box.SIMPLE,
        expand=False,
    )
    table.add_column("#", justify="right")
    table.add_column("Source", overflow="fold")
    table.add_column("Status")
    table.add_column("Output / reason", overflow="fold")

    if state.mode is InputMode.TEXT:
        rows = [
            (
                "text input",
                state.text_status,
                outputs.get("text"),
                state.text_error,
            )
        ]
    else:
        rows = [
            (
                item.name,
                item.status,
                outputs.get(item.identity),
                item.failure_reason,
            )
            for item in state.queue
        ]

    for index, (source, status, output, reason) in enumerate(rows, start=1):
        detail = output.name if output is not None else (reason or "")
        style = _STATUS_STYLES[status]
        table.add_row(
            str(index),
            escape(source),
            f"[{style}]{status.value}[/{style}]",
            escape(detail),
        )

    console.print(table)
    console.print(f"output dir: {escape(str(output_dir))}", soft_wrap=True)
    console.print(f"log file:   {escape(str(log_path))}", soft_wrap=True)


def _handle_config(argv: Sequence[str]) -> int:
    parser = _build_config_parser()
    args = parser.parse_args(argv)
    return _handle_config_init(args)


def _build_config_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="uniconvert convert config",
        description="Manage configuration files for conversion runs.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    init_parser = subparsers.add_parser(
        "init",
        help="Write the default uniconvert.toml template.",
    )
    init_parser.add_argument(
        "--path",
        type=Path,
        help=(
            "Destination for the config TOML (defaults to the workspace "
            "config directory)."
        ),
    )
    init_parser.add_argument(
        "--workspace",
        type=Path,
        help="Workspace root used when resolving the default config path.",
    )
    init_parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite the destination if a config already exists.",
    )
    return parser


def _handle_config_init(args: argparse.Namespace) -> int:
    try:
        target = _resolve_config_target(args)
    except WorkspaceError as exc:
        sys.stderr.write(str(exc) + "\n")
        return 1

    template = config_templates.get_template("convert")
    try:
        written = template.write(target, overwrite=args.force)
    except ConfigTemplateError as exc:
        sys.stderr.write(str(exc) + "\n")
        return 1

    sys.stdout.write(f"Wrote uniconvert config to {written}\n")
    return 0


def _resolve_config_target(args: argparse.Namespace) -> Path:
    if args.path is not None:
        candidate = args.path.expanduser()
        if not candidate.is_absolute():
            candidate = (Path.cwd() / candidate).resolve()
        return candidate

    layout = workspace_mod.ensure_workspace(path=args.workspace)
    return layout.path_for("config") / CONFIG_FILENAME


if __name__ == "__main__":  # pragma: no cover - module CLI guard
    raise SystemExit(main())
