"""CLI entrypoint: render markdown files to the terminal, dump events, detect terminals."""

from __future__ import annotations

import argparse
import json
import sys
from functools import partial
from pathlib import Path
from typing import BinaryIO

from mdtty_core import AppConfig, build_doctor_payload, configure_logging, get_logger, load_config
from mdtty_renderer import PygmentsHighlighter, ResourceAccess, dump_events, parse_markdown, render
from mdtty_renderer.resources import fetch_remote
from mdtty_terminal import COLOUR_MODES, RenderError, TerminalSize, select_terminal


def _print_json(data: object) -> None:
    print(json.dumps(data, indent=2, sort_keys=True, default=str))


def _stdout() -> BinaryIO:
    sys.stdout.flush()
    return sys.stdout.buffer


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid column count: {value}") from None
    if number < 1:
        raise argparse.ArgumentTypeError("column count must be positive")
    return number


def read_input(filename: str) -> tuple[Path, str]:
    """Return the base directory for relative resources and the document text."""
    cwd = Path.cwd()
    if filename == "-":
        return cwd, sys.stdin.read()
    path = cwd / filename
    return path.resolve().parent, path.read_text(encoding="utf-8")


def apply_overrides(cfg: AppConfig, args: argparse.Namespace) -> AppConfig:
    if args.colour is not None:
        cfg.output.colour = args.colour
    if args.columns is not None:
        cfg.output.columns = args.columns
    if args.local:
        cfg.resources.local_only = True
    if args.no_highlight:
        cfg.highlight.enabled = False
    return cfg


def cmd_detect(_args: argparse.Namespace, cfg: AppConfig) -> int:
    terminal = select_terminal(cfg.output.colour, _stdout())
    size = TerminalSize.detect()
    if cfg.output.columns:
        size = TerminalSize(width=cfg.output.columns, height=size.height)
    _print_json(build_doctor_payload(cfg, terminal, size))
    return 0


def cmd_dump_events(args: argparse.Namespace, _cfg: AppConfig) -> int:
    _base_dir, text = read_input(args.filename)
    dump_events(parse_markdown(text), sys.stdout)
    return 0


def cmd_render(args: argparse.Namespace, cfg: AppConfig) -> int:
    base_dir, text = read_input(args.filename)
    terminal = select_terminal(cfg.output.colour, _stdout())
    columns = cfg.output.columns or TerminalSize.detect().width
    highlighter = PygmentsHighlighter(cfg.highlight.theme) if cfg.highlight.enabled else None
    access = ResourceAccess.LOCAL_ONLY if cfg.resources.local_only else ResourceAccess.REMOTE_ALLOWED

    get_logger().info(
        f"rendering {args.filename} on {terminal.name} terminal at {columns} columns",
        extra={"event": "render_start"},
    )
    render(
        parse_markdown(text),
        terminal,
        base_dir=base_dir,
        resource_access=access,
        columns=columns,
        highlighter=highlighter,
        fetch=partial(fetch_remote, timeout_s=cfg.resources.fetch_timeout_s),
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mdtty",
        description="Show CommonMark documents on text terminals",
        epilog="Headings, emphasis and block quotes are styled, code blocks are "
        "syntax highlighted, and terminals such as iTerm2 also get inline "
        "images, clickable links and jump marks for headings.",
    )
    parser.add_argument("filename", nargs="?", default="-", help="File to read, - for standard input")
    parser.add_argument("-c", "--colour", choices=COLOUR_MODES, default=None, help="Whether to enable colours")
    parser.add_argument("--columns", type=_positive_int, default=None, help="Maximum number of columns to use")
    parser.add_argument("-l", "--local", action="store_true", help="Do not load remote resources like images")
    parser.add_argument("--no-highlight", action="store_true", help="Disable syntax highlighting")
    parser.add_argument("--config", default=None, help="Optional settings file path")
    parser.add_argument("--dump-events", action="store_true", help=argparse.SUPPRESS)
    parser.add_argument("--detect-only", action="store_true", help=argparse.SUPPRESS)
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    cfg = apply_overrides(load_config(Path(args.config).expanduser() if args.config else None), args)
    configure_logging(keep_files=cfg.logging.keep_log_files, file_logging=cfg.logging.file_logging)

    if args.detect_only:
        command = cmd_detect
    elif args.dump_events:
        command = cmd_dump_events
    else:
        command = cmd_render

    try:
        return int(command(args, cfg))
    except (RenderError, OSError) as exc:
        get_logger().info(f"command failed: {exc}", exc_info=True, extra={"event": "command_failed"})
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
