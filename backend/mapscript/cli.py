"""Command-line interface: compile or check MapScript documents."""

import argparse
import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from mapscript.compiler import CompileResult, MapScriptInputError, compile_mapscript
from mapscript.config import LOG_LEVEL, MAPSCRIPT_FONT_NAME

logger = logging.getLogger(__name__)


@dataclass
class CliError(Exception):
    code: str
    message: str
    hint: Optional[str] = None
    exit_code: int = 1
    file: Optional[str] = None


class UsageError(Exception):
    pass


class FriendlyArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # pragma: no cover - argparse callback
        raise UsageError(message)


def _build_parser() -> argparse.ArgumentParser:
    parser = FriendlyArgumentParser(
        prog="mapscript",
        description="Compile MapScript diagrams to Graphviz DOT.",
    )
    parser.add_argument("--error-format", choices=["text", "json"], default="text")
    parser.add_argument("--verbose", action="store_true", help="Log compiler progress")

    subparsers = parser.add_subparsers(dest="command")

    compile_parser = subparsers.add_parser("compile", help="Compile MapScript to DOT")
    compile_parser.add_argument("input", nargs="?", help="Input MapScript file")
    compile_parser.add_argument("--text", help="Raw MapScript source")
    compile_parser.add_argument("--stdout", action="store_true", help="Write DOT to stdout")
    compile_parser.add_argument("-o", "--output", help="Output .dot path")
    compile_parser.add_argument("--font", default=MAPSCRIPT_FONT_NAME, help="Font family for all text")
    compile_parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit non-zero when the document has errors (DOT is still written)",
    )

    check_parser = subparsers.add_parser("check", help="Report errors without writing DOT")
    check_parser.add_argument("input", nargs="?", help="Input MapScript file")
    check_parser.add_argument("--text", help="Raw MapScript source")

    return parser


def _read_input(path: Optional[str], text: Optional[str]) -> Tuple[str, str, Optional[Path]]:
    if path and text is not None:
        raise CliError(
            "E_ARGS",
            "--text cannot be combined with file input",
            hint="Use either FILE or --text.",
            exit_code=2,
        )

    if text is not None:
        return text, "<text>", None

    if path:
        input_path = Path(path)
        if not input_path.exists():
            raise CliError("E_IO_READ", f"input file not found: {input_path}",
                           exit_code=2, file=str(input_path))
        try:
            return input_path.read_text(encoding="utf-8"), str(input_path), input_path
        except (OSError, UnicodeDecodeError) as exc:
            raise CliError(
                "E_IO_READ",
                f"failed to read input file: {input_path}",
                hint=str(exc),
                exit_code=2,
                file=str(input_path),
            )

    if sys.stdin.isatty():
        raise CliError(
            "E_ARGS",
            "no input provided",
            hint="Use a subcommand with FILE, --text, or pipe stdin.",
            exit_code=2,
        )
    return sys.stdin.read(), "<stdin>", None


def _write_text(path: Path, content: str) -> None:
    try:
        path.write_text(content, encoding="utf-8")
    except OSError as exc:
        raise CliError(
            "E_IO_WRITE",
            f"failed to write output file: {path}",
            hint=str(exc),
            exit_code=4,
            file=str(path),
        )


def _emit_issues(result: CompileResult, source_name: str, error_format: str) -> None:
    if not result.errors:
        return
    if error_format == "json":
        payload = {
            "ok": result.is_valid,
            "file": source_name,
            "issues": [issue.to_dict() for issue in result.errors],
        }
        sys.stderr.write(json.dumps(payload) + "\n")
        return
    for issue in result.errors:
        sys.stderr.write(f"{source_name}: {issue}\n")


def _emit_error(err: CliError, *, error_format: str) -> None:
    if error_format == "json":
        payload = {
            "ok": False,
            "code": err.code,
            "message": err.message,
            "file": err.file,
            "hint": err.hint,
        }
        sys.stderr.write(json.dumps(payload) + "\n")
        return

    sys.stderr.write(f"error[{err.code}]: {err.message}\n")
    if err.hint:
        sys.stderr.write(f"hint: {err.hint}\n")


def _handle_compile(args: argparse.Namespace) -> int:
    if args.stdout and args.output:
        raise CliError(
            "E_ARGS",
            "--stdout and --output are mutually exclusive",
            hint="Choose either --stdout or --output.",
            exit_code=2,
        )

    source, source_name, source_path = _read_input(args.input, args.text)
    result = compile_mapscript(source, font_name=args.font)
    _emit_issues(result, source_name, args.error_format)

    if args.stdout or (source_path is None and not args.output):
        sys.stdout.write(result.dot)
    else:
        output_path = Path(args.output) if args.output else source_path.with_suffix(".dot")
        _write_text(output_path, result.dot)
        print(f"Wrote {output_path}")

    logger.debug(f"[CLI] {source_name}: {result.get_summary()}")
    if args.strict and not result.is_valid:
        return 3
    return 0


def _handle_check(args: argparse.Namespace) -> int:
    source, source_name, _ = _read_input(args.input, args.text)
    result = compile_mapscript(source)
    _emit_issues(result, source_name, args.error_format)
    if result.is_valid:
        print(f"{source_name}: {result.get_summary()}")
        return 0
    return 3


def main(argv: Optional[Iterable[str]] = None) -> int:
    raw_argv: List[str] = list(argv) if argv is not None else sys.argv[1:]
    parser = _build_parser()

    error_format = "text"
    if "--error-format" in raw_argv:
        idx = raw_argv.index("--error-format")
        if idx + 1 < len(raw_argv):
            error_format = raw_argv[idx + 1]

    try:
        args = parser.parse_args(raw_argv)
        error_format = args.error_format
        logging.basicConfig(level="DEBUG" if args.verbose else LOG_LEVEL)

        if args.command == "compile":
            return _handle_compile(args)
        if args.command == "check":
            return _handle_check(args)

        raise CliError(
            "E_ARGS",
            "missing subcommand",
            hint="Use one of: compile, check.",
            exit_code=2,
        )
    except UsageError as exc:
        err = CliError("E_ARGS", str(exc), hint="Use subcommands: compile, check.", exit_code=2)
        _emit_error(err, error_format=error_format)
        return err.exit_code
    except MapScriptInputError as exc:
        err = CliError("E_INPUT", str(exc), exit_code=2)
        _emit_error(err, error_format=error_format)
        return err.exit_code
    except CliError as err:
        _emit_error(err, error_format=error_format)
        return err.exit_code


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
