import sys
import os
import time
import logging
import argparse
import dataclasses
import io
from typing import List, Optional, Tuple
from rich.console import Console
from rich.logging import RichHandler
from rich.text import Text
from .errors import GomcaError
from .parsing.transform import RenderConfig, fix
from .pipeline import Pipeline, STREAM_ENCODING, STREAM_ERRORS
from .tools import ToolDriver
from .utils.config import ConfigManager
from .utils.watcher import FileWatcher

logger = logging.getLogger(__name__)

stderr_console = Console(stderr=True)


def _build_parser() -> argparse.ArgumentParser:
    """Build and return the CLI argument parser."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("-v", "--verbose", action="store_true", help="Log debug output to stderr")

    parser = argparse.ArgumentParser(
        prog="gomca",
        description="Feed `go tool objdump -gnu` output to llvm-mca",
    )
    sub = parser.add_subparsers(dest="command")

    fix_p = sub.add_parser("fix", parents=[common], help="Rewrite a saved objdump listing as llvm-mca input")
    fix_p.add_argument("input", help="File holding `go tool objdump -gnu` output")
    fix_p.add_argument("-o", "--out", help="Output file path (default: stdout)")
    fix_p.add_argument("--file", action=argparse.BooleanOptionalAction, default=None,
                       help="Include file name and line in output")
    fix_p.add_argument("--offset", action=argparse.BooleanOptionalAction, default=None,
                       help="Include offset in output")
    fix_p.add_argument("--instr", action=argparse.BooleanOptionalAction, default=None,
                       help="Include encoded instructions in output")
    fix_p.add_argument("--goasm", action=argparse.BooleanOptionalAction, default=None,
                       help="Include Go assembly in output")
    fix_p.add_argument("--watch", action="store_true", help="Re-run whenever the input file is saved")

    run_p = sub.add_parser("run", parents=[common], help="Pipe go tool objdump into llvm-mca",
                           usage="gomca run -s REGEXP BINARY [-- LLVM-MCA-ARGS...]")
    run_p.add_argument("-s", dest="symbol", required=True, help="Only dump symbols matching this regexp")
    run_p.add_argument("binary", help="Go binary to disassemble")

    help_p = sub.add_parser("help", help="Show help for a command")
    help_p.add_argument("topic", nargs="?", choices=["fix", "run"])

    parser.set_defaults(subparsers={"fix": fix_p, "run": run_p})
    return parser


def _split_passthrough(argv: List[str]) -> Tuple[List[str], List[str]]:
    """Arguments after the first `--` go to llvm-mca untouched."""
    if "--" in argv:
        i = argv.index("--")
        return argv[:i], argv[i + 1:]
    return argv, []


def _byte_transparent_stdout():
    # Lets bytes carried through from the listing reach stdout unchanged.
    if isinstance(sys.stdout, io.TextIOWrapper):
        sys.stdout.reconfigure(errors=STREAM_ERRORS)


def _configure_logging(verbose: bool):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=stderr_console, show_path=False)],
    )


def _report(err: BaseException):
    # Offending lines may carry undecodable bytes from the listing.
    message = str(err).encode(STREAM_ENCODING, STREAM_ERRORS).decode(STREAM_ENCODING, "replace")
    stderr_console.print(Text.assemble(("gomca: ", "bold red"), message), soft_wrap=True)


def _render_config(args, config: ConfigManager) -> RenderConfig:
    """Command line switches win over the saved preferences."""
    overrides = {
        "show_file": args.file,
        "show_offset": args.offset,
        "show_instruction_bytes": args.instr,
        "show_high_level_asm": args.goasm,
    }
    return dataclasses.replace(
        RenderConfig.from_config(config),
        **{k: v for k, v in overrides.items() if v is not None},
    )


def fix_file(input_path: str, out_path: Optional[str], config: RenderConfig):
    with open(input_path, "r", encoding=STREAM_ENCODING, errors=STREAM_ERRORS) as r:
        if out_path:
            with open(out_path, "w", encoding=STREAM_ENCODING, errors=STREAM_ERRORS) as w:
                fix(w, r, config)
        else:
            fix(sys.stdout, r, config)


def _watch(input_path: str, out_path: Optional[str], config: RenderConfig):
    def on_saved(path: str):
        logger.info("%s changed, re-running", path)
        try:
            fix_file(path, out_path, config)
        except (GomcaError, OSError, UnicodeError) as e:
            _report(e)

    on_saved(input_path)
    watcher = FileWatcher()
    watcher.start_watching(input_path, on_saved)
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        pass
    finally:
        watcher.stop_watching()


def _run_command(args, mca_args: List[str], config: ConfigManager):
    driver = ToolDriver(config)
    pipeline = Pipeline(
        driver.objdump_command(args.symbol, args.binary),
        driver.mca_command(mca_args),
        # llvm-mca gets bare mnemonics.
        RenderConfig(),
    )
    pipeline.run()


def run(argv: Optional[List[str]] = None):
    argv = sys.argv[1:] if argv is None else argv
    parser = _build_parser()
    ours, mca_args = _split_passthrough(argv)
    args = parser.parse_args(ours)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    if args.command == "help":
        if args.topic:
            args.subparsers[args.topic].print_help()
        else:
            parser.print_help()
        sys.exit(0)

    if mca_args and args.command != "run":
        parser.error("arguments after -- are only accepted by run")

    _configure_logging(args.verbose)
    _byte_transparent_stdout()

    try:
        config = ConfigManager()
        if args.command == "fix":
            input_path = os.path.abspath(args.input)
            render = _render_config(args, config)
            if args.watch:
                _watch(input_path, args.out, render)
            else:
                fix_file(input_path, args.out, render)
        else:
            _run_command(args, mca_args, config)
    except KeyboardInterrupt:
        sys.exit(130)
    except (GomcaError, OSError, UnicodeError) as e:
        _report(e)
        sys.exit(1)


if __name__ == "__main__":
    run()
