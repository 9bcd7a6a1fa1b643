"""
Worker entry point.

The host launches ``codegen-worker TEMPLATE [--templateArgs JSON]
[--outputMode MODE]`` in the directory of the template. The template is a
Python file defining ``main(generator)``, which may be a plain function or a
coroutine function.
"""

from __future__ import annotations

import argparse
import asyncio
import importlib.util
import logging
import os
import sys
from contextlib import nullcontext, redirect_stdout
from pathlib import Path
from types import ModuleType
from typing import Sequence

from rich.console import Console
from rich.panel import Panel

from .channel import CHANNEL_FD_ENV, PipeChannel
from .config import OUTPUT_MODE_FLAG, TEMPLATE_ARGS_FLAG
from .generator import Generator, maybe_await, use_generator
from .logging_config import configure_logging, get_logger

logger = get_logger(__name__)

console = Console(stderr=True)


class CLIError(Exception):
    """Exception raised for CLI-related errors."""

    pass


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="codegen-worker",
        description="Run a code generation template as a worker of a host process.",
    )
    parser.add_argument("template", help="Path of the template script")
    parser.add_argument(
        TEMPLATE_ARGS_FLAG,
        dest="template_args",
        nargs="?",
        metavar="JSON",
        help="JSON arguments made available to the template",
    )
    parser.add_argument(
        OUTPUT_MODE_FLAG,
        dest="output_mode",
        nargs="?",
        metavar="MODE",
        help="Default output mode: overwrite, once or append",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log debug messages",
    )
    return parser


def load_template(path: str | Path) -> ModuleType:
    """Import a template script from its file path.

    The template's directory is put on sys.path so it can import its own
    helper modules.
    """
    path = Path(path).resolve()
    if not path.is_file():
        raise CLIError(f"Template not found: {path}")

    spec = importlib.util.spec_from_file_location(f"codegen_template_{path.stem}", path)
    if spec is None or spec.loader is None:
        raise CLIError(f"Cannot load template: {path}")

    template_dir = str(path.parent)
    if template_dir not in sys.path:
        sys.path.insert(0, template_dir)

    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    logger.debug("Loaded template %s", path)
    return module


async def run_template(module: ModuleType, generator: Generator) -> None:
    """Call the template's main(generator) with the generator in context.

    Generator work that main started without awaiting, as a plain function
    must, is run to completion before returning.
    """
    main = getattr(module, "main", None)
    if not callable(main):
        raise CLIError(f"Template '{module.__name__}' does not define main(generator)")

    with use_generator(generator):
        try:
            await maybe_await(main(generator))
            await generator.run_pending()
        finally:
            generator.discard_pending()


def main(argv: Sequence[str] | None = None) -> int:
    """Run the worker.

    Returns:
        Exit code (0 for success, 1 for failure).
    """
    argv = list(sys.argv[1:] if argv is None else argv)
    args, _ = build_parser().parse_known_args(argv)

    channel = PipeChannel.from_environment()
    configure_logging(logging.DEBUG if args.verbose else logging.INFO, channel)

    # Without a dedicated descriptor stdout carries the protocol, so anything
    # the template prints goes to stderr instead.
    uses_stdio = not os.environ.get(CHANNEL_FD_ENV)
    try:
        generator = Generator(channel, argv=argv)
        module = load_template(args.template)
        with redirect_stdout(sys.stderr) if uses_stdio else nullcontext():
            asyncio.run(run_template(module, generator))
    except Exception as e:
        logger.error("Template %s failed: %s", args.template, e, exc_info=args.verbose)
        console.print(Panel(str(e), title="❌ Template failed", border_style="red"))
        return 1
    finally:
        if not uses_stdio:
            channel.close()

    return 0
