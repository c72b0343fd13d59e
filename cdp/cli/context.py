from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import typer

from cdp.core.config import DEFAULT_CONFIG_FILE, Config, load_config, load_config_or_default
from cdp.core.errors import ErrorCode
from cdp.core.result import Err
from cdp.output.console import ConsoleProtocol, RichConsole


@dataclass(frozen=True, slots=True)
class CLIContext:
    workdir: Path
    config: Config
    console: ConsoleProtocol


def build_context(config_path: Path | None = None) -> CLIContext:
    """Load configuration for the repository in the current directory.

    An explicit --config must exist; the default cdp.toml is optional.
    """
    workdir = Path.cwd().resolve()
    if config_path is not None:
        result = load_config(config_path.expanduser().resolve(), os.environ)
    else:
        result = load_config_or_default(workdir / DEFAULT_CONFIG_FILE, os.environ)

    if isinstance(result, Err):
        typer.echo(f"error: {result.error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.CONFIG_ERROR))

    return CLIContext(workdir=workdir, config=result.value, console=RichConsole())
