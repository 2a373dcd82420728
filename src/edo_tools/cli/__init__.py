"""Command-line interface package for edo-tools."""

from __future__ import annotations

import datetime
import logging
import sys
from pathlib import Path
from typing import Annotated

import typer

from edo_tools import __version__
from edo_tools.utils.log_setup import setup_logging

from .build_cmd import register_command as register_build_command
from .commit_cmd import register_command as register_commit_command
from .init_cmd import register_command as register_init_command
from .pkg_cmd import register_command as register_pkg_command

logger = logging.getLogger(__name__)

# Determine the invoked command name for help message customization
invoked_command = Path(sys.argv[0]).name
if invoked_command == "edo":
	alias_note = "\n\nNote: 'edo' is an alias for 'edo-tools'."
elif invoked_command == "edo-tools":
	alias_note = "\n\nNote: You can also use 'edo' as a shorter alias."
else:
	alias_note = ""

app = typer.Typer(
	help=f"edo-tools - commit, scaffold, normalize and build JavaScript projects\n\nVersion: {__version__}{alias_note}",
	no_args_is_help=True,
	context_settings={"help_option_names": ["-h", "--help"]},
)

# --- Global Options Callback ---


def _version_callback(value: bool) -> None:
	"""Callback for --version option."""
	if value:
		typer.echo(f"edo-tools version: {__version__}")
		raise typer.Exit


@app.callback(invoke_without_command=True)
def global_options(
	ctx: typer.Context,
	is_verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable verbose logging.")] = False,
	is_debug: Annotated[bool, typer.Option("--debug", "-d", help="Alias for --verbose.")] = False,
	is_output_log: Annotated[
		bool,
		typer.Option(
			"--save-log",
			help="Enable logging to a file. Logs to logs/edo_{datetime}.log.",
		),
	] = False,
	_version: Annotated[
		bool | None,
		typer.Option("--version", help="Show version and exit.", callback=_version_callback, is_eager=True),
	] = None,
) -> None:
	"""Global CLI options and logging setup."""
	is_verbose = is_verbose or is_debug
	ctx.meta["is_verbose"] = is_verbose
	ctx.meta["is_output_log"] = is_output_log

	log_file_path_to_use: Path | None = None
	if is_output_log:
		log_dir = Path("logs")
		log_dir.mkdir(parents=True, exist_ok=True)
		current_time = datetime.datetime.now(tz=datetime.UTC).strftime("%Y-%m-%d_%H-%M-%S")
		log_file_path_to_use = log_dir / f"edo_{current_time}.log"

	setup_logging(is_verbose=is_verbose, log_file_path=log_file_path_to_use)


# --- Register commands ---

register_commit_command(app)
register_init_command(app)
register_pkg_command(app)
register_build_command(app)


# --- Main Entry Point ---
def main() -> int:
	"""Run the CLI application."""
	return app()


if __name__ == "__main__":
	sys.exit(main())
