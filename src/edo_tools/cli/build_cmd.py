"""Command for bundling library entries."""

import logging
from pathlib import Path
from typing import Annotated

import asyncer
import typer

logger = logging.getLogger(__name__)

# --- Command Argument Annotations ---

WatchFlag = Annotated[bool, typer.Option("--watch", help="Rebuild on file changes until interrupted")]

OutDirOpt = Annotated[str | None, typer.Option("--out-dir", help="Output directory relative to the root")]

SourcemapFlag = Annotated[bool, typer.Option("--sourcemap", help="Emit source maps")]

MinifyFlag = Annotated[bool, typer.Option("--minify", help="Minify the bundles")]

ConfigOpt = Annotated[
	Path | None,
	typer.Option("--config", "-c", help="Path to an edo config file", dir_okay=False),
]

# --- Registration Function ---


def register_command(app: typer.Typer) -> None:
	"""Register the build command with the CLI app."""

	@app.command(name="build")
	@asyncer.runnify
	async def build_command(
		watch: WatchFlag = False,
		out_dir: OutDirOpt = None,
		sourcemap: SourcemapFlag = False,
		minify: MinifyFlag = False,
		config_file: ConfigOpt = None,
	) -> None:
		"""Bundle the configured library entries with the bundler."""
		await _build_command_impl(
			build_inline={
				"watch": watch or None,
				"out_dir": out_dir,
				"sourcemap": sourcemap or None,
				"minify": minify or None,
			},
			config_file=config_file,
		)


# --- Implementation Function ---


async def _build_command_impl(build_inline: dict, config_file: Path | None) -> None:
	"""Actual implementation of the build command."""
	from edo_tools.build import BuildCommand
	from edo_tools.config import resolve_config
	from edo_tools.errors import EdoToolsError
	from edo_tools.utils.cli_utils import exit_with_error, handle_keyboard_interrupt

	try:
		config = resolve_config(
			{
				"root": Path.cwd(),
				"config_file": config_file.resolve() if config_file else None,
				"build": build_inline,
			},
			command="build",
			default_mode="production",
		)
		exit_code = await BuildCommand(config, logger=logger).run()
	except KeyboardInterrupt:
		handle_keyboard_interrupt()
	except EdoToolsError as e:
		logger.debug("Build command failed", exc_info=True)
		exit_with_error(str(e))

	if exit_code:
		raise typer.Exit(exit_code)
