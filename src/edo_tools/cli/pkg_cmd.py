"""Command for completing and sorting package.json files."""

import logging
from enum import Enum
from pathlib import Path
from typing import Annotated

import asyncer
import typer

logger = logging.getLogger(__name__)


class PackageManagerKind(str, Enum):
	"""Package managers whose workspace layout is understood."""

	NPM = "npm"
	YARN = "yarn"
	PNPM = "pnpm"
	LERNA = "lerna"


# --- Command Argument Annotations ---

PackageManagerOpt = Annotated[
	PackageManagerKind | None,
	typer.Option("--package-manager", help="Skip detection and use this package manager"),
]

ConfigOpt = Annotated[
	Path | None,
	typer.Option("--config", "-c", help="Path to an edo config file", dir_okay=False),
]

# --- Registration Function ---


def register_command(app: typer.Typer) -> None:
	"""Register the pkg command with the CLI app."""

	@app.command(name="pkg")
	@asyncer.runnify
	async def pkg_command(
		package_manager: PackageManagerOpt = None,
		config_file: ConfigOpt = None,
	) -> None:
		"""
		Complete package.json metadata across the workspace.

		Fills in repository, homepage, bugs, author, license and private for
		the root package and every workspace package, then writes each
		manifest back with its keys in canonical order.

		"""
		await _pkg_command_impl(package_manager=package_manager, config_file=config_file)


# --- Implementation Function ---


async def _pkg_command_impl(package_manager: PackageManagerKind | None, config_file: Path | None) -> None:
	"""Actual implementation of the pkg command."""
	from edo_tools.config import resolve_config
	from edo_tools.errors import EdoToolsError, PromptCancelledError
	from edo_tools.pkg import PkgCommand
	from edo_tools.utils.cli_utils import exit_with_error, handle_keyboard_interrupt, handle_prompt_cancelled
	from edo_tools.utils.prompts import PromptProvider

	try:
		config = resolve_config(
			{
				"root": Path.cwd(),
				"config_file": config_file.resolve() if config_file else None,
				"pkg": {"package_manager": package_manager.value if package_manager else None},
			},
			command="pkg",
		)
		exit_code = await PkgCommand(config, PromptProvider(), logger=logger).run()
	except PromptCancelledError:
		handle_prompt_cancelled()
	except KeyboardInterrupt:
		handle_keyboard_interrupt()
	except EdoToolsError as e:
		logger.debug("Pkg command failed", exc_info=True)
		exit_with_error(str(e))

	if exit_code:
		raise typer.Exit(exit_code)
