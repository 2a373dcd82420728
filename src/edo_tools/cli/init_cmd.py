"""Command for scaffolding a new project from a boilerplate."""

import logging
from pathlib import Path
from typing import Annotated

import asyncer
import typer

logger = logging.getLogger(__name__)

# --- Command Argument Annotations ---

DirArg = Annotated[str | None, typer.Argument(help="Target directory (default: current directory)")]

ForceFlag = Annotated[bool, typer.Option("--force", help="Scaffold into a non-empty directory")]

TypeOpt = Annotated[str | None, typer.Option("--type", help="Boilerplate key to use without asking")]

TemplateOpt = Annotated[
	str | None,
	typer.Option("--template", help="Local template directory containing a boilerplate/ folder"),
]

PackageOpt = Annotated[str | None, typer.Option("--package", help="Boilerplate package to download directly")]

SilentFlag = Annotated[bool, typer.Option("--silent", help="Use template defaults without prompting")]

RegistryOpt = Annotated[
	str | None,
	typer.Option("--registry", help="Registry: 'npm', 'taobao' or a URL"),
]

ConfigOpt = Annotated[
	Path | None,
	typer.Option("--config", "-c", help="Path to an edo config file", dir_okay=False),
]

# --- Registration Function ---


def register_command(app: typer.Typer) -> None:
	"""Register the init command with the CLI app."""

	@app.command(name="init")
	@asyncer.runnify
	async def init_command(
		target_dir: DirArg = None,
		force: ForceFlag = False,
		boilerplate_type: TypeOpt = None,
		template: TemplateOpt = None,
		package: PackageOpt = None,
		silent: SilentFlag = False,
		registry: RegistryOpt = None,
		config_file: ConfigOpt = None,
	) -> None:
		"""Scaffold a project from a boilerplate template."""
		await _init_command_impl(
			init_inline={
				"dir": target_dir,
				"force": force or None,
				"type": boilerplate_type,
				"template": template,
				"package": package,
				"silent": silent or None,
				"registry": registry,
			},
			config_file=config_file,
		)


# --- Implementation Function ---


async def _init_command_impl(init_inline: dict, config_file: Path | None) -> None:
	"""Actual implementation of the init command."""
	from edo_tools.config import resolve_config
	from edo_tools.errors import EdoToolsError, PromptCancelledError
	from edo_tools.scaffold import InitCommand
	from edo_tools.utils.cli_utils import exit_with_error, handle_keyboard_interrupt, handle_prompt_cancelled
	from edo_tools.utils.prompts import PromptProvider

	try:
		config = resolve_config(
			{
				"root": Path.cwd(),
				"config_file": config_file.resolve() if config_file else None,
				"init": init_inline,
			},
			command="init",
			default_mode="production",
		)
		exit_code = await InitCommand(config, PromptProvider(), logger=logger).run()
	except PromptCancelledError:
		handle_prompt_cancelled()
	except KeyboardInterrupt:
		handle_keyboard_interrupt()
	except EdoToolsError as e:
		logger.debug("Init command failed", exc_info=True)
		exit_with_error(str(e))

	if exit_code:
		raise typer.Exit(exit_code)
