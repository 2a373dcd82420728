"""Command for the interactive stage, commit and push workflow."""

import logging
from enum import Enum
from pathlib import Path
from typing import Annotated

import asyncer
import typer

logger = logging.getLogger(__name__)


class EditorKind(str, Enum):
	"""Available commit editors."""

	INLINE = "inline"
	PROCESS = "process"


# --- Command Argument Annotations ---

AllFlag = Annotated[bool, typer.Option("--all", "-a", help="Stage every changed file without asking")]

ConfigOpt = Annotated[
	Path | None,
	typer.Option("--config", "-c", help="Path to an edo config file", dir_okay=False),
]

RemoteOpt = Annotated[str | None, typer.Option("--remote", help="Remote to push to (default: origin)")]

FailOnPushErrorFlag = Annotated[
	bool | None,
	typer.Option(
		"--fail-on-push-error/--no-push-fail",
		help="Exit with code 1 when the push fails instead of only warning",
		show_default=False,
	),
]

EditorOpt = Annotated[
	EditorKind | None,
	typer.Option("--editor", help="Commit editor: 'inline' prompts in-process, 'process' runs commit.command"),
]

# --- Registration Function ---


def register_command(app: typer.Typer) -> None:
	"""Register the commit command with the CLI app."""

	@app.command(name="commit")
	@asyncer.runnify
	async def commit_command(
		stage_all: AllFlag = False,
		config_file: ConfigOpt = None,
		remote: RemoteOpt = None,
		fail_on_push_error: FailOnPushErrorFlag = None,
		editor: EditorOpt = None,
	) -> None:
		"""
		Stage changed files, create a conventional commit and push it.

		Changed files are listed with their status; pick the ones to stage,
		confirm, write the commit message and optionally push the current
		branch.

		"""
		await _commit_command_impl(
			stage_all=stage_all,
			config_file=config_file,
			remote=remote,
			fail_on_push_error=fail_on_push_error,
			editor=editor,
		)


# --- Implementation Function ---


async def _commit_command_impl(
	stage_all: bool,
	config_file: Path | None,
	remote: str | None,
	fail_on_push_error: bool | None,
	editor: EditorKind | None,
) -> None:
	"""Actual implementation of the commit command."""
	from edo_tools.config import resolve_config
	from edo_tools.errors import EdoToolsError, PromptCancelledError
	from edo_tools.git.commit import CommitFlow, build_commit_editor
	from edo_tools.git.utils import GitRepoContext
	from edo_tools.utils.cli_utils import exit_with_error, handle_keyboard_interrupt, handle_prompt_cancelled
	from edo_tools.utils.prompts import PromptProvider

	commit_inline = {
		"all": stage_all or None,
		"remote": remote,
		"fail_on_push_error": fail_on_push_error,
		"editor": editor.value if editor else None,
	}

	try:
		repo = GitRepoContext(Path.cwd())
		config = resolve_config(
			{
				"root": repo.repo_root,
				"config_file": config_file.resolve() if config_file else None,
				"commit": commit_inline,
			},
			command="commit",
		)
		prompts = PromptProvider()
		flow = CommitFlow(
			config=config,
			repo=repo,
			prompts=prompts,
			editor=build_commit_editor(config.commit, prompts),
			logger=logger,
		)
		exit_code = await flow.run()
	except PromptCancelledError:
		handle_prompt_cancelled()
	except KeyboardInterrupt:
		handle_keyboard_interrupt()
	except EdoToolsError as e:
		logger.debug("Commit command failed", exc_info=True)
		exit_with_error(str(e))

	if exit_code:
		raise typer.Exit(exit_code)
