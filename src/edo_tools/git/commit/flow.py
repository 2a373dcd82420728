"""The interactive commit-and-push workflow."""

from __future__ import annotations

import asyncio
import logging
import os
from typing import TYPE_CHECKING

import asyncer
import questionary

from edo_tools.git.status import FileStatus, filter_changed
from edo_tools.utils.cli_utils import loading_spinner, show_warning

if TYPE_CHECKING:
	from collections.abc import Mapping, Sequence

	from edo_tools.config.config_schema import RunConfig
	from edo_tools.git.commit.editor import CommitEditor
	from edo_tools.git.utils import GitRepoContext
	from edo_tools.utils.prompts import PromptProvider

TOKEN_ENV_VARS = ("EDO_GIT_TOKEN", "GITHUB_TOKEN")

SELECT_MESSAGE = "Select the files to stage:"
COMMIT_CONFIRM_MESSAGE = "Do you want to commit?"
PUSH_CONFIRM_MESSAGE = "Push to remote?"
PUSH_ONLY_MESSAGE = "No changed files found. Continue with already staged changes and push?"


def resolve_push_token(config: RunConfig, environ: Mapping[str, str] | None = None) -> str | None:
	"""Pick the push credential: explicit config first, then the token environment variables."""
	if config.commit.token:
		return config.commit.token
	environ = os.environ if environ is None else environ
	for name in TOKEN_ENV_VARS:
		value = config.env.get(name) or environ.get(name)
		if value:
			return str(value)
	return None


class CommitFlow:
	"""
	Drives one commit-and-push cycle.

	Steps run strictly in sequence: scan, filter, select, stage, confirm,
	commit, confirm push, push. Fatal problems surface as exceptions
	(`GitError`, `PromptCancelledError`, `CommitAbortedError`); intentional
	early exits return 0.

	"""

	def __init__(
		self,
		config: RunConfig,
		repo: GitRepoContext,
		prompts: PromptProvider,
		editor: CommitEditor,
		logger: logging.Logger | None = None,
	) -> None:
		"""
		Initialize the flow.

		Args:
			config: Resolved run configuration
			repo: Status provider, index mutator and push provider
			prompts: Interactive prompt provider
			editor: Composes the message and creates the commit
			logger: Logger to report progress to

		"""
		self.config = config
		self.repo = repo
		self.prompts = prompts
		self.editor = editor
		self.logger = logger or logging.getLogger(__name__)

	async def scan(self) -> list[FileStatus]:
		"""Compute the status of every path concurrently, keeping the listing order."""
		paths = await asyncer.asyncify(self.repo.list_paths)()
		codes = await asyncio.gather(*(asyncer.asyncify(self.repo.status)(path) for path in paths))
		return [FileStatus(status=code, path=path) for path, code in zip(paths, codes, strict=True)]

	async def select(self, changes: Sequence[FileStatus]) -> list[str]:
		"""Pick the paths to stage, prompting unless stage-all is set."""
		if self.config.commit.all:
			self.logger.debug("Staging all %d changed files", len(changes))
			return [entry.path for entry in changes]

		choices = [questionary.Choice(title=entry.title, value=entry.path, checked=True) for entry in changes]
		return list(await self.prompts.checkbox(SELECT_MESSAGE, choices))

	async def stage(self, paths: Sequence[str]) -> None:
		"""Add the selected paths to the index."""
		if not paths:
			self.logger.info("No files selected for staging")
			return
		await asyncer.asyncify(self.repo.stage)(list(paths))

	async def commit(self) -> bool:
		"""
		Confirm, then hand over to the commit editor.

		Returns:
			False if the user declined to commit

		"""
		if not await self.prompts.confirm(COMMIT_CONFIRM_MESSAGE, default=True):
			self.logger.info("Commit cancelled")
			return False
		commit_id = await self.editor.compose_and_commit(self.repo)
		if commit_id:
			self.logger.info("Committed %s", commit_id[:8])
		return True

	async def push(self) -> int:
		"""Confirm and push the current branch; returns the exit code of the flow."""
		if not await self.prompts.confirm(PUSH_CONFIRM_MESSAGE, default=True):
			self.logger.info("Push skipped")
			return 0

		branch = await asyncer.asyncify(self.repo.current_branch)()
		if branch is None:
			self.logger.debug("HEAD is detached; skipping push")
			return 0

		commit_config = self.config.commit
		with loading_spinner(f"Pushing {branch} to {commit_config.remote}..."):
			outcome = await asyncer.asyncify(self.repo.push)(
				commit_config.remote,
				branch,
				resolve_push_token(self.config),
				commit_config.username,
			)

		if outcome.ok:
			self.logger.info(outcome.message or "Push succeeded")
			return 0

		message = f"Push to '{commit_config.remote}' failed: {outcome.message or 'unknown error'}"
		if commit_config.fail_on_push_error:
			self.logger.error(message)
			return 1
		self.logger.warning(message)
		show_warning(message)
		return 0

	async def run(self) -> int:
		"""
		Run the whole workflow.

		Returns:
			Exit code: 0 on success or an intentional early exit, 1 on a
			failed push when `fail_on_push_error` is set

		"""
		with loading_spinner("Scanning working tree..."):
			statuses = await self.scan()
		changes = filter_changed(statuses)
		self.logger.debug("Found %d changed of %d paths", len(changes), len(statuses))

		if changes:
			selection = await self.select(changes)
			if not selection:
				self.logger.info("No files selected, nothing to commit")
				return 0
			await self.stage(selection)
		elif not await self.prompts.confirm(PUSH_ONLY_MESSAGE, default=True):
			self.logger.info("Nothing to do")
			return 0

		if await asyncer.asyncify(self.repo.has_staged_changes)():
			if not await self.commit():
				return 0
		elif changes:
			self.logger.info("Nothing staged, nothing to commit")
			return 0
		else:
			self.logger.info("Nothing staged; skipping commit")

		return await self.push()
