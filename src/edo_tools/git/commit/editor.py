"""Commit editors: compose the commit message and create the commit."""

from __future__ import annotations

import logging
import signal
import subprocess
from typing import TYPE_CHECKING, Protocol

import asyncer
import questionary

from edo_tools.errors import CommitAbortedError
from edo_tools.git.commit.convention import format_commit_message, lint_commit_message

if TYPE_CHECKING:
	from collections.abc import Callable, Sequence

	from edo_tools.config.config_schema import CommitConfig, ConventionSchema
	from edo_tools.git.utils import GitRepoContext
	from edo_tools.utils.prompts import PromptProvider

logger = logging.getLogger(__name__)

NO_SCOPE = ""


class CommitEditor(Protocol):
	"""Anything that can turn the staged index into a commit."""

	async def compose_and_commit(self, repo: GitRepoContext) -> str | None:
		"""Create the commit, returning its id when known."""
		...


class InlineCommitEditor:
	"""Asks the conventional commit questions in-process and commits through pygit2."""

	def __init__(self, convention: ConventionSchema, prompts: PromptProvider) -> None:
		"""
		Initialize the inline editor.

		Args:
			convention: Allowed types, scopes and length limits
			prompts: Prompt provider used for every question

		"""
		self.convention = convention
		self.prompts = prompts

	def _validate_subject(self, commit_type: str, scope: str) -> Callable[[str], bool | str]:
		prefix_len = len(commit_type) + (len(scope) + 2 if scope else 0) + 2

		def validate(value: str) -> bool | str:
			subject = value.strip()
			if not subject:
				return "Subject is required"
			if subject.endswith("."):
				return "Subject may not end with a full stop"
			if prefix_len + len(subject) > self.convention.max_length:
				return f"Header must not be longer than {self.convention.max_length} characters"
			return True

		return validate

	async def compose(self) -> str:
		"""
		Ask for each part of the message and return the formatted result.

		Raises:
			PromptCancelledError: If any question is cancelled

		"""
		type_choices = [
			questionary.Choice(title=f"{name}: {description}", value=name)
			for name, description in self.convention.types.items()
		]
		commit_type = await self.prompts.select("Select the type of change you are committing:", type_choices)

		if self.convention.scopes:
			scope_choices = [questionary.Choice(title="(none)", value=NO_SCOPE)]
			scope_choices.extend(questionary.Choice(title=scope, value=scope) for scope in self.convention.scopes)
			scope = await self.prompts.select("Select the scope of this change:", scope_choices)
		else:
			scope = (await self.prompts.text("Scope of this change (press enter to skip):")).strip()

		subject = await self.prompts.text(
			"Write a short, imperative description of the change:",
			validate=self._validate_subject(commit_type, scope),
		)
		body = await self.prompts.text("Provide a longer description (press enter to skip):")

		breaking = None
		if await self.prompts.confirm("Are there any breaking changes?", default=False):
			breaking = await self.prompts.text(
				"Describe the breaking change:",
				validate=lambda value: bool(value.strip()) or "A description is required",
			)

		issues = await self.prompts.text("Issues closed by this change, e.g. 12, 34 (press enter to skip):")

		return format_commit_message(
			commit_type,
			subject,
			scope=scope or None,
			body=body,
			breaking=breaking,
			issues=issues,
			width=self.convention.body_width,
		)

	async def compose_and_commit(self, repo: GitRepoContext) -> str:
		"""
		Compose a message and create the commit from the current index.

		Raises:
			CommitAbortedError: If the composed message fails linting
			GitError: If the commit cannot be created

		"""
		message = await self.compose()
		is_valid, problems = lint_commit_message(message, self.convention)
		if not is_valid:
			msg = "Commit message is invalid:\n" + "\n".join(f"- {problem}" for problem in problems)
			raise CommitAbortedError(msg)

		logger.debug("Commit message header: %s", message.splitlines()[0])
		return await asyncer.asyncify(repo.commit)(message)


class ProcessCommitEditor:
	"""
	Hands the commit over to an external tool such as commitizen.

	Exactly one child process is spawned in the repository root with inherited
	stdio. Only a clean zero exit counts as success.

	"""

	def __init__(self, command: Sequence[str], timeout: float | None = None) -> None:
		"""
		Initialize the process editor.

		Args:
			command: Argument vector of the child process
			timeout: Seconds to wait before giving up on the child; None waits forever

		"""
		self.command = list(command)
		self.timeout = timeout

	def _run(self, cwd: str) -> int:
		logger.debug("Running commit editor: %s (cwd=%s)", " ".join(self.command), cwd)
		try:
			completed = subprocess.run(self.command, cwd=cwd, check=False, timeout=self.timeout)  # noqa: S603
		except FileNotFoundError as e:
			msg = f"Commit editor '{self.command[0]}' was not found"
			raise CommitAbortedError(msg) from e
		except subprocess.TimeoutExpired as e:
			msg = f"Commit editor did not finish within {self.timeout} seconds"
			raise CommitAbortedError(msg) from e
		return completed.returncode

	async def compose_and_commit(self, repo: GitRepoContext) -> None:
		"""
		Run the child process and wait for it.

		Raises:
			CommitAbortedError: If the child is killed by a signal, exits
				non-zero, cannot be started or times out

		"""
		if not self.command:
			msg = "No commit editor command configured"
			raise CommitAbortedError(msg)

		returncode = await asyncer.asyncify(self._run)(str(repo.repo_root))
		if returncode < 0:
			try:
				signal_name = signal.Signals(-returncode).name
			except ValueError:
				signal_name = str(-returncode)
			msg = f"Commit editor was terminated by signal {signal_name}"
			raise CommitAbortedError(msg)
		if returncode != 0:
			msg = f"Commit editor exited with code {returncode}"
			raise CommitAbortedError(msg)
		logger.debug("Commit editor finished successfully")


def build_commit_editor(config: CommitConfig, prompts: PromptProvider) -> InlineCommitEditor | ProcessCommitEditor:
	"""Create the commit editor selected by `config.editor`."""
	if config.editor == "process":
		return ProcessCommitEditor(config.command, timeout=config.timeout)
	return InlineCommitEditor(config.convention, prompts)
