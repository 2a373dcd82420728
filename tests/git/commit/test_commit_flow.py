"""Tests for the interactive commit workflow."""

from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import AsyncMock, MagicMock

import pytest

from edo_tools.errors import CommitAbortedError, GitError, PromptCancelledError
from edo_tools.git.commit.flow import (
	COMMIT_CONFIRM_MESSAGE,
	PUSH_CONFIRM_MESSAGE,
	PUSH_ONLY_MESSAGE,
	CommitFlow,
	resolve_push_token,
)
from edo_tools.git.status import StatusCode
from edo_tools.git.utils import GitRepoContext, PushOutcome
from tests.base import GitTestBase

if TYPE_CHECKING:
	from collections.abc import Callable

	from edo_tools.config.config_schema import RunConfig

STATUSES = {
	"a.txt": StatusCode.WT_MODIFIED,
	"b.txt": StatusCode.UNMODIFIED,
	"c.txt": StatusCode.WT_ADDED,
	"d.txt": StatusCode.MODIFIED,
	"e.txt": StatusCode.WT_DELETED,
	"f.txt": StatusCode.IGNORED,
}


def make_repo(statuses: dict[str, StatusCode] | None = None, branch: str | None = "main") -> MagicMock:
	"""Create a repository double with the given path statuses."""
	statuses = STATUSES if statuses is None else statuses
	repo = MagicMock(spec=GitRepoContext)
	repo.list_paths.return_value = list(statuses)
	repo.status.side_effect = statuses.__getitem__
	repo.has_staged_changes.return_value = True
	repo.current_branch.return_value = branch
	repo.push.return_value = PushOutcome(ok=True, message="Pushed main to origin")
	return repo


def make_prompts(selection: list[str] | None = None, confirms: list[bool] | None = None) -> MagicMock:
	"""Create a prompt provider double answering checkbox and confirm prompts."""
	prompts = MagicMock()
	prompts.checkbox = AsyncMock(return_value=selection or [])
	prompts.confirm = AsyncMock(side_effect=confirms if confirms is not None else [True, True])
	return prompts


def confirm_messages(prompts: MagicMock) -> list[str]:
	"""Messages of every confirm prompt shown, in order."""
	return [call.args[0] for call in prompts.confirm.await_args_list]


@pytest.mark.unit
@pytest.mark.git
class TestCommitFlow:
	"""Test the commit flow with all collaborators mocked."""

	@pytest.fixture(autouse=True)
	def setup_flow(self, make_config: Callable[..., RunConfig]) -> None:
		"""Provide defaults shared by the tests."""
		self.make_config = make_config
		self.editor = MagicMock()
		self.editor.compose_and_commit = AsyncMock(return_value="0123456789abcdef")

	def build_flow(self, repo: MagicMock, prompts: MagicMock, **commit: object) -> CommitFlow:
		"""Create the flow under test."""
		return CommitFlow(self.make_config(commit=commit), repo, prompts, self.editor)

	@pytest.mark.asyncio
	async def test_choices_are_actionable_subset_in_order(self) -> None:
		"""Only actionable paths are offered, all pre-checked, in listing order."""
		repo = make_repo()
		prompts = make_prompts(selection=["a.txt", "c.txt", "e.txt"])

		exit_code = await self.build_flow(repo, prompts).run()

		assert exit_code == 0
		choices = prompts.checkbox.await_args.args[1]
		assert [choice.value for choice in choices] == ["a.txt", "c.txt", "e.txt"]
		assert [choice.title for choice in choices] == ["*modified - a.txt", "*added - c.txt", "*deleted - e.txt"]
		assert all(choice.checked for choice in choices)

	@pytest.mark.asyncio
	async def test_scan_preserves_order(self) -> None:
		"""Scanned statuses come back in the order of the path listing."""
		repo = make_repo()

		statuses = await self.build_flow(repo, make_prompts()).scan()

		assert [entry.path for entry in statuses] == list(STATUSES)
		assert [entry.status for entry in statuses] == list(STATUSES.values())

	@pytest.mark.asyncio
	async def test_stage_all_skips_prompt(self) -> None:
		"""With stage-all, every actionable path is staged without asking."""
		repo = make_repo()
		prompts = make_prompts()

		await self.build_flow(repo, prompts, all=True).run()

		prompts.checkbox.assert_not_awaited()
		repo.stage.assert_called_once_with(["a.txt", "c.txt", "e.txt"])

	@pytest.mark.asyncio
	async def test_selection_is_staged(self) -> None:
		"""The user's selection is staged as given."""
		repo = make_repo()
		prompts = make_prompts(selection=["c.txt"])

		await self.build_flow(repo, prompts).run()

		repo.stage.assert_called_once_with(["c.txt"])

	@pytest.mark.asyncio
	async def test_cancelled_selection_stages_nothing(self) -> None:
		"""Cancelling the selection ends the flow before staging."""
		repo = make_repo()
		prompts = make_prompts()
		prompts.checkbox.side_effect = PromptCancelledError("cancelled")

		with pytest.raises(PromptCancelledError):
			await self.build_flow(repo, prompts).run()

		assert repo.stage.call_count == 0
		self.editor.compose_and_commit.assert_not_awaited()

	@pytest.mark.asyncio
	async def test_declined_commit_spawns_nothing(self) -> None:
		"""Declining the commit confirmation exits 0 without running the editor."""
		repo = make_repo()
		prompts = make_prompts(selection=["a.txt"], confirms=[False])

		exit_code = await self.build_flow(repo, prompts).run()

		assert exit_code == 0
		repo.stage.assert_called_once_with(["a.txt"])
		self.editor.compose_and_commit.assert_not_awaited()
		repo.push.assert_not_called()
		assert confirm_messages(prompts) == [COMMIT_CONFIRM_MESSAGE]

	@pytest.mark.asyncio
	async def test_aborted_commit_stops_before_push_confirmation(self) -> None:
		"""An abnormal editor exit propagates and the push is never offered."""
		repo = make_repo()
		prompts = make_prompts(selection=["a.txt"])
		self.editor.compose_and_commit.side_effect = CommitAbortedError("terminated by signal SIGKILL")

		with pytest.raises(CommitAbortedError):
			await self.build_flow(repo, prompts).run()

		assert confirm_messages(prompts) == [COMMIT_CONFIRM_MESSAGE]
		repo.push.assert_not_called()

	@pytest.mark.asyncio
	async def test_full_run_pushes_current_branch(self) -> None:
		"""After committing, the current branch is pushed to the configured remote."""
		repo = make_repo()
		prompts = make_prompts(selection=["a.txt"])

		exit_code = await self.build_flow(repo, prompts, remote="upstream", token="secret").run()

		assert exit_code == 0
		self.editor.compose_and_commit.assert_awaited_once_with(repo)
		repo.push.assert_called_once_with("upstream", "main", "secret", "x-access-token")
		assert confirm_messages(prompts) == [COMMIT_CONFIRM_MESSAGE, PUSH_CONFIRM_MESSAGE]

	@pytest.mark.asyncio
	async def test_declined_push(self) -> None:
		"""Declining the push ends the flow normally."""
		repo = make_repo()
		prompts = make_prompts(selection=["a.txt"], confirms=[True, False])

		exit_code = await self.build_flow(repo, prompts).run()

		assert exit_code == 0
		repo.push.assert_not_called()

	@pytest.mark.asyncio
	async def test_detached_head_skips_push(self) -> None:
		"""Without a current branch, push is never invoked."""
		repo = make_repo(branch=None)
		prompts = make_prompts(selection=["a.txt"])

		exit_code = await self.build_flow(repo, prompts).run()

		assert exit_code == 0
		repo.push.assert_not_called()

	@pytest.mark.asyncio
	async def test_push_failure_warns_by_default(self) -> None:
		"""A failed push is only a warning unless configured otherwise."""
		repo = make_repo()
		repo.push.return_value = PushOutcome(ok=False, message="authentication required")
		prompts = make_prompts(selection=["a.txt"])

		assert await self.build_flow(repo, prompts).run() == 0

	@pytest.mark.asyncio
	async def test_push_failure_can_fail_the_run(self) -> None:
		"""With fail_on_push_error, a failed push exits 1."""
		repo = make_repo()
		repo.push.return_value = PushOutcome(ok=False, message="authentication required")
		prompts = make_prompts(selection=["a.txt"])

		assert await self.build_flow(repo, prompts, fail_on_push_error=True).run() == 1

	@pytest.mark.asyncio
	async def test_no_changes_push_only_declined(self) -> None:
		"""With nothing to stage, declining the push-only confirmation exits 0."""
		repo = make_repo({"b.txt": StatusCode.UNMODIFIED})
		prompts = make_prompts(confirms=[False])

		exit_code = await self.build_flow(repo, prompts).run()

		assert exit_code == 0
		prompts.checkbox.assert_not_awaited()
		repo.stage.assert_not_called()
		assert confirm_messages(prompts) == [PUSH_ONLY_MESSAGE]

	@pytest.mark.asyncio
	async def test_no_changes_push_only_accepted(self) -> None:
		"""Accepting the push-only path with an empty index goes straight to the push."""
		repo = make_repo({"b.txt": StatusCode.UNMODIFIED})
		repo.has_staged_changes.return_value = False
		prompts = make_prompts(confirms=[True, True])

		exit_code = await self.build_flow(repo, prompts).run()

		assert exit_code == 0
		self.editor.compose_and_commit.assert_not_awaited()
		repo.push.assert_called_once()
		assert confirm_messages(prompts) == [PUSH_ONLY_MESSAGE, PUSH_CONFIRM_MESSAGE]

	@pytest.mark.asyncio
	async def test_empty_selection_ends_without_commit(self) -> None:
		"""Unchecking everything ends the flow, even with changes already staged."""
		repo = make_repo()
		repo.has_staged_changes.return_value = True
		prompts = make_prompts(selection=[])

		exit_code = await self.build_flow(repo, prompts).run()

		assert exit_code == 0
		repo.stage.assert_not_called()
		prompts.confirm.assert_not_awaited()
		self.editor.compose_and_commit.assert_not_awaited()

	@pytest.mark.asyncio
	async def test_scan_failure_propagates(self) -> None:
		"""A failing status scan is fatal."""
		repo = make_repo()
		repo.list_paths.side_effect = GitError("index is locked")

		with pytest.raises(GitError):
			await self.build_flow(repo, make_prompts()).run()

	@pytest.mark.asyncio
	async def test_stage_failure_propagates(self) -> None:
		"""A failing stage is fatal and no commit is attempted."""
		repo = make_repo()
		repo.stage.side_effect = GitError("Failed to stage files")
		prompts = make_prompts(selection=["a.txt"])

		with pytest.raises(GitError):
			await self.build_flow(repo, prompts).run()

		prompts.confirm.assert_not_awaited()


@pytest.mark.unit
class TestResolvePushToken:
	"""Test push credential precedence."""

	def test_config_token_first(self, make_config: Callable[..., RunConfig]) -> None:
		"""An explicit token wins over the environment."""
		config = make_config(commit={"token": "from-config"})
		assert resolve_push_token(config, {"EDO_GIT_TOKEN": "env", "GITHUB_TOKEN": "gh"}) == "from-config"

	def test_edo_token_before_github_token(self, make_config: Callable[..., RunConfig]) -> None:
		"""EDO_GIT_TOKEN is preferred over GITHUB_TOKEN."""
		assert resolve_push_token(make_config(), {"EDO_GIT_TOKEN": "env", "GITHUB_TOKEN": "gh"}) == "env"
		assert resolve_push_token(make_config(), {"GITHUB_TOKEN": "gh"}) == "gh"

	def test_dotenv_values_are_used(self, make_config: Callable[..., RunConfig]) -> None:
		"""Tokens loaded from .env files count too."""
		config = make_config(env={"EDO_GIT_TOKEN": "dotenv"})
		assert resolve_push_token(config, {}) == "dotenv"

	def test_no_token(self, make_config: Callable[..., RunConfig]) -> None:
		"""Without any token, None is returned."""
		assert resolve_push_token(make_config(), {}) is None


@pytest.mark.integration
@pytest.mark.git
class TestCommitFlowOnRepository(GitTestBase):
	"""Run the scan and filter steps against a real repository."""

	@pytest.mark.asyncio
	async def test_fixture_change_set(self, make_config: Callable[..., RunConfig]) -> None:
		"""a.txt modified, b.txt added and c.txt unmodified give [a.txt, b.txt]."""
		self.create_test_file("a.txt", "a\n")
		self.create_test_file("c.txt", "c\n")
		self.commit_files("initial", "a.txt", "c.txt")
		self.create_test_file("a.txt", "a changed\n")
		self.create_test_file("b.txt", "b\n")

		repo = GitRepoContext(self.temp_dir)
		prompts = make_prompts(selection=["a.txt", "b.txt"], confirms=[False])
		flow = CommitFlow(make_config(root=self.temp_dir), repo, prompts, MagicMock())

		exit_code = await flow.run()

		assert exit_code == 0
		choices = prompts.checkbox.await_args.args[1]
		assert [choice.value for choice in choices] == ["a.txt", "b.txt"]
		assert repo.status("a.txt") is StatusCode.MODIFIED
		assert repo.status("b.txt") is StatusCode.ADDED
		assert repo.status("c.txt") is StatusCode.UNMODIFIED
