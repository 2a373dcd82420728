"""Tests for the pkg command."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from edo_tools.errors import PromptCancelledError
from edo_tools.pkg import PkgCommand, derive_links
from edo_tools.pkg.command import read_remote_url
from edo_tools.pkg.workspace import find_workspace_packages
from tests.base import FileSystemTestBase

REMOTE_URL = "git@github.com:easy-do/edo.git"


def accept_defaults(message: str, default: str = "", **_kwargs: object) -> str:
	"""Answer a text prompt with its default."""
	return default


@pytest.mark.unit
class TestDeriveLinks:
	"""Test links derived from the git remote."""

	def test_root_package(self) -> None:
		"""The root package links to the repository itself."""
		links = derive_links(REMOTE_URL, "")

		assert links.repository == {"type": "git", "url": REMOTE_URL}
		assert links.homepage == "https://github.com/easy-do/edo#readme"
		assert links.bugs == "https://github.com/easy-do/edo/issues"

	def test_sub_package(self) -> None:
		"""Workspace packages link into their directory on the default branch."""
		links = derive_links("https://github.com/easy-do/edo.git", "packages/cli", "develop")

		assert links.repository == {
			"type": "git",
			"url": "https://github.com/easy-do/edo.git",
			"directory": "packages/cli",
		}
		assert links.homepage == "https://github.com/easy-do/edo/tree/develop/packages/cli#readme"

	def test_no_remote(self) -> None:
		"""Without a remote nothing is derived."""
		links = derive_links(None, "")

		assert links.repository is None
		assert links.homepage == ""
		assert links.bugs == ""


@pytest.mark.unit
@pytest.mark.fs
class TestPkgCommand(FileSystemTestBase):
	"""Test completing manifests across a workspace."""

	@pytest.fixture(autouse=True)
	def setup_workspace(self, setup_file_system: None, make_config) -> None:
		"""Create a root with two workspace packages and prompt doubles that accept defaults."""
		self.create_test_file(
			"package.json",
			json.dumps(
				{
					"version": "1.0.0",
					"name": "edo",
					"author": "Ada",
					"license": "Apache-2.0",
					"workspaces": ["packages/*"],
				}
			),
		)
		self.create_test_file("packages/cli/package.json", json.dumps({"name": "@edo/cli"}))
		self.create_test_file(
			"packages/core/package.json",
			json.dumps({"name": "@edo/core", "author": {"name": "Grace", "email": "grace@example.com"}}),
		)
		self.prompts = MagicMock()
		self.prompts.confirm = AsyncMock(return_value=False)
		self.prompts.text = AsyncMock(side_effect=accept_defaults)
		self.config = make_config(pkg={"package_manager": "npm"})

	def read(self, relative_path: str) -> dict:
		"""Load a manifest from the workspace."""
		return json.loads((self.temp_dir / relative_path).read_text(encoding="utf-8"))

	@pytest.mark.asyncio
	async def test_run_completes_every_package(self) -> None:
		"""Every manifest gains links, author, license and private."""
		command = PkgCommand(self.config, self.prompts, remote_reader=lambda _root: REMOTE_URL)

		assert await command.run() == 0

		root = self.read("package.json")
		assert list(root)[:2] == ["name", "version"]
		assert root["homepage"] == "https://github.com/easy-do/edo#readme"
		assert root["bugs"] == {"url": "https://github.com/easy-do/edo/issues"}
		assert root["private"] is False

		cli = self.read("packages/cli/package.json")
		assert cli["repository"]["directory"] == "packages/cli"
		assert cli["homepage"] == "https://github.com/easy-do/edo/tree/main/packages/cli#readme"

	@pytest.mark.asyncio
	async def test_answers_carry_forward(self) -> None:
		"""Author and license answers become defaults for later packages."""
		command = PkgCommand(self.config, self.prompts, remote_reader=lambda _root: None)

		assert await command.run() == 0

		cli = self.read("packages/cli/package.json")
		assert cli["author"] == "Ada"
		assert cli["license"] == "Apache-2.0"

	@pytest.mark.asyncio
	async def test_author_object_preserved(self) -> None:
		"""An unchanged author object is kept as an object."""
		command = PkgCommand(self.config, self.prompts, remote_reader=lambda _root: None)

		await command.run()

		assert self.read("packages/core/package.json")["author"] == {"name": "Grace", "email": "grace@example.com"}

	@pytest.mark.asyncio
	async def test_normalize_returns_accumulator(self) -> None:
		"""The accumulator holds the answers for the last package."""
		self.prompts.text = AsyncMock(side_effect=["Ada", "MIT", "", "", "Bob", "ISC", "", "", "Cy", "BSD", "", ""])
		command = PkgCommand(self.config, self.prompts, remote_reader=lambda _root: None)

		answers = await command.normalize(find_workspace_packages(self.temp_dir, "npm"))

		assert answers["author"] == "Cy"
		assert answers["license"] == "BSD"
		assert self.read("packages/cli/package.json")["author"] == "Bob"

	@pytest.mark.asyncio
	async def test_cancel_stops_without_writing(self) -> None:
		"""Backing out of a prompt exits 0 and leaves the manifests alone."""
		before = (self.temp_dir / "package.json").read_text(encoding="utf-8")
		self.prompts.confirm = AsyncMock(side_effect=PromptCancelledError("cancelled"))
		command = PkgCommand(self.config, self.prompts, remote_reader=lambda _root: REMOTE_URL)

		assert await command.run() == 0

		assert (self.temp_dir / "package.json").read_text(encoding="utf-8") == before

	def test_read_remote_url_outside_repository(self) -> None:
		"""Directories outside a repository have no remote."""
		with patch("edo_tools.git.utils.discover_repository", return_value=None):
			assert read_remote_url(self.temp_dir) is None
