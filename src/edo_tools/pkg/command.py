"""The pkg command: complete and sort package.json files across a workspace."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from edo_tools.errors import GitError, PromptCancelledError
from edo_tools.git.utils import GitRepoContext
from edo_tools.pkg.manifest import write_manifest
from edo_tools.pkg.workspace import WorkspacePackage, detect_package_manager, find_workspace_packages

if TYPE_CHECKING:
	from collections.abc import Callable
	from pathlib import Path

	from edo_tools.config.config_schema import RunConfig
	from edo_tools.utils.prompts import PromptProvider

GITHUB_SSH_PREFIX = "git@github.com:"
GITHUB_HTTPS_PREFIX = "https://github.com/"
DEFAULT_LICENSE = "MIT"

Answers = dict[str, Any]


@dataclass(frozen=True)
class PackageLinks:
	"""Links derived from the git remote for one package."""

	repository: dict[str, str] | None
	homepage: str
	bugs: str


def read_remote_url(root: Path, name: str = "origin") -> str | None:
	"""Read ``remote.<name>.url`` from the repository containing `root`, if any."""
	try:
		return GitRepoContext(root).remote_url(name)
	except GitError:
		return None


def _web_url(remote_url: str) -> str:
	return re.sub(r"\.git$", "", remote_url.replace(GITHUB_SSH_PREFIX, GITHUB_HTTPS_PREFIX))


def derive_links(remote_url: str | None, relative_dir: str, default_branch: str = "main") -> PackageLinks:
	"""
	Derive ``repository``, ``homepage`` and ``bugs`` for a package.

	Args:
		remote_url: URL of the git remote, as configured
		relative_dir: Package directory relative to the workspace root ("" for the root)
		default_branch: Branch used in links to sub-package directories

	"""
	if not remote_url:
		return PackageLinks(repository=None, homepage="", bugs="")

	repository = {"type": "git", "url": remote_url}
	web_url = _web_url(remote_url)
	if relative_dir:
		repository["directory"] = relative_dir
		homepage = f"{web_url}/tree/{default_branch}/{relative_dir}#readme"
	else:
		homepage = f"{web_url}#readme"
	return PackageLinks(repository=repository, homepage=homepage, bugs=f"{web_url}/issues")


def _text(value: Any) -> str:
	if isinstance(value, dict):
		return str(value.get("name") or "")
	return "" if value is None else str(value)


class PkgCommand:
	"""
	Completes package metadata for every package in the workspace.

	Answers given for one package become the defaults for the next; they are
	threaded through the loop as an explicit accumulator.

	"""

	def __init__(
		self,
		config: RunConfig,
		prompts: PromptProvider,
		remote_reader: Callable[[Path], str | None] = read_remote_url,
		logger: logging.Logger | None = None,
	) -> None:
		"""
		Initialize the pkg command.

		Args:
			config: Resolved run configuration
			prompts: Interactive prompt provider
			remote_reader: Returns the git remote URL for a directory
			logger: Logger to report progress to

		"""
		self.config = config
		self.root = config.root
		self.prompts = prompts
		self.remote_reader = remote_reader
		self.logger = logger or logging.getLogger(__name__)

	def relative_dir(self, package: WorkspacePackage) -> str:
		"""Package directory relative to the root, in POSIX form."""
		if package.is_root:
			return ""
		return package.dir.relative_to(self.root.resolve()).as_posix()

	async def complete_package(self, package: WorkspacePackage, answers: Answers) -> tuple[dict[str, Any], Answers]:
		"""
		Ask for the missing metadata of one package.

		Args:
			package: The package to complete
			answers: Answers accumulated from earlier packages

		Returns:
			The completed manifest and the updated accumulator

		"""
		manifest = package.manifest
		name = manifest.get("name") or package.dir.name
		links = derive_links(self.remote_reader(package.dir), self.relative_dir(package), self.config.pkg.default_branch)

		current_bugs = manifest.get("bugs")
		bugs_default = _text(current_bugs.get("url") if isinstance(current_bugs, dict) else current_bugs) or links.bugs
		homepage_default = _text(manifest.get("homepage")) or links.homepage

		answer: Answers = {
			"private": await self.prompts.confirm(
				f"Is the {name} package private?", default=bool(manifest.get("private", False))
			),
			"author": await self.prompts.text(
				f"Author of the {name} package:",
				default=_text(manifest.get("author")) or answers.get("author", ""),
			),
			"license": await self.prompts.text(
				f"License of the {name} package:",
				default=_text(manifest.get("license")) or answers.get("license") or DEFAULT_LICENSE,
			),
			"homepage": await self.prompts.text(
				f"Homepage of the {name} package:", default=homepage_default.replace(GITHUB_SSH_PREFIX, GITHUB_HTTPS_PREFIX)
			),
			"bugs": await self.prompts.text(f"Issue tracker of the {name} package:", default=bugs_default),
		}

		completed = {**manifest, **answer, "bugs": {"url": answer["bugs"]}}
		if isinstance(manifest.get("author"), dict) and answer["author"] == _text(manifest["author"]):
			completed["author"] = manifest["author"]
		if links.repository is not None:
			completed["repository"] = links.repository
		return completed, {**answers, **answer}

	async def normalize(self, packages: list[WorkspacePackage]) -> Answers:
		"""
		Complete and write every package in order.

		Returns:
			The final accumulator: the last package's answers merged over the earlier ones

		"""
		answers: Answers = {}
		for package in packages:
			completed, answers = await self.complete_package(package, answers)
			write_manifest(package.manifest_path, completed)
		return answers

	async def run(self) -> int:
		"""
		Run the pkg workflow.

		Returns:
			Exit code; backing out of a prompt stops early with 0

		Raises:
			PkgError: If a manifest cannot be read or written

		"""
		package_manager = self.config.pkg.package_manager or detect_package_manager(self.root)
		self.logger.info("Package manager: %s", package_manager)

		packages = find_workspace_packages(self.root, package_manager)
		try:
			await self.normalize(packages)
		except PromptCancelledError:
			self.logger.info("Cancelled by user")
		return 0
