"""Git utilities for edo-tools, built on pygit2."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

import pygit2
from pygit2 import Commit, KeypairFromAgent, Passthrough, RemoteCallbacks, Repository, UserPass, discover_repository
from pygit2 import GitError as Pygit2GitError
from pygit2.enums import CredentialType
from pygit2.enums import FileStatus as GitStatusFlag

from edo_tools.errors import GitError
from edo_tools.git.status import StatusCode, classify_status

if TYPE_CHECKING:
	from collections.abc import Sequence

logger = logging.getLogger(__name__)

_STAGED_FLAGS = (
	GitStatusFlag.INDEX_NEW
	| GitStatusFlag.INDEX_MODIFIED
	| GitStatusFlag.INDEX_DELETED
	| GitStatusFlag.INDEX_RENAMED
	| GitStatusFlag.INDEX_TYPECHANGE
)


@dataclass(frozen=True)
class PushOutcome:
	"""Result of a push: whether it succeeded and any message from the server."""

	ok: bool
	message: str | None = None


class PushCallbacks(RemoteCallbacks):
	"""Supplies push credentials and records references the remote rejected."""

	def __init__(self, username: str, token: str | None = None) -> None:
		"""Initialize with an HTTPS token, falling back to the SSH agent."""
		super().__init__()
		self._username = username
		self._token = token
		self.rejections: list[str] = []

	def credentials(
		self, url: str, username_from_url: str | None, allowed_types: CredentialType
	) -> UserPass | KeypairFromAgent:
		"""Pick credentials for the transport libgit2 asks about."""
		if self._token and allowed_types & CredentialType.USERPASS_PLAINTEXT:
			return UserPass(username_from_url or self._username, self._token)
		if allowed_types & CredentialType.SSH_KEY:
			return KeypairFromAgent(username_from_url or "git")
		logger.debug("No credentials available for %s", url)
		raise Passthrough

	def push_update_reference(self, refname: str, message: str | None) -> None:
		"""Record a reference the remote refused to update."""
		if message:
			self.rejections.append(f"{refname}: {message}")


class GitRepoContext:
	"""
	Status provider, index mutator and branch/push provider for one repository.

	Methods may be called from worker threads; access to the underlying
	`pygit2.Repository` is serialized with a lock.

	"""

	def __init__(self, path: Path | None = None) -> None:
		"""Open the repository containing `path` (defaults to the current directory)."""
		self.repo_root = self.get_repo_root(path)
		self.repo = Repository(str(self.repo_root))
		self._lock = threading.Lock()

	@classmethod
	def get_repo_root(cls, path: Path | None = None) -> Path:
		"""Get the working directory root of the repository containing `path`."""
		git_dir = discover_repository(str(path or Path.cwd()))
		if git_dir is None:
			msg = f"Not a git repository: {path or Path.cwd()}"
			logger.error(msg)
			raise GitError(msg)
		workdir = Repository(git_dir).workdir
		if workdir is None:
			msg = f"Bare repositories are not supported: {git_dir}"
			raise GitError(msg)
		return Path(workdir).resolve()

	def list_paths(self) -> list[str]:
		"""List tracked and untracked, non-ignored paths in a stable order."""
		with self._lock:
			try:
				index_paths = [entry.path for entry in self.repo.index]
				status_map = self.repo.status()
			except Pygit2GitError as e:
				msg = f"Failed to list repository files: {e}"
				raise GitError(msg) from e

		paths = dict.fromkeys(index_paths)
		for path, flags in status_map.items():
			if not flags & GitStatusFlag.IGNORED:
				paths.setdefault(path)
		logger.debug("Found %d paths in %s", len(paths), self.repo_root)
		return sorted(paths)

	def status(self, path: str) -> StatusCode:
		"""Compute the status of a single path."""
		with self._lock:
			try:
				flags = self.repo.status_file(path)
			except KeyError:
				return StatusCode.ABSENT
			except Pygit2GitError as e:
				msg = f"Failed to read status of {path}: {e}"
				raise GitError(msg) from e
			return classify_status(flags, lambda: self._workdir_matches_head(path))

	def _workdir_matches_head(self, path: str) -> bool:
		if self.repo.head_is_unborn:
			return False
		try:
			entry = self.repo.head.peel(Commit).tree[path]
		except KeyError:
			return False
		file_path = self.repo_root / path
		if not file_path.is_file():
			return False
		return pygit2.hashfile(str(file_path)) == entry.id

	def stage(self, paths: Sequence[str]) -> None:
		"""
		Add `paths` to the index.

		Paths that no longer exist in the working tree are removed from the
		index instead, so deletions are staged too.

		Raises:
			GitError: If the index cannot be updated
		"""
		if not paths:
			logger.debug("Nothing to stage")
			return

		with self._lock:
			index = self.repo.index
			try:
				for path in paths:
					file_path = self.repo_root / path
					if file_path.exists() or file_path.is_symlink():
						index.add(path)
					else:
						index.remove(path)
				index.write()
			except (Pygit2GitError, OSError, KeyError) as e:
				msg = f"Failed to stage files: {e}"
				logger.exception(msg)
				raise GitError(msg) from e
		logger.info("Staged %d file(s)", len(paths))

	def has_staged_changes(self) -> bool:
		"""Whether the index differs from HEAD."""
		with self._lock:
			try:
				return any(flags & _STAGED_FLAGS for flags in self.repo.status().values())
			except Pygit2GitError as e:
				msg = f"Failed to read repository status: {e}"
				raise GitError(msg) from e

	def commit(self, message: str) -> str:
		"""
		Create a commit from the current index on top of HEAD.

		Returns:
			The new commit id

		Raises:
			GitError: If the author identity is missing or the commit fails
		"""
		with self._lock:
			try:
				signature = self.repo.default_signature
			except (KeyError, Pygit2GitError) as e:
				msg = "Git user.name and user.email must be configured to commit"
				raise GitError(msg) from e
			try:
				tree = self.repo.index.write_tree()
				parents = [] if self.repo.head_is_unborn else [self.repo.head.target]
				oid = self.repo.create_commit("HEAD", signature, signature, message, tree, parents)
			except Pygit2GitError as e:
				msg = f"Failed to create commit: {e}"
				logger.exception(msg)
				raise GitError(msg) from e
		logger.info("Created commit %s", str(oid)[:8])
		return str(oid)

	def current_branch(self) -> str | None:
		"""Return the short name of the checked-out branch, or None on a detached or unborn HEAD."""
		with self._lock:
			if self.repo.head_is_detached:
				return None
			if self.repo.head_is_unborn:
				logger.debug("HEAD is unborn; no branch to push")
				return None
			return self.repo.head.shorthand or None

	def remote_url(self, name: str = "origin") -> str | None:
		"""Return the URL configured for remote `name`, if any."""
		with self._lock:
			try:
				return self.repo.remotes[name].url
			except KeyError:
				return None

	def push(
		self,
		remote_name: str,
		branch: str,
		token: str | None = None,
		username: str = "x-access-token",
	) -> PushOutcome:
		"""
		Push `branch` to the same-named branch on `remote_name`.

		Failures are reported through the returned outcome rather than raised.
		"""
		refspec = f"refs/heads/{branch}:refs/heads/{branch}"
		callbacks = PushCallbacks(username=username, token=token)
		logger.info("Pushing '%s' to remote '%s'", branch, remote_name)
		with self._lock:
			try:
				remote = self.repo.remotes[remote_name]
			except KeyError:
				return PushOutcome(ok=False, message=f"Remote '{remote_name}' is not configured")
			try:
				remote.push([refspec], callbacks=callbacks)
			except (Pygit2GitError, Passthrough) as e:
				return PushOutcome(ok=False, message=str(e) or type(e).__name__)

		if callbacks.rejections:
			return PushOutcome(ok=False, message="; ".join(callbacks.rejections))
		return PushOutcome(ok=True, message=f"Pushed {branch} to {remote_name}")
