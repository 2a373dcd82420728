"""
Working-tree status model for the commit workflow.

A path's status compares three trees: HEAD, the working directory and the
index. The names follow the familiar status-matrix vocabulary; a leading
`*` means the working directory holds changes the index does not.

"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from pygit2.enums import FileStatus as GitStatusFlag

if TYPE_CHECKING:
	from collections.abc import Callable, Iterable


class StatusCode(str, Enum):
	"""Status of one path relative to HEAD, the index and the working tree."""

	UNMODIFIED = "unmodified"
	MODIFIED = "modified"
	DELETED = "deleted"
	ADDED = "added"
	ABSENT = "absent"
	IGNORED = "ignored"
	WT_MODIFIED = "*modified"
	WT_DELETED = "*deleted"
	WT_ADDED = "*added"
	WT_UNMODIFIED = "*unmodified"
	WT_ABSENT = "*absent"
	WT_UNDELETED = "*undeleted"
	WT_UNDELETEMODIFIED = "*undeletemodified"

	def __str__(self) -> str:
		return self.value


# Statuses offered for staging: unstaged add/modify/delete only
ACTIONABLE_STATUSES = frozenset({StatusCode.WT_MODIFIED, StatusCode.WT_DELETED, StatusCode.WT_ADDED})

_INDEX_NEW = GitStatusFlag.INDEX_NEW
_INDEX_MODIFIED = GitStatusFlag.INDEX_MODIFIED | GitStatusFlag.INDEX_RENAMED | GitStatusFlag.INDEX_TYPECHANGE
_INDEX_DELETED = GitStatusFlag.INDEX_DELETED
_WT_NEW = GitStatusFlag.WT_NEW
_WT_MODIFIED = GitStatusFlag.WT_MODIFIED | GitStatusFlag.WT_RENAMED | GitStatusFlag.WT_TYPECHANGE
_WT_DELETED = GitStatusFlag.WT_DELETED


@dataclass(frozen=True)
class FileStatus:
	"""A (status, path) pair computed fresh for each invocation."""

	status: StatusCode
	path: str

	@property
	def is_actionable(self) -> bool:
		"""Whether this path shows up in the staging selection."""
		return self.status in ACTIONABLE_STATUSES

	@property
	def title(self) -> str:
		"""Label used in the selection prompt."""
		return f"{self.status} - {self.path}"


def classify_status(flags: int, workdir_matches_head: Callable[[], bool]) -> StatusCode:
	"""
	Map libgit2 status flags for one path onto a `StatusCode`.

	Args:
		flags: Bit flags as returned by `Repository.status_file`
		workdir_matches_head: Lazily compares the working-tree file with its
			HEAD blob; only called when the flags alone are ambiguous

	"""
	if flags & GitStatusFlag.IGNORED:
		return StatusCode.IGNORED
	if flags == GitStatusFlag.CURRENT:
		return StatusCode.UNMODIFIED

	if flags & _INDEX_DELETED:
		if flags & _WT_NEW:
			return StatusCode.WT_UNDELETED if workdir_matches_head() else StatusCode.WT_UNDELETEMODIFIED
		return StatusCode.DELETED

	if flags & _INDEX_NEW:
		if flags & _WT_DELETED:
			return StatusCode.WT_ABSENT
		if flags & _WT_MODIFIED:
			return StatusCode.WT_ADDED
		return StatusCode.ADDED

	if flags & _INDEX_MODIFIED:
		if flags & _WT_DELETED:
			return StatusCode.WT_DELETED
		if flags & _WT_MODIFIED:
			return StatusCode.WT_UNMODIFIED if workdir_matches_head() else StatusCode.WT_MODIFIED
		return StatusCode.MODIFIED

	if flags & _WT_NEW:
		return StatusCode.WT_ADDED
	if flags & _WT_DELETED:
		return StatusCode.WT_DELETED
	if flags & _WT_MODIFIED:
		return StatusCode.WT_MODIFIED
	return StatusCode.UNMODIFIED


def filter_changed(statuses: Iterable[FileStatus]) -> list[FileStatus]:
	"""Keep only actionable entries, preserving input order."""
	return [entry for entry in statuses if entry.is_actionable]
