"""Interactive commit workflow."""

from edo_tools.git.commit.editor import InlineCommitEditor, ProcessCommitEditor, build_commit_editor
from edo_tools.git.commit.flow import CommitFlow

__all__ = ["CommitFlow", "InlineCommitEditor", "ProcessCommitEditor", "build_commit_editor"]
