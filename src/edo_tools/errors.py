"""
Custom exception types used across edo-tools.

Commands raise these from deep inside their workflows; only the CLI layer
turns them into exit codes.

"""

from __future__ import annotations


class EdoToolsError(Exception):
	"""Base class for all edo-tools specific errors."""


class ConfigError(EdoToolsError):
	"""Raised when configuration cannot be resolved."""


class ConfigParsingError(ConfigError):
	"""Raised when a configuration file exists but cannot be parsed."""


class GitError(EdoToolsError):
	"""Raised when a git operation fails."""


class PromptCancelledError(EdoToolsError):
	"""Raised when the user cancels an interactive prompt."""


class CommitAbortedError(EdoToolsError):
	"""Raised when the commit editor ends without creating a commit."""


class RegistryError(EdoToolsError):
	"""Raised when the package registry cannot be queried."""


class ScaffoldError(EdoToolsError):
	"""Raised when a boilerplate cannot be resolved or rendered."""


class PkgError(EdoToolsError):
	"""Raised when workspace manifests cannot be normalized."""


class BuildError(EdoToolsError):
	"""Raised when the bundler fails or build options are invalid."""
