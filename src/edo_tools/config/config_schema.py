"""Schemas for the edo-tools configuration."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_COMMIT_TYPES: dict[str, str] = {
	"feat": "A new feature",
	"fix": "A bug fix",
	"docs": "Documentation only changes",
	"style": "Changes that do not affect the meaning of the code",
	"refactor": "A code change that neither fixes a bug nor adds a feature",
	"perf": "A code change that improves performance",
	"test": "Adding missing tests or correcting existing tests",
	"build": "Changes that affect the build system or external dependencies",
	"ci": "Changes to CI configuration files and scripts",
	"chore": "Other changes that don't modify src or test files",
	"revert": "Reverts a previous commit",
}

PackageManager = Literal["npm", "yarn", "pnpm", "lerna"]
ModuleFormat = Literal["esm", "cjs", "iife"]


class _Schema(BaseModel):
	model_config = ConfigDict(frozen=True, extra="ignore")


class ConventionSchema(_Schema):
	"""Conventional commit settings used by the inline commit editor."""

	types: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_COMMIT_TYPES))
	scopes: list[str] = Field(default_factory=list)
	max_length: int = 100
	body_width: int = 100


class CommitConfig(_Schema):
	"""Settings for the `commit` command."""

	all: bool = False
	remote: str = "origin"
	token: str | None = None
	username: str = "x-access-token"
	fail_on_push_error: bool = False
	editor: Literal["inline", "process"] = "inline"
	command: list[str] = Field(default_factory=lambda: ["cz", "commit"])
	timeout: float | None = None
	convention: ConventionSchema = Field(default_factory=ConventionSchema)

	@field_validator("command", mode="before")
	@classmethod
	def _split_command(cls, value: Any) -> Any:
		if isinstance(value, str):
			return value.split()
		return value


class InitConfig(_Schema):
	"""Settings for the `init` command."""

	dir: str | None = None
	force: bool = False
	type: str | None = None
	template: str | None = None
	package: str | None = None
	silent: bool = False
	registry: str | None = None
	config_name: str = "@easydo/init-config"
	need_update: bool = True
	cache_dir: Path | None = None


class PkgConfig(_Schema):
	"""Settings for the `pkg` command."""

	package_manager: PackageManager | None = None
	default_branch: str = "main"


class LibraryOptions(_Schema):
	"""One library entry for the `build` command."""

	entry: str
	formats: list[ModuleFormat] = Field(default_factory=lambda: ["esm"])
	name: str | None = None
	out_dir: str | None = None
	file_name: str | None = None


class BuildConfig(_Schema):
	"""Settings for the `build` command."""

	lib: list[LibraryOptions] | LibraryOptions | None = None
	out_dir: str = "dist"
	sourcemap: bool | Literal["inline", "external"] = False
	minify: bool = False
	empty_out_dir: bool | None = None
	watch: bool = False
	write: bool = True
	target: str | None = None
	platform: Literal["node", "browser", "neutral"] | None = None
	bundler: str = "esbuild"


class RunConfig(_Schema):
	"""
	Fully resolved configuration for one invocation.

	Built once by `resolve_config` and passed by reference into every
	command object; never mutated afterwards.

	"""

	root: Path
	mode: str = "development"
	command: str | None = None
	log_level: str | None = None
	env_prefix: str | list[str] = "EDO_"
	env_dir: str | None = None
	config_file: Path | None = None
	is_production: bool = False
	env: dict[str, Any] = Field(default_factory=dict)
	commit: CommitConfig = Field(default_factory=CommitConfig)
	init: InitConfig = Field(default_factory=InitConfig)
	pkg: PkgConfig = Field(default_factory=PkgConfig)
	build: BuildConfig = Field(default_factory=BuildConfig)
