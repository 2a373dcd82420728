"""Global test fixtures and configuration."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, Any

import pytest

from edo_tools.config.config_schema import BuildConfig, CommitConfig, InitConfig, PkgConfig, RunConfig

if TYPE_CHECKING:
	from collections.abc import Callable
	from pathlib import Path

ISOLATED_ENV_PREFIX = "EDO_"
ISOLATED_ENV_VARS = (
	"GITHUB_TOKEN",
	"NODE_ENV",
	"http_proxy",
	"HTTP_PROXY",
	"npm_registry",
	"npm_config_registry",
)


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
	"""Keep the developer's tokens, overrides, proxies and global config out of the tests."""
	for name in list(os.environ):
		if name.startswith(ISOLATED_ENV_PREFIX) or name in ISOLATED_ENV_VARS:
			monkeypatch.delenv(name, raising=False)
	monkeypatch.setattr("edo_tools.config.config_loader.xdg_config_home", str(tmp_path / "xdg-config"))


@pytest.fixture
def make_config(tmp_path: Path) -> Callable[..., RunConfig]:
	"""Build a `RunConfig` rooted at `tmp_path` with per-section overrides."""

	def factory(
		commit: dict[str, Any] | None = None,
		init: dict[str, Any] | None = None,
		pkg: dict[str, Any] | None = None,
		build: dict[str, Any] | None = None,
		**values: Any,
	) -> RunConfig:
		return RunConfig(
			root=values.pop("root", tmp_path),
			commit=CommitConfig(**(commit or {})),
			init=InitConfig(**(init or {})),
			pkg=PkgConfig(**(pkg or {})),
			build=BuildConfig(**(build or {})),
			**values,
		)

	return factory
