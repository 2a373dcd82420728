"""Tests for workspace discovery."""

from __future__ import annotations

import json

import pytest

from edo_tools.errors import PkgError
from edo_tools.pkg.workspace import detect_package_manager, find_workspace_packages
from tests.base import FileSystemTestBase


@pytest.mark.unit
@pytest.mark.fs
class TestDetectPackageManager(FileSystemTestBase):
	"""Test package manager detection from marker files."""

	@pytest.mark.parametrize(
		("markers", "expected"),
		[
			([], "npm"),
			(["yarn.lock"], "yarn"),
			(["package-lock.json", "yarn.lock"], "npm"),
			(["lerna.json", "package-lock.json"], "lerna"),
			(["pnpm-workspace.yaml", "lerna.json", "yarn.lock"], "pnpm"),
		],
	)
	def test_precedence(self, markers: list[str], expected: str) -> None:
		"""The first marker in pnpm, lerna, npm, yarn order decides."""
		for marker in markers:
			self.create_test_file(marker, "")

		assert detect_package_manager(self.temp_dir) == expected


@pytest.mark.unit
@pytest.mark.fs
class TestFindWorkspacePackages(FileSystemTestBase):
	"""Test listing the root and workspace packages."""

	def add_package(self, relative_dir: str, name: str) -> None:
		"""Create a package.json in `relative_dir`."""
		self.create_test_file(f"{relative_dir}/package.json", json.dumps({"name": name}))

	def names(self, package_manager: str) -> list[str]:
		"""Names of the discovered packages, in order."""
		return [p.manifest["name"] for p in find_workspace_packages(self.temp_dir, package_manager)]

	def test_root_only(self) -> None:
		"""Without workspaces only the root is returned."""
		self.add_package(".", "root")

		packages = find_workspace_packages(self.temp_dir, "npm")

		assert len(packages) == 1
		assert packages[0].is_root

	def test_npm_workspaces_with_negation(self) -> None:
		"""Negated globs exclude directories; folders without a manifest are skipped."""
		self.create_test_file(
			"package.json", json.dumps({"name": "root", "workspaces": ["packages/*", "!packages/private-*"]})
		)
		self.add_package("packages/b", "b")
		self.add_package("packages/a", "a")
		self.add_package("packages/private-x", "x")
		(self.temp_dir / "packages" / "empty").mkdir()

		assert self.names("npm") == ["root", "a", "b"]

	def test_yarn_workspaces_object(self) -> None:
		"""Yarn's object form of workspaces is understood."""
		self.create_test_file("package.json", json.dumps({"name": "root", "workspaces": {"packages": ["apps/*"]}}))
		self.add_package("apps/web", "web")

		assert self.names("yarn") == ["root", "web"]

	def test_pnpm_workspace_file(self) -> None:
		"""pnpm reads its globs from pnpm-workspace.yaml."""
		self.add_package(".", "root")
		self.create_test_file("pnpm-workspace.yaml", "packages:\n  - 'packages/**'\n")
		self.add_package("packages/core", "core")
		self.add_package("packages/core/node_modules/dep", "dep")

		assert self.names("pnpm") == ["root", "core"]

	def test_lerna_packages(self) -> None:
		"""lerna.json packages are used when package.json has no workspaces."""
		self.add_package(".", "root")
		self.create_test_file("lerna.json", json.dumps({"packages": ["modules/*"]}))
		self.add_package("modules/tool", "tool")

		assert self.names("lerna") == ["root", "tool"]

	def test_missing_root_manifest(self) -> None:
		"""The root manifest is required."""
		with pytest.raises(PkgError):
			find_workspace_packages(self.temp_dir, "npm")
