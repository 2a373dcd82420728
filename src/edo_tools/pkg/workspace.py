"""Package manager detection and workspace package discovery."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml

from edo_tools.errors import PkgError
from edo_tools.pkg.manifest import read_manifest

if TYPE_CHECKING:
	from collections.abc import Iterable

	from edo_tools.config.config_schema import PackageManager

logger = logging.getLogger(__name__)

MANIFEST_NAME = "package.json"
PNPM_WORKSPACE_FILE = "pnpm-workspace.yaml"
LERNA_FILE = "lerna.json"

# Checked in order; the first marker file present decides
LOCKFILE_MARKERS: tuple[tuple[str, PackageManager], ...] = (
	(PNPM_WORKSPACE_FILE, "pnpm"),
	(LERNA_FILE, "lerna"),
	("package-lock.json", "npm"),
	("yarn.lock", "yarn"),
)


@dataclass(frozen=True)
class WorkspacePackage:
	"""One package.json in the workspace."""

	dir: Path
	manifest_path: Path
	manifest: dict[str, Any]
	is_root: bool = False


def detect_package_manager(root: Path) -> PackageManager:
	"""Guess the package manager from the marker files in `root`, defaulting to npm."""
	for marker, manager in LOCKFILE_MARKERS:
		if (root / marker).exists():
			return manager
	return "npm"


def _read_yaml(path: Path) -> Any:
	try:
		with path.open(encoding="utf-8") as f:
			return yaml.safe_load(f)
	except (OSError, yaml.YAMLError) as e:
		msg = f"Could not read {path}: {e}"
		raise PkgError(msg) from e


def workspace_patterns(root: Path, package_manager: PackageManager, root_manifest: dict[str, Any]) -> list[str]:
	"""Collect the workspace globs declared for `package_manager`."""
	if package_manager == "pnpm":
		pnpm_path = root / PNPM_WORKSPACE_FILE
		data = _read_yaml(pnpm_path) if pnpm_path.is_file() else None
		return [str(p) for p in (data or {}).get("packages") or []]

	workspaces = root_manifest.get("workspaces")
	if isinstance(workspaces, dict):
		workspaces = workspaces.get("packages")
	if isinstance(workspaces, list):
		return [str(p) for p in workspaces]

	lerna_path = root / LERNA_FILE
	if lerna_path.is_file():
		lerna = read_manifest(lerna_path)
		return [str(p) for p in lerna.get("packages") or []]
	return []


def _expand(root: Path, patterns: Iterable[str]) -> set[Path]:
	matched: set[Path] = set()
	for pattern in patterns:
		cleaned = pattern.strip().rstrip("/")
		if cleaned.startswith("./"):
			cleaned = cleaned[2:]
		if not cleaned:
			continue
		for candidate in root.glob(cleaned):
			if candidate.is_dir() and "node_modules" not in candidate.relative_to(root).parts:
				matched.add(candidate.resolve())
	return matched


def find_workspace_packages(root: Path, package_manager: PackageManager) -> list[WorkspacePackage]:
	"""
	List the root package followed by every workspace package.

	Negated patterns (``!pattern``) exclude directories matched by the others.

	Raises:
		PkgError: If the root package.json is missing or unreadable

	"""
	root = root.resolve()
	root_manifest_path = root / MANIFEST_NAME
	root_manifest = read_manifest(root_manifest_path)
	packages = [WorkspacePackage(dir=root, manifest_path=root_manifest_path, manifest=root_manifest, is_root=True)]

	patterns = workspace_patterns(root, package_manager, root_manifest)
	included = _expand(root, (p for p in patterns if not p.startswith("!")))
	excluded = _expand(root, (p[1:] for p in patterns if p.startswith("!")))

	for package_dir in sorted(included - excluded - {root}):
		manifest_path = package_dir / MANIFEST_NAME
		if not manifest_path.is_file():
			continue
		packages.append(
			WorkspacePackage(dir=package_dir, manifest_path=manifest_path, manifest=read_manifest(manifest_path))
		)

	logger.debug("Workspace packages: %s", [str(p.dir) for p in packages])
	return packages
