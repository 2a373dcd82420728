"""Reading, ordering and writing package.json manifests."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from edo_tools.errors import PkgError

logger = logging.getLogger(__name__)

# Canonical top-level key order, as used by sort-package-json
CANONICAL_KEY_ORDER = (
	"$schema",
	"name",
	"displayName",
	"version",
	"private",
	"description",
	"categories",
	"keywords",
	"homepage",
	"bugs",
	"repository",
	"funding",
	"license",
	"qna",
	"author",
	"maintainers",
	"contributors",
	"publisher",
	"sideEffects",
	"type",
	"imports",
	"exports",
	"main",
	"svelte",
	"umd:main",
	"jsdelivr",
	"unpkg",
	"module",
	"source",
	"jsnext:main",
	"browser",
	"react-native",
	"types",
	"typesVersions",
	"typings",
	"style",
	"example",
	"examplestyle",
	"assets",
	"bin",
	"man",
	"directories",
	"files",
	"workspaces",
	"binary",
	"scripts",
	"betterScripts",
	"contributes",
	"activationEvents",
	"husky",
	"simple-git-hooks",
	"pre-commit",
	"commitlint",
	"lint-staged",
	"config",
	"nodemonConfig",
	"browserify",
	"babel",
	"browserslist",
	"xo",
	"prettier",
	"eslintConfig",
	"eslintIgnore",
	"npmpackagejsonlint",
	"release",
	"remarkConfig",
	"stylelint",
	"ava",
	"jest",
	"mocha",
	"nyc",
	"c8",
	"tap",
	"resolutions",
	"dependencies",
	"devDependencies",
	"dependenciesMeta",
	"peerDependencies",
	"peerDependenciesMeta",
	"optionalDependencies",
	"bundledDependencies",
	"bundleDependencies",
	"extensionPack",
	"extensionDependencies",
	"flat",
	"packageManager",
	"engines",
	"engineStrict",
	"volta",
	"languageName",
	"os",
	"cpu",
	"preferGlobal",
	"publishConfig",
	"icon",
	"badges",
	"galleryBanner",
	"preview",
	"markdown",
	"pnpm",
)

# Mappings whose own keys are sorted alphabetically
ALPHABETICAL_KEYS = frozenset(
	{
		"dependencies",
		"devDependencies",
		"peerDependencies",
		"optionalDependencies",
		"peerDependenciesMeta",
		"dependenciesMeta",
		"resolutions",
		"engines",
	}
)

_KEY_RANK = {key: index for index, key in enumerate(CANONICAL_KEY_ORDER)}


def sort_package_json(manifest: dict[str, Any]) -> dict[str, Any]:
	"""
	Return a copy of `manifest` with keys in canonical order.

	Known keys come first in their fixed order; unknown keys follow,
	sorted alphabetically. Dependency maps are sorted by package name.
	"""
	known = sorted((key for key in manifest if key in _KEY_RANK), key=_KEY_RANK.__getitem__)
	unknown = sorted(key for key in manifest if key not in _KEY_RANK)

	ordered: dict[str, Any] = {}
	for key in (*known, *unknown):
		value = manifest[key]
		if key in ALPHABETICAL_KEYS and isinstance(value, dict):
			value = dict(sorted(value.items()))
		ordered[key] = value
	return ordered


def read_manifest(path: Path) -> dict[str, Any]:
	"""
	Read a package.json file.

	Raises:
		PkgError: If the file is missing, invalid JSON or not an object

	"""
	try:
		with Path(path).open(encoding="utf-8") as f:
			manifest = json.load(f)
	except (OSError, json.JSONDecodeError) as e:
		msg = f"Could not read {path}: {e}"
		raise PkgError(msg) from e
	if not isinstance(manifest, dict):
		msg = f"{path} must contain a JSON object"
		raise PkgError(msg)
	return manifest


def write_manifest(path: Path, manifest: dict[str, Any]) -> None:
	"""Write `manifest` sorted, with 2-space indentation and a trailing newline."""
	content = json.dumps(sort_package_json(manifest), indent=2, ensure_ascii=False) + "\n"
	try:
		Path(path).write_text(content, encoding="utf-8")
	except OSError as e:
		msg = f"Could not write {path}: {e}"
		raise PkgError(msg) from e
	logger.info("Sorted package file: %s", path)
