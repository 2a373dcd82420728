"""package.json normalization across workspaces."""

from edo_tools.pkg.command import PkgCommand, derive_links
from edo_tools.pkg.manifest import sort_package_json, write_manifest
from edo_tools.pkg.workspace import detect_package_manager, find_workspace_packages

__all__ = [
	"PkgCommand",
	"derive_links",
	"detect_package_manager",
	"find_workspace_packages",
	"sort_package_json",
	"write_manifest",
]
