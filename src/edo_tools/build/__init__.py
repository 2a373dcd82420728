"""Library bundling through an external bundler."""

from edo_tools.build.command import BuildCommand, BundlerRunner, resolve_build_targets

__all__ = ["BuildCommand", "BundlerRunner", "resolve_build_targets"]
