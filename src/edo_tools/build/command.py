"""The build command: bundle library entries with an external bundler."""

from __future__ import annotations

import json
import logging
import shutil
import subprocess
from pathlib import Path
from typing import TYPE_CHECKING

import asyncer

from edo_tools.errors import BuildError
from edo_tools.utils.file_utils import lookup_file, read_json_file

if TYPE_CHECKING:
	from collections.abc import Sequence

	from edo_tools.config.config_schema import BuildConfig, LibraryOptions, ModuleFormat, RunConfig

# Files kept when emptying the output directory
PRESERVED_OUT_DIR_ENTRIES = frozenset({".git"})

FORMAT_EXTENSIONS = {"esm": "mjs", "cjs": "cjs"}


class BundlerRunner:
	"""Runs the bundler executable as a child process."""

	def run(self, argv: Sequence[str], cwd: Path, capture: bool = True) -> subprocess.CompletedProcess[str]:
		"""
		Run `argv` in `cwd` and wait for it.

		Raises:
			BuildError: If the executable cannot be found
		"""
		try:
			return subprocess.run(  # noqa: S603
				list(argv), cwd=cwd, capture_output=capture, text=True, check=False
			)
		except FileNotFoundError as e:
			msg = f"Bundler '{argv[0]}' was not found; is it installed?"
			raise BuildError(msg) from e


def resolve_build_targets(build: BuildConfig) -> list[tuple[LibraryOptions, str]]:
	"""
	Pair each library entry with the output directory it is built into.

	Raises:
		BuildError: If no entry is configured, or a list item has no ``out_dir``

	"""
	if build.lib is None:
		msg = "No library entry configured; set build.lib in the config file"
		raise BuildError(msg)

	if isinstance(build.lib, list):
		targets = []
		for lib in build.lib:
			if not lib.out_dir:
				msg = f"When build.lib is a list, every item needs an out_dir (missing for {lib.entry})"
				raise BuildError(msg)
			targets.append((lib, lib.out_dir))
		return targets

	return [(build.lib, build.lib.out_dir or build.out_dir)]


def output_extension(fmt: ModuleFormat) -> str:
	"""File extension of a bundle in `fmt`."""
	return FORMAT_EXTENSIONS.get(fmt, "js")


def _package_name(root: Path) -> str | None:
	manifest_path = lookup_file(root, ["package.json"])
	if manifest_path is None:
		return None
	try:
		name = read_json_file(manifest_path).get("name")
	except (OSError, json.JSONDecodeError, AttributeError):
		return None
	if isinstance(name, str) and name.startswith("@"):
		return name.split("/", 1)[-1]
	return name


def output_file_name(lib: LibraryOptions, fmt: ModuleFormat, root: Path) -> str:
	"""Bundle file name: ``<name>.<ext>`` for esm/cjs, ``<name>.<format>.<ext>`` otherwise."""
	base = lib.file_name or lib.name or _package_name(root) or Path(lib.entry).stem
	if fmt in FORMAT_EXTENSIONS:
		return f"{base}.{output_extension(fmt)}"
	return f"{base}.{fmt}.{output_extension(fmt)}"


def empty_dir(directory: Path, preserve: frozenset[str] = PRESERVED_OUT_DIR_ENTRIES) -> None:
	"""Delete everything in `directory` except the `preserve` entries."""
	for entry in directory.iterdir():
		if entry.name in preserve:
			continue
		if entry.is_dir() and not entry.is_symlink():
			shutil.rmtree(entry)
		else:
			entry.unlink()


class BuildCommand:
	"""Builds every configured library entry, once per output format."""

	def __init__(
		self,
		config: RunConfig,
		runner: BundlerRunner | None = None,
		logger: logging.Logger | None = None,
	) -> None:
		"""
		Initialize the build command.

		Args:
			config: Resolved run configuration
			runner: Runs the bundler; a subprocess runner by default
			logger: Logger to report progress to

		"""
		self.config = config
		self.options = config.build
		self.root = config.root
		self.runner = runner or BundlerRunner()
		self.logger = logger or logging.getLogger(__name__)

	def bundler_args(self, lib: LibraryOptions, fmt: ModuleFormat, out_dir: Path) -> list[str]:
		"""Command line for bundling `lib` in one format."""
		options = self.options
		args = [
			options.bundler,
			str(self.root / lib.entry),
			"--bundle",
			f"--format={fmt}",
			f"--outfile={out_dir / output_file_name(lib, fmt, self.root)}",
		]
		if options.sourcemap is True:
			args.append("--sourcemap")
		elif options.sourcemap:
			args.append(f"--sourcemap={options.sourcemap}")
		if options.minify:
			args.append("--minify")
		if options.platform:
			args.append(f"--platform={options.platform}")
		if options.target:
			args.append(f"--target={options.target}")
		if fmt == "iife" and lib.name:
			args.append(f"--global-name={lib.name}")
		if not options.write:
			args.append("--write=false")
		if options.watch:
			args.append("--watch")
		return args

	def prepare_out_dir(self, out_dir: Path) -> None:
		"""Empty `out_dir` when configured to, or by default when it lies inside the root."""
		if not out_dir.exists():
			return
		empty_out_dir = self.options.empty_out_dir
		if empty_out_dir is None and not out_dir.resolve().is_relative_to(self.root.resolve()):
			self.logger.warning(
				"out_dir %s is not inside the project root and will not be emptied. Set empty_out_dir to override.",
				out_dir,
			)
			return
		if empty_out_dir is not False:
			empty_dir(out_dir)

	def build_library(self, lib: LibraryOptions, out_dir_name: str, show_prefix: bool = False) -> None:
		"""
		Bundle one library entry in each of its formats.

		Raises:
			BuildError: If the bundler exits non-zero
		"""
		prefix = f"{lib.entry} " if show_prefix else ""
		out_dir = (self.root / out_dir_name).resolve()
		self.logger.info("%sbuilding for %s...", prefix, self.config.mode)

		if lib.formats and "iife" in lib.formats and not lib.name:
			self.logger.error('Option "build.lib.name" is required when output formats include "iife".')

		if self.options.write:
			self.prepare_out_dir(out_dir)

		for fmt in lib.formats:
			args = self.bundler_args(lib, fmt, out_dir)
			self.logger.debug("Running %s", " ".join(args))
			if self.options.watch:
				self.logger.info("%swatching for file changes...", prefix)
			result = self.runner.run(args, cwd=self.root, capture=not self.options.watch)
			if result.returncode != 0:
				output = "\n".join(part for part in (result.stdout, result.stderr) if part)
				msg = f"{prefix}{fmt} build failed (exit code {result.returncode})"
				if output:
					msg += f"\n{output.strip()}"
				raise BuildError(msg)
			self.logger.info("%sbuilt %s bundle", prefix, fmt)

	async def run(self) -> int:
		"""
		Build every target in order.

		Raises:
			BuildError: If options are invalid or the bundler fails
		"""
		targets = resolve_build_targets(self.options)
		show_prefix = isinstance(self.options.lib, list)
		for lib, out_dir in targets:
			await asyncer.asyncify(self.build_library)(lib, out_dir, show_prefix)
		return 0
