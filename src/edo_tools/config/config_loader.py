"""
Configuration loader for edo-tools.

This module resolves the read-only `RunConfig` for one invocation by
merging, from lowest to highest precedence: schema defaults, an optional
YAML config file, `EDO_<SECTION>_<KEY>` environment overrides and inline
CLI flags. Prefixed variables from the process environment and `.env`
files are collected into `RunConfig.env`.

"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml
from dotenv import dotenv_values
from pydantic import ValidationError
from xdg.BaseDirectory import xdg_config_home

from edo_tools.config.config_schema import RunConfig
from edo_tools.errors import ConfigError, ConfigParsingError
from edo_tools.utils.file_utils import lookup_file

if TYPE_CHECKING:
	from collections.abc import Mapping

logger = logging.getLogger(__name__)

CONFIG_FILE_NAMES = ("edo.config.yml", "edo.config.yaml", ".edo.yml")
ENV_OVERRIDE_PREFIX = "EDO_"
CONFIG_SECTIONS = ("commit", "init", "pkg", "build")

# Constant for minimum number of parts in environment variable
MIN_ENV_VAR_PARTS = 2

# Keys in a .env file that switch the effective production flag
NODE_ENV_KEYS = ("NODE_ENV", "EDO_ENV")


class ConfigLoader:
	"""
	Locates and parses the edo-tools configuration file.

	Unlike a process-wide singleton, one loader is created per resolution
	and its result is folded into an immutable `RunConfig`.

	"""

	def __init__(self, config_file: Path | str | bool | None = None, repo_root: Path | None = None) -> None:
		"""
		Initialize the configuration loader.

		Args:
			config_file: Explicit config file path, or False to disable file loading
			repo_root: Directory to start the config file search from

		"""
		self.repo_root = repo_root or Path.cwd()
		self.is_disabled = config_file is False
		self.resolved_config_file = None if self.is_disabled else self._resolve_config_file(config_file)

	def _resolve_config_file(self, config_file: Path | str | bool | None = None) -> Path | None:
		"""
		Resolve the configuration file path.

		If a config file is specified, use that. Otherwise, look in standard locations:
		1. edo.config.yml / edo.config.yaml / .edo.yml in the root or any parent
		2. $XDG_CONFIG_HOME/edo/config.yml

		"""
		if isinstance(config_file, (str, Path)):
			path = Path(config_file).expanduser()
			if not path.is_absolute():
				path = self.repo_root / path
			path = path.resolve()
			if not path.exists():
				logger.warning("Specified config file not found: %s", path)
			return path

		local_config = lookup_file(self.repo_root, CONFIG_FILE_NAMES)
		if local_config:
			return local_config

		xdg_config_file = Path(xdg_config_home) / "edo" / "config.yml"
		if xdg_config_file.exists():
			return xdg_config_file

		return None

	@staticmethod
	def _parse_yaml_file(file_path: Path) -> dict[str, Any]:
		"""
		Parse a YAML file that must contain a mapping.

		Raises:
			yaml.YAMLError: If the file cannot be parsed as a YAML dictionary
		"""
		with file_path.open(encoding="utf-8") as f:
			content = yaml.safe_load(f)
			if content is None:
				return {}
			if not isinstance(content, dict):
				msg = f"File {file_path} does not contain a valid YAML dictionary"
				raise yaml.YAMLError(msg)
			return content

	def load_file_config(self, mode: str) -> dict[str, Any]:
		"""
		Load the config file, folding in the section for the current mode.

		A file may carry a `modes:` table; the entry named after `mode` is
		deep-merged over the base configuration.

		Raises:
			ConfigParsingError: If the file exists but cannot be read or parsed
		"""
		if self.is_disabled:
			logger.debug("Config file loading disabled")
			return {}
		if not self.resolved_config_file:
			logger.debug("No configuration file found. Using defaults.")
			return {}
		if not self.resolved_config_file.exists():
			msg = f"Configuration file not found: {self.resolved_config_file}"
			raise ConfigParsingError(msg)

		try:
			file_config = self._parse_yaml_file(self.resolved_config_file)
		except (OSError, yaml.YAMLError) as e:
			msg = f"Error loading configuration from {self.resolved_config_file}: {e}"
			logger.exception(msg)
			raise ConfigParsingError(msg) from e

		modes = file_config.pop("modes", None) or {}
		if not isinstance(modes, dict):
			msg = f"'modes' in {self.resolved_config_file} must be a mapping"
			raise ConfigParsingError(msg)
		mode_config = modes.get(mode)
		if isinstance(mode_config, dict):
			merge_configs(file_config, mode_config)
			logger.debug("Applied '%s' mode section from config file", mode)

		logger.info("Loaded configuration from %s", self.resolved_config_file)
		return file_config

	@staticmethod
	def env_overrides(environ: Mapping[str, str]) -> dict[str, Any]:
		"""
		Collect `EDO_<SECTION>_<KEY>` overrides for known config sections.

		Values are kept as strings; `RunConfig` validation converts them to
		each field's type.

		"""
		overrides: dict[str, Any] = {}
		for env_var, value in environ.items():
			if not env_var.startswith(ENV_OVERRIDE_PREFIX):
				continue
			parts = env_var.lower().split("_")[1:]
			if len(parts) < MIN_ENV_VAR_PARTS or parts[0] not in CONFIG_SECTIONS:
				continue
			section, key = parts[0], "_".join(parts[1:])
			overrides.setdefault(section, {})[key] = value
			logger.debug("Applied environment override %s", env_var)
		return overrides


def merge_configs(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
	"""
	Recursively merge `override` into `base` in place.

	Args:
		base: Base configuration dictionary to merge into
		override: Override configuration to apply

	Returns:
		The merged `base` dictionary

	"""
	for key, value in override.items():
		if isinstance(value, dict) and isinstance(base.get(key), dict):
			merge_configs(base[key], value)
		else:
			base[key] = value
	return base


def _prune_none(values: Mapping[str, Any]) -> dict[str, Any]:
	pruned: dict[str, Any] = {}
	for key, value in values.items():
		if isinstance(value, dict):
			nested = _prune_none(value)
			if nested:
				pruned[key] = nested
		elif value is not None:
			pruned[key] = value
	return pruned


def resolve_env_prefix(env_prefix: str | list[str] | None = "EDO_") -> list[str]:
	"""Normalize the configured env prefix(es) into a list."""
	prefixes = env_prefix if isinstance(env_prefix, list) else [env_prefix or ""]
	if any(prefix == "" for prefix in prefixes):
		logger.warning(
			"env_prefix contains an empty value, which could lead to unexpected exposure of sensitive information."
		)
	return prefixes


def load_env(
	mode: str,
	env_dir: Path,
	prefixes: list[str],
	environ: Mapping[str, str] | None = None,
) -> tuple[dict[str, str], str | None]:
	"""
	Collect prefixed variables from the environment and `.env` files.

	Process environment variables win over file values, and earlier files
	win over later ones: `.env.{mode}.local`, `.env.{mode}`, `.env.local`, `.env`.

	Returns:
		A tuple of (prefixed variables, NODE_ENV override found in a .env file)

	Raises:
		ConfigError: If `local` is used as a mode name

	"""
	if mode == "local":
		msg = '"local" cannot be used as a mode name because it conflicts with the .local postfix for .env files.'
		raise ConfigError(msg)

	environ = os.environ if environ is None else environ
	env: dict[str, str] = {}
	node_env: str | None = None

	def _has_prefix(key: str) -> bool:
		return any(key.startswith(prefix) for prefix in prefixes)

	for key, value in environ.items():
		if any(prefix and key.startswith(prefix) for prefix in prefixes) and key not in env:
			env[key] = value

	for file_name in (f".env.{mode}.local", f".env.{mode}", ".env.local", ".env"):
		path = lookup_file(env_dir, [file_name])
		if not path:
			continue
		logger.debug("Loading env file %s", path)
		for key, value in dotenv_values(path, interpolate=True).items():
			if value is None:
				continue
			if key in NODE_ENV_KEYS and node_env is None:
				node_env = value
			if _has_prefix(key) and key not in env:
				env[key] = value

	return env, node_env


def resolve_config(
	inline: Mapping[str, Any] | None = None,
	command: str | None = None,
	default_mode: str = "development",
	environ: Mapping[str, str] | None = None,
) -> RunConfig:
	"""
	Resolve the configuration for one command invocation.

	Args:
		inline: Values from CLI flags; `None` entries never override anything
		command: Name of the command being run
		default_mode: Mode used when neither flags nor the config file set one
		environ: Environment mapping (defaults to `os.environ`)

	Returns:
		The immutable resolved configuration

	Raises:
		ConfigError: If the merged configuration is invalid

	"""
	environ = os.environ if environ is None else environ
	inline_values = _prune_none(inline or {})
	mode = inline_values.get("mode") or default_mode

	start_root = Path(inline_values.get("root") or Path.cwd()).expanduser().resolve()
	loader = ConfigLoader(config_file=inline_values.pop("config_file", None), repo_root=start_root)

	merged: dict[str, Any] = {}
	merge_configs(merged, loader.load_file_config(mode))
	merge_configs(merged, loader.env_overrides(environ))
	merge_configs(merged, inline_values)

	root = Path(merged.get("root") or start_root).expanduser()
	if not root.is_absolute():
		root = start_root / root
	root = root.resolve()
	mode = inline_values.get("mode") or merged.get("mode") or mode

	env_dir = root / merged["env_dir"] if merged.get("env_dir") else root
	prefixes = resolve_env_prefix(merged.get("env_prefix", "EDO_"))
	env: dict[str, Any] = {}
	node_env = None
	if merged.pop("env_file", True) is not False:
		env, node_env = load_env(mode, env_dir, prefixes, environ)

	is_production = (node_env or mode) == "production"
	env.update({"MODE": mode, "DEV": not is_production, "PROD": is_production})

	merged.update(
		root=root,
		mode=mode,
		command=command,
		config_file=loader.resolved_config_file,
		is_production=is_production,
		env=env,
	)

	try:
		config = RunConfig.model_validate(merged)
	except ValidationError as e:
		msg = f"Invalid configuration: {e}"
		raise ConfigError(msg) from e

	logger.debug("Resolved config: %s", config.model_dump(exclude={"commit": {"token"}}))
	return config
