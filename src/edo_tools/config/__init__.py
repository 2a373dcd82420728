"""Configuration resolution for edo-tools."""

from edo_tools.config.config_loader import ConfigLoader, load_env, resolve_config
from edo_tools.config.config_schema import (
	BuildConfig,
	CommitConfig,
	InitConfig,
	LibraryOptions,
	PkgConfig,
	RunConfig,
)

__all__ = [
	"BuildConfig",
	"CommitConfig",
	"ConfigLoader",
	"InitConfig",
	"LibraryOptions",
	"PkgConfig",
	"RunConfig",
	"load_env",
	"resolve_config",
]
