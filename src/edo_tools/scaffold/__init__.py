"""Project scaffolding from boilerplate templates."""

from edo_tools.scaffold.command import InitCommand
from edo_tools.scaffold.registry import RegistryClient, resolve_registry

__all__ = ["InitCommand", "RegistryClient", "resolve_registry"]
