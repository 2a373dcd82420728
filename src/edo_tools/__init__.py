"""edo-tools - developer tooling CLI."""

__version__ = "0.3.0"
