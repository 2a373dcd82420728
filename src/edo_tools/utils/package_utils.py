"""Utilities for checking whether a newer edo-tools release exists."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import requests
from packaging import version

from edo_tools import __version__
from edo_tools.utils.log_setup import console

if TYPE_CHECKING:
	from rich.console import Console

logger = logging.getLogger(__name__)

HTTP_OK = 200  # Status code for successful HTTP request

# PyPI package name
PACKAGE_NAME = "edo-tools"
PYPI_URL = f"https://pypi.org/pypi/{PACKAGE_NAME}/json"


def get_current_version() -> str:
	"""Get the currently installed version of edo-tools."""
	return __version__


def check_for_updates(session: requests.Session | None = None, timeout: float = 5) -> tuple[bool, str | None]:
	"""
	Check if a newer version of edo-tools is available on PyPI.

	Args:
		session: Optional session, so proxy settings are shared with the caller
		timeout: Request timeout in seconds

	Returns:
		tuple: (is_latest, latest_version)
		- is_latest (bool): True if current version is the latest
		- latest_version (str | None): Latest version string or None if check failed

	"""
	try:
		response = (session or requests).get(PYPI_URL, timeout=timeout)
		if response.status_code != HTTP_OK:
			logger.debug("Update check returned HTTP %s", response.status_code)
			return True, None

		latest_version = response.json()["info"]["version"]
		is_latest = version.parse(get_current_version()) >= version.parse(latest_version)
		return is_latest, latest_version
	except (requests.RequestException, ValueError, KeyError, version.InvalidVersion):
		logger.debug("Failed to check for updates", exc_info=True)
		return True, None  # Assume current is latest on failure


def notify_update_available(session: requests.Session | None = None, custom_console: Console | None = None) -> None:
	"""
	Check for updates and notify the user if a newer version is available.

	Args:
		session: Optional session used for the request
		custom_console: Optional console to print notification to

	"""
	is_latest, latest_version = check_for_updates(session)
	if is_latest or not latest_version:
		return
	output_console = custom_console or console
	output_console.print(
		f"[yellow]Update available:[/yellow] {get_current_version()} -> {latest_version}\n"
		f"[yellow]Run 'pip install --upgrade {PACKAGE_NAME}' to update.[/yellow]\n"
	)
