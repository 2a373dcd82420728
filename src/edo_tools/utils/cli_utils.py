"""Utility functions for CLI operations in edo-tools."""

from __future__ import annotations

import contextlib
import logging
import os
from typing import TYPE_CHECKING, NoReturn, Self

import typer

from edo_tools.utils.log_setup import console, display_error_summary, display_warning_summary

if TYPE_CHECKING:
	from collections.abc import Iterator

logger = logging.getLogger(__name__)

# Standard exit code for SIGINT
SIGINT_EXIT_CODE = 130


class SpinnerState:
	"""Singleton class to track spinner state."""

	_instance = None
	is_active = False

	def __new__(cls) -> Self:
		"""Create or return the singleton instance."""
		if cls._instance is None:
			cls._instance = super().__new__(cls)
		return cls._instance


@contextlib.contextmanager
def loading_spinner(message: str = "Processing...") -> Iterator[None]:
	"""
	Display a loading spinner while executing a task.

	Spinners are skipped under pytest and CI, and never nest.

	Args:
		message: Message to display alongside the spinner

	"""
	if os.environ.get("PYTEST_CURRENT_TEST") or os.environ.get("CI"):
		yield
		return

	spinner_state = SpinnerState()
	if spinner_state.is_active:
		yield
		return

	try:
		spinner_state.is_active = True
		with console.status(message):
			yield
	finally:
		spinner_state.is_active = False


def show_error(message: str, exception: Exception | None = None) -> None:
	"""
	Display an error summary with standardized formatting.

	Args:
		message: The error message to display
		exception: Optional exception that caused the error

	"""
	error_text = message
	if exception:
		error_text += f"\n\nDetails: {exception!s}"
		logger.debug("Error occurred", exc_info=exception)

	display_error_summary(error_text)


def show_warning(message: str) -> None:
	"""
	Display a warning summary with standardized formatting.

	Args:
		message: The warning message to display

	"""
	display_warning_summary(message)


def exit_with_error(message: str, exit_code: int = 1, exception: Exception | None = None) -> NoReturn:
	"""
	Display an error message and exit.

	Args:
		message: Error message to display
		exit_code: Exit code to use
		exception: Optional exception that caused the error

	"""
	show_error(message, exception)
	raise typer.Exit(exit_code) from exception


def handle_keyboard_interrupt() -> NoReturn:
	"""Handles KeyboardInterrupt by printing a message and exiting."""
	console.print("\n[yellow]Operation cancelled by user.[/yellow]")
	raise typer.Exit(SIGINT_EXIT_CODE)


def handle_prompt_cancelled() -> NoReturn:
	"""Handles a cancelled prompt: nothing further is attempted and the exit code is 1."""
	console.print("\n[yellow]Prompt cancelled, nothing further was done.[/yellow]")
	raise typer.Exit(1)
