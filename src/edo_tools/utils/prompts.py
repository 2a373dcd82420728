"""Interactive prompt provider built on questionary."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import questionary

from edo_tools.errors import PromptCancelledError

if TYPE_CHECKING:
	from collections.abc import Callable, Sequence

logger = logging.getLogger(__name__)


class PromptProvider:
	"""
	Thin async wrapper over questionary prompts.

	questionary reports a cancelled prompt (Ctrl+C / Esc) by returning None;
	every method here turns that into `PromptCancelledError` so callers never
	have to distinguish "no answer" from "empty answer".

	"""

	@staticmethod
	def _unwrap(answer: Any, message: str) -> Any:
		if answer is None:
			logger.debug("Prompt cancelled: %s", message)
			msg = f"Prompt cancelled: {message}"
			raise PromptCancelledError(msg)
		return answer

	async def select(self, message: str, choices: Sequence[questionary.Choice | str], default: Any = None) -> Any:
		"""Ask the user to pick exactly one of `choices`."""
		answer = await questionary.select(message, choices=list(choices), default=default).ask_async()
		return self._unwrap(answer, message)

	async def checkbox(self, message: str, choices: Sequence[questionary.Choice]) -> list[Any]:
		"""Ask the user to pick any subset of `choices`; an empty list is a valid answer."""
		answer = await questionary.checkbox(message, choices=list(choices)).ask_async()
		return self._unwrap(answer, message)

	async def confirm(self, message: str, default: bool = True) -> bool:
		"""Ask a yes/no question."""
		answer = await questionary.confirm(message, default=default).ask_async()
		return bool(self._unwrap(answer, message))

	async def text(
		self,
		message: str,
		default: str = "",
		validate: Callable[[str], bool | str] | None = None,
	) -> str:
		"""Ask for free text."""
		kwargs: dict[str, Any] = {"default": default}
		if validate is not None:
			kwargs["validate"] = validate
		answer = await questionary.text(message, **kwargs).ask_async()
		return self._unwrap(answer, message)
