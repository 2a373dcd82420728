"""The init command: scaffold a project from a boilerplate."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import TYPE_CHECKING, Any

import asyncer
import platformdirs
import questionary

from edo_tools.errors import PromptCancelledError, ScaffoldError
from edo_tools.scaffold.boilerplate import (
	BOILERPLATE_DIR_NAME,
	Question,
	group_boilerplates,
	load_questions,
	render_boilerplate,
)
from edo_tools.scaffold.registry import RegistryClient, resolve_registry
from edo_tools.utils.cli_utils import loading_spinner
from edo_tools.utils.file_utils import list_visible_entries
from edo_tools.utils.log_setup import console
from edo_tools.utils.package_utils import notify_update_available

if TYPE_CHECKING:
	from collections.abc import Mapping

	from edo_tools.config.config_schema import RunConfig
	from edo_tools.utils.prompts import PromptProvider

APP_NAME = "edo-tools"
NAME_PREFIX_PATTERN = re.compile(r"^edo-")


class InitCommand:
	"""Creates a project directory from a local or published boilerplate."""

	def __init__(
		self,
		config: RunConfig,
		prompts: PromptProvider,
		registry: RegistryClient | None = None,
		logger: logging.Logger | None = None,
	) -> None:
		"""
		Initialize the init command.

		Args:
			config: Resolved run configuration
			prompts: Interactive prompt provider
			registry: Registry client; one is built from ``init.registry`` otherwise
			logger: Logger to report progress to

		"""
		self.config = config
		self.options = config.init
		self.root = config.root
		self.prompts = prompts
		self.logger = logger or logging.getLogger(__name__)
		self.registry = registry or RegistryClient(resolve_registry(self.options.registry, self.root))
		self.cache_dir = self.options.cache_dir or Path(platformdirs.user_cache_dir(APP_NAME))

	def check_target_directory(self, target_dir: Path) -> str | None:
		"""
		Check whether the target directory can be scaffolded into.

		Nothing is created here; the check also runs on every keystroke of the
		directory prompt.

		Returns:
			None when the directory can be used, otherwise the reason it cannot

		"""
		if not target_dir.exists():
			return None
		if not target_dir.is_dir():
			return f"{target_dir} already exists as a file"

		entries = list_visible_entries(target_dir)
		if entries and not self.options.force:
			return f"{target_dir} already exists and is not empty: {entries}"
		return None

	async def get_target_directory(self) -> Path:
		"""Resolve the target directory, asking for another one while it is invalid."""
		requested = self.options.dir or ""
		target_dir = (self.root / requested).resolve()

		problem = self.check_target_directory(target_dir)
		if problem:
			self.logger.error(problem)

			def validate(value: str) -> bool | str:
				return self.check_target_directory((self.root / value).resolve()) or True

			answer = await self.prompts.text("Please enter the target directory:", default=requested or ".", validate=validate)
			target_dir = (self.root / answer).resolve()

		if not target_dir.exists():
			target_dir.mkdir(parents=True)
		elif list_visible_entries(target_dir):
			self.logger.warning("%s already exists and will be overwritten due to --force", target_dir)

		self.logger.info("Target directory is %s", target_dir)
		return target_dir

	def get_template_dir(self) -> Path | None:
		"""Return the local template directory if one is configured and usable."""
		template = self.options.template
		if not template:
			return None

		template_dir = (self.root / template).resolve()
		if not template_dir.exists():
			self.logger.error("%s does not exist", template_dir)
		elif not (template_dir / BOILERPLATE_DIR_NAME).is_dir():
			self.logger.error("%s should contain a %s folder", template_dir, BOILERPLATE_DIR_NAME)
		else:
			self.logger.info("Local template directory is %s", template_dir)
			return template_dir
		return None

	def fetch_boilerplate_mapping(self) -> dict[str, dict[str, Any]]:
		"""
		Fetch the boilerplate mapping published in the init-config package.

		Raises:
			ScaffoldError: If the package has no ``config.boilerplate`` mapping

		"""
		config_name = self.options.config_name
		info = self.registry.get_package_info(config_name, with_fallback=True, root=self.root)
		mapping = (info.get("config") or {}).get("boilerplate")
		if not isinstance(mapping, dict) or not mapping:
			msg = f"{config_name} should contain a boilerplate mapping"
			raise ScaffoldError(msg)
		return {key: {**item, "name": item.get("name") or key} for key, item in mapping.items()}

	async def choose_boilerplate(self, mapping: Mapping[str, Mapping[str, Any]]) -> Mapping[str, Any] | None:
		"""
		Pick a boilerplate by ``--type`` or interactively.

		Returns:
			The chosen entry, or None if the user backed out

		"""
		if self.options.type and self.options.type in mapping:
			return mapping[self.options.type]

		groups = group_boilerplates(mapping)
		try:
			if len(groups) > 1:
				group_name = await self.prompts.select(
					"Please select a boilerplate group:",
					[questionary.Choice(title=name, value=name) for name in groups],
				)
				group = groups[group_name]
			else:
				group = next(iter(groups.values()))

			choices = [
				questionary.Choice(title=f"{key} ({item.get('description', '')})", value=key) for key, item in group.items()
			]
			boilerplate = group[await self.prompts.select("Please select a boilerplate type:", choices)]

			if boilerplate.get("deprecate") and not await self.prompts.confirm(
				"This package is deprecated, do you still want to install it?", default=False
			):
				self.logger.error("Exit due to: %s is deprecated", boilerplate.get("package"))
				return None
		except PromptCancelledError:
			self.logger.info("Boilerplate selection cancelled")
			return None

		return boilerplate

	async def _ask(self, key: str, question: Question) -> Any:
		message = question.message or key
		if question.type == "confirm":
			return await self.prompts.confirm(message, default=bool(question.default))
		if question.type == "select" and question.choices:
			default = question.default if question.default in question.choices else None
			return await self.prompts.select(message, question.choices, default=default)
		default = "" if question.default is None else str(question.default)
		return await self.prompts.text(message, default=default)

	async def ask_for_variables(self, target_dir: Path, template_dir: Path) -> dict[str, Any]:
		"""
		Collect the template variables declared by the boilerplate.

		Raises:
			PromptCancelledError: If a question is cancelled
			ScaffoldError: If ``name`` is asked for and left empty

		"""
		questions = load_questions(template_dir)
		if not questions:
			return {}

		name_question = questions.get("name")
		if name_question is not None and not name_question.default:
			questions["name"] = name_question.model_copy(
				update={"default": NAME_PREFIX_PATTERN.sub("", target_dir.name)}
			)

		if self.options.silent:
			answers = {key: "" if q.default is None else q.default for key, q in questions.items()}
			self.logger.info("Using defaults due to --silent: %s", answers)
			return answers

		answers = {}
		for key, question in questions.items():
			answers[key] = await self._ask(key, question)

		if "name" in questions and not str(answers.get("name") or "").strip():
			msg = "name is required"
			raise ScaffoldError(msg)
		self.logger.debug("Collected template variables: %s", answers)
		return answers

	def print_usage(self, target_dir: Path) -> None:
		"""Print what to do next."""
		console.print("\n[bold]Usage:[/bold]")
		console.print(f"  - cd {target_dir}")
		console.print("  - npm install")
		console.print("  - npm start / npm run dev / npm test\n")

	async def run(self) -> int:
		"""
		Run the scaffolding workflow.

		Returns:
			Exit code, 0 also when the user backs out of the boilerplate choice

		Raises:
			RegistryError: If the registry cannot be queried
			ScaffoldError: If the template cannot be resolved or rendered

		"""
		if self.options.need_update:
			await asyncer.asyncify(notify_update_available)(self.registry.session)

		target_dir = await self.get_target_directory()
		template_dir = self.get_template_dir()

		if template_dir is None:
			package = self.options.package
			if not package:
				with loading_spinner("Fetching boilerplates..."):
					mapping = await asyncer.asyncify(self.fetch_boilerplate_mapping)()
				boilerplate = await self.choose_boilerplate(mapping)
				if boilerplate is None:
					return 0
				package = boilerplate.get("package")
				if not package:
					msg = f"Boilerplate '{boilerplate.get('name')}' does not name a package"
					raise ScaffoldError(msg)
				self.logger.info("Using boilerplate: %s (%s)", boilerplate.get("name"), package)
			with loading_spinner(f"Downloading {package}..."):
				template_dir = await asyncer.asyncify(self.registry.download_boilerplate)(package, self.cache_dir)

		scope = await self.ask_for_variables(target_dir, template_dir)
		written = await asyncer.asyncify(render_boilerplate)(template_dir, target_dir, scope)
		self.logger.info("Created %d entries in %s", len(written), target_dir)
		self.print_usage(target_dir)
		return 0
