"""Boilerplate templates: questions, placeholder replacement and rendering."""

from __future__ import annotations

import logging
import os
import re
import shutil
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError

from edo_tools.errors import ScaffoldError
from edo_tools.utils.file_utils import is_text_content

if TYPE_CHECKING:
	from collections.abc import Mapping

logger = logging.getLogger(__name__)

BOILERPLATE_DIR_NAME = "boilerplate"
QUESTIONS_FILE_NAME = "questions.yml"
OTHER_GROUP = "other"

# npm strips some dotfiles from published tarballs, so templates ship them renamed
FILE_MAPPING = {
	"gitignore": ".gitignore",
	"_gitignore": ".gitignore",
	"_.gitignore": ".gitignore",
	"_package.json": "package.json",
	"_.eslintrc": ".eslintrc",
	"_.eslintignore": ".eslintignore",
	"_.npmignore": ".npmignore",
}

PLACEHOLDER_PATTERN = re.compile(r"(\\)?{{ *(\w+) *}}")


class Question(BaseModel):
	"""One template variable to ask for."""

	model_config = ConfigDict(frozen=True, extra="ignore")

	type: Literal["text", "select", "confirm"] = "text"
	message: str | None = None
	default: Any = None
	choices: list[str] | None = None


def replace_template(content: str, scope: Mapping[str, Any]) -> str:
	"""
	Replace ``{{ key }}`` placeholders with values from `scope`.

	A backslash before the braces escapes the placeholder; unknown keys are
	left untouched.
	"""

	def substitute(match: re.Match[str]) -> str:
		escape, key = match.group(1), match.group(2)
		if escape:
			return match.group(0)[len(escape) :]
		if key in scope:
			return str(scope[key])
		return match.group(0)

	return PLACEHOLDER_PATTERN.sub(substitute, content)


def load_questions(template_dir: Path) -> dict[str, Question]:
	"""
	Load the template variables declared in ``questions.yml``.

	A template without the file has no variables.

	Raises:
		ScaffoldError: If the file is not a mapping of valid questions

	"""
	questions_path = Path(template_dir) / QUESTIONS_FILE_NAME
	if not questions_path.is_file():
		logger.info("No %s in template, using no variables", QUESTIONS_FILE_NAME)
		return {}

	try:
		with questions_path.open(encoding="utf-8") as f:
			raw = yaml.safe_load(f) or {}
	except (OSError, yaml.YAMLError) as e:
		msg = f"Could not read {questions_path}: {e}"
		raise ScaffoldError(msg) from e

	if not isinstance(raw, dict):
		msg = f"{questions_path} must contain a mapping of questions"
		raise ScaffoldError(msg)

	try:
		return {str(key): Question.model_validate(value or {}) for key, value in raw.items()}
	except ValidationError as e:
		msg = f"Invalid question in {questions_path}: {e}"
		raise ScaffoldError(msg) from e


def group_boilerplates(mapping: Mapping[str, Mapping[str, Any]]) -> dict[str, dict[str, Mapping[str, Any]]]:
	"""Group boilerplate entries by their ``category``; entries without one go to ``other``."""
	groups: dict[str, dict[str, Mapping[str, Any]]] = {}
	for key, item in mapping.items():
		category = item.get("category") if isinstance(item, dict) else None
		groups.setdefault(str(category) if category is not None else OTHER_GROUP, {})[key] = item
	return groups


def render_boilerplate(template_dir: Path, target_dir: Path, scope: Mapping[str, Any]) -> list[Path]:
	"""
	Copy ``boilerplate/`` from `template_dir` into `target_dir`.

	File names are renamed through `FILE_MAPPING` and have their placeholders
	replaced, as do text contents. Binary files are copied as-is and
	symlinks are recreated.

	Returns:
		The paths written, in the order they were created

	"""
	src = Path(template_dir) / BOILERPLATE_DIR_NAME
	if not src.is_dir():
		msg = f"{template_dir} should contain a {BOILERPLATE_DIR_NAME} folder"
		raise ScaffoldError(msg)

	written: list[Path] = []
	for path in sorted(src.rglob("*")):
		relative = path.relative_to(src)
		file_name = replace_template(FILE_MAPPING.get(relative.name, relative.name), scope)
		destination = Path(target_dir) / relative.parent / file_name

		if path.is_symlink():
			destination.parent.mkdir(parents=True, exist_ok=True)
			if destination.is_symlink() or destination.exists():
				destination.unlink()
			link_target = os.readlink(path)
			destination.symlink_to(link_target)
			logger.info("%s link to %s", destination, link_target)
		elif path.is_dir():
			destination.mkdir(parents=True, exist_ok=True)
			continue
		elif path.is_file():
			destination.parent.mkdir(parents=True, exist_ok=True)
			content = path.read_bytes()
			text = _decode_text(content)
			if text is None:
				destination.write_bytes(content)
			else:
				destination.write_text(replace_template(text, scope), encoding="utf-8")
			shutil.copymode(path, destination)
			logger.info("%s file created", destination)
		else:
			logger.warning("Ignoring %s: only files, directories and symlinks are supported", relative)
			continue
		written.append(destination)

	return written


def _decode_text(content: bytes) -> str | None:
	if not is_text_content(content):
		return None
	try:
		return content.decode("utf-8")
	except UnicodeDecodeError:
		# Invalid bytes past the sniffed prefix
		return None
