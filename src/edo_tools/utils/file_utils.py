"""Utility functions for file operations in edo-tools."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
	from collections.abc import Iterable

logger = logging.getLogger(__name__)

# Bytes sampled when deciding whether a file is text
TEXT_SNIFF_BYTES = 8000


def lookup_file(directory: Path | str, names: Iterable[str]) -> Path | None:
	"""
	Find the first of `names` in `directory` or any of its parents.

	Args:
		directory: Directory to start searching from
		names: Candidate file names, checked in order at each level

	Returns:
		Path to the first regular file found, or None

	"""
	current = Path(directory).resolve()
	names = list(names)
	while True:
		for name in names:
			candidate = current / name
			if candidate.is_file():
				return candidate
		if current.parent == current:
			return None
		current = current.parent


def read_json_file(file_path: Path | str) -> Any:
	"""
	Read and parse a JSON file.

	Raises:
		OSError: If the file cannot be read
		json.JSONDecodeError: If the content is not valid JSON

	"""
	with Path(file_path).open(encoding="utf-8") as f:
		return json.load(f)


def is_text_content(content: bytes) -> bool:
	"""Return True if `content` looks like UTF-8 text."""
	sample = content[:TEXT_SNIFF_BYTES]
	if b"\x00" in sample:
		return False
	try:
		sample.decode("utf-8")
	except UnicodeDecodeError as e:
		# A multi-byte sequence may have been cut at the sample boundary
		return len(sample) == TEXT_SNIFF_BYTES and e.start >= TEXT_SNIFF_BYTES - 4
	return True


def list_visible_entries(directory: Path) -> list[str]:
	"""List entry names in `directory`, skipping dotfiles."""
	return sorted(entry.name for entry in directory.iterdir() if not entry.name.startswith("."))
