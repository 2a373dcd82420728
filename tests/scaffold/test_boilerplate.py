"""Tests for boilerplate templates."""

from __future__ import annotations

import json
import os
import stat

import pytest

from edo_tools.errors import ScaffoldError
from edo_tools.scaffold.boilerplate import group_boilerplates, load_questions, render_boilerplate, replace_template
from edo_tools.utils.file_utils import TEXT_SNIFF_BYTES
from tests.base import FileSystemTestBase


@pytest.mark.unit
class TestReplaceTemplate:
	"""Test placeholder replacement."""

	def test_known_keys(self) -> None:
		"""Placeholders with or without inner spaces are replaced."""
		assert replace_template("{{name}} / {{ version }}", {"name": "app", "version": 1}) == "app / 1"

	def test_unknown_keys_untouched(self) -> None:
		"""Placeholders without a value are left as they are."""
		assert replace_template("{{ missing }}", {"name": "app"}) == "{{ missing }}"

	def test_escaped_placeholder(self) -> None:
		"""A backslash keeps the placeholder literally, minus the backslash."""
		assert replace_template("\\{{ name }} is {{ name }}", {"name": "app"}) == "{{ name }} is app"


@pytest.mark.unit
class TestGroupBoilerplates:
	"""Test grouping of the boilerplate mapping."""

	def test_groups_by_category(self) -> None:
		"""Entries are grouped by category, with uncategorized ones under 'other'."""
		mapping = {
			"vue": {"category": "web"},
			"react": {"category": "web"},
			"koa": {"category": "server"},
			"misc": {},
		}

		groups = group_boilerplates(mapping)

		assert list(groups) == ["web", "server", "other"]
		assert list(groups["web"]) == ["vue", "react"]
		assert list(groups["other"]) == ["misc"]


@pytest.mark.unit
@pytest.mark.fs
class TestLoadQuestions(FileSystemTestBase):
	"""Test reading questions.yml."""

	def test_missing_file(self) -> None:
		"""A template without questions has no variables."""
		assert load_questions(self.temp_dir) == {}

	def test_questions(self) -> None:
		"""Questions keep their declaration order and defaults."""
		self.create_test_file(
			"questions.yml",
			"name:\n  message: Project name\nframework:\n  type: select\n  choices: [vue, react]\n  default: vue\n"
			"typescript:\n  type: confirm\n",
		)

		questions = load_questions(self.temp_dir)

		assert list(questions) == ["name", "framework", "typescript"]
		assert questions["name"].type == "text"
		assert questions["framework"].choices == ["vue", "react"]
		assert questions["typescript"].default is None

	@pytest.mark.parametrize("content", ["- a\n- b\n", "name:\n  type: slider\n", "name: [unclosed\n"])
	def test_invalid(self, content: str) -> None:
		"""Malformed question files are reported."""
		self.create_test_file("questions.yml", content)

		with pytest.raises(ScaffoldError):
			load_questions(self.temp_dir)


@pytest.mark.unit
@pytest.mark.fs
class TestRenderBoilerplate(FileSystemTestBase):
	"""Test copying a boilerplate into the target directory."""

	@pytest.fixture(autouse=True)
	def setup_template(self, setup_file_system: None) -> None:
		"""Create a template with renamed dotfiles, placeholders, a binary and a symlink."""
		self.create_test_file("tpl/boilerplate/_package.json", '{"name": "{{ name }}"}\n')
		self.create_test_file("tpl/boilerplate/gitignore", "node_modules\n")
		self.create_test_file("tpl/boilerplate/src/{{name}}.js", "export const name = '{{ name }}'\n")
		self.create_test_file("tpl/boilerplate/logo.png", b"\x89PNG\r\n\x1a\n\x00{{ name }}")
		script = self.create_test_file("tpl/boilerplate/bin/run.sh", "#!/bin/sh\necho {{ name }}\n")
		script.chmod(script.stat().st_mode | stat.S_IXUSR)
		os.symlink("src/{{name}}.js", self.temp_dir / "tpl" / "boilerplate" / "main.js")
		self.template_dir = self.temp_dir / "tpl"
		self.target_dir = self.temp_dir / "out"

	def test_render(self) -> None:
		"""Names are mapped and text contents are rendered."""
		render_boilerplate(self.template_dir, self.target_dir, {"name": "app"})

		assert json.loads((self.target_dir / "package.json").read_text()) == {"name": "app"}
		assert (self.target_dir / ".gitignore").read_text() == "node_modules\n"
		assert (self.target_dir / "src" / "app.js").read_text() == "export const name = 'app'\n"

	def test_binary_copied_verbatim(self) -> None:
		"""Binary files are not rendered."""
		render_boilerplate(self.template_dir, self.target_dir, {"name": "app"})

		assert (self.target_dir / "logo.png").read_bytes() == b"\x89PNG\r\n\x1a\n\x00{{ name }}"

	def test_invalid_utf8_after_sniffed_prefix_copied_verbatim(self) -> None:
		"""Latin-1 bytes beyond the text sniff window fall back to a byte copy."""
		content = b"a" * (TEXT_SNIFF_BYTES + 1000) + b"{{ name }} caf\xe9"
		self.create_test_file("tpl/boilerplate/notes.txt", content)

		render_boilerplate(self.template_dir, self.target_dir, {"name": "app"})

		assert (self.target_dir / "notes.txt").read_bytes() == content
		assert (self.target_dir / "package.json").exists()

	def test_mode_and_symlink_preserved(self) -> None:
		"""Executable bits survive and symlinks are recreated as links."""
		render_boilerplate(self.template_dir, self.target_dir, {"name": "app"})

		assert os.access(self.target_dir / "bin" / "run.sh", os.X_OK)
		link = self.target_dir / "main.js"
		assert link.is_symlink()
		assert os.readlink(link) == "src/{{name}}.js"

	def test_returns_written_paths(self) -> None:
		"""Every created file and link is reported."""
		written = render_boilerplate(self.template_dir, self.target_dir, {"name": "app"})

		assert self.target_dir / "package.json" in written
		assert self.target_dir / "main.js" in written
		assert self.target_dir / "src" not in written

	def test_missing_boilerplate_folder(self) -> None:
		"""A template without a boilerplate folder cannot be rendered."""
		with pytest.raises(ScaffoldError, match="boilerplate folder"):
			render_boilerplate(self.temp_dir / "nowhere", self.target_dir, {})
