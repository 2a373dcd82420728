"""Conventional commit message formatting and linting."""

from __future__ import annotations

import re
import textwrap
from typing import TYPE_CHECKING

if TYPE_CHECKING:
	from edo_tools.config.config_schema import ConventionSchema

HEADER_PATTERN = re.compile(r"^(?P<type>[\w-]+)(?:\((?P<scope>[^()\r\n]+)\))?(?P<breaking>!)?: (?P<subject>.+)$")

# Issue references accept "12", "#12" or full "owner/repo#12" forms
ISSUE_SPLIT_PATTERN = re.compile(r"[,\s]+")


def format_issue_refs(issues: str) -> list[str]:
	"""Turn a free-form issue list into `#n` references."""
	refs = []
	for raw in ISSUE_SPLIT_PATTERN.split(issues.strip()):
		if not raw:
			continue
		refs.append(f"#{raw}" if raw.isdigit() else raw)
	return refs


def format_commit_message(
	commit_type: str,
	subject: str,
	scope: str | None = None,
	body: str | None = None,
	breaking: str | None = None,
	issues: str | None = None,
	width: int = 100,
) -> str:
	"""
	Assemble a conventional commit message.

	Args:
		commit_type: Commit type, e.g. ``feat``
		subject: Short imperative description
		scope: Optional scope placed in parentheses
		body: Optional longer description, wrapped to `width`
		breaking: Description of a breaking change; adds ``!`` and a footer
		issues: Issues closed by this commit
		width: Wrap width for body and footers

	Returns:
		The formatted message, without a trailing newline

	"""
	header = commit_type
	if scope:
		header += f"({scope.strip()})"
	if breaking:
		header += "!"
	header += f": {subject.strip()}"

	sections = [header]
	if body and body.strip():
		paragraphs = [p.strip() for p in re.split(r"\n\s*\n", body.strip()) if p.strip()]
		sections.append("\n\n".join(textwrap.fill(p, width=width) for p in paragraphs))

	footers = []
	if breaking:
		footers.append(textwrap.fill(f"BREAKING CHANGE: {breaking.strip()}", width=width))
	if issues:
		refs = format_issue_refs(issues)
		if refs:
			footers.append(f"Closes {', '.join(refs)}")
	if footers:
		sections.append("\n".join(footers))

	return "\n\n".join(sections)


def lint_commit_message(message: str, convention: ConventionSchema) -> tuple[bool, list[str]]:
	"""
	Check a commit message against the conventional commit rules.

	Returns:
		Tuple of (is_valid, problems)

	"""
	problems: list[str] = []
	lines = message.splitlines()
	header = lines[0] if lines else ""

	match = HEADER_PATTERN.match(header)
	if not match:
		problems.append("Header must look like 'type(scope): subject'")
		return False, problems

	if convention.types and match.group("type") not in convention.types:
		problems.append(f"Type '{match.group('type')}' must be one of: {', '.join(convention.types)}")

	scope = match.group("scope")
	if scope and convention.scopes and scope not in convention.scopes:
		problems.append(f"Scope '{scope}' must be one of: {', '.join(convention.scopes)}")

	if len(header) > convention.max_length:
		problems.append(f"Header must not be longer than {convention.max_length} characters (got {len(header)})")

	subject = match.group("subject").strip()
	if not subject:
		problems.append("Subject may not be empty")
	elif subject.endswith("."):
		problems.append("Subject may not end with a full stop")

	if len(lines) > 1 and lines[1].strip():
		problems.append("Body must be separated from the header by a blank line")

	return not problems, problems
