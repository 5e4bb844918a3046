"""File relevance filtering: status rules, glob patterns and the default allow-list."""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Iterable

from prverdict_core.models import ChangedFile

# Used only when no include patterns are configured. Docs, images, lock files
# and other generated artefacts are deliberately absent.
CODE_EXTENSIONS = {
    ".js",
    ".jsx",
    ".mjs",
    ".cjs",
    ".ts",
    ".tsx",
    ".vue",
    ".svelte",
    ".py",
    ".php",
    ".rb",
    ".go",
    ".java",
    ".kt",
    ".cs",
    ".rs",
    ".swift",
    ".c",
    ".h",
    ".cpp",
    ".hpp",
    ".scala",
    ".sql",
    ".sh",
    ".html",
    ".css",
    ".scss",
    ".json",
    ".yml",
    ".yaml",
    ".toml",
}

_REVIEWABLE_STATUSES = ("added", "modified")


def is_code_file(file_name: str) -> bool:
    return any(file_name.lower().endswith(ext) for ext in CODE_EXTENSIONS)


def parse_patterns(raw: str | None) -> list[str]:
    """Split a comma-separated pattern list, dropping blanks: "a, b,,c" -> ["a", "b", "c"]."""
    if not raw:
        return []
    return [p.strip() for p in raw.split(",") if p.strip()]


def as_patterns(value: str | list[str] | None) -> list[str]:
    """Accept a pattern list from YAML either as a list or a comma-separated string."""
    if isinstance(value, str):
        return parse_patterns(value)
    return [p for p in (value or []) if p]


@lru_cache(maxsize=256)
def _glob_to_regex(pattern: str) -> re.Pattern:
    parts = []
    i = 0
    while i < len(pattern):
        if pattern.startswith("**/", i):
            parts.append("(?:.*/)?")
            i += 3
        elif pattern.startswith("**", i):
            parts.append(".*")
            i += 2
        elif pattern[i] == "*":
            parts.append("[^/]*")
            i += 1
        elif pattern[i] == "?":
            parts.append(".")
            i += 1
        else:
            parts.append(re.escape(pattern[i]))
            i += 1
    return re.compile("".join(parts), re.DOTALL)


def matches_pattern(filename: str, pattern: str) -> bool:
    """Match a glob against the full relative path.

    ``*`` stays within one path segment, ``**`` crosses segments and ``**/``
    also matches zero directories, so ``**/*.ts`` matches both ``a.ts`` and
    ``src/a/b.ts``.
    """
    return _glob_to_regex(pattern).fullmatch(filename) is not None


def should_analyze_file(file: ChangedFile, include: list[str], exclude: list[str]) -> bool:
    # Renames carry no diff body but are surfaced for path sanity, patterns notwithstanding.
    if file.status == "renamed":
        return True
    if file.status not in _REVIEWABLE_STATUSES:
        return False
    if exclude and any(matches_pattern(file.filename, p) for p in exclude):
        return False
    if include:
        return any(matches_pattern(file.filename, p) for p in include)
    return is_code_file(file.filename)


def filter_relevant_files(
    files: Iterable[ChangedFile],
    include: list[str] | None = None,
    exclude: list[str] | None = None,
) -> list[ChangedFile]:
    """Return the files worth sending to the model, in input order."""
    include = include or []
    exclude = exclude or []
    return [f for f in files if should_analyze_file(f, include, exclude)]
