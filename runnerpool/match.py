"""Repository and build-event allow lists with shell-style patterns."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable

_SEPARATOR = "/"


class PatternError(ValueError):
    """Raised for a malformed pattern."""

    def __init__(self) -> None:
        super().__init__("syntax error in pattern")


@dataclass
class Repo:
    """The repository a build belongs to."""

    slug: str
    trusted: bool = False


@dataclass
class Build:
    """A build request."""

    event: str


def _scan_chunk(pattern: str) -> tuple[bool, str, str]:
    star = False
    while pattern.startswith("*"):
        pattern = pattern[1:]
        star = True
    in_range = False
    i = 0
    while i < len(pattern):
        char = pattern[i]
        if char == "\\":
            if i + 1 < len(pattern):
                i += 1
        elif char == "[":
            in_range = True
        elif char == "]":
            in_range = False
        elif char == "*" and not in_range:
            break
        i += 1
    return star, pattern[:i], pattern[i:]


def _get_esc(chunk: str) -> tuple[str, str]:
    if not chunk or chunk[0] in "-]":
        raise PatternError()
    if chunk[0] == "\\":
        chunk = chunk[1:]
        if not chunk:
            raise PatternError()
    char, rest = chunk[0], chunk[1:]
    if not rest:
        raise PatternError()
    return char, rest


def _match_chunk(chunk: str, s: str) -> str | None:
    """Match chunk at the start of s; return the rest of s or None."""
    failed = False
    while chunk:
        if not failed and not s:
            failed = True
        head = chunk[0]
        if head == "[":
            current = ""
            if not failed:
                current, s = s[0], s[1:]
            chunk = chunk[1:]
            negated = False
            if chunk.startswith("^"):
                negated = True
                chunk = chunk[1:]
            matched = False
            ranges = 0
            while True:
                if chunk.startswith("]") and ranges > 0:
                    chunk = chunk[1:]
                    break
                low, chunk = _get_esc(chunk)
                high = low
                if chunk[0] == "-":
                    high, chunk = _get_esc(chunk[1:])
                if not failed and low <= current <= high:
                    matched = True
                ranges += 1
            if matched == negated:
                failed = True
        elif head == "?":
            if not failed:
                if s[0] == _SEPARATOR:
                    failed = True
                s = s[1:]
            chunk = chunk[1:]
        else:
            if head == "\\":
                chunk = chunk[1:]
                if not chunk:
                    raise PatternError()
            if not failed:
                if chunk[0] != s[0]:
                    failed = True
                s = s[1:]
            chunk = chunk[1:]
    return None if failed else s


def path_match(pattern: str, name: str) -> bool:
    """Report whether name matches the shell pattern, '/' being a separator.

    Raises PatternError when the pattern is malformed.
    """
    while pattern:
        star, chunk, pattern = _scan_chunk(pattern)
        if star and not chunk:
            return _SEPARATOR not in name
        rest = _match_chunk(chunk, name)
        if rest is not None and (not rest or pattern):
            name = rest
            continue
        if star:
            advanced = False
            for i, char in enumerate(name):
                if char == _SEPARATOR:
                    break
                rest = _match_chunk(chunk, name[i + 1:])
                if rest is not None:
                    if not pattern and rest:
                        continue
                    name = rest
                    advanced = True
                    break
            if advanced:
                continue
        while pattern:
            _, chunk, pattern = _scan_chunk(pattern)
            _match_chunk(chunk, "")
        return False
    return not name


def _matches_any(value: str, patterns: list[str]) -> bool:
    if not patterns:
        return True
    for pattern in patterns:
        try:
            if path_match(pattern, value):
                return True
        except PatternError:
            continue
    return False


def make_matcher(
    repos: Iterable[str], events: Iterable[str], trusted: bool
) -> Callable[[Repo, Build], bool]:
    """Return a function telling whether a repository and build are allowed.

    Empty pattern lists allow everything; in trusted mode only trusted
    repositories are allowed.
    """
    repo_patterns = list(repos)
    event_patterns = list(events)

    def matcher(repo: Repo, build: Build) -> bool:
        if trusted and not repo.trusted:
            return False
        if not _matches_any(repo.slug, repo_patterns):
            return False
        return _matches_any(build.event, event_patterns)

    return matcher