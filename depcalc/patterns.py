from __future__ import annotations

from typing import Callable, Dict, Iterable, List, Sequence, TypeVar

from .errors import LoadError
from .pkgset import is_test_package

T = TypeVar("T")

ALL = "..."
STD = "std"


def match_pattern(pattern: str, pid: str) -> bool:
	"""Match an id against an exact name or a "prefix..." wildcard."""
	if not pattern.endswith(ALL):
		return pid == pattern
	base = pattern[: -len(ALL)].rstrip("/.")
	if not base:
		return True
	return pid == base or pid.startswith(base + "/") or pid.startswith(base + ".")


def is_test_of(pattern: str, pid: str) -> bool:
	"""Whether pid is a test package belonging to the package named pattern."""
	if pid == pattern or not is_test_package(pid):
		return False
	return pid == pattern + "_test" or pid.startswith((pattern + ".", pattern + "/", pattern + " ["))


def resolve_patterns(
	patterns: Sequence[str],
	candidates: Dict[str, T],
	std: Callable[[], Iterable[T]],
	in_wildcards: Callable[[T], bool],
	tests: bool = False,
) -> List[T]:
	"""Resolve each pattern, collecting one failure per pattern that matches nothing.

	With tests on, an exact pattern also yields the test packages of that package.
	"""
	roots: Dict[int, T] = {}
	failed: List[str] = []
	for pattern in patterns:
		if pattern == STD:
			# an empty standard library is not a failure
			for c in std():
				roots.setdefault(id(c), c)
			continue
		if pattern.endswith(ALL):
			matched = [c for pid, c in candidates.items() if in_wildcards(c) and match_pattern(pattern, pid)]
		else:
			matched = [candidates[pattern]] if pattern in candidates else []
			if matched and tests:
				matched.extend(c for pid, c in candidates.items() if is_test_of(pattern, pid))
		if not matched:
			failed.append(pattern)
			continue
		for c in matched:
			roots.setdefault(id(c), c)

	if failed:
		message = "; ".join(f"no packages match {p!r}" for p in failed)
		raise LoadError(message, failed)
	return list(roots.values())
