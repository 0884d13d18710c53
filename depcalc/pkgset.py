"""Pure set algebra over package sets.

A package set maps package id to its node. None of the functions here mutate
their arguments; each returns a new set.
"""

from __future__ import annotations

from collections import deque
from typing import Callable, Dict, Iterable, List, Set

from .model import PackageNode

PackageSet = Dict[str, PackageNode]


def new_root(roots: Iterable[PackageNode]) -> PackageSet:
	"""Set of exactly the given nodes, without their imports."""
	return {p.id: p for p in roots}


def new_all(src: Iterable[PackageNode]) -> PackageSet:
	"""Transitive closure of the given nodes, including themselves."""
	result: PackageSet = {}
	for p in src:
		include_recursive(result, p)
	return result


def include_recursive(result: PackageSet, p: PackageNode) -> None:
	stack = [p]
	while stack:
		node = stack.pop()
		if node.id in result:
			continue
		result[node.id] = node
		stack.extend(node.imports.values())


def walk_dependencies(a: PackageSet, fn: Callable[[PackageNode], None]) -> None:
	seen: Set[str] = set()
	stack: List[PackageNode] = list(a.values())
	while stack:
		p = stack.pop()
		if p.id in seen:
			continue
		seen.add(p.id)
		fn(p)
		stack.extend(p.imports.values())


def sorted_nodes(a: PackageSet) -> List[PackageNode]:
	return [a[k] for k in sorted(a)]


def union(a: PackageSet, b: PackageSet) -> PackageSet:
	result = dict(a)
	for pid, p in b.items():
		result.setdefault(pid, p)
	return result


def union_all(*sets: PackageSet) -> PackageSet:
	result: PackageSet = {}
	for s in sets:
		for pid, p in s.items():
			result.setdefault(pid, p)
	return result


def subtract(a: PackageSet, b: PackageSet) -> PackageSet:
	return {pid: p for pid, p in a.items() if pid not in b}


def intersect(a: PackageSet, b: PackageSet) -> PackageSet:
	return {pid: a[pid] for pid in b if pid in a}


def symmetric_difference(a: PackageSet, b: PackageSet) -> PackageSet:
	result = {pid: p for pid, p in a.items() if pid not in b}
	for pid, p in b.items():
		if pid not in a:
			result[pid] = p
	return result


def reach(a: PackageSet, b: PackageSet) -> PackageSet:
	"""Packages in a that can reach a package in b through imports.

	Walks the import edges of the closure of a backwards from b, so every node
	and edge is visited once regardless of cycles.
	"""
	importers: Dict[str, List[PackageNode]] = {}

	def record(p: PackageNode) -> None:
		for dep in p.imports.values():
			importers.setdefault(dep.id, []).append(p)

	walk_dependencies(a, record)

	reached: Set[str] = set(b)
	queue = deque(b)
	while queue:
		pid = queue.popleft()
		for p in importers.get(pid, ()):
			if p.id not in reached:
				reached.add(p.id)
				queue.append(p.id)

	return {pid: p for pid, p in a.items() if pid in reached}


def incoming(a: PackageSet, b: PackageSet) -> PackageSet:
	"""Packages from a that directly import a package in b, together with b."""
	result = dict(b)
	for x in a.values():
		for imp in x.imports.values():
			if imp.id in b:
				result[x.id] = x
				break
	return result


def transitive(a: PackageSet) -> PackageSet:
	"""Transitive reduction: drop every import that is implied by a longer path."""
	result: PackageSet = {}
	for p in a.values():
		indirect: Set[str] = set()
		for c in p.imports.values():
			collect_dependencies(c, indirect)
		reduced = p.copy()
		reduced.imports = {key: dep for key, dep in p.imports.items() if dep.id not in indirect}
		result[p.id] = reduced
	return result


def collect_dependencies(p: PackageNode, visited: Set[str]) -> None:
	stack = list(p.imports.values())
	while stack:
		c = stack.pop()
		if c.id in visited:
			continue
		visited.add(c.id)
		stack.extend(c.imports.values())


def sources(a: PackageSet) -> PackageSet:
	"""Packages in a without incoming edges from anywhere in the closure of a."""
	counts: Dict[str, int] = {}

	def count(p: PackageNode) -> None:
		for dep in p.imports.values():
			counts[dep.id] = counts.get(dep.id, 0) + 1

	walk_dependencies(a, count)
	return {pid: p for pid, p in a.items() if counts.get(pid, 0) == 0}


def direct_dependencies(a: PackageSet) -> PackageSet:
	result: PackageSet = {}
	for p in a.values():
		for dep in p.imports.values():
			if dep.id not in a:
				result[dep.id] = dep
	return result


def module_dependencies(a: PackageSet) -> PackageSet:
	"""Dependencies of a, direct or indirect, that belong to a module of a."""
	modules = {p.module for p in a.values() if p.module is not None}
	result = dict(a)

	def include(p: PackageNode) -> None:
		if p.module is not None and p.module in modules:
			result[p.id] = p

	walk_dependencies(a, include)
	return result


def main(a: PackageSet) -> PackageSet:
	return {pid: p for pid, p in a.items() if p.is_main}


def test(a: PackageSet) -> PackageSet:
	return {pid: p for pid, p in a.items() if is_test_package(p.id)}


def is_test_package(pid: str) -> bool:
	if pid.endswith((".test", "_test", ".test]")):
		return True
	last = pid.rsplit(".", 1)[-1]
	return last.startswith("test_") or last in ("tests", "conftest")
