"""Packages that keep dead-code elimination from pruning unused methods.

The symbol graph comes from an oracle. Two are provided: `DumpDepOracle` runs a
linker-style dependency dump command and parses its text, `CallGraphOracle`
derives a call graph from Python sources (see callgraph.py).
"""

from __future__ import annotations

import logging
import os
import subprocess
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Protocol, Sequence, Set, Tuple

from .context import LoadConfig, key_value
from .errors import EvalError
from .pkgset import PackageSet

log = logging.getLogger(__name__)

# Version of the "source -> target <Annotation>" dump contract parse_dump_dep understands.
DUMPDEP_FORMAT_VERSION = 1
REFLECT_METHOD = "<ReflectMethod>"

# oracle contract versions deadcode understands
SUPPORTED_ORACLE_VERSIONS = frozenset({DUMPDEP_FORMAT_VERSION})


@dataclass
class SymbolGraph:
	callers: Dict[str, List[str]] = field(default_factory=dict)
	annotated: Set[str] = field(default_factory=set)
	package_of: Callable[[str], str] = lambda sym: package_from_symbol(sym)

	def add_call(self, caller: str, callee: str) -> None:
		self.callers.setdefault(callee, []).append(caller)

	def reachable_from_annotated(self) -> Set[str]:
		"""Every symbol that transitively calls an annotated symbol, annotated ones included."""
		reachable: Set[str] = set()
		stack = list(self.annotated)
		while stack:
			sym = stack.pop()
			if sym in reachable:
				continue
			reachable.add(sym)
			stack.extend(self.callers.get(sym, ()))
		return reachable


class DeadcodeOracle(Protocol):
	version: int

	def symbol_graph(self, config: LoadConfig, ids: Sequence[str]) -> SymbolGraph:
		...


def deadcode(oracle: DeadcodeOracle, config: LoadConfig, pkgs: PackageSet) -> PackageSet:
	if oracle.version not in SUPPORTED_ORACLE_VERSIONS:
		raise EvalError(f"unsupported deadcode oracle version {oracle.version}")
	ids = sorted(pkgs)
	if not ids:
		return {}

	graph = oracle.symbol_graph(config, ids)
	result: PackageSet = {}
	for sym in graph.reachable_from_annotated():
		pid = graph.package_of(sym)
		if pid and pid in pkgs:
			result[pid] = pkgs[pid]
	return result


def _strip_annotation(sym: str) -> str:
	idx = sym.find(" <")
	if idx >= 0:
		return sym[:idx]
	return sym


def parse_dump_dep(lines: Iterable[str], annotation: str = REFLECT_METHOD) -> Tuple[Dict[str, List[str]], Set[str]]:
	"""Parse "source -> target" lines, either side optionally followed by annotations.

	Returns the callers of each symbol and the set of annotated symbols.
	"""
	callers: Dict[str, List[str]] = {}
	annotated: Set[str] = set()
	marker = " " + annotation
	for line in lines:
		source, sep, target = line.partition(" -> ")
		if not sep:
			continue
		source = source.strip()
		target = target.strip()

		if marker in target:
			target = _strip_annotation(target)
			annotated.add(target)
		if marker in source:
			source = _strip_annotation(source)
			annotated.add(source)

		source = _strip_annotation(source)
		target = _strip_annotation(target)
		callers.setdefault(target, []).append(source)

	return callers, annotated


def package_from_symbol(sym: str) -> str:
	"""Package path of a linker symbol, "text/template.(*state).evalField" -> "text/template"."""
	sym = sym.strip()
	if not sym:
		return ""
	last_slash = sym.rfind("/")
	prefix, rest = sym[: last_slash + 1], sym[last_slash + 1 :]
	name, sep, _ = rest.partition(".")
	if not sep:
		return ""
	return prefix + name


class DumpDepOracle:
	"""Runs `command + ids` and parses the dependency dump written to stderr."""

	version = DUMPDEP_FORMAT_VERSION

	def __init__(self, command: Sequence[str], annotation: str = REFLECT_METHOD):
		self.command = list(command)
		self.annotation = annotation

	def symbol_graph(self, config: LoadConfig, ids: Sequence[str]) -> SymbolGraph:
		args = self.command + list(ids)
		log.info("running %s", " ".join(args))
		env = dict(os.environ)
		env.update(key_value(item) for item in config.env)
		try:
			proc = subprocess.run(
				args,
				capture_output=True,
				text=True,
				env=env,
				check=False,
			)
		except OSError as e:
			raise EvalError(f"{self.command[0]} failed: {e}") from e
		if proc.returncode != 0:
			raise EvalError(f"{' '.join(self.command)} failed with exit code {proc.returncode}\n{proc.stderr}")

		callers, annotated = parse_dump_dep(proc.stderr.splitlines(), self.annotation)
		return SymbolGraph(callers=callers, annotated=annotated)

