from __future__ import annotations

import ast
import logging
from typing import Dict, List, Optional, Protocol, Sequence, Set, Tuple

from .context import LoadConfig
from .deadcode import SymbolGraph
from .model import PackageNode

log = logging.getLogger(__name__)

# Calls that look attributes or modules up by name, defeating static pruning.
DYNAMIC_CALLS = {"getattr", "__import__", "import_module", "eval", "exec"}

MODULE_SYMBOL = "<module>"


class CallNode:
	"""A function, method or module body in the call graph."""

	def __init__(self, name: str, module: str):
		self.name = name
		self.module = module
		self.dynamic = False


class CallGraph:
	def __init__(self):
		self.nodes: Dict[str, CallNode] = {}
		self.edges: List[Tuple[str, str]] = []

	def add_node(self, node: CallNode):
		self.nodes[node.name] = node

	def add_edge(self, caller: str, callee: str):
		if caller in self.nodes and callee in self.nodes:
			self.edges.append((caller, callee))

	def merge(self, other: "CallGraph"):
		for node in other.nodes.values():
			self.add_node(node)

	def package_of(self, sym: str) -> str:
		node = self.nodes.get(sym)
		if node is not None:
			return node.module
		return package_of_symbol(sym)

	def to_symbol_graph(self) -> SymbolGraph:
		graph = SymbolGraph(package_of=self.package_of)
		for caller, callee in self.edges:
			graph.add_call(caller, callee)
		graph.annotated = {name for name, node in self.nodes.items() if node.dynamic}
		return graph


def symbol(module: str, qualname: str) -> str:
	return f"{module}:{qualname}"


def package_of_symbol(sym: str) -> str:
	return sym.split(":", 1)[0]


def _import_aliases(tree: ast.Module) -> Dict[str, Tuple[str, Optional[str]]]:
	"""Map local names to (module, attribute) for top-level imports."""
	aliases: Dict[str, Tuple[str, Optional[str]]] = {}
	for node in tree.body:
		if isinstance(node, ast.Import):
			for alias in node.names:
				if alias.asname:
					aliases[alias.asname] = (alias.name, None)
				else:
					top = alias.name.split(".", 1)[0]
					aliases[top] = (top, None)
		elif isinstance(node, ast.ImportFrom) and node.level == 0 and node.module:
			for alias in node.names:
				if alias.name != "*":
					aliases[alias.asname or alias.name] = (node.module, alias.name)
	return aliases


class _CallCollector(ast.NodeVisitor):
	def __init__(self, module: str, aliases: Dict[str, Tuple[str, Optional[str]]], defined: Set[str]):
		self.module = module
		self.aliases = aliases
		self.defined = defined
		self.calls: List[Tuple[str, str]] = []
		self.dynamic: Set[str] = set()
		self._scope: List[str] = []
		self._classes: List[str] = []

	def current(self) -> str:
		if self._scope:
			return symbol(self.module, self._scope[-1])
		return symbol(self.module, MODULE_SYMBOL)

	def visit_ClassDef(self, node: ast.ClassDef) -> None:
		self._classes.append(node.name)
		self.generic_visit(node)
		self._classes.pop()

	def _visit_function(self, node) -> None:
		qualname = ".".join(self._classes + [node.name]) if self._classes and not self._scope else node.name
		if self._scope:
			qualname = self._scope[-1]  # nested functions count towards their parent
		self._scope.append(qualname)
		saved, self._classes = self._classes, []
		self.generic_visit(node)
		self._classes = saved
		self._scope.pop()

	visit_FunctionDef = _visit_function
	visit_AsyncFunctionDef = _visit_function

	def _callee(self, func: ast.expr) -> Optional[str]:
		if isinstance(func, ast.Name):
			if func.id in self.defined:
				return symbol(self.module, func.id)
			target = self.aliases.get(func.id)
			if target and target[1]:
				return symbol(target[0], target[1])
			return None
		if isinstance(func, ast.Attribute):
			value = func.value
			if isinstance(value, ast.Name):
				if value.id in ("self", "cls") and self._scope and "." in self._scope[-1]:
					owner = self._scope[-1].rsplit(".", 1)[0]
					return symbol(self.module, f"{owner}.{func.attr}")
				if value.id in self.defined:
					return symbol(self.module, f"{value.id}.{func.attr}")
				target = self.aliases.get(value.id)
				if target:
					mod = target[0] if target[1] is None else f"{target[0]}.{target[1]}"
					return symbol(mod, func.attr)
		return None

	def visit_Call(self, node: ast.Call) -> None:
		func = node.func
		name = func.id if isinstance(func, ast.Name) else func.attr if isinstance(func, ast.Attribute) else None
		if name in DYNAMIC_CALLS:
			self.dynamic.add(self.current())
		callee = self._callee(func)
		if callee is not None:
			self.calls.append((self.current(), callee))
		self.generic_visit(node)


def extract_call_relations(module: str, path: str, source_code: str) -> Tuple[CallGraph, List[Tuple[str, str]]]:
	"""Call graph nodes of one module and the raw (caller, callee) pairs found in it."""
	callgraph = CallGraph()
	tree = ast.parse(source_code, filename=path)

	callgraph.add_node(CallNode(symbol(module, MODULE_SYMBOL), module))
	defined: Set[str] = set()
	for node in tree.body:
		if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
			defined.add(node.name)
			callgraph.add_node(CallNode(symbol(module, node.name), module))
		elif isinstance(node, ast.ClassDef):
			defined.add(node.name)
			for method in node.body:
				if isinstance(method, (ast.FunctionDef, ast.AsyncFunctionDef)):
					callgraph.add_node(CallNode(symbol(module, f"{node.name}.{method.name}"), module))

	collector = _CallCollector(module, _import_aliases(tree), defined)
	collector.visit(tree)
	for name in collector.dynamic:
		if name in callgraph.nodes:
			callgraph.nodes[name].dynamic = True
	return callgraph, collector.calls


def build_module_callgraph(packages: Sequence[PackageNode]) -> CallGraph:
	"""Build one call graph across the python files of the given packages."""
	global_callgraph = CallGraph()
	calls: List[Tuple[str, str]] = []

	for pkg in packages:
		for path in pkg.files:
			if not path.endswith(".py"):
				continue
			try:
				with open(path, "r", encoding="utf-8") as fh:
					text = fh.read()
				module_callgraph, module_calls = extract_call_relations(pkg.id, path, text)
			except (OSError, SyntaxError, UnicodeDecodeError, ValueError) as e:
				log.warning("skipping call graph of %s: %s", path, e)
				continue
			global_callgraph.merge(module_callgraph)
			calls.extend(module_calls)

	for caller, callee in calls:
		global_callgraph.add_edge(caller, callee)
	return global_callgraph


class _Universe(Protocol):
	def universe(self, config: LoadConfig) -> Dict[str, PackageNode]:
		...


class CallGraphOracle:
	"""Symbol graph of Python functions; functions doing dynamic lookups are annotated."""

	version = 1

	def __init__(self, loader: _Universe):
		self.loader = loader

	def symbol_graph(self, config: LoadConfig, ids: Sequence[str]) -> SymbolGraph:
		nodes = self.loader.universe(config)
		missing = [pid for pid in ids if pid not in nodes]
		if missing:
			log.debug("no sources for %s", ", ".join(missing))
		callgraph = build_module_callgraph([nodes[pid] for pid in ids if pid in nodes])
		log.debug("call graph: %d symbols, %d calls", len(callgraph.nodes), len(callgraph.edges))
		return callgraph.to_symbol_graph()
