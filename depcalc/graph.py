from __future__ import annotations

from typing import Dict, List, Mapping, Set

from .model import PackageNode, Stat
from .pkgset import collect_dependencies


class GraphNode:
	"""A package inside a Graph, with edges restricted to the graph."""

	def __init__(self, package: PackageNode):
		self.package = package
		self.id = package.id
		self.stat = package.stat
		self.up = Stat()  # everything importing this node, directly or not
		self.down = Stat()  # everything this node imports, directly or not
		self.imports_nodes: List[GraphNode] = []

	def __repr__(self) -> str:
		return f"GraphNode({self.id!r})"


class Graph:
	def __init__(self) -> None:
		self.packages: Dict[str, GraphNode] = {}
		self.sorted: List[GraphNode] = []
		self.stat = Stat()

	def add_node(self, node: GraphNode) -> None:
		self.packages[node.id] = node
		self.stat.add(node.stat)

	@classmethod
	def from_set(cls, pkgs: Mapping[str, PackageNode]) -> "Graph":
		g = cls()
		for p in pkgs.values():
			g.add_node(GraphNode(p))
		g.sorted = sorted(g.packages.values(), key=lambda n: n.id)

		cache = all_imports(pkgs.values())
		for n in g.packages.values():
			for pid in cache[n.id]:
				imported = g.packages.get(pid)
				if imported is None:
					continue
				n.down.add(imported.stat)
				imported.up.add(n.stat)

		for n in g.packages.values():
			seen: Set[str] = set()
			for dep in n.package.imports.values():
				direct = g.packages.get(dep.id)
				if direct is None or direct.id in seen:
					continue
				seen.add(direct.id)
				n.imports_nodes.append(direct)
			n.imports_nodes.sort(key=lambda x: x.id)

		return g


def all_imports(pkgs) -> Dict[str, Set[str]]:
	"""Map every package, and everything it imports, to its transitive import ids."""
	cache: Dict[str, Set[str]] = {}
	stack: List[PackageNode] = list(pkgs)
	while stack:
		p = stack.pop()
		if p.id in cache:
			continue
		ids: Set[str] = set()
		collect_dependencies(p, ids)
		ids.discard(p.id)
		cache[p.id] = ids
		stack.extend(p.imports.values())
	return cache
