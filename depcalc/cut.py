"""Cascading removal analysis.

For each target the cut is the combined stat of every node that loses its last
importer, directly or through a chain, once the target is deleted.

Working indegrees are shared by all nodes of one analysis, so `reset` must run
before every `erase`; erasing without a reset reuses counts decremented by the
previous target and yields wrong cuts.
"""

from __future__ import annotations

from typing import Iterable, List, Optional

from .graph import Graph, GraphNode
from .model import CutEntry, Stat


class CutNode:
	def __init__(self, node: GraphNode):
		self.node = node
		self.id = node.id
		self.stat = node.stat
		self.cut = Stat()
		self.imports: List[CutNode] = []
		self.imported_by: List[CutNode] = []
		self._indegree = 0

	@property
	def in_degree(self) -> int:
		return len(self.imported_by)

	@property
	def out_degree(self) -> int:
		return len(self.imports)

	def import_node(self, child: "CutNode") -> None:
		if child in self.imports:
			return
		child._indegree += 1
		child.imported_by.append(self)
		self.imports.append(child)

	def entry(self) -> CutEntry:
		return CutEntry(
			id=self.id,
			in_degree=self.in_degree,
			out_degree=self.out_degree,
			stat=self.stat,
			cut=self.cut,
		)

	def __repr__(self) -> str:
		return f"CutNode({self.id!r}, cut={self.cut.package_count})"


def build(graph: Graph) -> List[CutNode]:
	nodes = {n.id: CutNode(n) for n in graph.sorted}
	for n in graph.sorted:
		parent = nodes[n.id]
		for child in n.imports_nodes:
			parent.import_node(nodes[child.id])
	return [nodes[n.id] for n in graph.sorted]


def reset(nodes: Iterable[CutNode]) -> None:
	for n in nodes:
		n._indegree = len(n.imported_by)


def erase(target: CutNode) -> Stat:
	cut = Stat()
	stack = [target]
	while stack:
		node = stack.pop()
		for imp in node.imports:
			imp._indegree -= 1
			if imp._indegree == 0 and imp is not target:
				cut.add(imp.stat)
				stack.append(imp)
	return cut


def cut(graph: Graph, targets: Optional[Iterable[str]] = None, exclude: Iterable[str] = ()) -> List[CutNode]:
	"""Compute the cut of each target, ordered by ascending in-degree then descending cut size."""
	nodes = build(graph)
	wanted = None if targets is None else set(targets)
	analysed = [n for n in nodes if wanted is None or n.id in wanted]

	for node in analysed:
		reset(nodes)
		node.cut = erase(node)

	analysed.sort(key=lambda n: (n.in_degree, -n.cut.package_count, n.id))
	skip = set(exclude)
	return [n for n in analysed if n.id not in skip]
