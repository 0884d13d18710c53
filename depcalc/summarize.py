from __future__ import annotations

from typing import Iterable, List

from .cut import CutNode
from .model import PackageNode
from .pkgset import PackageSet, sorted_nodes


def format_package(fmt: str, node: PackageNode) -> str:
	return fmt.format(
		id=node.id,
		name=node.name,
		module=node.module or "",
		stat=node.stat,
		imports=",".join(sorted(n.id for n in node.imports.values())),
	)


def format_cut(fmt: str, node: CutNode) -> str:
	return fmt.format(
		id=node.id,
		in_degree=node.in_degree,
		out_degree=node.out_degree,
		stat=node.stat,
		cut=node.cut,
	)


def summarize_set(pkgs: PackageSet, fmt: str = "{id}") -> List[str]:
	return [format_package(fmt, p) for p in sorted_nodes(pkgs)]


def summarize_cut(nodes: Iterable[CutNode], fmt: str) -> List[str]:
	return [format_cut(fmt, n) for n in nodes]


def align(lines: List[str], padding: int = 3) -> List[str]:
	"""Align tab separated cells into columns."""
	rows = [line.split("\t") for line in lines]
	widths: List[int] = []
	for row in rows:
		for i, cell in enumerate(row[:-1]):
			if i >= len(widths):
				widths.append(0)
			widths[i] = max(widths[i], len(cell))

	out = []
	for row in rows:
		cells = [cell.ljust(widths[i] + padding) for i, cell in enumerate(row[:-1])]
		out.append("".join(cells) + row[-1])
	return out


def summarize_tree(tree: str) -> str:
	return "\n".join(line for line in tree.splitlines() if line.strip())
