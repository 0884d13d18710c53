from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel, Field


class Source(BaseModel):
	files: int = 0
	binary: int = 0
	size: int = 0
	lines: int = 0
	blank: int = 0

	def add(self, other: "Source") -> None:
		self.files += other.files
		self.binary += other.binary
		self.size += other.size
		self.lines += other.lines
		self.blank += other.blank

	def sub(self, other: "Source") -> None:
		self.files -= other.files
		self.binary -= other.binary
		self.size -= other.size
		self.lines -= other.lines
		self.blank -= other.blank


class Stat(BaseModel):
	package_count: int = 0
	python: Source = Field(default_factory=Source)
	other_files: Source = Field(default_factory=Source)

	@property
	def all_files(self) -> Source:
		total = Source()
		total.add(self.python)
		total.add(self.other_files)
		return total

	def add(self, other: "Stat") -> None:
		self.package_count += other.package_count
		self.python.add(other.python)
		self.other_files.add(other.other_files)

	def sub(self, other: "Stat") -> None:
		self.package_count -= other.package_count
		self.python.sub(other.python)
		self.other_files.sub(other.other_files)


class PackageNode:
	"""A build unit in the dependency graph.

	`imports` maps the import key (usually the imported id) to the imported node.
	Nodes are created by a loader and are read-only afterwards.
	"""

	def __init__(
		self,
		id: str,
		name: str = "",
		module: Optional[str] = None,
		stat: Optional[Stat] = None,
		files: Optional[List[str]] = None,
		entrypoint: bool = False,
		std: bool = False,
	):
		self.id = id
		self.name = name or id.rsplit("/", 1)[-1].rsplit(".", 1)[-1]
		self.module = module
		self.stat = stat if stat is not None else Stat(package_count=1)
		self.files: List[str] = files or []
		self.entrypoint = entrypoint
		self.std = std
		self.imports: Dict[str, PackageNode] = {}

	def add_import(self, node: "PackageNode", key: Optional[str] = None) -> None:
		self.imports[key or node.id] = node

	@property
	def is_main(self) -> bool:
		return self.entrypoint or self.name == "main"

	def copy(self) -> "PackageNode":
		clone = PackageNode(
			self.id,
			name=self.name,
			module=self.module,
			stat=self.stat,
			files=self.files,
			entrypoint=self.entrypoint,
			std=self.std,
		)
		clone.imports = dict(self.imports)
		return clone

	def __repr__(self) -> str:
		return f"PackageNode({self.id!r})"


class PackageRecord(BaseModel):
	id: str
	name: str = ""
	module: Optional[str] = None
	imports: List[str] = []
	files: List[str] = []
	stat: Optional[Stat] = None
	std: bool = False
	test: bool = False
	entrypoint: bool = False
	tags: List[str] = []


class Snapshot(BaseModel):
	packages: List[PackageRecord] = []


class PackageInfo(BaseModel):
	id: str
	name: str
	module: Optional[str] = None
	imports: List[str] = []
	stat: Stat

	@classmethod
	def from_node(cls, node: PackageNode) -> "PackageInfo":
		return cls(
			id=node.id,
			name=node.name,
			module=node.module,
			imports=sorted(n.id for n in node.imports.values()),
			stat=node.stat,
		)


class CutEntry(BaseModel):
	id: str
	in_degree: int
	out_degree: int
	stat: Stat
	cut: Stat


class CalcResult(BaseModel):
	expr: str
	packages: List[PackageInfo]


class CutResult(BaseModel):
	expr: str
	rows: List[CutEntry]


class ParseResult(BaseModel):
	expr: str
	tree: str


def package_infos(nodes: Iterable[PackageNode]) -> List[PackageInfo]:
	return [PackageInfo.from_node(n) for n in sorted(nodes, key=lambda n: n.id)]
