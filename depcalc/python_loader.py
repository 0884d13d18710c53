from __future__ import annotations

import logging
import os
import sys
import threading
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple

from .context import LoadConfig
from .errors import LoadError
from .fs_scan import FileInfo, scan_repository
from .imports import ImportRef, ModuleImports, parse_module_imports
from .model import PackageNode, Stat
from .patterns import ALL, resolve_patterns
from .pkgset import is_test_package
from .stat import package_stat

log = logging.getLogger(__name__)

# build tag enabling imports guarded by `if TYPE_CHECKING:`
TYPING_TAG = "typing"


class _Scan:
	def __init__(self) -> None:
		self.modules: Dict[str, FileInfo] = {}
		self.other_files: Dict[str, List[str]] = {}
		self.imports: Dict[str, ModuleImports] = {}


class PythonLoader:
	"""Loads a Python source tree, one package per module.

	In-tree modules are grouped by their top-level package. Imports of modules
	outside the tree become leaf nodes named after the top-level import; the
	standard library ones are flagged `std`.
	"""

	default_pattern = ALL

	def __init__(self, root: str, std_names: Optional[Iterable[str]] = None):
		self.root = os.path.abspath(root)
		self.std_names: FrozenSet[str] = frozenset(std_names if std_names is not None else sys.stdlib_module_names)
		self._lock = threading.Lock()
		self._scan: Optional[_Scan] = None
		self._universes: Dict[Tuple[bool, bool], Dict[str, PackageNode]] = {}

	def _scan_tree(self, config: LoadConfig) -> _Scan:
		if self._scan is not None:
			return self._scan
		if not os.path.isdir(self.root):
			raise LoadError(f"invalid root path: {self.root}", [self.root])

		scan = _Scan()
		files = scan_repository(self.root)
		for f in files:
			if f.language == "python" and f.module:
				scan.modules[f.module] = f
			elif f.package is not None and f.language != "python":
				scan.other_files.setdefault(f.package, []).append(f.path)

		for name, f in scan.modules.items():
			if config.cancelled:
				raise LoadError("load cancelled", [self.root])
			try:
				with open(f.path, "r", encoding="utf-8") as fh:
					text = fh.read()
				scan.imports[name] = parse_module_imports(name, f.path, text, is_package=f.is_package)
			except (OSError, SyntaxError, UnicodeDecodeError, ValueError) as e:
				log.warning("skipping imports of %s: %s", f.rel_path, e)
				scan.imports[name] = ModuleImports(module=name, path=f.path)

		log.info("scanned %s: %d files, %d python modules", self.root, len(files), len(scan.modules))
		self._scan = scan
		return scan

	def _resolve(self, ref: ImportRef, modules: Dict[str, FileInfo]) -> Optional[str]:
		for candidate in ref.candidates:
			parts = candidate.split(".")
			for end in range(len(parts), 0, -1):
				name = ".".join(parts[:end])
				if name in modules:
					return name
		return None

	def _build(self, config: LoadConfig) -> Dict[str, PackageNode]:
		scan = self._scan_tree(config)
		with_typing = any(t.lower() == TYPING_TAG for t in config.tags)

		nodes: Dict[str, PackageNode] = {}
		for name in sorted(self.std_names):
			nodes[name] = PackageNode(name, module=None, std=True)

		included = {m: f for m, f in scan.modules.items() if config.tests or not is_test_package(m)}
		for name, f in included.items():
			other = scan.other_files.get(name, []) if f.is_package else []
			stat, _ = package_stat([f.path], other)
			nodes[name] = PackageNode(
				name,
				module=name.split(".", 1)[0],
				stat=stat,
				files=[f.path] + other,
				entrypoint=scan.imports[name].entrypoint,
			)

		for name in included:
			node = nodes[name]
			for ref in scan.imports[name].imports:
				if ref.type_checking and not with_typing:
					continue
				target = self._resolve(ref, scan.modules)
				if target is None:
					top = ref.candidates[-1].split(".", 1)[0]
					if not top:
						continue
					dep = nodes.get(top)
					if dep is None:
						dep = PackageNode(top, module=top, stat=Stat(package_count=1))
						nodes[top] = dep
				elif target not in included or target == name:
					continue
				else:
					dep = nodes[target]
				node.add_import(dep)

		log.debug("built package universe tests=%s typing=%s: %d nodes", config.tests, with_typing, len(nodes))
		return nodes

	def universe(self, config: LoadConfig) -> Dict[str, PackageNode]:
		key = (config.tests, any(t.lower() == TYPING_TAG for t in config.tags))
		with self._lock:
			nodes = self._universes.get(key)
			if nodes is None:
				nodes = self._build(config)
				self._universes[key] = nodes
			return nodes

	def load(self, config: LoadConfig, *patterns: str) -> List[PackageNode]:
		if config.cancelled:
			raise LoadError("load cancelled", patterns)
		nodes = self.universe(config)
		return resolve_patterns(
			patterns,
			nodes,
			std=lambda: [n for n in nodes.values() if n.std],
			in_wildcards=lambda n: bool(n.files),
			tests=config.tests,
		)
