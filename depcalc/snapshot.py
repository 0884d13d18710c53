from __future__ import annotations

import logging
import threading
from typing import Dict, List, Sequence, Tuple

from pydantic import ValidationError

from .context import LoadConfig
from .errors import LoadError
from .model import PackageNode, PackageRecord, Snapshot, Stat
from .patterns import ALL, resolve_patterns
from .pkgset import is_test_package

log = logging.getLogger(__name__)


class SnapshotLoader:
	"""Serves packages from a fully materialized dependency graph.

	Records flagged as tests (or named like tests) only exist when tests are
	requested. A record listing `tags` only exists when all of them are active.
	"""

	default_pattern = ALL

	def __init__(self, snapshot: Snapshot):
		self.snapshot = snapshot
		self._lock = threading.Lock()
		self._universes: Dict[Tuple[bool, Tuple[str, ...]], Dict[str, PackageNode]] = {}

	@classmethod
	def from_file(cls, path: str) -> "SnapshotLoader":
		try:
			with open(path, "r", encoding="utf-8") as fh:
				snapshot = Snapshot.model_validate_json(fh.read())
		except (OSError, ValidationError) as e:
			raise LoadError(f"failed to read snapshot {path!r}: {e}", [path]) from e
		log.info("loaded snapshot %s with %d packages", path, len(snapshot.packages))
		return cls(snapshot)

	@classmethod
	def from_records(cls, records: Sequence[PackageRecord]) -> "SnapshotLoader":
		return cls(Snapshot(packages=list(records)))

	def _included(self, record: PackageRecord, config: LoadConfig) -> bool:
		if not config.tests and (record.test or is_test_package(record.id)):
			return False
		active = {t.lower() for t in config.tags}
		return all(t.lower() in active for t in record.tags)

	def universe(self, config: LoadConfig) -> Dict[str, PackageNode]:
		key = (config.tests, tuple(sorted(t.lower() for t in config.tags)))
		with self._lock:
			nodes = self._universes.get(key)
			if nodes is None:
				nodes = self._build(config)
				self._universes[key] = nodes
			return nodes

	def _build(self, config: LoadConfig) -> Dict[str, PackageNode]:
		records = [r for r in self.snapshot.packages if self._included(r, config)]
		nodes: Dict[str, PackageNode] = {}
		for r in records:
			nodes[r.id] = PackageNode(
				r.id,
				name=r.name,
				module=r.module,
				stat=r.stat if r.stat is not None else Stat(package_count=1),
				files=r.files,
				entrypoint=r.entrypoint,
				std=r.std,
			)
		for r in records:
			node = nodes[r.id]
			for imp in r.imports:
				dep = nodes.get(imp)
				if dep is None:
					log.debug("%s: dropping import of unavailable package %s", r.id, imp)
					continue
				node.add_import(dep)
		return nodes

	def load(self, config: LoadConfig, *patterns: str) -> List[PackageNode]:
		if config.cancelled:
			raise LoadError("load cancelled", patterns)
		nodes = self.universe(config)
		return resolve_patterns(
			patterns,
			nodes,
			std=lambda: [n for n in nodes.values() if n.std],
			in_wildcards=lambda n: not n.std,
			tests=config.tests,
		)
