import json

import pytest

from depcalc.context import Context, LoadConfig
from depcalc.model import PackageRecord
from depcalc.snapshot import SnapshotLoader


def make_records(graph, **fields):
	"""graph maps id -> imported ids; fields maps id -> extra record fields."""
	records = []
	for pid, imports in graph.items():
		extra = fields.get(pid, {})
		records.append(PackageRecord(id=pid, imports=list(imports), **extra))
	return records


class RecordingLoader:
	"""Wraps a loader and remembers every (config, patterns) it was asked for."""

	default_pattern = "..."

	def __init__(self, inner):
		self.inner = inner
		self.calls = []

	def load(self, config: LoadConfig, *patterns):
		self.calls.append((config, patterns))
		return self.inner.load(config, *patterns)


@pytest.fixture
def make_loader():
	def make(graph, **fields):
		return SnapshotLoader.from_records(make_records(graph, **fields))

	return make


@pytest.fixture
def chain(make_loader):
	# A imports B, B imports C
	return make_loader({"A": ["B"], "B": ["C"], "C": []})


@pytest.fixture
def make_context():
	def make(loader, **kwargs):
		return Context(loader, **kwargs)

	return make


@pytest.fixture
def snapshot_file(tmp_path):
	def write(graph, **fields):
		path = tmp_path / "graph.json"
		records = [r.model_dump() for r in make_records(graph, **fields)]
		path.write_text(json.dumps({"packages": records}))
		return str(path)

	return write
