import threading

import pytest

from conftest import RecordingLoader
from depcalc.errors import LoadError
from depcalc.std import StdPackages


@pytest.fixture
def std_loader(make_loader):
	return RecordingLoader(make_loader({"os": ["io"], "io": [], "app": ["os"]}, os={"std": True}, io={"std": True}))


def test_loaded_once(std_loader):
	std = StdPackages(std_loader)
	assert sorted(std.get()) == ["io", "os"]
	assert std.is_std("io")
	assert not std.is_std("app")
	assert len(std_loader.calls) == 1
	config, patterns = std_loader.calls[0]
	assert patterns == ("std",)
	assert config.tests


def test_get_returns_a_copy(std_loader):
	std = StdPackages(std_loader)
	std.get().clear()
	assert sorted(std.get()) == ["io", "os"]


def test_prefetch(std_loader):
	std = StdPackages(std_loader)
	std.prefetch()
	std.prefetch()
	assert sorted(std.get()) == ["io", "os"]
	assert len(std_loader.calls) == 1


def test_concurrent_get(std_loader):
	std = StdPackages(std_loader)
	results = []
	threads = [threading.Thread(target=lambda: results.append(sorted(std.get()))) for _ in range(8)]
	for t in threads:
		t.start()
	for t in threads:
		t.join()
	assert results == [["io", "os"]] * 8
	assert len(std_loader.calls) == 1


def test_load_failure_is_reported(make_loader):
	class Failing:
		default_pattern = "..."

		def load(self, config, *patterns):
			raise LoadError("no toolchain", patterns)

	std = StdPackages(Failing())
	with pytest.raises(LoadError, match="no toolchain"):
		std.get()
	with pytest.raises(LoadError):
		std.is_std("os")
