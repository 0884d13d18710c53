from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, FrozenSet, Iterable, List, Optional, Protocol, Tuple

from .model import PackageNode

if TYPE_CHECKING:
	from .deadcode import DeadcodeOracle
	from .pkgset import PackageSet
	from .std import StdPackages


DEFAULT_ENV_KEYS: FrozenSet[str] = frozenset(
	{
		"PYTHONPATH",
		"PYTHONHOME",
		"VIRTUAL_ENV",
		"GOOS",
		"GOARCH",
		"GOENV",
		"GOFLAGS",
		"GOROOT",
		"CGO_ENABLED",
	}
)


def key_value(s: str) -> Tuple[str, str]:
	"""Split "key=value" at the last '='."""
	p = s.rfind("=")
	if p < 0:
		return s, ""
	return s[:p], s[p + 1 :]


class Strings(list):
	"""Ordered KEY=VALUE list with case-insensitive keys."""

	def index_of(self, key: str) -> int:
		prefix = key.lower() + "="
		for i, x in enumerate(self):
			if x.lower().startswith(prefix):
				return i
		return -1

	def set(self, key: str, value: str) -> None:
		i = self.index_of(key)
		if i < 0:
			self.append(f"{key}={value}")
		else:
			self[i] = f"{key}={value}"

	def value_of(self, key: str) -> str:
		i = self.index_of(key)
		if i < 0:
			return ""
		return key_value(self[i])[1]

	def clone(self) -> "Strings":
		return Strings(self)


@dataclass
class LoadConfig:
	env: List[str] = field(default_factory=list)
	tags: List[str] = field(default_factory=list)
	tests: bool = False
	cancel: Optional[threading.Event] = None

	@property
	def cancelled(self) -> bool:
		return self.cancel is not None and self.cancel.is_set()


class Loader(Protocol):
	"""Resolves package patterns into root nodes with their import graph."""

	default_pattern: str

	def load(self, config: LoadConfig, *patterns: str) -> List[PackageNode]:
		...


class Context:
	def __init__(
		self,
		loader: Loader,
		std: Optional["StdPackages"] = None,
		oracle: Optional["DeadcodeOracle"] = None,
		env: Optional[Iterable[str]] = None,
		tags: Optional[Iterable[str]] = None,
		variables: Optional[Dict[str, "PackageSet"]] = None,
		env_keys: Iterable[str] = DEFAULT_ENV_KEYS,
		cancel: Optional[threading.Event] = None,
	):
		self.loader = loader
		self.std = std
		self.oracle = oracle
		self.env = Strings(env or [])
		self.tags = Strings(tags or [])
		# bindings are visible to the whole evaluation, clones share them
		self.variables: Dict[str, "PackageSet"] = variables if variables is not None else {}
		self.env_keys = frozenset(k.upper() for k in env_keys)
		self.cancel = cancel

	def clone(self) -> "Context":
		return Context(
			self.loader,
			std=self.std,
			oracle=self.oracle,
			env=self.env.clone(),
			tags=self.tags.clone(),
			variables=self.variables,
			env_keys=self.env_keys,
			cancel=self.cancel,
		)

	def set(self, key: str, value: str) -> None:
		if key.upper() in self.env_keys:
			self.env.set(key.upper(), value)
			return
		self.tags.set(key, value)

	def config(self) -> LoadConfig:
		tags: List[str] = []
		for tag in self.tags:
			key, value = key_value(tag)
			if key.lower() == "test":
				continue
			if value == "1":
				tags.append(key)
		return LoadConfig(
			env=list(self.env),
			tags=tags,
			tests=self.tags.value_of("test") == "1",
			cancel=self.cancel,
		)

	def load(self, *patterns: str) -> List[PackageNode]:
		return self.loader.load(self.config(), *patterns)

	def load_with_tests(self, *patterns: str) -> List[PackageNode]:
		config = self.config()
		config.tests = True
		return self.loader.load(config, *patterns)

	def load_without_tests(self, *patterns: str) -> List[PackageNode]:
		config = self.config()
		config.tests = False
		return self.loader.load(config, *patterns)
