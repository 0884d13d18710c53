from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional

from .context import LoadConfig, Loader
from .pkgset import PackageSet, new_all

log = logging.getLogger(__name__)


class StdPackages:
	"""Lazily loaded standard library package set.

	The set is loaded exactly once. `prefetch` starts loading on a background
	worker; the first call to `get` waits for it.
	"""

	def __init__(self, loader: Loader, pattern: str = "std"):
		self.loader = loader
		self.pattern = pattern
		self._lock = threading.Lock()
		self._future: Optional[Future] = None
		self._executor: Optional[ThreadPoolExecutor] = None

	def _load(self) -> PackageSet:
		log.debug("loading standard library packages")
		roots = self.loader.load(LoadConfig(tests=True), self.pattern)
		pkgs = new_all(roots)
		log.debug("loaded %d standard library packages", len(pkgs))
		return pkgs

	def _start(self, background: bool) -> Future:
		with self._lock:
			if self._future is None:
				if background:
					self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="std-prefetch")
					self._future = self._executor.submit(self._load)
					self._executor.shutdown(wait=False)
				else:
					future: Future = Future()
					self._future = future
					try:
						future.set_result(self._load())
					except Exception as e:
						future.set_exception(e)
			return self._future

	def prefetch(self) -> None:
		self._start(background=True)

	def get(self) -> PackageSet:
		return dict(self._start(background=False).result())

	def is_std(self, pid: str) -> bool:
		return pid in self._start(background=False).result()
