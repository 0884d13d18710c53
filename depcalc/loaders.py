from __future__ import annotations

import logging
from typing import Optional

from .calc import Calculator
from .callgraph import CallGraphOracle
from .config import settings
from .deadcode import DeadcodeOracle, DumpDepOracle
from .python_loader import PythonLoader
from .snapshot import SnapshotLoader

log = logging.getLogger(__name__)


def open_calculator(root: Optional[str] = None, snapshot: Optional[str] = None) -> Calculator:
	"""Calculator over a snapshot file when one is given, otherwise over a source tree."""
	snapshot = snapshot if snapshot is not None else settings.snapshot
	oracle: Optional[DeadcodeOracle] = None
	if settings.deadcode_command:
		oracle = DumpDepOracle(settings.deadcode_command)

	if snapshot:
		loader = SnapshotLoader.from_file(snapshot)
		calculator = Calculator(loader, oracle=oracle, env_keys=settings.env_keys)
	else:
		source = PythonLoader(root if root is not None else settings.root)
		log.debug("loading python sources from %s", source.root)
		calculator = Calculator(source, oracle=oracle or CallGraphOracle(source), env_keys=settings.env_keys)

	if settings.prefetch_std:
		calculator.std.prefetch()
	return calculator
