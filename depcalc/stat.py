from __future__ import annotations

import logging
from typing import Iterable, List, Tuple

from .model import Source, Stat

log = logging.getLogger(__name__)


def source_from_bytes(data: bytes) -> Source:
	count = Source(files=1)
	if not data:
		return count
	count.size = len(data)

	empty_line = True
	for c in data:
		if c == 0:
			# binary content carries no line information
			return Source(files=0, binary=1, size=len(data))
		if c == 0x0A:
			if empty_line:
				count.blank += 1
			else:
				count.lines += 1
			empty_line = True
		elif c in (0x0D, 0x20, 0x09):
			continue
		else:
			empty_line = False

	if not empty_line:
		count.lines += 1
	return count


def source_from_path(path: str) -> Source:
	with open(path, "rb") as fh:
		return source_from_bytes(fh.read())


def package_stat(python_files: Iterable[str], other_files: Iterable[str] = ()) -> Tuple[Stat, List[str]]:
	"""Collect the stat of a single package; unreadable files are reported, not raised."""
	stat = Stat(package_count=1)
	errors: List[str] = []
	for path in python_files:
		try:
			stat.python.add(source_from_path(path))
		except OSError as e:
			errors.append(f"failed to read {path!r}: {e}")
	for path in other_files:
		try:
			stat.other_files.add(source_from_path(path))
		except OSError as e:
			errors.append(f"failed to read {path!r}: {e}")
	for err in errors:
		log.warning(err)
	return stat, errors
