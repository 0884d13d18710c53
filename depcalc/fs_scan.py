from __future__ import annotations

import os
from typing import Dict, List, Optional

from pydantic import BaseModel


IGNORED_DIRS = {
	".git",
	".hg",
	".tox",
	".nox",
	".venv",
	"venv",
	"node_modules",
	"dist",
	"build",
	"__pycache__",
	".mypy_cache",
	".pytest_cache",
}

EXTENSION_LANGUAGE: Dict[str, str] = {
	".py": "python",
	".pyi": "python-stub",
	".pyx": "cython",
	".c": "c",
	".h": "c",
	".cpp": "cpp",
	".rs": "rust",
	".js": "javascript",
	".ts": "typescript",
}


class FileInfo(BaseModel):
	path: str
	rel_path: str
	language: str
	package: Optional[str] = None
	module: Optional[str] = None
	is_package: bool = False


def detect_language(filename: str) -> str:
	_, ext = os.path.splitext(filename)
	return EXTENSION_LANGUAGE.get(ext.lower(), "unknown")


def _dotted(rel_path: str) -> str:
	return ".".join(p for p in rel_path.split(os.sep) if p != "__init__").replace("-", "_")


def to_module_name(root: str, file_path: str) -> str:
	"""Dotted module name of a python file, "pkg/__init__.py" is "pkg"."""
	return _dotted(os.path.splitext(os.path.relpath(file_path, root))[0])


def to_dir_module(root: str, dir_path: str) -> str:
	rel_path = os.path.relpath(dir_path, root)
	if rel_path == os.curdir:
		return ""
	return _dotted(rel_path)


def to_package_name(module_name: str) -> str:
	if "." in module_name:
		return module_name.rsplit(".", 1)[0]
	return ""


def scan_repository(root: str) -> List[FileInfo]:
	files: List[FileInfo] = []
	for dirpath, dirnames, filenames in os.walk(root):
		dirnames[:] = sorted(d for d in dirnames if d not in IGNORED_DIRS and not d.endswith(".egg-info"))
		for filename in sorted(filenames):
			path = os.path.join(dirpath, filename)
			language = detect_language(filename)
			rel_path = os.path.relpath(path, root)
			module = None
			package = None
			if language == "python":
				module = to_module_name(root, path)
				package = to_package_name(module)
			else:
				# non-python files count towards the package of their directory
				package = to_dir_module(root, dirpath)
			files.append(
				FileInfo(
					path=path,
					rel_path=rel_path,
					language=language,
					package=package or None,
					module=module or None,
					is_package=filename == "__init__.py",
				)
			)
	return files
