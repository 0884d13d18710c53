from __future__ import annotations

import ast
from typing import List

from pydantic import BaseModel


class ImportRef(BaseModel):
	# candidate dotted names, most specific first
	candidates: List[str]
	type_checking: bool = False


class ModuleImports(BaseModel):
	module: str
	path: str
	imports: List[ImportRef] = []
	entrypoint: bool = False


def _is_type_checking(test: ast.expr) -> bool:
	if isinstance(test, ast.Name):
		return test.id == "TYPE_CHECKING"
	if isinstance(test, ast.Attribute):
		return test.attr == "TYPE_CHECKING"
	return False


def _is_main_guard(test: ast.expr) -> bool:
	if not isinstance(test, ast.Compare) or len(test.comparators) != 1:
		return False
	names = [test.left, test.comparators[0]]
	has_name = any(isinstance(n, ast.Name) and n.id == "__name__" for n in names)
	has_main = any(isinstance(n, ast.Constant) and n.value == "__main__" for n in names)
	return has_name and has_main


def resolve_relative(module: str, is_package: bool, level: int, target: str) -> str:
	"""Absolute name of `from <level dots><target> import ...` inside module."""
	if level == 0:
		return target
	parts = module.split(".") if module else []
	if not is_package:
		parts = parts[:-1]
	if level > 1:
		parts = parts[: len(parts) - (level - 1)] if level - 1 <= len(parts) else []
	if target:
		parts.append(target)
	return ".".join(parts)


class _ImportVisitor(ast.NodeVisitor):
	def __init__(self, module: str, is_package: bool):
		self.module = module
		self.is_package = is_package
		self.imports: List[ImportRef] = []
		self.entrypoint = module.endswith("__main__")
		self._type_checking = 0

	def visit_If(self, node: ast.If) -> None:
		if _is_main_guard(node.test):
			self.entrypoint = True
		if _is_type_checking(node.test):
			self._type_checking += 1
			for sub in node.body:
				self.visit(sub)
			self._type_checking -= 1
			for sub in node.orelse:
				self.visit(sub)
			return
		self.generic_visit(node)

	def visit_Import(self, node: ast.Import) -> None:
		for alias in node.names:
			self.imports.append(ImportRef(candidates=[alias.name], type_checking=self._type_checking > 0))

	def visit_ImportFrom(self, node: ast.ImportFrom) -> None:
		base = resolve_relative(self.module, self.is_package, node.level, node.module or "")
		for alias in node.names:
			candidates = []
			if alias.name != "*":
				candidates.append(f"{base}.{alias.name}" if base else alias.name)
			if base:
				candidates.append(base)
			if candidates:
				self.imports.append(ImportRef(candidates=candidates, type_checking=self._type_checking > 0))


def parse_module_imports(module_name: str, path: str, text: str, is_package: bool = False) -> ModuleImports:
	tree = ast.parse(text, filename=path)
	visitor = _ImportVisitor(module_name, is_package)
	visitor.visit(tree)
	return ModuleImports(
		module=module_name,
		path=path,
		imports=visitor.imports,
		entrypoint=visitor.entrypoint,
	)
